# -*- coding: utf-8 -*-

"""
Main entry point for launching the checktree demo application.
"""

import logging
import tkinter as tk

from checktree.logging_config import setup_logging
from checktree.app import CheckTreeDemo


def main():
    """
    Configure logging, main window, and launch the demo.
    """
    setup_logging()

    root = tk.Tk()
    root.title("checktree demo")
    window_width, window_height = 640, 420
    # Center the window
    screen_width = root.winfo_screenwidth()
    screen_height = root.winfo_screenheight()
    pos_x = (screen_width // 2) - (window_width // 2)
    pos_y = (screen_height // 2) - (window_height // 2)
    root.geometry(f"{window_width}x{window_height}+{pos_x}+{pos_y}")

    CheckTreeDemo(root)

    root.mainloop()


if __name__ == '__main__':
    main()

    logging.info("===== Application terminated =====")
