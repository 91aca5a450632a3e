"""Packaged YAML defaults and the :class:`ConfigManager` that merges user overrides."""

from .manager import ConfigManager

__all__ = [
    "ConfigManager",
]
