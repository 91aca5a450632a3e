"""UI widgets package.

``CheckboxTreeWidget`` requires tkinter and is not re-exported here; import it
from :mod:`checktree.ui.widgets.checkbox_tree`.
"""

from .tree_node import TreeNode

__all__: list[str] = ["TreeNode"]
