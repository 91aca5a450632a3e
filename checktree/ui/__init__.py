"""Checkbox tree UI package.

The controller and node layers are toolkit independent. The Tk view lives in
:mod:`checktree.ui.widgets.checkbox_tree` and is imported explicitly so that
the rest of the package works without a display.
"""

# Ensure subpackages are imported so relative imports have resolvable parents
from . import widgets as _widgets  # noqa: F401
from . import controllers as _controllers  # noqa: F401

from .controllers.tree_controller import TreeController  # noqa: F401
from .widgets.tree_node import TreeNode  # noqa: F401

__all__: list[str] = [
    "TreeController",
    "TreeNode",
]
