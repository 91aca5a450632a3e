from __future__ import annotations

"""Exception classes for the checkbox tree core.

Configuration errors are raised while a tree or model is being set up and
abort initialization. Store and query errors describe problems with the
backing data; query errors are normally delivered to an ``on_error``
callback rather than raised, so a running tree never crashes because of them.
"""

from typing import Optional

__all__ = [
    "CheckTreeError",
    "ConfigurationError",
    "StoreError",
    "QueryError",
]


class CheckTreeError(Exception):
    """Base exception for all checktree errors.

    Carries an optional ``cause`` so wrapped failures keep their origin.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigurationError(CheckTreeError):
    """Raised when a tree, model or checkbox widget is set up incorrectly.

    This includes a model without ``get_checked()``/``set_checked()`` while
    checkboxes are requested, and a custom checkbox widget that lacks the
    ``checked`` property or the ``get()``/``set()`` methods.
    """

    def __init__(self, message: str, component: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.component = component

    def __str__(self) -> str:
        if self.component:
            return f"[{self.component}] {super().__str__()}"
        return super().__str__()


class StoreError(CheckTreeError):
    """Raised when store data is invalid (duplicate identity, bad reference)."""
    pass


class QueryError(CheckTreeError):
    """A store query could not be satisfied."""

    def __init__(self, message: str, query: Optional[object] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.query = query
