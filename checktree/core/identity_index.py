from __future__ import annotations

"""One-to-many relation between item identities and live tree nodes.

The same store item can be rendered by several nodes at once: below two
expanded parents of a forest, or in two trees sharing one model. The index
keeps every node bound to an identity so a single item change can be fanned
out to all of them.
"""

import logging
from typing import Any, Dict, Iterator, List

__all__ = ["NodeIdentityIndex"]

logger = logging.getLogger(__name__)


class NodeIdentityIndex:
    """Identity -> nodes index owned by one tree controller.

    Nodes only need a ``set(prop, value)`` method. They are keyed by ``id()``
    inside each identity bucket, so adding or removing one node never scans
    other identities and nodes do not have to be hashable.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, Dict[int, Any]] = {}

    def add(self, identity: str, node: Any) -> None:
        self._nodes.setdefault(identity, {})[id(node)] = node

    def remove(self, identity: str, node: Any) -> bool:
        """Unbind ``node`` from ``identity``. Returns False if it was not bound."""
        bucket = self._nodes.get(identity)
        if not bucket or bucket.pop(id(node), None) is None:
            return False
        if not bucket:
            del self._nodes[identity]
        return True

    def discard_identity(self, identity: str) -> List[Any]:
        """Drop every node bound to ``identity`` and return them."""
        bucket = self._nodes.pop(identity, None)
        return list(bucket.values()) if bucket else []

    def nodes_for(self, identity: str) -> List[Any]:
        bucket = self._nodes.get(identity)
        return list(bucket.values()) if bucket else []

    def broadcast(self, identity: str, prop: str, value: Any) -> int:
        """Apply ``prop = value`` to every node bound to ``identity``.

        No bound nodes means the item is not rendered anywhere, which is not
        an error. Returns the number of nodes updated.
        """
        nodes = self.nodes_for(identity)
        for node in nodes:
            node.set(prop, value)
        if nodes:
            logger.debug("Broadcast %s=%r to %d node(s) of %s", prop, value, len(nodes), identity)
        return len(nodes)

    def identities(self) -> Iterator[str]:
        return iter(list(self._nodes.keys()))

    def clear(self) -> None:
        self._nodes.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._nodes

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._nodes.values())
