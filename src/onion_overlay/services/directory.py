"""In-memory relay registry backing the directory service."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from onion_overlay.schemas.directory import NodeRecord

logger = logging.getLogger(__name__)


class DuplicateNodeError(ValueError):
    """Raised when a relay id is registered twice."""


class NodeIdOutOfRangeError(ValueError):
    """Raised when a relay id has no address in the relay range."""


class NodeRegistry:
    """Registered relays, in registration order.

    Entries are immutable once registered; there is no removal.
    """

    def __init__(self, address_span: int | None = None) -> None:
        self.address_span = address_span
        self._nodes: dict[int, NodeRecord] = {}

    def register(self, node_id: int, pub_key: str) -> NodeRecord:
        if node_id < 0 or (self.address_span is not None and node_id >= self.address_span):
            raise NodeIdOutOfRangeError(
                f"Node id {node_id} is outside [0, {self.address_span})"
            )
        if node_id in self._nodes:
            raise DuplicateNodeError(f"Node {node_id} is already registered")
        record = NodeRecord(node_id=node_id, pub_key=pub_key)
        self._nodes[node_id] = record
        logger.info("Registered relay %d", node_id)
        return record

    def get(self, node_id: int) -> NodeRecord | None:
        return self._nodes.get(node_id)

    def all(self) -> list[NodeRecord]:
        return list(self._nodes.values())

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[NodeRecord]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._nodes)
