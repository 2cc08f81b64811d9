# -*- coding: ascii -*-
"""
Path-addressed counter store.

The statistics tree is made of CounterNode mappings whose children are either
integer leaves or further CounterNodes. Nodes are addressed with dot-separated
paths ("by_op.create.by_etype.house") or with a sequence of already-split
segments, which keeps dimension values that contain dots as a single key.

Counting semantics:
=================================

- increment(path, amount, '.ok') adds amount to <path>.total and <path>.ok
- increment(path, amount, '.fail') adds amount to <path>.total and <path>.fail
- increment(path, amount) adds amount to the scalar at <path> itself

Missing intermediate nodes are created on demand. Existing values that are not
numbers (partial or corrupted snapshots) count as zero before adding. None of
the operations raise for a well-formed path.
"""

import logging
import math
import re
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

from .schema import KEY_TOTAL

LOG = logging.getLogger(__name__)

Path = Union[str, Sequence[str]]

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def coerce_count(value: Any) -> int:
    """
    Coerce a stored counter value to int, degrading to 0.

    Integers pass through, floats truncate toward zero, strings use their
    leading integer prefix ("12abc" -> 12). Anything else, including bools,
    None and nested nodes, counts as 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return 0


def split_path(path: Path) -> Tuple[str, ...]:
    """Split a dotted path (or pass a segment sequence through) into segments."""
    if isinstance(path, str):
        return tuple(path.split('.')) if path else ()
    return tuple(str(segment) for segment in path)


class CounterNode:
    """Mapping node of the statistics tree."""

    __slots__ = ('_children',)

    def __init__(self, children: Optional[Dict[str, Any]] = None):
        self._children: Dict[str, Any] = {}
        for key, value in (children or {}).items():
            if isinstance(value, dict):
                value = CounterNode(value)
            self._children[str(key)] = value

    # -- mapping helpers -------------------------------------------------

    def __contains__(self, key: str) -> bool:
        return key in self._children

    def __getitem__(self, key: str) -> Any:
        return self._children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CounterNode):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"CounterNode({self.to_dict()!r})"

    def keys(self):
        return self._children.keys()

    def items(self):
        return self._children.items()

    def child(self, key: str) -> Optional['CounterNode']:
        """Return the sub-node under key, or None if absent or a leaf."""
        value = self._children.get(key)
        return value if isinstance(value, CounterNode) else None

    def count(self, key: str) -> int:
        """Return the counter stored under key, 0 if missing or not numeric."""
        return coerce_count(self._children.get(key, 0))

    # -- path interpreter ------------------------------------------------

    def get(self, path: Path, default: Any = None) -> Any:
        """Return the leaf or sub-node at path, or default if any segment is absent."""
        node: Any = self
        for segment in split_path(path):
            if not isinstance(node, CounterNode) or segment not in node._children:
                return default
            node = node._children[segment]
        return node

    def set(self, path: Path, value: Any) -> None:
        """Assign value at path, creating intermediate nodes as needed."""
        segments = split_path(path)
        if not segments:
            raise ValueError("cannot assign to the root of a counter tree")
        parent = self._vivify(segments[:-1])
        parent._children[segments[-1]] = value

    def increment(self, path: Path, amount: int = 1, suffix: Optional[str] = None) -> None:
        """
        Add amount to the counters at path.

        Args:
            path: Dotted path or segment sequence; empty addresses this node
            amount: Increment amount (default: 1)
            suffix: '.ok' or '.fail' to also bump the outcome counter;
                    None for a plain running sum at path itself
        """
        segments = split_path(path)
        if suffix:
            node = self._vivify(segments)
            node._bump(KEY_TOTAL, amount)
            node._bump(suffix.lstrip('.'), amount)
            return
        if not segments:
            raise ValueError("plain increments need a leaf path")
        parent = self._vivify(segments[:-1])
        parent._bump(segments[-1], amount)

    def _bump(self, key: str, amount: int) -> None:
        current = self._children.get(key, 0)
        if isinstance(current, CounterNode):
            LOG.debug("counter %r holds a node, restarting it from zero", key)
        self._children[key] = coerce_count(current) + amount

    def _vivify(self, segments: Sequence[str]) -> 'CounterNode':
        node = self
        for segment in segments:
            nxt = node._children.get(segment)
            if not isinstance(nxt, CounterNode):
                if nxt is not None:
                    LOG.debug("replacing scalar %r at %r with a node", nxt, segment)
                nxt = CounterNode()
                node._children[segment] = nxt
            node = nxt
        return node

    # -- plain-dict view -------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep plain-dict copy of the tree."""
        out: Dict[str, Any] = {}
        for key, value in self._children.items():
            out[key] = value.to_dict() if isinstance(value, CounterNode) else value
        return out

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'CounterNode':
        """Rebuild a tree from its plain-dict form. Leaf values are kept as given."""
        return cls(data)
