# -*- coding: ascii -*-
"""
Order conversion statistics accumulator.

Counting Semantics:
================================
One OrderStats instance accumulates one conversion run. Every counted record
updates, with its outcome (ok / fail):

- the root counters (total, ok, fail)
- by_op.<op>, by_etype.<etype>, by_otype.<otype>
- the six two-dimension cross-tabs (each dimension by the other two)
- photos.total (+photo count) and exactly one of photos.zero / photos.exist

Falsy orders are ignored. Orders that cannot be parsed or have an unsupported
type are skipped: the observer is notified and no counter is touched.
Advanced-stat payloads are collected for successful records only.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .counters import CounterNode
from .records import NormalizedRecord, OrderRejected, normalize_order
from .report import render_report
from .schema import (
    BY_ETYPE, BY_OP, BY_OTYPE, PHOTOS, PHOTOS_EXIST, PHOTOS_TOTAL, PHOTOS_ZERO,
    SUFFIX_FAIL, SUFFIX_OK, empty_stat_dict,
)

LOG = logging.getLogger(__name__)


class SkippedOrder(NamedTuple):
    """Event reported when an order is left out of the statistics."""
    reason: str
    message: str
    success: bool


def log_skipped(event: SkippedOrder) -> None:
    """Default observer: report a skipped order through the module logger."""
    LOG.warning("[stat] skipped %s order (%s): %s",
                'ok' if event.success else 'failed', event.reason, event.message)


def _parse_start_tm(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class OrderStats:
    """Running statistics of one order conversion run."""

    def __init__(self, task: str, id: str, settings: Any = None, *,
                 observer: Optional[Callable[[SkippedOrder], None]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.task = task
        self.id = id
        self.settings = settings
        self.observer = observer or log_skipped
        self.clock = clock or datetime.now
        self.start_tm = self.clock()
        self.stat = CounterNode.from_dict(empty_stat_dict())
        self.advstat: List[Any] = []

    # -- recording -------------------------------------------------------

    def ok(self, order: Any) -> None:
        """Record a successfully converted order."""
        if not order:
            return
        self._process(order, True)

    def fail(self, order: Any) -> None:
        """Record an order whose conversion failed."""
        if not order:
            return
        self._process(order, False)

    def _process(self, order: Any, success: bool) -> None:
        try:
            record = normalize_order(order)
        except OrderRejected as e:
            self.observer(SkippedOrder(e.reason, str(e), success))
            return
        self.record(record, success)

    def record(self, record: NormalizedRecord, success: bool) -> None:
        """
        Count one normalized record.

        Args:
            record: Normalized order
            success: True for a converted order, False for a failed one
        """
        suffix = SUFFIX_OK if success else SUFFIX_FAIL
        opr, etype, otype = record.operation, record.estate_type, record.object_type
        LOG.debug("[stat] %s order %s: op=%s etype=%s otype=%s photos=%d",
                  suffix[1:], record.external_id, opr, etype, otype, record.photo_count)

        self.stat.increment((), 1, suffix)

        self.stat.increment((BY_OP, opr), 1, suffix)
        self.stat.increment((BY_ETYPE, etype), 1, suffix)
        self.stat.increment((BY_OTYPE, otype), 1, suffix)

        self.stat.increment((BY_OP, opr, BY_ETYPE, etype), 1, suffix)
        self.stat.increment((BY_OTYPE, otype, BY_ETYPE, etype), 1, suffix)

        self.stat.increment((BY_ETYPE, etype, BY_OP, opr), 1, suffix)
        self.stat.increment((BY_OTYPE, otype, BY_OP, opr), 1, suffix)

        self.stat.increment((BY_OP, opr, BY_OTYPE, otype), 1, suffix)
        self.stat.increment((BY_ETYPE, etype, BY_OTYPE, otype), 1, suffix)

        self.stat.increment((PHOTOS, PHOTOS_TOTAL), record.photo_count)
        if record.photo_count:
            self.stat.increment((PHOTOS, PHOTOS_EXIST))
        else:
            self.stat.increment((PHOTOS, PHOTOS_ZERO))

        # payment statistics only describe objects that were converted
        if record.advstat is not None and success:
            self.advstat.append(record.advstat)

    # -- access ----------------------------------------------------------

    def length(self) -> int:
        """Return the number of collected advanced-stat entries."""
        return len(self.advstat)

    __len__ = length

    def advanced_stats(self) -> List[Any]:
        """Return the collected advanced-stat entries."""
        return self.advstat

    # -- snapshot --------------------------------------------------------

    def serialize(self) -> Dict[str, Any]:
        """Return a plain, JSON-compatible snapshot of the full state."""
        return {
            'stat': self.stat.to_dict(),
            'start_tm': self.start_tm.isoformat(),
            'task': self.task,
            'id': self.id,
            'advstat': list(self.advstat),
            'settings': self.settings,
        }

    def unserialize(self, snapshot: Dict[str, Any]) -> None:
        """Replace the whole state with a snapshot produced by serialize()."""
        self.stat = CounterNode.from_dict(snapshot['stat'])
        self.start_tm = _parse_start_tm(snapshot['start_tm'])
        self.task = snapshot['task']
        self.id = snapshot['id']
        self.advstat = list(snapshot['advstat'] or [])
        self.settings = snapshot.get('settings')

    @classmethod
    def from_snapshot(cls, snapshot: Dict[str, Any], **kwargs) -> 'OrderStats':
        """Build a new accumulator from a snapshot."""
        stats = cls(snapshot['task'], snapshot['id'], snapshot.get('settings'), **kwargs)
        stats.unserialize(snapshot)
        return stats

    # -- report ----------------------------------------------------------

    def render(self, **widths) -> str:
        """Render the text report; widths are passed to render_report()."""
        return render_report(self.task, self.id, self.start_tm, self.stat, self.advstat,
                             now=self.clock(), **widths)

    def __str__(self) -> str:
        return self.render()
