# -*- coding: ascii -*-
"""Statistics accumulator for order conversion runs."""

from .counters import CounterNode, coerce_count
from .records import (
    NormalizedRecord,
    OrderParseError,
    OrderRejected,
    OrderTypeError,
    normalize_order,
    parse_order_xml,
)
from .report import pivot_frame, render_report
from .stats import OrderStats, SkippedOrder

__all__ = [
    'CounterNode',
    'coerce_count',
    'NormalizedRecord',
    'OrderParseError',
    'OrderRejected',
    'OrderTypeError',
    'normalize_order',
    'parse_order_xml',
    'pivot_frame',
    'render_report',
    'OrderStats',
    'SkippedOrder',
]
