# -*- coding: ascii -*-
"""Report generation utilities."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .counters import CounterNode
from .schema import (
    CROSS_TABS, DIMENSIONS, DIMENSION_TITLES, KEY_FAIL, KEY_OK, KEY_TOTAL,
    PHOTOS, PHOTOS_EXIST, PHOTOS_TOTAL, PHOTOS_ZERO,
)

# Module-level logger
LOG = logging.getLogger(__name__)

# Default column layout of the text report
LABEL_WIDTH = 17
CROSS_WIDTH = 30
COLUMN_WIDTH = 30
TOTALS_WIDTH = 8

SECTION_RULE = "=" * 32

PIVOT_COLUMNS = ['dimension', 'value', 'cross_dimension', 'cross_value', 'total', 'ok', 'fail']


def format_leaf(name: str, leaf: Any, width: int, column_width: int = COLUMN_WIDTH) -> str:
    """
    Format one counter line: label, total, ok and fail in fixed-width columns.

    The label is right-aligned to width (widened for long labels) and padded
    so the numeric columns start at column_width. Missing counters print 0.
    """
    width = max(width, len(name))
    pad = max(column_width - width, 0)
    node = leaf if isinstance(leaf, CounterNode) else CounterNode()
    return "%*s:%*s %8d = %8d ok + %8d errors\n" % (
        width, name, pad, "",
        node.count(KEY_TOTAL), node.count(KEY_OK), node.count(KEY_FAIL),
    )


def _format_cross_tab(node: Optional[CounterNode], width: int, column_width: int) -> str:
    if node is None:
        return ""
    return "".join("  " + format_leaf(name, node[name], width, column_width) for name in node)


def _format_photos(stat: CounterNode) -> str:
    photos = stat.child(PHOTOS)
    if not photos:
        return "    no photos found.\n"
    return "    of them %d have photos, %d do not. %d photos processed.\n" % (
        photos.count(PHOTOS_EXIST), photos.count(PHOTOS_ZERO), photos.count(PHOTOS_TOTAL))


def elapsed_seconds(start_tm: datetime, now: Optional[datetime] = None) -> float:
    """
    Return the seconds from start_tm to now (default: current time).

    Naive values are local time, so a naive and an aware timestamp are
    compared after converting the naive one.
    """
    if now is None:
        now = datetime.now(start_tm.tzinfo)
    if start_tm.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone(start_tm.tzinfo)
    elif start_tm.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    return (now - start_tm).total_seconds()


def render_report(task: str, run_id: str, start_tm: datetime, stat: CounterNode,
                  advstat: Sequence[Any], now: Optional[datetime] = None,
                  label_width: int = LABEL_WIDTH, cross_width: int = CROSS_WIDTH,
                  column_width: int = COLUMN_WIDTH) -> str:
    """
    Render the multi-section text report for one conversion run.

    Args:
        task: Task identifier
        run_id: Run identifier
        start_tm: Run start time
        stat: Statistics tree
        advstat: Collected advanced-stat (payment) entries
        now: Render time used for the elapsed seconds (default: datetime.now())
        label_width: Label width of dimension value lines
        cross_width: Label width of cross-tab lines
        column_width: Column at which the numeric columns start

    Returns:
        Report text
    """
    elapsed = elapsed_seconds(start_tm, now)

    out = ["\nStatistics for %s: %s\n" % (task, run_id)]
    out.append("  Conversion started at %s and took %.3f s\n" % (start_tm.strftime('%Y-%m-%d %H:%M:%S'), elapsed))
    out.append(format_leaf("Totals", stat, TOTALS_WIDTH, column_width))
    out.append(_format_photos(stat))

    for dimension in DIMENSIONS:
        out.append("\n%s:\n%s\n" % (DIMENSION_TITLES[dimension], SECTION_RULE))
        values = stat.child(dimension) or CounterNode()
        for value in values:
            node = values.child(value)
            out.append("  " + format_leaf(value, node, label_width, column_width))
            for cross in CROSS_TABS[dimension]:
                out.append(_format_cross_tab(node.child(cross) if node else None, cross_width, column_width))

    if advstat:
        out.append("\n%d records in payment statistics\n" % len(advstat))
    else:
        out.append("\nNo payment statistics\n")
    return "".join(out)


def _pivot_row(dimension: str, value: str, cross: str, cross_value: str, node: Any) -> Dict[str, Any]:
    node = node if isinstance(node, CounterNode) else CounterNode()
    return {
        'dimension': dimension,
        'value': value,
        'cross_dimension': cross,
        'cross_value': cross_value,
        'total': node.count(KEY_TOTAL),
        'ok': node.count(KEY_OK),
        'fail': node.count(KEY_FAIL),
    }


def pivot_rows(stat: CounterNode) -> List[Dict[str, Any]]:
    """
    Flatten the dimension sections of a statistics tree into rows.

    Single-dimension rows carry empty cross_dimension/cross_value; cross-tab
    rows name the second dimension and its value.
    """
    rows = []
    for dimension in DIMENSIONS:
        values = stat.child(dimension) or CounterNode()
        for value in values:
            node = values.child(value)
            rows.append(_pivot_row(dimension, value, '', '', node))
            for cross in CROSS_TABS[dimension]:
                sub = node.child(cross) if node else None
                for cross_value in (sub or ()):
                    rows.append(_pivot_row(dimension, value, cross, cross_value, sub[cross_value]))
    return rows


def pivot_frame(stat: CounterNode) -> pd.DataFrame:
    """Return pivot_rows() as a DataFrame sorted by dimension and value."""
    rows = pivot_rows(stat)
    if not rows:
        return pd.DataFrame(columns=PIVOT_COLUMNS)
    df = pd.DataFrame(rows, columns=PIVOT_COLUMNS)
    return df.sort_values(['dimension', 'value', 'cross_dimension', 'cross_value'], kind='stable').reset_index(drop=True)
