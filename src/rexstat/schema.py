# -*- coding: ascii -*-
"""Shared constants for the order statistics tree."""

from typing import Dict, Final, Tuple


# Outcome counters carried by the root and by every dimension node
KEY_TOTAL: Final[str] = 'total'
KEY_OK: Final[str] = 'ok'
KEY_FAIL: Final[str] = 'fail'
OUTCOME_COUNTERS: Final[Tuple[str, ...]] = (KEY_TOTAL, KEY_OK, KEY_FAIL)

# Suffixes passed to CounterNode.increment
SUFFIX_OK: Final[str] = '.' + KEY_OK
SUFFIX_FAIL: Final[str] = '.' + KEY_FAIL

# Dimension roots
BY_OP: Final[str] = 'by_op'
BY_ETYPE: Final[str] = 'by_etype'
BY_OTYPE: Final[str] = 'by_otype'
DIMENSIONS: Final[Tuple[str, ...]] = (BY_OP, BY_ETYPE, BY_OTYPE)

# Cross-tabs kept under each dimension value, in report order.
# A dimension is never cross-tabbed with itself.
CROSS_TABS: Final[Dict[str, Tuple[str, str]]] = {
    BY_OP: (BY_ETYPE, BY_OTYPE),
    BY_ETYPE: (BY_OP, BY_OTYPE),
    BY_OTYPE: (BY_ETYPE, BY_OP),
}

# Report section titles
DIMENSION_TITLES: Final[Dict[str, str]] = {
    BY_OP: 'By operation',
    BY_ETYPE: 'By estate type',
    BY_OTYPE: 'By object type',
}

# Photo counters (plain running sums, no outcome split)
PHOTOS: Final[str] = 'photos'
PHOTOS_TOTAL: Final[str] = 'total'
PHOTOS_ZERO: Final[str] = 'zero'
PHOTOS_EXIST: Final[str] = 'exist'

# Dimension key used when a record does not carry the field
UNDEFINED: Final[str] = 'undefined'

# Record shapes
SHAPE_MODERN: Final[str] = 'modern'
SHAPE_LEGACY: Final[str] = 'legacy'

# Reserved keys of the parsed XML tree
TEXT_KEY: Final[str] = '_'
ATTR_KEY: Final[str] = '$'

# Snapshot fields produced by OrderStats.serialize()
SNAPSHOT_KEYS: Final[Tuple[str, ...]] = ('stat', 'start_tm', 'task', 'id', 'advstat', 'settings')


def empty_stat_dict() -> Dict[str, object]:
    """Return the plain-dict form of a freshly constructed statistics tree."""
    return {
        KEY_OK: 0,
        KEY_FAIL: 0,
        KEY_TOTAL: 0,
        BY_OP: {},
        BY_ETYPE: {},
        BY_OTYPE: {},
    }
