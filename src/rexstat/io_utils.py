# -*- coding: ascii -*-
"""Input/output utilities."""

import json
import logging
import os
from typing import Any, Dict, Iterator, Tuple

import pandas as pd

LOG = logging.getLogger(__name__)

STATUS_OK = 'ok'
STATUS_FAIL = 'fail'


def iter_order_events(path: str) -> Iterator[Tuple[bool, Any]]:
    """
    Yield (success, order) pairs from a JSON-lines events file.

    Each line holds {"status": "ok"|"fail", "order": <object or XML string>}.
    Blank lines are ignored; lines that are not valid JSON or carry an unknown
    status are logged and skipped.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Events file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as e:
                LOG.warning("%s:%d: invalid JSON, line skipped: %s", path, lineno, e)
                continue
            status = event.get('status') if isinstance(event, dict) else None
            if status not in (STATUS_OK, STATUS_FAIL):
                LOG.warning("%s:%d: unknown status %r, line skipped", path, lineno, status)
                continue
            yield status == STATUS_OK, event.get('order')


def write_snapshot(snapshot: Dict[str, Any], path: str) -> None:
    """Write an accumulator snapshot as JSON."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(snapshot, f, indent=2, ensure_ascii=True)


def read_snapshot(path: str) -> Dict[str, Any]:
    """Read an accumulator snapshot written by write_snapshot()."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Snapshot file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_table(df: pd.DataFrame, path: str) -> None:
    """Write table file (parquet/csv)."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    if path.endswith('.parquet'):
        df.to_parquet(path, index=False)
    elif path.endswith('.csv'):
        df.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported file format: {path}")
