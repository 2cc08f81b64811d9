# -*- coding: ascii -*-
"""Command line interface."""

import argparse
import logging
import sys
from typing import Any, Dict

from .config import ConfigError, load_config, report_widths
from .io_utils import iter_order_events, read_snapshot, write_snapshot, write_table
from .report import pivot_frame
from .stats import OrderStats

LOG = logging.getLogger(__name__)


def _write_outputs(stats: OrderStats, config: Dict[str, Any], args) -> None:
    io_conf = config.get('io') or {}
    snapshot_out = getattr(args, 'snapshot_out', None) or io_conf.get('snapshot_out')
    pivot_out = getattr(args, 'pivot_out', None) or io_conf.get('pivot_out')

    if snapshot_out:
        write_snapshot(stats.serialize(), snapshot_out)
        LOG.info("Wrote snapshot to %s", snapshot_out)
    if pivot_out:
        write_table(pivot_frame(stats.stat), pivot_out)
        LOG.info("Wrote pivot table to %s", pivot_out)


def _finish(stats: OrderStats, config: Dict[str, Any], args) -> int:
    try:
        _write_outputs(stats, config, args)
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


def cmd_replay(config: Dict[str, Any], args) -> int:
    """Feed a JSON-lines events file through a fresh accumulator and print the report."""
    task = args.task or config.get('task')
    run_id = args.id or config.get('id')
    stats = OrderStats(task, run_id, config.get('settings'))

    try:
        for success, order in iter_order_events(args.events):
            if success:
                stats.ok(order)
            else:
                stats.fail(order)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1

    print(stats.render(**report_widths(config)))
    return _finish(stats, config, args)


def cmd_render(config: Dict[str, Any], args) -> int:
    """Restore a snapshot and print its report."""
    try:
        snapshot = read_snapshot(args.snapshot)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: cannot read snapshot {args.snapshot}: {e}")
        return 1

    try:
        stats = OrderStats.from_snapshot(snapshot)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        print(f"ERROR: invalid snapshot {args.snapshot}: {e!r}")
        return 1

    print(stats.render(**report_widths(config)))
    return _finish(stats, config, args)


def configure_logging(args):
    """Configure Python logging based on CLI arguments."""
    log_level = 'ERROR' if args.quiet else args.log_level
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(levelname)s - %(name)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='rexstat',
        description='rexstat: statistics for order conversion runs',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global logging options
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                        help='Set logging level (default: INFO)')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress all but error messages (equivalent to --log-level ERROR)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Replay command
    replay_parser = subparsers.add_parser('replay', help='Accumulate statistics from an events file')
    replay_parser.add_argument('events', help='JSON-lines file of {"status": ..., "order": ...} events')
    replay_parser.add_argument('-c', '--config', help='Configuration file path')
    replay_parser.add_argument('--task', help='Task identifier (overrides config)')
    replay_parser.add_argument('--id', help='Run identifier (overrides config)')
    replay_parser.add_argument('--snapshot-out', help='Write the serialized statistics as JSON')
    replay_parser.add_argument('--pivot-out', help='Write the pivot table (.csv or .parquet)')

    # Render command
    render_parser = subparsers.add_parser('render', help='Print the report of a saved snapshot')
    render_parser.add_argument('snapshot', help='Snapshot JSON written by replay --snapshot-out')
    render_parser.add_argument('-c', '--config', help='Configuration file path')
    render_parser.add_argument('--pivot-out', help='Write the pivot table (.csv or .parquet)')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configure logging based on arguments
    configure_logging(args)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    if args.command == 'replay':
        return cmd_replay(config, args)
    if args.command == 'render':
        return cmd_render(config, args)

    print(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
