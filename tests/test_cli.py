#!/usr/bin/env python
"""End-to-end tests for the rexstat command line."""

import io
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import pandas as pd

from rexstat.cli import main
from rexstat.io_utils import iter_order_events, read_snapshot, write_snapshot, write_table

EVENTS = [
    {'status': 'ok', 'order': {'type': ['create'], 'estate': [{'type': ['house'], 'object': ['sale']}],
                               'meta': [{'attachments': [{'attachment': [{}, {}]}],
                                         'advstat': [{'amount': ['10']}]}]}},
    {'status': 'fail', 'order': {'type': 'update', 'estate': {'type': 'flat', 'object': 'rent'}}},
    {'status': 'ok', 'order': '<order><type>delete</type><estate><type>land</type></estate></order>'},
    {'status': 'ok', 'order': '<order><broken'},
]


class TestCLI(unittest.TestCase):
    """replay / render subcommands."""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.events = os.path.join(self.test_dir, 'events.jsonl')
        with open(self.events, 'w', encoding='utf-8') as f:
            for event in EVENTS:
                f.write(json.dumps(event) + '\n')
            f.write('\n')
            f.write('{not json\n')
            f.write(json.dumps({'status': 'maybe', 'order': {}}) + '\n')

    def tearDown(self):
        if os.path.exists(self.test_dir):
            shutil.rmtree(self.test_dir)

    def run_cli(self, *argv):
        with patch('sys.stdout', new_callable=io.StringIO) as out:
            code = main(['--quiet'] + list(argv))
        return code, out.getvalue()

    def test_replay_prints_report_and_writes_outputs(self):
        snapshot = os.path.join(self.test_dir, 'out', 'snapshot.json')
        pivot = os.path.join(self.test_dir, 'out', 'pivot.csv')

        code, output = self.run_cli('replay', self.events, '--task', 'import', '--id', 'r42',
                                    '--snapshot-out', snapshot, '--pivot-out', pivot)

        self.assertEqual(code, 0)
        self.assertIn('Statistics for import: r42', output)
        self.assertIn('1 records in payment statistics', output)

        data = read_snapshot(snapshot)
        self.assertEqual(data['task'], 'import')
        self.assertEqual(data['id'], 'r42')
        self.assertEqual(data['stat']['total'], 3)
        self.assertEqual(data['stat']['ok'], 2)
        self.assertEqual(data['stat']['fail'], 1)
        self.assertEqual(data['stat']['by_op']['update']['fail'], 1)
        self.assertEqual(data['stat']['photos'], {'total': 2, 'exist': 1, 'zero': 2})

        df = pd.read_csv(pivot, keep_default_na=False)
        self.assertEqual(set(df['dimension']), {'by_op', 'by_etype', 'by_otype'})
        self.assertIn('delete', set(df['value']))

    def test_replay_uses_config(self):
        config = os.path.join(self.test_dir, 'config.yaml')
        snapshot = os.path.join(self.test_dir, 'snap.json')
        with open(config, 'w', encoding='utf-8') as f:
            f.write('task: nightly\nid: cfg-run\nsettings:\n  feed: main\nio:\n  snapshot_out: %s\n' % snapshot)

        code, output = self.run_cli('replay', self.events, '-c', config)

        self.assertEqual(code, 0)
        self.assertIn('Statistics for nightly: cfg-run', output)
        self.assertEqual(read_snapshot(snapshot)['settings'], {'feed': 'main'})

    def test_render_snapshot(self):
        snapshot = os.path.join(self.test_dir, 'snapshot.json')
        self.run_cli('replay', self.events, '--task', 'import', '--id', 'r42', '--snapshot-out', snapshot)

        code, output = self.run_cli('render', snapshot)

        self.assertEqual(code, 0)
        self.assertIn('Statistics for import: r42', output)
        self.assertIn('By object type:', output)

    def test_render_to_parquet(self):
        snapshot = os.path.join(self.test_dir, 'snapshot.json')
        pivot = os.path.join(self.test_dir, 'pivot.parquet')
        self.run_cli('replay', self.events, '--snapshot-out', snapshot)

        code, _ = self.run_cli('render', snapshot, '--pivot-out', pivot)

        self.assertEqual(code, 0)
        df = pd.read_parquet(pivot)
        self.assertEqual(int(df[(df['dimension'] == 'by_op') & (df['cross_dimension'] == '')]['total'].sum()), 3)

    def test_missing_events_file(self):
        code, output = self.run_cli('replay', os.path.join(self.test_dir, 'missing.jsonl'))
        self.assertEqual(code, 1)
        self.assertIn('Events file not found', output)

    def test_missing_snapshot_file(self):
        code, output = self.run_cli('render', os.path.join(self.test_dir, 'missing.json'))
        self.assertEqual(code, 1)
        self.assertIn('cannot read snapshot', output)

    def test_snapshot_missing_fields(self):
        snapshot = os.path.join(self.test_dir, 'partial.json')
        write_snapshot({'stat': {}}, snapshot)

        code, output = self.run_cli('render', snapshot)

        self.assertEqual(code, 1)
        self.assertIn('ERROR: invalid snapshot', output)

    def test_snapshot_bad_start_time(self):
        snapshot = os.path.join(self.test_dir, 'bad_tm.json')
        write_snapshot({'stat': {}, 'start_tm': 'yesterday', 'task': 't', 'id': 'r',
                        'advstat': [], 'settings': None}, snapshot)

        code, output = self.run_cli('render', snapshot)

        self.assertEqual(code, 1)
        self.assertIn('ERROR: invalid snapshot', output)

    def test_unsupported_pivot_format(self):
        pivot = os.path.join(self.test_dir, 'pivot.txt')

        code, output = self.run_cli('replay', self.events, '--pivot-out', pivot)

        self.assertEqual(code, 1)
        self.assertIn('Statistics for', output)
        self.assertIn('ERROR: ', output)
        self.assertFalse(os.path.exists(pivot))

    def test_bad_config(self):
        config = os.path.join(self.test_dir, 'bad.yaml')
        with open(config, 'w', encoding='utf-8') as f:
            f.write('- just\n- a list\n')
        code, output = self.run_cli('replay', self.events, '-c', config)
        self.assertEqual(code, 1)
        self.assertIn('must contain a mapping', output)

    def test_no_command_prints_help(self):
        code, output = self.run_cli()
        self.assertEqual(code, 1)
        self.assertIn('usage:', output)


class TestIOUtils(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_iter_order_events_skips_bad_lines(self):
        path = os.path.join(self.test_dir, 'events.jsonl')
        with open(path, 'w', encoding='utf-8') as f:
            f.write(json.dumps({'status': 'ok', 'order': {'type': 'a'}}) + '\n')
            f.write('garbage\n')
            f.write(json.dumps(['not', 'a', 'dict']) + '\n')
            f.write(json.dumps({'status': 'fail', 'order': '<order/>'}) + '\n')

        with self.assertLogs('rexstat.io_utils', level='WARNING') as log_context:
            events = list(iter_order_events(path))

        self.assertEqual(events, [(True, {'type': 'a'}), (False, '<order/>')])
        self.assertEqual(len(log_context.records), 2)

    def test_snapshot_round_trip(self):
        path = os.path.join(self.test_dir, 'nested', 'snap.json')
        write_snapshot({'stat': {'total': 1}, 'task': 't'}, path)
        self.assertEqual(read_snapshot(path), {'stat': {'total': 1}, 'task': 't'})

    def test_write_table_rejects_unknown_format(self):
        with self.assertRaises(ValueError):
            write_table(pd.DataFrame({'a': [1]}), os.path.join(self.test_dir, 'table.xlsx'))


if __name__ == '__main__':
    unittest.main()
