# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import io
import tempfile
import unittest
from pathlib import Path

from hostprep._coordinator import RunCoordinator
from hostprep._core import Call
from hostprep._core import Run
from hostprep._log_stream import LogStream
from hostprep._log_stream import read_events
from hostprep._status import replay
from hostprep._step import Step
from hostprep._step import StepStatus
from hostprep.tests._helpers import failing
from hostprep.tests._helpers import passing


class TestReplay(unittest.TestCase):

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self._path = Path(self._tmp_dir.name) / 'provision.log'

    def tearDown(self):
        self._tmp_dir.cleanup()

    def _run(self, steps):
        with LogStream(self._path) as log:
            coordinator = RunCoordinator(log, io.StringIO())
            coordinator.extend(steps)
            return coordinator.run()

    def _replay(self):
        return replay(read_events(self._path), self._path)

    def test_same_as_live(self):
        live = self._run([
            Step('update', passing()),
            Step('firewall', failing(1)),
            Step('docker', passing()),
            ])
        replayed = self._replay()
        self.assertEqual(replayed.render(), live.render())
        self.assertEqual(replayed.failure_count(), live.failure_count())
        self.assertEqual(
            [row.result.log_ref for row in replayed.rows],
            [row.result.log_ref for row in live.rows])

    def test_same_as_live_after_unterminated_output(self):
        live = self._run([
            Step('shell', Run('printf done')),
            Step('py', Call(_print_unterminated, "partial")),
            Step('err', Call(_exit_unterminated, 3)),
            ])
        replayed = self._replay()
        self.assertEqual(replayed.render(), live.render())
        self.assertEqual(replayed.status('shell'), StepStatus.PASS)
        self.assertEqual(replayed.status('py'), StepStatus.PASS)
        self.assertEqual(replayed.status('err'), StepStatus.ERROR)
        self.assertEqual(replayed.failure_count(), 1)
        lines = self._path.read_text().splitlines()
        self.assertIn('done', lines)
        self.assertIn('partial', lines)

    def test_idempotent(self):
        self._run([Step('a', passing()), Step('b', failing(5))])
        self.assertEqual(self._replay(), self._replay())

    def test_latest_run_only(self):
        self._run([Step('old', failing()), Step('docker', failing())])
        self._run([Step('docker', passing()), Step('nginx', passing())])
        report = self._replay()
        self.assertEqual([row.name for row in report.rows], ['docker', 'nginx'])
        self.assertEqual(report.failure_count(), 0)

    def test_orphaned_start(self):
        with LogStream(self._path) as log:
            coordinator = RunCoordinator(log, io.StringIO())
            coordinator.extend([
                Step('update', passing()),
                Step('docker', Call(_interrupt)),
                Step('nginx', passing()),
                ])
            with self.assertRaises(KeyboardInterrupt):
                coordinator.run()
        report = self._replay()
        self.assertEqual(report.status('update'), StepStatus.PASS)
        self.assertEqual(report.status('docker'), StepStatus.INTERRUPTED)
        self.assertIsNone(report.status('nginx'))
        self.assertEqual(report.failure_count(), 0)
        lines = report.render().splitlines()
        self.assertIn(f'docker:              INTERRUPTED - see {self._path}', lines)
        self.assertIn('nginx:               NOT RUN', lines)

    def test_legacy_log_without_run_markers(self):
        self._path.write_bytes(
            b'[2024-05-01 10:00:00] === STEP update: START ===\n'
            b'[2024-05-01 10:01:00] === STEP update: ERROR rc=100 ===\n'
            b'[2024-05-01 10:01:00] === STEP docker: START ===\n'
            b'[2024-05-01 10:02:00] === STEP docker: OK ===\n'
            # Second run of the same script.
            b'[2024-05-02 10:00:00] === STEP update: START ===\n'
            b'[2024-05-02 10:01:00] === STEP update: OK ===\n'
            b'[2024-05-02 10:01:00] === STEP docker: START ===\n')
        report = self._replay()
        self.assertEqual([row.name for row in report.rows], ['update', 'docker'])
        self.assertEqual(report.status('update'), StepStatus.PASS)
        self.assertEqual(report.status('docker'), StepStatus.INTERRUPTED)

    def test_error_code_kept(self):
        self._run([Step('a', failing(42))])
        [row] = self._replay().rows
        self.assertEqual(row.result.exit_code, 42)

    def test_empty_log(self):
        self._path.touch()
        report = self._replay()
        self.assertEqual(report.rows, [])


def _interrupt(output):
    raise KeyboardInterrupt()


def _print_unterminated(output, message):
    print(message, end='')


def _exit_unterminated(output, code):
    print("exiting", end='')
    raise SystemExit(code)


if __name__ == '__main__':
    unittest.main()
