# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import io
import os
import subprocess
import sys
import tempfile
import time
import unittest
from pathlib import Path

from hostprep._core import Call
from hostprep._core import Run
from hostprep._executor import StepExecutor
from hostprep._log_stream import LogStream
from hostprep._log_stream import Phase
from hostprep._log_stream import read_events
from hostprep._step import Step
from hostprep._step import StepStatus
from hostprep.tests._helpers import failing
from hostprep.tests._helpers import passing
from hostprep.tests._helpers import raising


class TestStepExecutor(unittest.TestCase):

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self._path = Path(self._tmp_dir.name) / 'provision.log'
        self._log = LogStream(self._path)
        self._log.open()
        self._console = io.StringIO()
        self._executor = StepExecutor(self._log, self._console)

    def tearDown(self):
        self._log.close()
        self._tmp_dir.cleanup()

    def test_pass(self):
        result = self._executor.execute(Step('update', passing()))
        self.assertIs(result.status, StepStatus.PASS)
        self.assertIsNone(result.exit_code)
        log = self._path.read_text()
        self.assertIn('=== STEP update: START ===', log)
        self.assertIn('all good', log)
        self.assertIn('=== STEP update: OK ===', log)

    def test_output_goes_to_log_only(self):
        self._executor.execute(Step('update', CompositeShellAndPython()))
        console = self._console.getvalue()
        self.assertNotIn('from shell', console)
        self.assertNotIn('from python', console)
        self.assertNotIn('to stderr', console)
        [start, finish] = console.splitlines()
        self.assertTrue(start.endswith('=== STEP update: START ==='))
        self.assertTrue(finish.endswith('=== STEP update: OK ==='))
        log = self._path.read_text()
        self.assertIn('from shell', log)
        self.assertIn('from python', log)
        self.assertIn('to stderr', log)

    def test_output_between_markers(self):
        self._executor.execute(Step('update', CompositeShellAndPython()))
        lines = self._path.read_text().splitlines()
        start = next(i for i, line in enumerate(lines) if line.endswith(': START ==='))
        finish = next(i for i, line in enumerate(lines) if line.endswith(': OK ==='))
        for needle in 'from shell', 'from python', 'to stderr':
            [position] = [i for i, line in enumerate(lines) if needle in line]
            self.assertTrue(start < position < finish, needle)

    def test_shell_failure_code(self):
        result = self._executor.execute(Step('firewall', Run('echo partial\nexit 3\necho never')))
        self.assertIs(result.status, StepStatus.ERROR)
        self.assertEqual(result.exit_code, 3)
        log = self._path.read_text()
        self.assertIn('=== STEP firewall: ERROR rc=3 ===', log)
        self.assertIn('partial', log)
        self.assertNotIn('never', log)

    def test_failure_in_the_middle_of_a_pipeline(self):
        result = self._executor.execute(Step('pipe', Run('false | cat\necho never')))
        self.assertEqual(result.exit_code, 1)
        self.assertNotIn('never', self._path.read_text())

    def test_exception(self):
        result = self._executor.execute(Step('docker', raising("no network")))
        self.assertIs(result.status, StepStatus.ERROR)
        self.assertEqual(result.exit_code, 1)
        log = self._path.read_text()
        self.assertIn('RuntimeError: no network', log)
        self.assertIn('Traceback', log)
        self.assertNotIn('Traceback', self._console.getvalue())

    def test_system_exit(self):
        result = self._executor.execute(Step('docker', failing(7)))
        self.assertEqual(result.exit_code, 7)
        self.assertIn('=== STEP docker: ERROR rc=7 ===', self._path.read_text())

    def test_timeout(self):
        result = self._executor.execute(Step('download', Run('sleep 10'), timeout_sec=0.5))
        self.assertIs(result.status, StepStatus.ERROR)
        self.assertEqual(result.exit_code, 124)

    def test_default_timeout(self):
        executor = StepExecutor(self._log, self._console, default_timeout_sec=0.5)
        result = executor.execute(Step('download', Run('sleep 10')))
        self.assertEqual(result.exit_code, 124)

    def test_child_without_sinks_writes_to_log(self):
        self._executor.execute(Step('child', Call(_run_child)))
        self.assertNotIn('from child', self._console.getvalue())
        lines = self._path.read_text().splitlines()
        self.assertEqual(lines[1:3], ['from child', 'child to stderr'])

    def test_nothing_reaches_terminal(self):
        log_path = self._path.with_name('terminal.log')
        process = subprocess.run(
            [sys.executable, '-c', _standalone_run, str(log_path)],
            env={**os.environ, 'PYTHONPATH': str(_repo_root)},
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=60,
            check=True,
            )
        stdout = process.stdout.decode()
        stderr = process.stderr.decode()
        for needle in 'from child', 'child to stderr', 'from logging':
            self.assertNotIn(needle, stdout)
            self.assertNotIn(needle, stderr)
        self.assertIn('=== STEP leak: START ===', stdout)
        self.assertIn('=== STEP leak: OK ===', stdout)
        log = log_path.read_text()
        self.assertIn('from child', log)
        self.assertIn('child to stderr', log)
        self.assertIn('from logging', log)

    def test_python_action_timeout(self):
        started_at = time.monotonic()
        result = self._executor.execute(Step('hang', Call(_sleep, 10), timeout_sec=0.5))
        self.assertLess(time.monotonic() - started_at, 5)
        self.assertIs(result.status, StepStatus.ERROR)
        self.assertEqual(result.exit_code, 124)
        self.assertIn('Timed out', self._path.read_text())

    def test_log_ref(self):
        result = self._executor.execute(Step('update', passing()))
        data = self._path.read_bytes()
        chunk = data[result.log_ref.start:result.log_ref.end].decode()
        self.assertTrue(chunk.startswith('['))
        self.assertIn('=== STEP update: START ===', chunk)
        self.assertTrue(chunk.endswith('=== STEP update: OK ===\n'))
        self.assertEqual(result.log_ref.path, self._path)

    def test_start_not_after_finish(self):
        self._executor.execute(Step('a', passing()))
        self._executor.execute(Step('b', failing()))
        events = read_events(self._path)
        self.assertEqual(
            [(e.step, e.phase) for e in events],
            [('a', Phase.START), ('a', Phase.OK), ('b', Phase.START), ('b', Phase.ERROR)])
        for start, finish in zip(events[::2], events[1::2]):
            self.assertLessEqual(start.timestamp, finish.timestamp)

    def test_interruption_is_not_contained(self):
        with self.assertRaises(KeyboardInterrupt):
            self._executor.execute(Step('hang', Call(_interrupt)))
        events = read_events(self._path)
        self.assertEqual([(e.step, e.phase) for e in events], [('hang', Phase.START)])


class CompositeShellAndPython(Run):

    def __init__(self):
        super().__init__('echo from shell; echo to stderr >&2')

    def run(self, output):
        print("from python")
        super().run(output)


def _interrupt(output):
    raise KeyboardInterrupt()


def _run_child(output):
    subprocess.run('echo from child; echo child to stderr >&2', shell=True, check=True)


def _sleep(output, seconds):
    time.sleep(seconds)


_standalone_run = '''
import logging
import subprocess
import sys
from pathlib import Path

from hostprep._core import Call
from hostprep._executor import StepExecutor
from hostprep._log_stream import LogStream
from hostprep._step import Step


def action(output):
    subprocess.run("echo from child; echo child to stderr >&2", shell=True, check=True)
    logging.getLogger("action").warning("from logging")


logging.basicConfig()
with LogStream(Path(sys.argv[1])) as log:
    StepExecutor(log).execute(Step("leak", Call(action)))
'''

_repo_root = Path(__file__).parent.parent.parent


if __name__ == '__main__':
    unittest.main()
