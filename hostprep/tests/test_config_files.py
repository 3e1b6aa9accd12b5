# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import io
import tempfile
import unittest
from pathlib import Path

from hostprep._config_files import WriteFile
from hostprep._config_files import WriteFileIfAbsent
from hostprep._output import StepOutput


class TestWriteFile(unittest.TestCase):

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self._root = Path(self._tmp_dir.name)
        self._out = io.BytesIO()
        self._output = StepOutput(self._out, self._out)

    def tearDown(self):
        self._tmp_dir.cleanup()

    def test_write_dedented(self):
        path = self._root / 'etc/vim/vimrc.local'
        WriteFile(str(path), '''
            set number
            syntax on
            ''').run(self._output)
        self.assertEqual(path.read_text(), 'set number\nsyntax on\n')
        self.assertEqual(path.stat().st_mode & 0o777, 0o644)

    def test_second_run_changes_nothing(self):
        path = self._root / 'jail.local'
        command = WriteFile(str(path), '[sshd]\nenabled = true\n', mode=0o600)
        command.run(self._output)
        mtime = path.stat().st_mtime_ns
        command.run(self._output)
        self.assertEqual(path.stat().st_mtime_ns, mtime)
        self.assertIn(b'unchanged', self._out.getvalue())
        self.assertEqual(path.stat().st_mode & 0o777, 0o600)

    def test_overwrite_changed(self):
        path = self._root / 'jail.local'
        path.write_text('edited by hand\n')
        WriteFile(str(path), 'managed\n').run(self._output)
        self.assertEqual(path.read_text(), 'managed\n')

    def test_if_absent_keeps_edits(self):
        path = self._root / '.aws/credentials'
        stub = WriteFileIfAbsent(str(path), 'aws_access_key_id=YOUR_KEY_ID\n', mode=0o600)
        stub.run(self._output)
        self.assertEqual(path.stat().st_mode & 0o777, 0o600)
        path.write_text('aws_access_key_id=REAL\n')
        stub.run(self._output)
        self.assertEqual(path.read_text(), 'aws_access_key_id=REAL\n')


if __name__ == '__main__':
    unittest.main()
