# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import tempfile
import unittest
from pathlib import Path

from hostprep._config import read_config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self._tmp_dir = tempfile.TemporaryDirectory()
        self._root = Path(self._tmp_dir.name)

    def tearDown(self):
        self._tmp_dir.cleanup()

    def test_packaged_defaults(self):
        config = read_config(Path(__file__).parent.parent / 'config.ini', host='anything')
        self.assertEqual(config['log_path'], '/var/log/boot-provision.log')
        self.assertEqual(int(config['step_timeout_sec']), 3600)

    def test_host_override(self):
        defaults = self._root / 'defaults.ini'
        defaults.write_text('[defaults]\nuser_name = natan\nstep_timeout_sec = 3600\n')
        local = self._root / 'local.ini'
        local.write_text('[ci-*]\nstep_timeout_sec = 600\n[dev-*]\nuser_name = dev\n')
        config = read_config(defaults, local, host='ci-runner-3')
        self.assertEqual(config['user_name'], 'natan')
        self.assertEqual(config['step_timeout_sec'], '600')

    def test_missing_file_ignored(self):
        config = read_config(self._root / 'absent.ini', host='anything')
        self.assertEqual(dict(config), {})

    def test_bad_version(self):
        bad = self._root / 'bad.ini'
        bad.write_text('[ci-*;vX]\nuser_name = x\n')
        with self.assertRaises(ValueError):
            read_config(bad, host='ci-1')


if __name__ == '__main__':
    unittest.main()
