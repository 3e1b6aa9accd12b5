# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import io
import subprocess
import unittest
from unittest import mock

from hostprep._output import StepOutput
from hostprep._users import AddUser
from hostprep._users import AddUserToGroup


def _completed(returncode, stdout=b'', stderr=b''):
    return subprocess.CompletedProcess(['bash'], returncode, stdout, stderr)


class TestUsers(unittest.TestCase):

    def setUp(self):
        self._out = io.BytesIO()
        self._output = StepOutput(self._out, self._out)

    def test_user_exists(self):
        r = _completed(9, stderr=b"useradd: user 'natan' already exists\n")
        with mock.patch('hostprep._users.sh_still', return_value=r):
            AddUser('natan').run(self._output)
        self.assertIn(b'already exists', self._out.getvalue())

    def test_user_add_fails(self):
        r = _completed(1, stderr=b"useradd: Permission denied.\n")
        with mock.patch('hostprep._users.sh_still', return_value=r):
            with self.assertRaises(subprocess.CalledProcessError):
                AddUser('natan').run(self._output)
        self.assertIn(b'Permission denied', self._out.getvalue())

    def test_already_in_group(self):
        r = _completed(0, stdout=b'natan sudo docker\n')
        with mock.patch('hostprep._users.sh_still', return_value=r):
            with mock.patch('hostprep._users.sh') as sh:
                AddUserToGroup('natan', 'docker').run(self._output)
        sh.assert_not_called()

    def test_add_to_group(self):
        r = _completed(0, stdout=b'natan sudo\n')
        with mock.patch('hostprep._users.sh_still', return_value=r):
            with mock.patch('hostprep._users.sh') as sh:
                AddUserToGroup('natan', 'docker').run(self._output)
        sh.assert_called_once_with('usermod -aG docker natan', self._output)


if __name__ == '__main__':
    unittest.main()
