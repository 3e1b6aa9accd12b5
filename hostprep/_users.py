# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shlex
import subprocess
from pathlib import Path

from hostprep._config_files import WriteFile
from hostprep._core import Command
from hostprep._core import Run
from hostprep._shell import sh
from hostprep._shell import sh_still


class AddUser(Command):

    def __init__(self, username: str, full_name: str = ''):
        self._username = username
        self._full_name = full_name

    def __repr__(self):
        return f'{AddUser.__name__}({self._username!r})'

    def run(self, output):
        u = shlex.quote(self._username)
        comment = shlex.quote(self._full_name or self._username)
        r = sh_still(f'useradd {u} -m -s /bin/bash -c {comment}', output.timeout())
        if r.returncode == 0:
            _logger.info("%s: user added", self._username)
            output.write(f"User {self._username} added")
        elif b'exist' in r.stderr.lower():
            _logger.info("%s: user already exists", self._username)
            output.write(f"User {self._username} already exists")
        else:
            _logger.error("%s: failure: %s", self._username, r.stderr)
            output.stderr.write(r.stderr)
            raise subprocess.CalledProcessError(r.returncode, r.args, r.stdout, r.stderr)


class AddSystemUser(Command):
    """User for a daemon: no home, no login shell."""

    def __init__(self, username: str):
        self._username = username

    def __repr__(self):
        return f'{AddSystemUser.__name__}({self._username!r})'

    def run(self, output):
        u = shlex.quote(self._username)
        r = sh_still(f'useradd --system --no-create-home --shell /bin/false {u}', output.timeout())
        if r.returncode == 0:
            output.write(f"System user {self._username} added")
        elif b'exist' in r.stderr.lower():
            output.write(f"System user {self._username} already exists")
        else:
            output.stderr.write(r.stderr)
            raise subprocess.CalledProcessError(r.returncode, r.args, r.stdout, r.stderr)


class AddUserToGroup(Command):
    """Add user to the group unless already there."""

    def __init__(self, username: str, group: str):
        self._username = username
        self._group = group

    def __repr__(self):
        return f'{AddUserToGroup.__name__}({self._username!r}, {self._group!r})'

    def run(self, output):
        r = sh_still(f'id -nG {shlex.quote(self._username)}', output.timeout())
        r.check_returncode()
        if self._group in r.stdout.decode().split():
            output.write(f"User {self._username} is already in {self._group}")
            return
        sh(f'usermod -aG {shlex.quote(self._group)} {shlex.quote(self._username)}', output)


class GrantSudo(WriteFile):
    """Passwordless sudo through a drop-in file, validated by visudo."""

    def __init__(self, username: str):
        super().__init__(
            f'/etc/sudoers.d/{username}',
            f'{username} ALL=(ALL) NOPASSWD:ALL\n',
            mode=0o440,
            )
        self._username = username

    def __repr__(self):
        return f'{GrantSudo.__name__}({self._username!r})'

    def run(self, output):
        super().run(output)
        sh(f'visudo -cf {shlex.quote(str(self._path))}', output)


class InstallAuthorizedKeys(Run):
    """Copy keys from another account, e.g. the one a VM image comes with."""

    def __init__(self, username: str, source: str):
        u = shlex.quote(username)
        src = shlex.quote(source)
        home = Path('/home', username)
        ssh_dir = shlex.quote(str(home / '.ssh'))
        target = shlex.quote(str(home / '.ssh' / 'authorized_keys'))
        super().__init__(f'''
            if [ -f {src} ]; then
              install -d -m 700 -o {u} -g {u} {ssh_dir}
              install -m 600 -o {u} -g {u} {src} {target}
            else
              echo "No {source}, skip"
            fi
            ''')


_logger = logging.getLogger(__name__)
