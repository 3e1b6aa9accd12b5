# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shlex
from pathlib import Path

from hostprep._core import Command
from hostprep._download import fetch
from hostprep._shell import sh
from hostprep._shell import sh_input


class AddAptRepository(Command):
    """Add a signed third-party APT repository.

    The line may use {keyring}, {arch} and {codename} placeholders.
    Nothing is done if the source list is already there.
    """

    def __init__(self, name: str, key_url: str, line: str, keyring_dir: str = '/etc/apt/keyrings'):
        self._name = name
        self._key_url = key_url
        self._line = line
        self._keyring = Path(keyring_dir, f'{name}.gpg')
        self._source_list = Path('/etc/apt/sources.list.d', f'{name}.list')

    def __repr__(self):
        return f'{AddAptRepository.__name__}({self._name!r}, {self._key_url!r})'

    def run(self, output):
        if self._source_list.exists():
            output.write(f"{self._source_list}: exists, keep")
            return
        key = fetch(self._key_url, output)
        keyring = shlex.quote(str(self._keyring))
        sh(f'install -m 0755 -d {shlex.quote(str(self._keyring.parent))}', output)
        sh_input(f'gpg --batch --yes --dearmor -o {keyring} && chmod a+r {keyring}', key, output)
        line = self._line.format(
            keyring=self._keyring,
            arch='$(dpkg --print-architecture)',
            codename='$(. /etc/os-release && echo "$VERSION_CODENAME")',
            )
        sh(f'echo "{line}" > {shlex.quote(str(self._source_list))}\napt-get update -y', output)


_logger = logging.getLogger(__name__)
