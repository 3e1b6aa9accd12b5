# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import shlex
import shutil
import textwrap
from pathlib import Path
from typing import Optional

from hostprep._core import Command
from hostprep._core import Run


class WriteFile(Command):
    """Write file if its content differs. Set mode and owner every time.

    Content is dedented, so it can be written inline.
    """

    def __init__(
            self,
            path: str,
            content: str,
            mode: int = 0o644,
            owner: Optional[str] = None,
            ):
        self._path = Path(path)
        self._content = textwrap.dedent(content).lstrip('\n')
        self._mode = mode
        self._owner = owner

    def __repr__(self):
        return f'{self.__class__.__name__}({str(self._path)!r}, mode={self._mode:#o})'

    def run(self, output):
        if self._path.exists() and self._path.read_text() == self._content:
            output.write(f"{self._path}: unchanged")
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            if self._owner is not None:
                shutil.chown(self._path.parent, self._owner, self._owner)
            # Do not let a secret be readable even for a moment.
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self._mode)
            with open(fd, 'w') as f:
                f.write(self._content)
            output.write(f"{self._path}: written")
            _logger.info("%s: written", self._path)
        self._path.chmod(self._mode)
        if self._owner is not None:
            shutil.chown(self._path, self._owner, self._owner)


class WriteFileIfAbsent(WriteFile):
    """Write a stub for the user to fill in. Never overwrite the user's edits."""

    def run(self, output):
        if self._path.exists():
            output.write(f"{self._path}: exists, keep")
            return
        super().run(output)


class ReplaceLine(Run):
    """Replace the whole line starting with the prefix.

    >>> ReplaceLine('/etc/ssh/sshd_config', 'PermitRootLogin', 'PermitRootLogin no')
    Run("sed -i -e '/^PermitRootLogin/ c\\\\PermitRootLogin no' /etc/ssh/sshd_config")
    """

    def __init__(self, path, prefix, line):
        prefix = prefix.replace('/', '\\/')
        super().__init__(' '.join([
            'sed', '-i',
            '-e', shlex.quote(f'/^{prefix}/ c\\{line}'),
            shlex.quote(path),
            ]))


_logger = logging.getLogger(__name__)
