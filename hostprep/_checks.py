# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Read-only commands to verify that a host is provisioned.

A check changes nothing. It raises CheckFailed if the host is not as expected,
which the runner records as a failed step.
"""
import logging
import shlex
import shutil
from pathlib import Path
from typing import Sequence

from hostprep._core import Command
from hostprep._shell import sh_still


class CheckFailed(Exception):
    pass


class CommandAvailable(Command):

    def __init__(self, command: str):
        self._command = command

    def __repr__(self):
        return f'{CommandAvailable.__name__}({self._command!r})'

    def run(self, output):
        path = shutil.which(self._command)
        if path is None:
            raise CheckFailed(f"{self._command}: not found in PATH")
        output.write(f"{self._command}: {path}")


class ServiceActive(Command):

    def __init__(self, service: str):
        self._service = service

    def __repr__(self):
        return f'{ServiceActive.__name__}({self._service!r})'

    def run(self, output):
        r = sh_still(f'systemctl is-active {shlex.quote(self._service)}', output.timeout())
        state = r.stdout.decode().strip()
        if r.returncode != 0:
            raise CheckFailed(f"{self._service}: {state or 'unknown'}")
        output.write(f"{self._service}: {state}")


class FileContains(Command):
    """Pass if any of the files contains all the lines.

    Useful when a setting may live either in a user or a system-wide file.
    """

    def __init__(self, paths: Sequence[str], lines: Sequence[str]):
        self._paths = [Path(p).expanduser() for p in paths]
        self._lines = lines

    def __repr__(self):
        return f'{FileContains.__name__}({[str(p) for p in self._paths]!r}, {self._lines!r})'

    def run(self, output):
        for path in self._paths:
            if not path.is_file():
                _logger.debug("%s: no file", path)
                continue
            present = {line.strip() for line in path.read_text(errors='replace').splitlines()}
            missing = [line for line in self._lines if line not in present]
            if not missing:
                output.write(f"{path}: has {self._lines}")
                return
            output.write(f"{path}: missing {missing}")
        raise CheckFailed(f"None of {[str(p) for p in self._paths]} has all of {self._lines}")


_logger = logging.getLogger(__name__)
