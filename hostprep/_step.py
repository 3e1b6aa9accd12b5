# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from hostprep._core import Command


class Step:
    """Named unit of provisioning work.

    The name is the key in the status table and in the log markers,
    so it must survive the marker grammar: no colons, no whitespace.

    >>> from hostprep._core import Run
    >>> Step('docker', Run('true'))
    Step('docker', Run('true'))
    >>> Step('bad name', Run('true'))  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    ValueError: Step name must match ...
    """

    def __init__(self, name: str, action: Command, timeout_sec: Optional[float] = None):
        if not _name_re.fullmatch(name):
            raise ValueError(f"Step name must match {_name_re.pattern!r}, got {name!r}")
        self.name = name
        self.action = action
        self.timeout_sec = timeout_sec

    def __repr__(self):
        return f'{Step.__name__}({self.name!r}, {self.action!r})'


_name_re = re.compile(r'[A-Za-z0-9_.@+-]+')


class StepStatus(Enum):
    PASS = 'PASS'
    ERROR = 'ERROR'
    # Only a replayed log can tell that a step started but never finished.
    INTERRUPTED = 'INTERRUPTED'


@dataclass(frozen=True)
class LogRef:
    path: Path
    start: int
    end: int

    def __str__(self):
        return f'{self.path}:{self.start}-{self.end}'


@dataclass(frozen=True)
class StepResult:
    status: StepStatus
    exit_code: Optional[int] = None
    log_ref: Optional[LogRef] = None

    def __post_init__(self):
        if self.status is StepStatus.ERROR and not self.exit_code:
            raise ValueError(f"Error result must carry a non-zero exit code, got {self.exit_code!r}")
        if self.status is not StepStatus.ERROR and self.exit_code is not None:
            raise ValueError(f"Only an error result carries an exit code, got {self.exit_code!r}")

    def passed(self) -> bool:
        return self.status is StepStatus.PASS

    def failed(self) -> bool:
        return self.status is StepStatus.ERROR
