# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Durable, append-only record of what the provisioning did.

The log is a text file. Every line written by the runner looks like::

    [2024-05-01 12:00:00] === STEP docker: START ===

Between the markers of a step goes whatever the step printed.
The markers are the events; the status of a run can be rebuilt
from them at any time without running anything.
"""
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import BinaryIO
from typing import Iterator
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Union


class Phase(Enum):
    START = 'START'
    OK = 'OK'
    ERROR = 'ERROR'


@dataclass(frozen=True)
class StepEvent:
    step: str
    phase: Phase
    exit_code: Optional[int] = None
    timestamp: str = ''
    # Byte range of the marker line, known only for events read back from the log.
    offset: int = 0
    end: int = 0

    def marker(self) -> str:
        """Format the event as it appears in the log.

        >>> StepEvent('docker', Phase.START).marker()
        '=== STEP docker: START ==='
        >>> StepEvent('docker', Phase.ERROR, 100).marker()
        '=== STEP docker: ERROR rc=100 ==='
        """
        if self.phase is Phase.ERROR:
            return f'=== STEP {self.step}: ERROR rc={self.exit_code} ==='
        return f'=== STEP {self.step}: {self.phase.value} ==='


@dataclass(frozen=True)
class RunStarted:
    run_id: str
    steps: Sequence[str]
    timestamp: str = ''
    offset: int = 0

    def marker(self) -> str:
        return f'=== RUN {self.run_id}: START steps={",".join(self.steps)} ==='


@dataclass(frozen=True)
class RunFinished:
    run_id: str
    failures: int
    timestamp: str = ''
    offset: int = 0

    def marker(self) -> str:
        return f'=== RUN {self.run_id}: DONE failures={self.failures} ==='


Event = Union[StepEvent, RunStarted, RunFinished]


class Entry(NamedTuple):
    line: str
    start: int
    end: int


class LogStream:
    """Append-only log file shared by all runs on the host.

    Opened in append mode without buffering: each write lands at the end
    of the file in a single system call, so child processes given
    the same descriptor never overwrite what was written before.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._file: Optional[BinaryIO] = None

    def __repr__(self):
        return f'<{LogStream.__name__} {self.path}>'

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'a+b', buffering=0)
            self.path.chmod(0o644)
        except OSError as e:
            raise LogStreamError(self.path, e)
        _logger.info("Log %s: opened", self.path)

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    def file(self) -> BinaryIO:
        """Raw file object, for redirecting step output into the log."""
        if self._file is None:
            raise RuntimeError(f"{self!r} is not open")
        return self._file

    def tell(self) -> int:
        return os.fstat(self.file().fileno()).st_size

    def append(self, text: str) -> Entry:
        """Write a line; a line left unterminated by a step is ended first.

        Markers must start a line, or the log cannot be read back.
        """
        line = f'[{_timestamp()}] {text}'
        data = line.encode('utf8') + b'\n'
        try:
            fd = self.file().fileno()
            size = self.tell()
            if size > 0 and os.pread(fd, 1, size - 1) != b'\n':
                data = b'\n' + data
            self.file().write(data)
            os.fsync(fd)
            end = self.tell()
        except OSError as e:
            raise LogStreamError(self.path, e)
        return Entry(line, end - len(line.encode('utf8')) - 1, end)

    def append_event(self, event: Event) -> Entry:
        return self.append(event.marker())


class LogStreamError(Exception):

    def __init__(self, path, cause: OSError):
        super().__init__(f"Cannot write provisioning log {path}: {cause}")


def _timestamp():
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def read_events(path: Path) -> Sequence[Event]:
    """Parse the markers out of the log, skipping whatever steps printed."""
    with open(path, 'rb') as f:
        return list(parse_events(f))


def parse_events(lines: Iterator[bytes]) -> Iterator[Event]:
    r"""Parse log lines into events; other lines are skipped.

    >>> log = [
    ...     b'[2024-05-01 12:00:00] === RUN r1: START steps=a,b ===\n',
    ...     b'[2024-05-01 12:00:00] === STEP a: START ===\n',
    ...     b'Reading package lists...\n',
    ...     b'[2024-05-01 12:00:05] === STEP a: ERROR rc=100 ===\n',
    ...     ]
    >>> for event in parse_events(log):
    ...     print(event.offset, event.marker())
    0 === RUN r1: START steps=a,b ===
    54 === STEP a: START ===
    123 === STEP a: ERROR rc=100 ===
    """
    offset = 0
    for raw in lines:
        line = raw.decode('utf8', errors='replace').rstrip('\r\n')
        event = _parse_line(line, offset, offset + len(raw))
        if event is not None:
            yield event
        offset += len(raw)


def _parse_line(line: str, offset: int, end: int) -> Optional[Event]:
    m = _marker_re.fullmatch(line)
    if m is None:
        return None
    timestamp = m['timestamp']
    if m['step'] is not None:
        if m['phase'] == 'START':
            phase, rc = Phase.START, None
        elif m['phase'] == 'OK':
            phase, rc = Phase.OK, None
        else:
            phase, rc = Phase.ERROR, int(m['rc'])
        return StepEvent(m['step'], phase, rc, timestamp, offset, end)
    elif m['steps'] is not None:
        steps = [s for s in m['steps'].split(',') if s]
        return RunStarted(m['run'], steps, timestamp=timestamp, offset=offset)
    else:
        return RunFinished(m['run'], int(m['failures']), timestamp=timestamp, offset=offset)


_marker_re = re.compile(
    r'\[(?P<timestamp>[^\]]*)\] === '
    r'(?:'
    r'STEP (?P<step>[^\s:]+): (?P<phase>START|OK|ERROR rc=(?P<rc>-?\d+))'
    r'|'
    r'RUN (?P<run>[^\s:]+): (?:START steps=(?P<steps>\S*)|DONE failures=(?P<failures>\d+))'
    r') ===')

_logger = logging.getLogger(__name__)
