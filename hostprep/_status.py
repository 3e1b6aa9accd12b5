# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Status of a run, rebuilt from the step events.

The same reducer serves the live run and the log replay:
the live run feeds it the events as they are written,
the replay feeds it the events read back from the log.
So a summary shown at login is exactly what the run itself showed.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence

from hostprep._log_stream import Event
from hostprep._log_stream import Phase
from hostprep._log_stream import RunStarted
from hostprep._log_stream import StepEvent
from hostprep._step import LogRef
from hostprep._step import StepResult
from hostprep._step import StepStatus


class RunStatusTable:
    """Latest result per step name.

    A step that has never started has no entry and is reported as not run.
    A step that has started but not finished is interrupted.
    """

    def __init__(self, log_path: Path):
        self._log_path = log_path
        self._results: Dict[str, StepResult] = {}
        self._started: Dict[str, StepEvent] = {}
        self._order: List[str] = []

    def apply(self, event: StepEvent, log_ref: Optional[LogRef] = None):
        if event.phase is Phase.START:
            if event.step not in self._started and event.step not in self._results:
                self._order.append(event.step)
            self._results.pop(event.step, None)
            self._started[event.step] = event
            return
        started = self._started.pop(event.step, None)
        if log_ref is None:
            start = started.offset if started is not None else event.offset
            log_ref = LogRef(self._log_path, start, event.end)
        if event.step not in self._results and started is None:
            # Terminal marker without a start: the start is in a truncated or rotated part.
            self._order.append(event.step)
        if event.phase is Phase.OK:
            self._results[event.step] = StepResult(StepStatus.PASS, log_ref=log_ref)
        else:
            # Logs written by hand-made scripts may have rc=0 on error.
            self._results[event.step] = StepResult(StepStatus.ERROR, event.exit_code or 1, log_ref)

    def result(self, name: str) -> Optional[StepResult]:
        if name in self._results:
            return self._results[name]
        started = self._started.get(name)
        if started is not None:
            log_ref = LogRef(self._log_path, started.offset, started.end)
            return StepResult(StepStatus.INTERRUPTED, log_ref=log_ref)
        return None

    def names(self) -> Sequence[str]:
        return list(self._order)


@dataclass(frozen=True)
class ReportRow:
    name: str
    result: Optional[StepResult]

    def status_text(self, log_path: Path) -> str:
        if self.result is None:
            return 'NOT RUN'
        elif self.result.status is StepStatus.PASS:
            return 'PASS'
        else:
            return f'{self.result.status.value} - see {log_path}'


@dataclass(frozen=True)
class RunReport:
    rows: Sequence[ReportRow]
    log_path: Path

    @classmethod
    def from_table(cls, names: Sequence[str], table: RunStatusTable, log_path: Path):
        return cls([ReportRow(name, table.result(name)) for name in names], log_path)

    def failure_count(self) -> int:
        return sum(1 for row in self.rows if row.result is not None and row.result.failed())

    def status(self, name: str) -> Optional[StepStatus]:
        for row in self.rows:
            if row.name == name:
                return row.result.status if row.result is not None else None
        raise KeyError(name)

    def render(self) -> str:
        r"""Render the two-column summary table.

        >>> report = RunReport([
        ...     ReportRow('update', StepResult(StepStatus.PASS)),
        ...     ReportRow('firewall', StepResult(StepStatus.ERROR, 1)),
        ...     ReportRow('docker', None),
        ...     ], Path('/var/log/boot-provision.log'))
        >>> print(report.render())
        ========== PROVISION SUMMARY ==========
        update:              PASS
        firewall:            ERROR - see /var/log/boot-provision.log
        docker:              NOT RUN
        =======================================
        """
        lines = [_banner_top]
        for row in self.rows:
            lines.append(f'{row.name + ":":<20} {row.status_text(self.log_path)}')
        lines.append(_banner_bottom)
        return '\n'.join(lines)


_banner_top = '========== PROVISION SUMMARY =========='
_banner_bottom = '=' * len(_banner_top)


def replay(events: Sequence[Event], log_path: Path) -> RunReport:
    """Rebuild the report of the latest run from the log events.

    The latest run starts at the last RUN START marker; its step list
    gives the row order and the steps that have not been run at all.
    Logs without RUN markers are replayed whole: the latest marker
    of each step wins and rows follow the first appearance of each step.
    """
    run_start = None
    for i, event in enumerate(events):
        if isinstance(event, RunStarted):
            run_start = i
    if run_start is None:
        segment = events
        declared = None
    else:
        segment = events[run_start + 1:]
        declared = events[run_start].steps
        _logger.debug("Replay run %s from offset %d", events[run_start].run_id, events[run_start].offset)
    table = RunStatusTable(log_path)
    for event in segment:
        if isinstance(event, StepEvent):
            if declared is not None and event.step not in declared:
                _logger.warning("Step %s is not declared by the run, skip", event.step)
                continue
            table.apply(event)
    names = declared if declared is not None else table.names()
    return RunReport.from_table(names, table, log_path)


_logger = logging.getLogger(__name__)
