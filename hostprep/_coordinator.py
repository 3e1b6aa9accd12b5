# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import sys
from datetime import datetime
from datetime import timezone
from enum import Enum
from typing import Dict
from typing import Optional
from typing import Sequence
from typing import TextIO

from hostprep._executor import StepExecutor
from hostprep._log_stream import LogStream
from hostprep._log_stream import Phase
from hostprep._log_stream import RunFinished
from hostprep._log_stream import RunStarted
from hostprep._log_stream import StepEvent
from hostprep._status import RunReport
from hostprep._status import RunStatusTable
from hostprep._step import Step
from hostprep._step import StepResult


class RunState(Enum):
    NOT_STARTED = 'not_started'
    RUNNING = 'running'
    COMPLETED = 'completed'


class RunCoordinator:
    """Run all steps in order, whatever happens to each of them.

    Best effort: a failed step never stops the next ones.
    The run always completes and always reports.
    """

    def __init__(
            self,
            log: LogStream,
            console: Optional[TextIO] = None,
            step_timeout_sec: Optional[float] = None,
            ):
        self._log = log
        self._console = console
        self._executor = StepExecutor(log, console, step_timeout_sec)
        self._steps: Dict[str, Step] = {}
        self._table = RunStatusTable(log.path)
        self._state = RunState.NOT_STARTED

    def add(self, step: Step):
        if step.name in self._steps:
            raise DuplicateStep(step.name)
        if self._state is not RunState.NOT_STARTED:
            raise RunAlreadyStarted()
        self._steps[step.name] = step

    def extend(self, steps: Sequence[Step]):
        for step in steps:
            self.add(step)

    def state(self) -> RunState:
        return self._state

    def result(self, name: str) -> Optional[StepResult]:
        """Result of an attempted step; None if it has not been run."""
        return self._table.result(name)

    def run(self) -> RunReport:
        if self._state is not RunState.NOT_STARTED:
            raise RunAlreadyStarted()
        self._state = RunState.RUNNING
        run_id = _make_run_id()
        names = list(self._steps)
        _logger.info("Run %s: %d steps", run_id, len(names))
        self._log.append_event(RunStarted(run_id, names))
        for step in self._steps.values():
            self._table.apply(StepEvent(step.name, Phase.START))
            result = self._executor.execute(step)
            self._table.apply(_terminal_event(step.name, result), result.log_ref)
        report = RunReport.from_table(names, self._table, self._log.path)
        self._log.append_event(RunFinished(run_id, report.failure_count()))
        self._state = RunState.COMPLETED
        _logger.info("Run %s: %d failed", run_id, report.failure_count())
        return report

    def print_report(self, report: RunReport):
        console = self._console or sys.stdout
        print(report.render(), file=console, flush=True)


def exit_status(report: RunReport) -> int:
    """Zero if nothing failed, otherwise the count of failures fit into a byte."""
    return min(report.failure_count(), _max_exit_status)


_max_exit_status = 255


def _terminal_event(name: str, result: StepResult) -> StepEvent:
    if result.passed():
        return StepEvent(name, Phase.OK)
    return StepEvent(name, Phase.ERROR, result.exit_code)


def _make_run_id():
    started_at = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')
    return f'{started_at}-{os.getpid()}'


class DuplicateStep(Exception):

    def __init__(self, name):
        super().__init__(f"Step {name!r} is already added")


class RunAlreadyStarted(Exception):

    def __init__(self):
        super().__init__("Steps cannot be added or run again once the run has started")


_logger = logging.getLogger(__name__)
