# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import signal
import subprocess
import sys
import threading
import traceback
from contextlib import contextmanager
from contextlib import redirect_stderr
from contextlib import redirect_stdout
from typing import Optional
from typing import TextIO

from hostprep._core import Command
from hostprep._log_stream import LogStream
from hostprep._log_stream import LogStreamError
from hostprep._log_stream import Phase
from hostprep._log_stream import StepEvent
from hostprep._output import StepOutput
from hostprep._output import StepTimedOut
from hostprep._step import LogRef
from hostprep._step import Step
from hostprep._step import StepResult
from hostprep._step import StepStatus


class StepExecutor:
    """Run one step at a time, never letting its failure escape.

    Everything the action prints goes to the log.
    Only the START and OK/ERROR lines are shown on the console.
    A failure to write the log is not a step failure: it is raised,
    because without the log no result can be trusted.
    """

    def __init__(
            self,
            log: LogStream,
            console: Optional[TextIO] = None,
            default_timeout_sec: Optional[float] = None,
            ):
        self._log = log
        self._console = console
        self._default_timeout_sec = default_timeout_sec

    def execute(self, step: Step) -> StepResult:
        started = self._write(StepEvent(step.name, Phase.START))
        _logger.info("Step %s: start %r", step.name, step.action)
        timeout_sec = step.timeout_sec if step.timeout_sec is not None else self._default_timeout_sec
        with _captured(self._log, timeout_sec) as output:
            exit_code = _invoke(step.action, output, timeout_sec)
        if exit_code == 0:
            _logger.info("Step %s: passed", step.name)
            finished = self._write(StepEvent(step.name, Phase.OK))
            log_ref = LogRef(self._log.path, started.start, finished.end)
            return StepResult(StepStatus.PASS, log_ref=log_ref)
        else:
            _logger.warning("Step %s: failed with code %d", step.name, exit_code)
            finished = self._write(StepEvent(step.name, Phase.ERROR, exit_code))
            log_ref = LogRef(self._log.path, started.start, finished.end)
            return StepResult(StepStatus.ERROR, exit_code, log_ref)

    def _write(self, event: StepEvent):
        entry = self._log.append_event(event)
        console = self._console or sys.stdout
        print(entry.line, file=console, flush=True)
        return entry


@contextmanager
def _captured(log: LogStream, timeout_sec: Optional[float]):
    """Point the standard streams to the log, for Python and for children.

    Descriptors 1 and 2 are replaced by the log, so a child started without
    explicit sinks and a logging handler bound to the original stream
    write to the log as well. Python-level sys.stdout and sys.stderr
    are replaced too, as the caller may have swapped them.
    Whatever happens inside, all streams are flushed and restored
    before leaving, so the terminal marker is always written after
    the step output.
    """
    raw = log.file()
    _flush_standard_streams()
    saved = [os.dup(fd) for fd in _standard_fds]
    try:
        for fd in _standard_fds:
            os.dup2(raw.fileno(), fd)
        try:
            text = open(raw.fileno(), 'w', encoding='utf8', errors='replace', buffering=1, closefd=False)
        except OSError as e:
            raise LogStreamError(log.path, e)
        try:
            with redirect_stdout(text), redirect_stderr(text):
                yield StepOutput(raw, raw, timeout_sec)
        finally:
            try:
                text.close()
            except OSError as e:
                raise LogStreamError(log.path, e)
    finally:
        _flush_standard_streams()
        for fd, saved_fd in zip(_standard_fds, saved):
            os.dup2(saved_fd, fd)
            os.close(saved_fd)


_standard_fds = (1, 2)


def _flush_standard_streams():
    for stream in sys.stdout, sys.stderr, sys.__stdout__, sys.__stderr__:
        if stream is not None:
            stream.flush()


@contextmanager
def _time_limit(timeout_sec: Optional[float]):
    """Interrupt an action that overruns its step, even a pure Python one.

    Signals are only handled in the main thread. Elsewhere, the limit is
    kept only by the commands that consult StepOutput.timeout().
    """
    if not timeout_sec or threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGALRM, _raise_timed_out)
    signal.setitimer(signal.ITIMER_REAL, timeout_sec)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def _raise_timed_out(signum, frame):
    raise StepTimedOut()


def _invoke(action: Command, output: StepOutput, timeout_sec: Optional[float]) -> int:
    try:
        with _time_limit(timeout_sec):
            action.run(output)
    except subprocess.CalledProcessError as e:
        _write_failure(output, f"Command failed with exit code {e.returncode}: {e.cmd}")
        return _exit_code_of_process(e.returncode)
    except (subprocess.TimeoutExpired, StepTimedOut) as e:
        _write_failure(output, f"Timed out: {e}")
        return _timed_out_exit_code
    except SystemExit as e:
        if e.code is None or e.code == 0:
            return 0
        elif isinstance(e.code, int):
            return _exit_code_of_process(e.code)
        else:
            _write_failure(output, f"Exit: {e.code}")
            return 1
    except Exception:
        _write_failure(output, traceback.format_exc())
        return 1
    else:
        return 0


def _exit_code_of_process(returncode: int) -> int:
    """Map exit status the way a shell does.

    >>> _exit_code_of_process(2)
    2
    >>> _exit_code_of_process(-9)
    137
    >>> _exit_code_of_process(256)
    1
    """
    if returncode < 0:
        return 128 + abs(returncode)
    if returncode % 256 == 0:
        return 1
    return returncode % 256


def _write_failure(output: StepOutput, message: str):
    sys.stdout.flush()
    output.stderr.write(message.rstrip('\n').encode('utf8', errors='replace') + b'\n')


# Same as coreutils timeout(1).
_timed_out_exit_code = 124

_logger = logging.getLogger(__name__)
