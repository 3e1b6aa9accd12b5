# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Provision a fresh host step by step, with a durable log and a summary.

A workflow is an ordered list of named steps.
Every step is a command: a package installation, a file to write,
a service to enable. Commands must be idempotent:
a second run must not accumulate changes; running it again must be safe.

Steps are run one by one, in order, and a failed step never stops the rest.
Everything the steps print goes to the provisioning log,
framed by START and OK/ERROR markers. The summary of the latest run
can be rebuilt from those markers at any time, e.g. at next login.

Privileges are a precondition. The command line re-runs itself
with sudo before any step starts.
"""
from hostprep._checks import CheckFailed
from hostprep._config import global_config
from hostprep._coordinator import DuplicateStep
from hostprep._coordinator import RunAlreadyStarted
from hostprep._coordinator import RunCoordinator
from hostprep._coordinator import RunState
from hostprep._coordinator import exit_status
from hostprep._core import Call
from hostprep._core import Command
from hostprep._core import CompositeCommand
from hostprep._core import Run
from hostprep._executor import StepExecutor
from hostprep._log_stream import LogStream
from hostprep._log_stream import LogStreamError
from hostprep._log_stream import read_events
from hostprep._output import StepOutput
from hostprep._output import StepTimedOut
from hostprep._status import RunReport
from hostprep._status import RunStatusTable
from hostprep._status import replay
from hostprep._step import LogRef
from hostprep._step import Step
from hostprep._step import StepResult
from hostprep._step import StepStatus

__all__ = [
    'Call',
    'CheckFailed',
    'Command',
    'CompositeCommand',
    'DuplicateStep',
    'LogRef',
    'LogStream',
    'LogStreamError',
    'Run',
    'RunAlreadyStarted',
    'RunCoordinator',
    'RunReport',
    'RunState',
    'RunStatusTable',
    'Step',
    'StepExecutor',
    'StepOutput',
    'StepResult',
    'StepStatus',
    'StepTimedOut',
    'exit_status',
    'global_config',
    'read_events',
    'replay',
    ]
