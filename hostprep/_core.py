# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import textwrap
from abc import ABCMeta
from abc import abstractmethod
from typing import Callable
from typing import Sequence

from hostprep._output import StepOutput
from hostprep._shell import sh


class Command(metaclass=ABCMeta):

    @abstractmethod
    def run(self, output: StepOutput):
        pass


class Run(Command):
    """Shell command, run with errexit and pipefail.

    Multi-line scripts are dedented, so they can be written inline.

    >>> Run('''
    ...     apt-get update -y
    ...     apt-get install -y jq
    ...     ''')
    Run('apt-get update -y\\napt-get install -y jq\\n')
    """

    def __init__(self, command: str):
        self._command = textwrap.dedent(command).lstrip('\n')

    def __repr__(self):
        return f'{Run.__name__}({self._command!r})'

    def run(self, output):
        sh(self._command, output)


class CompositeCommand(Command):

    def __init__(self, commands: Sequence[Command]):
        self._commands: Sequence[Command] = commands

    def __repr__(self):
        return f'<{self.__class__.__name__} with {len(self._commands)} commands>'

    def run(self, output):
        for command in self._commands:
            _logger.debug("Run %r", command)
            command.run(output)


class Call(Command):
    """Adapt a plain Python callable.

    The callable gets the output as its first argument.
    What it prints goes to the log as well.
    When the step runs out of time, StepTimedOut is raised
    wherever the callable is, so it needs no checks of its own.
    """

    def __init__(self, func: Callable[..., object], *args):
        self._func = func
        self._args = args

    def __repr__(self):
        name = getattr(self._func, '__qualname__', repr(self._func))
        args = ''.join(', ' + repr(arg) for arg in self._args)
        return f'{Call.__name__}({name}{args})'

    def run(self, output):
        self._func(output, *self._args)


_logger = logging.getLogger(__name__)
