# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import shlex

from hostprep._core import Run


class EnableService(Run):

    def __init__(self, name: str):
        super().__init__(f'systemctl enable --now {shlex.quote(name)}')


class DisableService(Run):
    """Stop and disable; a unit that is not installed is fine."""

    def __init__(self, name: str):
        super().__init__(f'systemctl disable --now {shlex.quote(name)} || true')


class RestartService(Run):

    def __init__(self, name: str):
        super().__init__(f'systemctl restart {shlex.quote(name)}')
