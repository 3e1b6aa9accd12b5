# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Workflows: ordered lists of steps, one list per kind of host.

Steps of a workflow are independent. A failed step does not stop the rest.
Every step must be idempotent: running the whole workflow again
must converge, not accumulate changes.
"""
from dataclasses import dataclass
from typing import Callable
from typing import Mapping
from typing import Sequence

from hostprep._step import Step
from hostprep.workflows import boot_check
from hostprep.workflows import multi_distro
from hostprep.workflows import ubuntu_workstation


@dataclass(frozen=True)
class Workflow:
    name: str
    description: str
    steps: Callable[[Mapping[str, str]], Sequence[Step]]
    # Config key of the log path; checks do not mix with the provisioning log.
    log_path_key: str = 'log_path'
    changes_host: bool = True


WORKFLOWS: Mapping[str, Workflow] = {
    w.name: w for w in [
        Workflow(
            'ubuntu_workstation',
            "DevOps workstation on Ubuntu 22.04",
            ubuntu_workstation.steps,
            ),
        Workflow(
            'multi_distro',
            "Server toolbox for Debian, RHEL and Arch families",
            multi_distro.steps,
            ),
        Workflow(
            'boot_check',
            "Verify a provisioned host, change nothing",
            boot_check.steps,
            log_path_key='check_log_path',
            changes_host=False,
            ),
        ]
    }
