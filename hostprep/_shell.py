# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
import shlex
import subprocess
from typing import Optional

from hostprep._output import StepOutput


def sh(command: str, output: StepOutput):
    """Run command with errexit and pipefail, as a provisioning script would."""
    return subprocess.run(
        _build(command),
        stdout=output.stdout,
        stderr=output.stderr,
        # Package managers may hang waiting for input nobody would give.
        stdin=subprocess.DEVNULL,
        env=_env(),
        timeout=output.timeout(),
        check=True,
        )


def sh_still(command: str, timeout_sec: Optional[float] = 60):
    """Run command and capture its output. Leave the exit code for the caller."""
    return subprocess.run(
        _build(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        env=_env(),
        timeout=timeout_sec,
        )


def sh_input(command: str, stdin: bytes, output: StepOutput):
    return subprocess.run(
        _build(command),
        input=stdin,
        stdout=output.stdout,
        stderr=output.stderr,
        env=_env(),
        timeout=output.timeout(),
        check=True,
        )


def _build(command):
    full_command = ['bash', '-o', 'errexit', '-o', 'pipefail', '-c', command]
    _logger.info("Run: %s", shlex.join(full_command))
    return full_command


def _env():
    return {**os.environ, 'DEBIAN_FRONTEND': 'noninteractive'}


_logger = logging.getLogger(__name__)
