# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import time
from typing import BinaryIO
from typing import Optional


class StepOutput:
    """Where a running action writes its output, and how long it may run.

    Both sinks are binary files with a real file descriptor,
    so they can be handed over to child processes as is.
    """

    def __init__(self, stdout: BinaryIO, stderr: BinaryIO, timeout_sec: Optional[float] = None):
        self.stdout = stdout
        self.stderr = stderr
        if timeout_sec:
            self._deadline = time.monotonic() + timeout_sec
        else:
            self._deadline = None

    def timeout(self) -> Optional[float]:
        """Return seconds left for the step; None if unlimited.

        >>> import io
        >>> StepOutput(io.BytesIO(), io.BytesIO()).timeout() is None
        True
        >>> 0 < StepOutput(io.BytesIO(), io.BytesIO(), 10).timeout() <= 10
        True
        """
        if self._deadline is None:
            return None
        left = self._deadline - time.monotonic()
        if left <= 0:
            raise StepTimedOut()
        return left

    def write(self, message: str):
        self.stdout.write(message.encode('utf8') + b'\n')
        self.stdout.flush()


class StepTimedOut(Exception):

    def __init__(self):
        super().__init__("Step ran out of time")
