from __future__ import annotations

"""structerr/process.py

External process failures.

- ExecError: the process could not be started at all
- ExecutableNotFoundError: an executable missing from PATH
- look_path: shutil.which that raises instead of returning None

Non-zero exits are reported through subprocess.CalledProcessError, which the
classifier handles directly.
"""

import shutil


class ExecutableNotFoundError(FileNotFoundError):
    """An executable is missing from PATH. Carries no errno or filename."""

    def __init__(self, msg: str = "executable file not found in $PATH"):
        super().__init__(msg)


class ExecError(Exception):
    def __init__(self, name: str, err: BaseException):
        super().__init__(name, err)
        self.name = name
        self.err = err

    def __str__(self) -> str:
        return f"exec: {self.name!r}: {self.err}"


def look_path(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ExecError(name, ExecutableNotFoundError())
    return path
