from __future__ import annotations

"""structerr/fs.py

Filesystem failures that remember which operation failed.

Native OSError carries the path(s) and errno but not the operation. Wrap an
OSError in PathError/LinkError/SyscallError where the operation matters;
the classifier reports the op as `error_op` and the inner error's message as
the description. Bytes paths are decoded with os.fsdecode.
"""

import os


class PathError(OSError):
    def __init__(self, op: str, path: str | bytes | os.PathLike, err: BaseException):
        super().__init__(getattr(err, "errno", None), _message(err), os.fsdecode(path))
        self.op = op
        self.path = os.fsdecode(path)
        self.err = err

    def __str__(self) -> str:
        return f"{self.op} {self.path}: {_message(self.err)}"


class LinkError(OSError):
    def __init__(
        self,
        op: str,
        old: str | bytes | os.PathLike,
        new: str | bytes | os.PathLike,
        err: BaseException,
    ):
        super().__init__(
            getattr(err, "errno", None), _message(err), os.fsdecode(old), None, os.fsdecode(new)
        )
        self.op = op
        self.old = os.fsdecode(old)
        self.new = os.fsdecode(new)
        self.err = err

    def __str__(self) -> str:
        return f"{self.op} {self.old} {self.new}: {_message(self.err)}"


class SyscallError(OSError):
    def __init__(self, syscall: str, err: BaseException):
        super().__init__(getattr(err, "errno", None), _message(err))
        self.syscall = syscall
        self.err = err

    def __str__(self) -> str:
        return f"{self.syscall}: {_message(self.err)}"


def _message(err: BaseException) -> str:
    if isinstance(err, OSError) and err.strerror:
        return err.strerror
    return str(err)
