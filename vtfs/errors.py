"""Error codes and result types returned by the filesystem engine.

Engine operations never raise for conditions a client can trigger. Inside the
engine those conditions are raised as :class:`FSError` (an ``OSError`` with a
stable code) and converted to a :class:`Failure` at the operation boundary.
Storage faults are :class:`StoreError` and are never converted.
"""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Stable filesystem error codes, each paired with a POSIX errno."""

    NOT_FOUND = ("NotFound", errno.ENOENT)
    EXISTS = ("Exists", errno.EEXIST)
    NOT_DIRECTORY = ("NotDirectory", errno.ENOTDIR)
    IS_DIRECTORY = ("IsDirectory", errno.EISDIR)
    NOT_EMPTY = ("NotEmpty", errno.ENOTEMPTY)
    BUSY = ("Busy", errno.EBUSY)
    NOT_PERMITTED = ("NotPermitted", errno.EPERM)
    INVALID_ARGUMENT = ("InvalidArgument", errno.EINVAL)

    def __new__(cls, value: str, err: int) -> "ErrorCode":
        member = str.__new__(cls, value)
        member._value_ = value
        member.errno = err
        return member

    def __str__(self) -> str:
        return self.value


class FSError(OSError):
    """A filesystem condition with a stable :class:`ErrorCode`.

    Attributes:
        code: The error code.
        errno: POSIX errno matching ``code``.
        filename: Canonical path the error refers to.
    """

    def __init__(self, code: ErrorCode, path: str | None = None):
        super().__init__(code.errno, os.strerror(code.errno), path)
        self.code = code

    def __reduce__(self):
        return (type(self), (self.code, self.filename))


class StoreError(Exception):
    """Raised by entry stores when persistence itself fails."""


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful operation outcome."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """Failed operation outcome.

    Attributes:
        code: Error code describing the failure.
        path: Canonical path the failure refers to, when there is one.
    """

    code: ErrorCode
    path: str | None = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise FSError(self.code, self.path)


Result = Union[Success[T], Failure]
