"""Errors raised by the runtime helpers."""

from __future__ import annotations


class BoilError(Exception):
    """Wraps another error to mark it as coming from this package."""

    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error
        self.__cause__ = error

    def __str__(self) -> str:
        return str(self.error)


def wrap_err(err: BaseException) -> BoilError:
    """Wrap ``err`` in a BoilError."""
    return BoilError(err)


def is_boil_err(err: BaseException) -> bool:
    """Check whether ``err`` is a BoilError."""
    return isinstance(err, BoilError)