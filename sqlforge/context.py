"""Immutable request contexts carrying debug and hook settings."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from typing import Any, TextIO


class _ContextKey(enum.Enum):
    SKIP_HOOKS = enum.auto()
    SKIP_TIMESTAMPS = enum.auto()
    DEBUG = enum.auto()
    DEBUG_WRITER = enum.auto()


_MISSING = object()


class Context:
    """An immutable chain of key/value pairs."""

    __slots__ = ("_parent", "_key", "_value")

    def __init__(self, parent: Context | None = None, key: Any = _MISSING, value: Any = None):
        self._parent = parent
        self._key = key
        self._value = value

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a child context holding ``key`` set to ``value``."""
        return Context(self, key, value)

    def value(self, key: Any) -> Any:
        """Return the nearest value stored for ``key``, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._key is not _MISSING and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None


_BACKGROUND = Context()


def background() -> Context:
    """Return the empty root context."""
    return _BACKGROUND


@dataclass
class _DebugSettings:
    mode: bool = False
    writer: TextIO | None = None


_debug = _DebugSettings()


def set_debug_mode(enabled: bool) -> None:
    """Set the global default for debug output."""
    _debug.mode = bool(enabled)


def set_debug_writer(writer: TextIO | None) -> None:
    """Set the global debug writer; None means standard output."""
    _debug.writer = writer


def with_debug(ctx: Context, debug: bool) -> Context:
    return ctx.with_value(_ContextKey.DEBUG, debug)


def is_debug(ctx: Context) -> bool:
    """Debug flag of the context, or the global debug mode if unset."""
    debug = ctx.value(_ContextKey.DEBUG)
    if isinstance(debug, bool):
        return debug
    return _debug.mode


def with_debug_writer(ctx: Context, writer: TextIO) -> Context:
    return ctx.with_value(_ContextKey.DEBUG_WRITER, writer)


def debug_writer_from(ctx: Context) -> TextIO:
    """Debug writer of the context, or the global writer if unset."""
    writer = ctx.value(_ContextKey.DEBUG_WRITER)
    if writer is not None and hasattr(writer, "write"):
        return writer
    return _debug.writer if _debug.writer is not None else sys.stdout


def skip_hooks(ctx: Context) -> Context:
    """Return a context under which hooks do not run."""
    return ctx.with_value(_ContextKey.SKIP_HOOKS, True)


def hooks_are_skipped(ctx: Context) -> bool:
    return bool(ctx.value(_ContextKey.SKIP_HOOKS))


def skip_timestamps(ctx: Context) -> Context:
    """Return a context under which automatic timestamps are not set."""
    return ctx.with_value(_ContextKey.SKIP_TIMESTAMPS, True)


def timestamps_are_skipped(ctx: Context) -> bool:
    return bool(ctx.value(_ContextKey.SKIP_TIMESTAMPS))


class HookPoint(enum.IntEnum):
    """The point in time at which a hook runs."""

    BEFORE_INSERT = 1
    BEFORE_UPDATE = 2
    BEFORE_DELETE = 3
    BEFORE_UPSERT = 4
    AFTER_INSERT = 5
    AFTER_SELECT = 6
    AFTER_UPDATE = 7
    AFTER_DELETE = 8
    AFTER_UPSERT = 9