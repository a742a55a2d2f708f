"""Global database handle and timestamp location."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from sqlforge.context import Context


@runtime_checkable
class Executor(Protocol):
    """Something that can run SQL queries."""

    def exec(self, query: str, *args: Any) -> Any: ...

    def query(self, query: str, *args: Any) -> Any: ...

    def query_row(self, query: str, *args: Any) -> Any: ...


@runtime_checkable
class ContextExecutor(Executor, Protocol):
    """An executor whose queries also take a context."""

    def exec_context(self, ctx: Context, query: str, *args: Any) -> Any: ...

    def query_context(self, ctx: Context, query: str, *args: Any) -> Any: ...

    def query_row_context(self, ctx: Context, query: str, *args: Any) -> Any: ...


@runtime_checkable
class Transactor(Executor, Protocol):
    """An executor that can commit and roll back."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@runtime_checkable
class Beginner(Protocol):
    """Something that begins transactions."""

    def begin(self) -> Any: ...


@runtime_checkable
class ContextBeginner(Protocol):
    """Something that begins context-aware transactions with options."""

    def begin_tx(self, ctx: Context, options: Any) -> Any: ...


@dataclass
class _Globals:
    db: Any = None
    context_db: Any = None
    location: datetime.tzinfo = field(default=datetime.timezone.utc)


_state = _Globals()


def set_db(db: Any) -> None:
    """Set the global database handle."""
    _state.db = db
    if isinstance(db, ContextExecutor):
        _state.context_db = db


def get_db() -> Any:
    """Return the global database handle."""
    return _state.db


def get_context_db() -> Any:
    """Return the global database handle as a context executor."""
    return _state.context_db


def begin() -> Any:
    """Begin a transaction on the global database handle."""
    db = _state.db
    if not isinstance(db, Beginner):
        raise TypeError("database does not support transactions")
    return db.begin()


def begin_tx(ctx: Context, options: Any) -> Any:
    """Begin a context-aware transaction on the global database handle."""
    db = _state.db
    if not isinstance(db, ContextBeginner):
        raise TypeError("database does not support context-aware transactions")
    return db.begin_tx(ctx, options)


def set_location(location: datetime.tzinfo) -> None:
    """Set the time zone used for automatic created/updated timestamps."""
    _state.location = location


def get_location() -> datetime.tzinfo:
    """Return the time zone used for automatic timestamps."""
    return _state.location