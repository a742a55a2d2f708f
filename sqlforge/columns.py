"""Column lists that steer which columns go into inserts and updates."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from dataclasses import dataclass


class ColumnsKind(enum.Enum):
    """How a column list interacts with column inference."""

    NONE = 0
    INFER = 1
    WHITELIST = 2
    GREYLIST = 3
    BLACKLIST = 4


def _set_complement(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Items of ``a`` that are not in ``b``, in the order of ``a``."""
    exclude = set(b)
    return [item for item in a if item not in exclude]


def _set_merge(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Items of ``a`` followed by the items of ``b`` not already present."""
    merged = list(a)
    seen = set(merged)
    for item in b:
        if item not in seen:
            merged.append(item)
            seen.add(item)
    return merged


def _sort_by_keys(keys: Iterable[str], items: Iterable[str]) -> list[str]:
    """Items ordered by their position in ``keys``."""
    wanted = set(items)
    return [key for key in keys if key in wanted]


@dataclass(frozen=True)
class Columns:
    """A list of column names together with the kind of list it is."""

    kind: ColumnsKind = ColumnsKind.NONE
    cols: tuple[str, ...] = ()

    def is_none(self) -> bool:
        return self.kind is ColumnsKind.NONE

    def is_infer(self) -> bool:
        return self.kind is ColumnsKind.INFER

    def is_whitelist(self) -> bool:
        return self.kind is ColumnsKind.WHITELIST

    def is_blacklist(self) -> bool:
        return self.kind is ColumnsKind.BLACKLIST

    def is_greylist(self) -> bool:
        return self.kind is ColumnsKind.GREYLIST

    def insert_column_set(
        self,
        cols: Sequence[str],
        defaults: Sequence[str],
        no_defaults: Sequence[str],
        non_zero_defaults: Sequence[str] | None,
    ) -> tuple[list[str], list[str]]:
        """Return the columns to insert and the columns to read back.

        None:      insert nothing, return nothing
        Infer:     insert no-default + non-zero-default columns
        Whitelist: insert exactly the whitelist
        Blacklist: inferred columns minus the blacklist
        Greylist:  inferred columns plus the greylist

        The returned columns are always the defaults minus the inserted ones.
        """
        if self.kind is ColumnsKind.NONE:
            return [], []
        if self.kind is ColumnsKind.WHITELIST:
            return list(self.cols), _set_complement(defaults, self.cols)

        insert = [*no_defaults, *(non_zero_defaults or ())]
        if self.kind is ColumnsKind.BLACKLIST:
            insert = _set_complement(insert, self.cols)
        elif self.kind is ColumnsKind.GREYLIST:
            insert = _set_merge(insert, self.cols)
        elif self.kind is not ColumnsKind.INFER:
            raise ValueError("not a real column list kind")

        insert = _sort_by_keys(cols, insert)
        return insert, _set_complement(defaults, insert)

    def update_column_set(
        self, all_columns: Sequence[str], pkey_cols: Sequence[str]
    ) -> list[str]:
        """Return the columns to set in an update statement.

        None:      nothing
        Infer:     all - pkeys
        Whitelist: whitelist
        Blacklist: all - pkeys - blacklist
        Greylist:  all - pkeys + greylist
        """
        if self.kind is ColumnsKind.NONE:
            return []
        if self.kind is ColumnsKind.INFER:
            return _set_complement(all_columns, pkey_cols)
        if self.kind is ColumnsKind.WHITELIST:
            return list(self.cols)
        if self.kind is ColumnsKind.BLACKLIST:
            return _set_complement(_set_complement(all_columns, pkey_cols), self.cols)
        if self.kind is ColumnsKind.GREYLIST:
            update = _set_complement(all_columns, pkey_cols) + list(self.cols)
            return _sort_by_keys(all_columns, update)
        raise ValueError("not a real column list kind")


def none() -> Columns:
    """An empty column list: nothing is inserted or updated."""
    return Columns(ColumnsKind.NONE)


def infer() -> Columns:
    """Infer the final list of columns."""
    return Columns(ColumnsKind.INFER)


def whitelist(*args: str) -> Columns:
    """A list that completely overrides inference."""
    return Columns(ColumnsKind.WHITELIST, tuple(args))


def blacklist(*args: str) -> Columns:
    """A list of columns removed from the inferred list."""
    return Columns(ColumnsKind.BLACKLIST, tuple(args))


def greylist(*args: str) -> Columns:
    """A list of columns added to the inferred list."""
    return Columns(ColumnsKind.GREYLIST, tuple(args))