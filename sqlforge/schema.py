"""Database schema description: tables, columns, foreign keys and type replacements."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Column:
    """A table column as reported by a database driver."""

    name: str = ""
    type: str = ""
    db_type: str = ""
    default: str = ""
    nullable: bool = False
    unique: bool = False
    auto_generated: bool = False
    udt_name: str = ""
    full_db_type: str = ""
    arr_type: str | None = None
    domain_name: str | None = None


@dataclass(frozen=True)
class ForeignKey:
    """A foreign key from ``table.column`` to ``foreign_table.foreign_column``."""

    name: str = ""
    table: str = ""
    column: str = ""
    unique: bool = False
    foreign_table: str = ""
    foreign_column: str = ""
    foreign_column_unique: bool = False


@dataclass
class Table:
    """A table with its columns, primary key columns and foreign keys."""

    name: str = ""
    columns: list[Column] = field(default_factory=list)
    pkey: tuple[str, ...] | None = None
    fkeys: list[ForeignKey] = field(default_factory=list)
    is_join_table: bool = False

    def get_column(self, name: str) -> Column:
        """Return the column called ``name``; raise KeyError if there is none."""
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(f"could not find column name: {self.name}.{name}")


@dataclass(frozen=True)
class Dialect:
    """Quoting and feature switches of a SQL dialect."""

    lq: str = '"'
    rq: str = '"'
    use_schema: bool = False


@dataclass
class ImportSet:
    """Standard-library and third-party imports of a generated file."""

    standard: list[str] = field(default_factory=list)
    third_party: list[str] = field(default_factory=list)


@dataclass
class TypeReplace:
    """Replaces the type of every column that matches ``match``."""

    tables: list[str] = field(default_factory=list)
    match: Column = field(default_factory=Column)
    replace: Column = field(default_factory=Column)
    imports: ImportSet = field(default_factory=ImportSet)


def get_table(tables: Iterable[Table], name: str) -> Table:
    """Return the table called ``name``; raise KeyError if there is none."""
    for table in tables:
        if table.name == name:
            return table
    raise KeyError(f"could not find table name: {name}")


def _optional_matches(matcher: str | None, value: str | None) -> bool:
    if matcher is None:
        return True
    return value is not None and (not matcher or matcher == value)


def match_column(column: Column, matcher: Column) -> bool:
    """Check that every specifier set in ``matcher`` agrees with ``column``.

    String fields only take part when they are set; the boolean fields
    ``auto_generated`` and ``nullable`` must always be equal.
    """
    pairs = (
        (matcher.name, column.name),
        (matcher.type, column.type),
        (matcher.db_type, column.db_type),
        (matcher.udt_name, column.udt_name),
        (matcher.full_db_type, column.full_db_type),
    )
    if any(want and want != got for want, got in pairs):
        return False
    if not _optional_matches(matcher.arr_type, column.arr_type):
        return False
    if not _optional_matches(matcher.domain_name, column.domain_name):
        return False
    return (
        matcher.auto_generated == column.auto_generated
        and matcher.nullable == column.nullable
    )


def column_merge(dst: Column, src: Column) -> Column:
    """Return ``dst`` with the non-empty type fields of ``src`` copied over.

    The name is never replaced.
    """
    changes: dict[str, str] = {
        name: getattr(src, name)
        for name in ("type", "db_type", "udt_name", "full_db_type")
        if getattr(src, name)
    }
    if src.arr_type:
        changes["arr_type"] = src.arr_type
    return dataclasses.replace(dst, **changes)


def should_replace_in_table(table: Table, replace: TypeReplace) -> bool:
    """A replacement applies to every table unless it names some."""
    return not replace.tables or table.name in replace.tables


def check_pkeys(tables: Iterable[Table]) -> None:
    """Raise ValueError naming every table without a primary key."""
    missing = [table.name for table in tables if table.pkey is None]
    if missing:
        raise ValueError(f"primary key missing in tables ({', '.join(missing)})")