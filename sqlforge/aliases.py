"""Aliases: the names generated code uses for tables, columns and relationships."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlforge.naming import camel_case, plural, singular, title_case, txt_name_to_many, txt_name_to_one
from sqlforge.schema import Table


@dataclass(frozen=True)
class RelationshipAlias:
    """Names of both sides of a foreign key."""

    local: str = ""
    foreign: str = ""


@dataclass
class TableAlias:
    """Spellings of a table name and the aliases of its columns and keys."""

    up_plural: str = ""
    up_singular: str = ""
    down_plural: str = ""
    down_singular: str = ""
    columns: dict[str, str] = field(default_factory=dict)
    relationships: dict[str, RelationshipAlias] = field(default_factory=dict)

    def column(self, name: str) -> str:
        """Return a column's alias; raise KeyError if unknown."""
        try:
            return self.columns[name]
        except KeyError:
            raise KeyError(
                f"could not find column alias for: {self.up_singular}.{name}"
            ) from None

    def relationship(self, fkey: str) -> RelationshipAlias:
        """Return a relationship's alias; raise KeyError if unknown."""
        try:
            return self.relationships[fkey]
        except KeyError:
            raise KeyError(
                f"could not find relationship alias for: {self.up_singular}.{fkey}"
            ) from None


@dataclass
class Aliases:
    """Aliases of every table of a generation run, keyed by table name."""

    tables: dict[str, TableAlias] = field(default_factory=dict)

    def table(self, name: str) -> TableAlias:
        """Return a table's aliases; raise KeyError if unknown."""
        try:
            return self.tables[name]
        except KeyError:
            raise KeyError(f"could not find table aliases for: {name}") from None

    def many_relationship(
        self, table: str, fkey: str, join_table: str, join_table_fkey: str
    ) -> RelationshipAlias:
        """Look up a relationship, through the join table when one is given."""
        if join_table:
            return self.table(join_table).relationship(join_table_fkey)
        return self.table(table).relationship(fkey)


def _fill_table(alias: TableAlias, table: Table) -> None:
    alias.up_plural = alias.up_plural or title_case(plural(table.name))
    alias.up_singular = alias.up_singular or title_case(singular(table.name))
    alias.down_plural = alias.down_plural or camel_case(plural(table.name))
    alias.down_singular = alias.down_singular or camel_case(singular(table.name))

    for column in table.columns:
        alias.columns.setdefault(column.name, title_case(column.name))

    for fk in table.fkeys:
        current = alias.relationships.get(fk.name, RelationshipAlias())
        if current.local and current.foreign:
            continue
        local, foreign = txt_name_to_one(fk)
        alias.relationships[fk.name] = RelationshipAlias(
            local=current.local or local, foreign=current.foreign or foreign
        )


def _fill_join_table(alias: TableAlias, table: Table) -> None:
    lhs, rhs = table.fkeys[0], table.fkeys[1]
    lhs_alias = alias.relationships.get(lhs.name, RelationshipAlias())
    rhs_alias = alias.relationships.get(rhs.name, RelationshipAlias())

    if lhs_alias.local and lhs_alias.foreign and rhs_alias.local and rhs_alias.foreign:
        return

    # Local and foreign are reversed here so that, as in one-to-many
    # relationships, "local" names the side that would hold the key.
    lhs_name, rhs_name = txt_name_to_many(lhs, rhs)

    if lhs_alias.local:
        rhs_name = lhs_alias.local
    elif rhs_alias.local:
        lhs_name = rhs_alias.local

    if lhs_alias.foreign:
        lhs_name = lhs_alias.foreign
    elif rhs_alias.foreign:
        rhs_name = rhs_alias.foreign

    alias.relationships[lhs.name] = RelationshipAlias(
        local=lhs_alias.local or rhs_name, foreign=lhs_alias.foreign or lhs_name
    )
    alias.relationships[rhs.name] = RelationshipAlias(
        local=rhs_alias.local or lhs_name, foreign=rhs_alias.foreign or rhs_name
    )


def fill_aliases(aliases: Aliases, tables: Iterable[Table]) -> None:
    """Fill in every alias the user left unset, in place."""
    tables = list(tables)
    for table in tables:
        alias = aliases.tables.setdefault(table.name, TableAlias())
        if not table.is_join_table:
            _fill_table(alias, table)

    for table in tables:
        if table.is_join_table:
            _fill_join_table(aliases.tables[table.name], table)