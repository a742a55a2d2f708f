"""Generation settings and conversion of loosely typed configuration values."""

from __future__ import annotations

import os
import posixpath
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlforge.aliases import Aliases, RelationshipAlias, TableAlias
from sqlforge.schema import Column, ImportSet, TypeReplace


@dataclass
class ImportCollection:
    """Every set of imports that generated files may need."""

    all: ImportSet = field(default_factory=ImportSet)
    test: ImportSet = field(default_factory=ImportSet)
    singleton: dict[str, ImportSet] = field(default_factory=dict)
    test_singleton: dict[str, ImportSet] = field(default_factory=dict)
    based_on_type: dict[str, ImportSet] = field(default_factory=dict)


@dataclass
class Config:
    """Settings of one generation run."""

    driver_name: str = ""
    driver_config: dict[str, Any] = field(default_factory=dict)

    pkg_name: str = ""
    out_folder: str = ""
    template_dirs: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    replacements: list[str] = field(default_factory=list)
    debug: bool = False
    add_global: bool = False
    add_panic: bool = False
    add_soft_deletes: bool = False
    no_context: bool = False
    no_tests: bool = False
    no_hooks: bool = False
    no_auto_timestamps: bool = False
    no_rows_affected: bool = False
    no_driver_templates: bool = False
    no_back_referencing: bool = False
    wipe: bool = False
    struct_tag_casing: str = ""
    relation_tag: str = ""
    tag_ignore: list[str] = field(default_factory=list)

    imports: ImportCollection = field(default_factory=ImportCollection)

    aliases: Aliases = field(default_factory=Aliases)
    type_replaces: list[TypeReplace] = field(default_factory=list)

    version: str = ""

    def output_dir_depth(self) -> int:
        """Number of directory levels in the output folder."""
        cleaned = os.path.normpath(self.out_folder or ".").replace(os.sep, "/")
        cleaned = posixpath.normpath(cleaned)
        if cleaned == ".":
            return 0
        return cleaned.count("/") + 1


def _to_string_map(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    return {}


def _to_string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return []


def _as_str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _as_bool(value: Any, what: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{what} must be a boolean, got {type(value).__name__}")
    return value


def _iterate_map_or_list(value: Any, fn: Callable[[str, Any], None]) -> None:
    if isinstance(value, Mapping):
        for name, obj in _to_string_map(value).items():
            fn(name, obj)
    elif isinstance(value, (list, tuple)):
        for obj in value:
            fn(_as_str(_to_string_map(obj).get("name"), "name"), obj)


def import_set_from_mapping(value: Any) -> ImportSet:
    """Build an ImportSet from a mapping with ``standard`` and ``third_party`` lists."""
    if value is None:
        return ImportSet()
    if not isinstance(value, Mapping):
        raise TypeError(f"imports must be a mapping, got {type(value).__name__}")
    mapping = _to_string_map(value)

    def strings(key: str) -> list[str]:
        items = mapping.get(key)
        if items is None:
            return []
        if not isinstance(items, (list, tuple)):
            raise TypeError(f"imports.{key} must be a list")
        return [_as_str(item, f"imports.{key} entry") for item in items]

    return ImportSet(standard=strings("standard"), third_party=strings("third_party"))


def convert_aliases(value: Any) -> Aliases:
    """Build Aliases from a parsed configuration value.

    Tables, columns and relationships may each be given as a mapping keyed by
    name, or as a list of mappings that carry a ``name`` key.
    """
    aliases = Aliases()
    if value is None:
        return aliases

    def add_table(name: str, table_value: Any) -> None:
        raw = _to_string_map(table_value)
        alias = TableAlias()
        for key in ("up_plural", "up_singular", "down_plural", "down_singular"):
            if raw.get(key) is not None:
                setattr(alias, key, _as_str(raw[key], key))

        if "columns" in raw:

            def add_column(col_name: str, col_value: Any) -> None:
                if isinstance(col_value, Mapping):
                    alias.columns[col_name] = _as_str(
                        _to_string_map(col_value).get("alias"), "alias"
                    )
                elif isinstance(col_value, str):
                    alias.columns[col_name] = col_value
                else:
                    alias.columns[col_name] = ""

            _iterate_map_or_list(raw["columns"], add_column)

        if "relationships" in raw:

            def add_relationship(rel_name: str, rel_value: Any) -> None:
                rel = _to_string_map(rel_value)
                local = rel.get("local")
                foreign = rel.get("foreign")
                alias.relationships[rel_name] = RelationshipAlias(
                    local=_as_str(local, "local") if local is not None else "",
                    foreign=_as_str(foreign, "foreign") if foreign is not None else "",
                )

            _iterate_map_or_list(raw["relationships"], add_relationship)

        aliases.tables[name] = alias

    _iterate_map_or_list(_to_string_map(value).get("tables"), add_table)
    return aliases


def _column_from_value(value: Any) -> Column:
    raw = _to_string_map(value)
    kwargs: dict[str, Any] = {}
    for key, attr in (
        ("name", "name"),
        ("type", "type"),
        ("db_type", "db_type"),
        ("udt_name", "udt_name"),
        ("full_db_type", "full_db_type"),
        ("arr_type", "arr_type"),
        ("domain_name", "domain_name"),
    ):
        if raw.get(key) is not None:
            kwargs[attr] = _as_str(raw[key], key)
    for key in ("auto_generated", "nullable"):
        if raw.get(key) is not None:
            kwargs[key] = _as_bool(raw[key], key)
    return Column(**kwargs)


def convert_type_replace(value: Any) -> list[TypeReplace]:
    """Build the list of type replacements from a parsed configuration value."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"type replacements must be a list, got {type(value).__name__}")

    replaces = []
    for entry in value:
        raw = _to_string_map(entry)
        if raw.get("match") is None or raw.get("replace") is None:
            raise ValueError("replace types must specify both match and replace")

        replace = TypeReplace(
            tables=_to_string_list(_to_string_map(raw["match"]).get("tables")),
            match=_column_from_value(raw["match"]),
            replace=_column_from_value(raw["replace"]),
        )
        if raw.get("imports") is not None:
            replace.imports = import_set_from_mapping(_to_string_map(raw["imports"]))
        replaces.append(replace)
    return replaces