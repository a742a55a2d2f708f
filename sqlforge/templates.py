"""Template data, template loading and the functions templates can call."""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Protocol

import jinja2

from sqlforge.aliases import Aliases, TableAlias
from sqlforge.naming import camel_case, is_primitive, plural, singular, title_case, uses_primitives
from sqlforge.schema import Column, Dialect, Table, get_table


class TemplateError(Exception):
    """A template could not be loaded, parsed or rendered."""


class Once(set):
    """A set of strings that lets a template loop emit something only once."""

    def has(self, s: str) -> bool:
        return s in self

    def put(self, s: str) -> bool:
        """Add ``s``; return False if it was already present."""
        if s in self:
            return False
        self.add(s)
        return True


@dataclass
class TemplateData:
    """Everything a template can see while rendering."""

    tables: list[Table] = field(default_factory=list)
    table: Table = field(default_factory=Table)
    aliases: Aliases = field(default_factory=Aliases)

    pkg_name: str = ""
    schema: str = ""

    driver_name: str = ""
    dialect: Dialect = field(default_factory=Dialect)

    lq: str = ""
    rq: str = ""

    add_global: bool = False
    add_panic: bool = False
    add_soft_deletes: bool = False
    no_context: bool = False
    no_hooks: bool = False
    no_auto_timestamps: bool = False
    no_rows_affected: bool = False
    no_driver_templates: bool = False
    no_back_referencing: bool = False

    tags: list[str] = field(default_factory=list)
    relation_tag: str = ""
    struct_tag_casing: str = ""
    tag_ignore: set[str] = field(default_factory=set)
    output_dir_depth: int = 0

    db_types: Once = field(default_factory=Once)
    string_funcs: dict[str, Callable[[str], str]] = field(default_factory=dict)

    def quotes(self, s: str) -> str:
        return f"{self.lq}{s}{self.rq}"

    def schema_table(self, table: str) -> str:
        """The table name quoted, prefixed with the quoted schema when used."""
        if self.dialect.use_schema and self.schema:
            return f"{self.lq}{self.schema}{self.rq}.{self.lq}{table}{self.rq}"
        return f"{self.lq}{table}{self.rq}"

    def _context(self) -> dict[str, Any]:
        context = {f.name: getattr(self, f.name) for f in fields(self)}
        context.update(data=self, quotes=self.quotes, schema_table=self.schema_table)
        return context


class TemplateLoader(Protocol):
    def load(self) -> bytes: ...


@dataclass(frozen=True)
class FileLoader:
    """Loads a template from a file."""

    path: str

    def load(self) -> bytes:
        try:
            return Path(self.path).read_bytes()
        except OSError as err:
            raise TemplateError(f"failed to load template: {self.path}") from err

    def __str__(self) -> str:
        return f"file:{self.path}"


@dataclass(frozen=True)
class Base64Loader:
    """Loads a template from base64-encoded content."""

    content: str

    def _decode(self) -> bytes:
        try:
            return base64.b64decode(self.content, validate=True)
        except (binascii.Error, ValueError) as err:
            raise TemplateError(
                "failed to decode driver's template, should be base64"
            ) from err

    def load(self) -> bytes:
        return self._decode()

    def __str__(self) -> str:
        digest = hashlib.sha256(self._decode()).hexdigest()
        return f"base64:(sha256 of content): {digest}"


@dataclass(frozen=True)
class LazyTemplate:
    """A template name with the loader that fetches its content."""

    name: str
    loader: TemplateLoader


def sort_template_names(names: Iterable[str]) -> list[str]:
    """Sort names alphabetically with ``struct.tpl`` first."""
    return sorted(names, key=lambda name: (name != "struct.tpl", name))


def _split_lines(text: str) -> list[str]:
    return text.split("\n") if text else []


def _contains_any(items: Sequence[str], *candidates: str) -> bool:
    return any(candidate in items for candidate in candidates)


def _quote_wrap(s: str) -> str:
    return f'"{s}"'


def _go_varname(s: str) -> str:
    return s.replace("[", "_").replace("]", "_").replace(".", "_")


def _alias_cols(alias: TableAlias) -> Callable[[str], str]:
    return alias.column


TEMPLATE_STRING_MAPPERS: dict[str, Callable[[str], str]] = {
    "quote_wrap": _quote_wrap,
    "title_case": title_case,
    "camel_case": camel_case,
}

TEMPLATE_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "quote_wrap": _quote_wrap,
    "go_varname": _go_varname,
    "singular": singular,
    "plural": plural,
    "title_case": title_case,
    "camel_case": camel_case,
    "join": lambda sep, items: sep.join(items),
    "string_map": lambda fn, items: [fn(item) for item in items],
    "prefix_string_slice": lambda prefix, items: [prefix + item for item in items],
    "contains_any": _contains_any,
    "once_new": Once,
    "once_put": Once.put,
    "once_has": Once.has,
    "alias_cols": _alias_cols,
    "uses_primitives": uses_primitives,
    "is_primitive": is_primitive,
    "split_lines": _split_lines,
    "get_table": get_table,
    "column_names": lambda columns: [c.name for c in columns],
}


def _new_environment(sources: Mapping[str, str]) -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.DictLoader(dict(sources)),
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
        autoescape=False,
    )
    env.globals.update(TEMPLATE_FUNCTIONS)
    return env


class TemplateList:
    """A named collection of templates."""

    def __init__(self, sources: Mapping[str, str] | None = None):
        self._sources = dict(sources or {})
        self._env = _new_environment(self._sources)

    def templates(self) -> list[str]:
        """Names of the ``.tpl`` templates, ``struct.tpl`` first."""
        return sort_template_names(name for name in self._sources if name.endswith(".tpl"))

    def render(self, name: str, data: TemplateData | Mapping[str, Any]) -> str:
        """Render the template ``name`` with ``data``."""
        if isinstance(data, TemplateData):
            context = data._context()
        elif isinstance(data, Mapping):
            context = dict(data)
        else:
            raise TypeError(f"cannot render with {type(data).__name__}")
        try:
            return self._env.get_template(name).render(context)
        except jinja2.TemplateError as err:
            raise TemplateError(f"failed to execute template: {name}: {err}") from err


def load_templates(
    lazy_templates: Iterable[LazyTemplate], test_templates: bool
) -> TemplateList:
    """Load either the regular or the test templates and check their syntax.

    A template is a test template when its first directory ends in ``_test``.
    """
    sources: dict[str, str] = {}
    env = _new_environment({})
    for lazy in lazy_templates:
        first_dir = lazy.name.split(os.sep)[0]
        if first_dir.endswith("_test") != test_templates:
            continue
        try:
            source = lazy.loader.load().decode("utf-8")
        except (TemplateError, UnicodeDecodeError) as err:
            raise TemplateError(f"failed to load template: {lazy.name}") from err
        try:
            env.parse(source)
        except jinja2.TemplateSyntaxError as err:
            raise TemplateError(f"failed to parse template: {lazy.name}: {err}") from err
        sources[lazy.name] = source
    return TemplateList(sources)


__all__ = [
    "Base64Loader",
    "Column",
    "FileLoader",
    "LazyTemplate",
    "Once",
    "TEMPLATE_FUNCTIONS",
    "TEMPLATE_STRING_MAPPERS",
    "TemplateData",
    "TemplateError",
    "TemplateList",
    "load_templates",
    "sort_template_names",
]