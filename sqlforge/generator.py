"""The generation run: preparing state and writing every output file."""

from __future__ import annotations

import dataclasses
import json
import os
import re
import shutil
from collections.abc import Iterable
from typing import Any

from sqlforge.aliases import fill_aliases
from sqlforge.config import Config
from sqlforge.output import (
    generate_output,
    generate_singleton_output,
    generate_singleton_test_output,
    generate_test_output,
    group_templates,
)
from sqlforge.schema import (
    Dialect,
    ImportSet,
    Table,
    check_pkeys,
    column_merge,
    match_column,
    should_replace_in_table,
)
from sqlforge.templates import (
    TEMPLATE_STRING_MAPPERS,
    FileLoader,
    LazyTemplate,
    Once,
    TemplateData,
    TemplateList,
    load_templates,
)

_VALID_TAG = re.compile(r"[a-zA-Z_.]+")
_VALID_TABLE_COLUMN = re.compile(r"\w+\.\w+|\w+", re.ASCII)


def normalize_slashes(path: str) -> str:
    """Convert both slash styles to the native separator."""
    return path.replace("/", os.sep).replace("\\", os.sep)


def denormalize_slashes(path: str) -> str:
    """Convert backslashes to forward slashes."""
    return path.replace("\\", "/")


def find_templates(root: str, base: str) -> dict[str, FileLoader]:
    """Find ``.tpl`` files under ``root/base``, keyed by their path relative to ``root``."""
    root_base = os.path.join(root, base)
    if not os.path.isdir(root_base):
        raise FileNotFoundError(f"templates directory not found: {root_base}")

    found: dict[str, FileLoader] = {}
    for dirpath, _dirnames, filenames in os.walk(root_base):
        for filename in filenames:
            if os.path.splitext(filename)[1] != ".tpl":
                continue
            path = os.path.join(dirpath, filename)
            relative = os.path.relpath(path, root).lstrip(os.sep)
            found[relative] = FileLoader(path)
    return found


def _quote_character(quote: str) -> str:
    return '\\"' if quote == '"' else quote


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return str(value)


class State:
    """Everything one generation run needs, prepared from a config and a schema."""

    def __init__(
        self,
        config: Config,
        tables: Iterable[Table],
        schema: str = "",
        dialect: Dialect | None = None,
    ):
        self.config = config
        self.schema = schema
        self.dialect = dialect if dialect is not None else Dialect()
        self.tables: list[Table] = []
        self.templates = TemplateList()
        self.test_templates = TemplateList()

        lazy: list[LazyTemplate] = []
        try:
            self._init_db_info(list(tables))
            if not config.no_context:
                config.imports.all.standard.append('"context"')
                config.imports.test.standard.append('"context"')
            self.process_type_replacements()
            lazy = self._init_templates()
            self._init_out_folders(lazy)
            self._init_tags()
            fill_aliases(config.aliases, self.tables)
        finally:
            if config.debug:
                self._print_debug(lazy)

    def _print_debug(self, lazy: list[LazyTemplate]) -> None:
        out = {
            "config": dataclasses.asdict(self.config),
            "driver_config": self.config.driver_config,
            "schema": self.schema,
            "dialect": dataclasses.asdict(self.dialect),
            "tables": [dataclasses.asdict(table) for table in self.tables],
            "templates": [{"name": t.name, "loader": str(t.loader)} for t in lazy],
        }
        print(json.dumps(out, default=_json_default))

    def _init_db_info(self, tables: list[Table]) -> None:
        if not tables:
            raise ValueError("no tables found in database")
        check_pkeys(tables)
        self.tables = tables

    def process_type_replacements(self) -> None:
        """Apply the configured type replacements to the matching columns."""
        imports = self.config.imports
        for replace in self.config.type_replaces:
            for table in self.tables:
                if not should_replace_in_table(table, replace):
                    continue
                columns = []
                for column in table.columns:
                    if match_column(column, replace.match):
                        column = column_merge(column, replace.replace)
                        if replace.imports.standard or replace.imports.third_party:
                            imports.based_on_type[column.type] = ImportSet(
                                standard=list(replace.imports.standard),
                                third_party=list(replace.imports.third_party),
                            )
                    columns.append(column)
                table.columns = columns

    def _init_templates(self) -> list[LazyTemplate]:
        templates: dict[str, Any] = {}
        for directory in self.config.template_dirs:
            absolute = os.path.abspath(directory)
            templates.update(
                find_templates(os.path.dirname(absolute), os.path.basename(absolute))
            )

        for replace in self.config.replacements:
            parts = replace.split(";")
            if len(parts) != 2:
                raise ValueError(f"replace parameters must have 2 arguments, given: {replace}")
            original, replacement = normalize_slashes(parts[0]), parts[1]
            if original not in templates:
                raise ValueError(
                    f"replace can only replace existing templates, {original} does not exist"
                )
            templates[original] = FileLoader(replacement)

        lazy = [LazyTemplate(name, templates[name]) for name in sorted(templates)]
        self.templates = load_templates(lazy, False)
        if not self.config.no_tests:
            self.test_templates = load_templates(lazy, True)
        return lazy

    def _init_out_folders(self, lazy: list[LazyTemplate]) -> None:
        out_folder = self.config.out_folder
        if self.config.wipe and os.path.exists(out_folder):
            shutil.rmtree(out_folder)

        new_dirs = set()
        for template in lazy:
            fragments = template.name.split(os.sep)[1:-1]
            if fragments and fragments[-1] == "singleton":
                fragments = fragments[:-1]
            if fragments:
                new_dirs.add(os.sep.join(fragments))

        os.makedirs(out_folder or ".", exist_ok=True)
        for directory in new_dirs:
            os.makedirs(os.path.join(out_folder, directory), exist_ok=True)

    def _init_tags(self) -> None:
        self.config.tags = list(dict.fromkeys(self.config.tags))
        for tag in self.config.tags:
            if not _VALID_TAG.search(tag):
                raise ValueError(
                    f"invalid tag format {tag!r} supplied, only specify name, eg: xml"
                )

    def run(self) -> None:
        """Render every template and write the output files."""
        config = self.config
        data = TemplateData(
            tables=self.tables,
            aliases=config.aliases,
            driver_name=config.driver_name,
            pkg_name=config.pkg_name,
            add_global=config.add_global,
            add_panic=config.add_panic,
            add_soft_deletes=config.add_soft_deletes,
            no_context=config.no_context,
            no_hooks=config.no_hooks,
            no_auto_timestamps=config.no_auto_timestamps,
            no_rows_affected=config.no_rows_affected,
            no_driver_templates=config.no_driver_templates,
            no_back_referencing=config.no_back_referencing,
            struct_tag_casing=config.struct_tag_casing,
            tags=config.tags,
            relation_tag=config.relation_tag,
            dialect=self.dialect,
            schema=self.schema,
            lq=_quote_character(self.dialect.lq),
            rq=_quote_character(self.dialect.rq),
            output_dir_depth=config.output_dir_depth(),
            db_types=Once(),
            string_funcs=dict(TEMPLATE_STRING_MAPPERS),
        )

        for name in config.tag_ignore:
            if not _VALID_TABLE_COLUMN.fullmatch(name):
                raise ValueError(
                    f"invalid column name {name!r} supplied, only specify column name "
                    "or table.column, eg: created_at, user.password"
                )
            data.tag_ignore.add(name)

        generate_singleton_output(self, data)
        if not config.no_tests:
            generate_singleton_test_output(self, data)

        regular = group_templates(self.templates)
        tests = group_templates(self.test_templates) if not config.no_tests else {}

        for table in self.tables:
            if table.is_join_table:
                continue
            data.table = table
            generate_output(self, regular, data)
            if not config.no_tests:
                generate_test_output(self, tests, data)

    def cleanup(self) -> None:
        """Release resources held by the run; there are none at present."""