"""Rendering templates into output files."""

from __future__ import annotations

import io
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, TextIO

from sqlforge.schema import ImportSet
from sqlforge.templates import TemplateData, TemplateList

_NUMBERED_PREFIX = re.compile(r"^[0-9]+_")
_SEPARATORS = re.compile(
    "[" + re.escape(os.sep) + (re.escape(os.altsep) if os.altsep else "") + "]"
)

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(")]}")
_TOP_LEVEL_KEYWORDS = frozenset({"import", "func", "type", "var", "const"})
_FUNC_DECL = re.compile(r"func\s*(?:\([^)]*\)\s*)?[A-Za-z_]\w*")
_WORD = re.compile(r"[A-Za-z_]\w*")
_CASE_LINE = re.compile(r"(?:case\b|default\s*:)")

DirExtMap = dict[str, dict[str, list[str]]]


def _disclaimer(version: str) -> str:
    label = f" {version}" if version else ""
    return (
        f"// Code generated by sqlforge{label}. DO NOT EDIT.\n"
        "// This file is meant to be re-generated in place and/or deleted at any time.\n\n"
    )


def _ext(path: str) -> str:
    """Extension of the last path element, leading dot files included."""
    base = _SEPARATORS.split(path)[-1]
    index = base.rfind(".")
    return base[index:] if index >= 0 else ""


def output_filename_parts(filename: str) -> tuple[str, bool, bool, bool]:
    """Split a template name into its output name and flags.

    ``templates/js/singleton/00_struct.js.tpl`` gives ``js/struct.js``, a
    singleton, not Go, and not in the main package.
    Returns ``(normalized, is_singleton, is_go, use_pkg)``.
    """
    fragments = _SEPARATORS.split(filename)
    if len(fragments) < 2:
        raise ValueError(f"template name has no directory: {filename}")
    is_singleton = fragments[-2] == "singleton"

    remaining = [fragment for fragment in fragments[1:] if fragment != "singleton"]
    if not remaining:
        raise ValueError(f"template name has no file name: {filename}")
    name = _NUMBERED_PREFIX.sub("", remaining[-1].removesuffix(".tpl"), count=1)
    remaining[-1] = name

    is_go = _ext(name) == ".go"
    use_pkg = len(remaining) == 1
    return os.sep.join(remaining), is_singleton, is_go, use_pkg


def get_long_ext(filename: str) -> str:
    """Everything from the first dot onwards, e.g. ``.go.tpl``."""
    index = filename.find(".")
    if index < 0:
        raise ValueError(f"file name has no extension: {filename}")
    return filename[index:]


def write_package_name(out: TextIO, pkg_name: str) -> None:
    out.write(f"package {pkg_name}\n\n")


def _format_imports(imports: ImportSet) -> str:
    standard, third_party = list(imports.standard), list(imports.third_party)
    if not standard and not third_party:
        return ""
    if len(standard) + len(third_party) == 1:
        return f"import {(standard or third_party)[0]}\n"
    lines = ["import ("]
    lines.extend(f"\t{imp}" for imp in standard)
    if standard and third_party:
        lines.append("")
    lines.extend(f"\t{imp}" for imp in third_party)
    lines.append(")")
    return "\n".join(lines) + "\n"


def _write_imports(out: TextIO, imports: ImportSet) -> None:
    text = _format_imports(imports)
    if text:
        out.write(f"{text}\n")


def _add_type_imports(
    imports: ImportSet, based_on_type: Mapping[str, ImportSet], types: Iterable[str]
) -> ImportSet:
    standard = set(imports.standard)
    third_party = set(imports.third_party)
    for type_name in types:
        extra = based_on_type.get(type_name)
        if extra is not None:
            standard.update(extra.standard)
            third_party.update(extra.third_party)
    return ImportSet(standard=sorted(standard), third_party=sorted(third_party))


class _SyntaxError(Exception):
    def __init__(self, line: int, column: int, message: str):
        super().__init__(message)
        self.line = line
        self.column = column
        self.message = message


def _string_end(text: str, start: int) -> int:
    quote = text[start]
    j = start + 1
    while j < len(text):
        if text[j] == "\\":
            j += 2
            continue
        if text[j] == quote:
            return j
        j += 1
    return -1


def _scan(
    text: str,
    lineno: int,
    offset: int,
    stack: list[tuple[str, int, int]],
    in_raw: bool,
    in_comment: bool,
) -> tuple[bool, bool]:
    i = 0
    while i < len(text):
        ch = text[i]
        if in_raw:
            in_raw = ch != "`"
            i += 1
            continue
        if in_comment:
            if text.startswith("*/", i):
                in_comment = False
                i += 2
            else:
                i += 1
            continue
        if text.startswith("//", i):
            break
        if text.startswith("/*", i):
            in_comment = True
            i += 2
            continue
        if ch == "`":
            in_raw = True
        elif ch in "\"'":
            end = _string_end(text, i)
            if end < 0:
                raise _SyntaxError(lineno, offset + i + 1, "string literal not terminated")
            i = end
        elif ch in _OPENERS:
            stack.append((ch, lineno, offset + i + 1))
        elif ch in _CLOSERS:
            if not stack or _OPENERS[stack[-1][0]] != ch:
                raise _SyntaxError(lineno, offset + i + 1, f"unexpected {ch!r}")
            stack.pop()
        i += 1
    return in_raw, in_comment


def _indent(text: str, stack: Sequence[tuple[str, int, int]]) -> int:
    closers = 0
    for ch in text:
        if ch in _CLOSERS:
            closers += 1
        elif ch not in " \t":
            break
    open_part = stack[: max(len(stack) - closers, 0)]
    indent = len({line for _, line, _ in open_part})
    if indent and _CASE_LINE.match(text):
        indent -= 1
    return indent


def _check_top_level(text: str, lineno: int, offset: int, seen_package: bool) -> None:
    if text.startswith(("//", "/*")):
        return
    match = _WORD.match(text)
    keyword = match.group() if match else text[0]
    if not seen_package:
        if keyword != "package":
            raise _SyntaxError(lineno, offset + 1, f"expected 'package', found {keyword!r}")
        return
    if keyword not in _TOP_LEVEL_KEYWORDS:
        raise _SyntaxError(lineno, offset + 1, f"expected declaration, found {keyword!r}")
    if keyword == "func" and not _FUNC_DECL.match(text):
        head = re.match(r"func\s*", text)
        column = offset + (head.end() if head else 4) + 1
        raise _SyntaxError(lineno, column, "expected 'IDENT'")


def _format_lines(lines: Sequence[str]) -> list[tuple[str, bool]]:
    stack: list[tuple[str, int, int]] = []
    in_raw = in_comment = False
    seen_package = False
    formatted: list[tuple[str, bool]] = []

    for lineno, line in enumerate(lines, 1):
        if in_raw or in_comment:
            formatted.append((line, True))
            text, offset = line, 0
        else:
            text = line.strip()
            offset = len(line) - len(line.lstrip())
            if not text:
                formatted.append(("", False))
                continue
            if not stack:
                _check_top_level(text, lineno, offset, seen_package)
                seen_package = seen_package or text.startswith("package")
            formatted.append(("\t" * _indent(text, stack) + text, False))
        in_raw, in_comment = _scan(text, lineno, offset, stack, in_raw, in_comment)

    if in_raw:
        raise _SyntaxError(len(lines), 1, "raw string literal not terminated")
    if in_comment:
        raise _SyntaxError(len(lines), 1, "comment not terminated")
    if stack:
        ch, line, column = stack[-1]
        raise _SyntaxError(line, column, f"expected {_OPENERS[ch]!r}, found 'EOF'")
    return formatted


def _error_context(lines: Sequence[str], error_line: int) -> str:
    out = io.StringIO()
    for number, text in enumerate(lines, 1):
        if abs(number - error_line) > 5:
            continue
        prefix = ">>>> " if number == error_line else f"{number:4d} "
        out.write(f"{prefix}{text}\n")
    return out.getvalue()


def format_source(source: str) -> str:
    """Normalise the layout of generated Go source.

    Re-indents by bracket nesting, collapses runs of blank lines and ends the
    file with one newline. Raw string contents are left untouched. Raises
    ValueError, showing the lines around the problem, on malformed input.
    """
    lines = source.splitlines()
    try:
        formatted = _format_lines(lines)
    except _SyntaxError as err:
        context = _error_context(lines, err.line)
        raise ValueError(
            f"failed to format template: {err.line}:{err.column}: {err.message}"
            f"\n\n{context}\n"
        ) from None

    result: list[str] = []
    for text, verbatim in formatted:
        if not verbatim and text == "" and (not result or result[-1] == ""):
            continue
        result.append(text)
    while result and result[-1] == "":
        result.pop()
    return "\n".join(result) + "\n"


def write_file(out_folder: str, file_name: str, content: str, format_go: bool) -> Path:
    """Write ``content`` to ``out_folder/file_name``, formatting it first if asked."""
    text = format_source(content) if format_go else content
    path = Path(out_folder, file_name)
    path.write_text(text, encoding="utf-8")
    return path


def group_templates(templates: TemplateList) -> DirExtMap:
    """Group non-singleton templates by output directory and file extension."""
    dirs: DirExtMap = {}
    for name in templates.templates():
        normalized, is_singleton, _, _ = output_filename_parts(name)
        if is_singleton:
            continue
        directory = os.path.dirname(normalized)
        ext = get_long_ext(name).removesuffix(".tpl")
        dirs.setdefault(directory, {}).setdefault(ext, []).append(name)
    return dirs


def _execute_templates(
    state: Any,
    data: TemplateData,
    templates: TemplateList,
    dir_exts: DirExtMap,
    import_set: ImportSet,
    combine_imports_on_type: bool,
    is_test: bool,
) -> None:
    if data.table.is_join_table:
        return
    config = state.config

    imports = ImportSet(list(import_set.standard), list(import_set.third_party))
    if combine_imports_on_type:
        imports = _add_type_imports(
            imports,
            config.imports.based_on_type,
            (column.type for column in data.table.columns),
        )

    for directory, extensions in dir_exts.items():
        for ext, names in extensions.items():
            out = io.StringIO()
            is_go = _ext(ext) == ".go"
            if is_go:
                pkg_name = os.path.basename(directory) if directory else config.pkg_name
                out.write(_disclaimer(config.version))
                write_package_name(out, pkg_name)
                _write_imports(out, imports)

            for name in names:
                out.write(templates.render(name, data))

            file_name = data.table.name
            if file_name.startswith("_"):
                file_name = "und" + file_name
            if is_test:
                file_name += "_test"
            file_name += ext
            if directory:
                file_name = os.path.join(directory, file_name)

            write_file(config.out_folder, file_name, out.getvalue(), is_go)


def _execute_singleton_templates(
    state: Any,
    data: TemplateData,
    templates: TemplateList,
    named_imports: Mapping[str, ImportSet],
) -> None:
    if data.table.is_join_table:
        return
    config = state.config

    for name in templates.templates():
        normalized, is_singleton, is_go, use_pkg = output_filename_parts(name)
        if not is_singleton:
            continue

        base = os.path.basename(normalized)
        stem = base[: base.index(".")]

        out = io.StringIO()
        if is_go:
            named = named_imports.get(stem.replace("\\", "/"), ImportSet())
            pkg_name = (
                config.pkg_name
                if use_pkg
                else os.path.basename(os.path.dirname(normalized))
            )
            out.write(_disclaimer(config.version))
            write_package_name(out, pkg_name)
            _write_imports(out, ImportSet(list(named.standard), list(named.third_party)))

        out.write(templates.render(name, data))
        write_file(config.out_folder, normalized, out.getvalue(), is_go)


def generate_output(state: Any, dir_exts: DirExtMap, data: TemplateData) -> None:
    """Render the per-table templates for ``data.table``."""
    _execute_templates(
        state,
        data,
        state.templates,
        dir_exts,
        state.config.imports.all,
        combine_imports_on_type=True,
        is_test=False,
    )


def generate_test_output(state: Any, dir_exts: DirExtMap, data: TemplateData) -> None:
    """Render the per-table test templates for ``data.table``."""
    _execute_templates(
        state,
        data,
        state.test_templates,
        dir_exts,
        state.config.imports.test,
        combine_imports_on_type=False,
        is_test=True,
    )


def generate_singleton_output(state: Any, data: TemplateData) -> None:
    """Render the templates that are output once per run."""
    _execute_singleton_templates(
        state, data, state.templates, state.config.imports.singleton
    )


def generate_singleton_test_output(state: Any, data: TemplateData) -> None:
    """Render the test templates that are output once per run."""
    _execute_singleton_templates(
        state, data, state.test_templates, state.config.imports.test_singleton
    )