"""Name mangling: casing, inflection and relationship names."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from sqlforge.schema import ForeignKey, Table, get_table

_INITIALISMS = frozenset(
    {
        "acl", "api", "ascii", "cpu", "css", "dns", "eof", "guid", "html",
        "http", "https", "id", "ip", "json", "lhs", "os", "qps", "ram", "rhs",
        "rpc", "sla", "smtp", "sql", "ssh", "tcp", "tls", "ttl", "udp", "ui",
        "uid", "uri", "url", "utf8", "uuid", "vm", "xml", "xmpp", "xsrf", "xss",
    }
)

_UNCOUNTABLE = frozenset(
    {
        "equipment", "information", "rice", "money", "species", "series",
        "fish", "sheep", "jeans", "police", "news",
    }
)

_IRREGULAR = {
    "person": "people",
    "man": "men",
    "child": "children",
    "sex": "sexes",
    "move": "moves",
    "zombie": "zombies",
}
_IRREGULAR_PLURALS = {plural_: single for single, plural_ in _IRREGULAR.items()}


def _rules(pairs: Sequence[tuple[str, str]]) -> list[tuple[re.Pattern[str], str]]:
    return [(re.compile(pattern, re.IGNORECASE), repl) for pattern, repl in pairs]


_PLURAL_RULES = _rules(
    [
        (r"(quiz)$", r"\1zes"),
        (r"^(oxen)$", r"\1"),
        (r"^(ox)$", r"\1en"),
        (r"^(m|l)ice$", r"\1ice"),
        (r"^(m|l)ouse$", r"\1ice"),
        (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
        (r"(x|ch|ss|sh)$", r"\1es"),
        (r"([^aeiouy]|qu)y$", r"\1ies"),
        (r"(hive)$", r"\1s"),
        (r"(?:([^f])fe|([lr])f)$", r"\1\2ves"),
        (r"sis$", "ses"),
        (r"([ti])a$", r"\1a"),
        (r"([ti])um$", r"\1a"),
        (r"(buffal|tomat)o$", r"\1oes"),
        (r"(bu)s$", r"\1ses"),
        (r"(alias|status|campus)$", r"\1es"),
        (r"(octop|vir)i$", r"\1i"),
        (r"(octop|vir)us$", r"\1i"),
        (r"^(ax|test)is$", r"\1es"),
        (r"s$", "s"),
        (r"$", "s"),
    ]
)

_SINGULAR_RULES = _rules(
    [
        (r"(database)s$", r"\1"),
        (r"(quiz)zes$", r"\1"),
        (r"(matr)ices$", r"\1ix"),
        (r"(vert|ind)ices$", r"\1ex"),
        (r"^(ox)en", r"\1"),
        (r"(alias|status|campus)(es)?$", r"\1"),
        (r"(octop|vir)(us|i)$", r"\1us"),
        (r"^(a)x[ie]s$", r"\1xis"),
        (r"(cris|test)(is|es)$", r"\1is"),
        (r"(shoe)s$", r"\1"),
        (r"(o)es$", r"\1"),
        (r"(bus)(es)?$", r"\1"),
        (r"^(m|l)ice$", r"\1ouse"),
        (r"(x|ch|ss|sh)es$", r"\1"),
        (r"(m)ovies$", r"\1ovie"),
        (r"(s)eries$", r"\1eries"),
        (r"([^aeiouy]|qu)ies$", r"\1y"),
        (r"([lr])ves$", r"\1f"),
        (r"(tive)s$", r"\1"),
        (r"(hive)s$", r"\1"),
        (r"([^f])ves$", r"\1fe"),
        (r"(^analy)(sis|ses)$", r"\1sis"),
        (
            r"((a)naly|(b)a|(d)iagno|(p)arenthe|(p)rogno|(s)ynop|(t)he)(sis|ses)$",
            r"\1sis",
        ),
        (r"([ti])a$", r"\1um"),
        (r"(n)ews$", r"\1ews"),
        (r"(ss)$", r"\1"),
        (r"s$", ""),
    ]
)


def _keep_first_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _inflect(
    word: str,
    irregular: dict[str, str],
    already: dict[str, str],
    rules: list[tuple[re.Pattern[str], str]],
) -> str:
    lowered = word.lower()
    if not word or lowered in _UNCOUNTABLE or lowered in already:
        return word
    if lowered in irregular:
        return _keep_first_case(word, irregular[lowered])
    for pattern, repl in rules:
        if pattern.search(word):
            return pattern.sub(repl, word, count=1)
    return word


def _on_last_part(word: str, inflect: Callable[[str], str]) -> str:
    head, sep, last = word.rpartition("_")
    return head + sep + inflect(last)


def singular(word: str) -> str:
    """Singular form of the last underscore-separated part of ``word``."""
    return _on_last_part(
        word, lambda w: _inflect(w, _IRREGULAR_PLURALS, _IRREGULAR, _SINGULAR_RULES)
    )


def plural(word: str) -> str:
    """Plural form of the last underscore-separated part of ``word``."""
    return _on_last_part(
        word, lambda w: _inflect(w, _IRREGULAR, _IRREGULAR_PLURALS, _PLURAL_RULES)
    )


def _title_word(word: str) -> str:
    if word.lower() in _INITIALISMS:
        return word.upper()
    return word[:1].upper() + word[1:]


def title_case(name: str) -> str:
    """Turn ``snake_case`` into ``TitleCase``, upper-casing initialisms."""
    return "".join(_title_word(part) for part in name.split("_") if part)


def camel_case(name: str) -> str:
    """Turn ``snake_case`` into ``camelCase``, upper-casing later initialisms."""
    parts = [part for part in name.split("_") if part]
    if not parts:
        return ""
    first, rest = parts[0], parts[1:]
    head = first.lower() if first.lower() in _INITIALISMS else first[:1].lower() + first[1:]
    return head + "".join(_title_word(part) for part in rest)


_IDENTIFIER_SUFFIXES = ("_id", "_uuid", "_guid", "_oid")


def trim_suffixes(name: str) -> str:
    """Remove the first matching identifier suffix such as ``_id``."""
    for suffix in _IDENTIFIER_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def txt_name_to_one(fk: ForeignKey) -> tuple[str, str]:
    """Local and foreign names of a one-to-one or one-to-many relationship.

    The local side is the one holding the foreign key.
    """
    key = singular(trim_suffixes(fk.column))
    singular_foreign_table = singular(fk.foreign_table)

    if key == singular_foreign_table:
        if fk.column != singular_foreign_table:
            foreign_fn = title_case(key)
        else:
            foreign_fn = title_case(singular(fk.table) + "_" + key)
    elif key == fk.column:
        foreign_fn = title_case(key + "_" + singular_foreign_table)
    else:
        foreign_fn = title_case(key)

    local_fn = title_case(key) if key != singular_foreign_table else ""
    plurality = singular if fk.unique else plural
    local_fn += title_case(plurality(fk.table))
    return local_fn, foreign_fn


def txt_name_to_many(lhs: ForeignKey, rhs: ForeignKey) -> tuple[str, str]:
    """Names of both sides of a many-to-many relationship through a join table."""

    def side(fk: ForeignKey) -> str:
        key = singular(trim_suffixes(fk.column))
        prefix = title_case(key) if key != singular(fk.foreign_table) else ""
        return prefix + title_case(plural(fk.foreign_table))

    return side(lhs), side(rhs)


_PRIMITIVES = frozenset(
    {
        "int", "int8", "int16", "int32", "int64",
        "uint", "uint8", "uint16", "uint32", "uint64",
        "float32", "float64",
        "byte", "rune", "string",
    }
)


def is_primitive(type_name: str) -> bool:
    """Whether the generated type can be compared and assigned directly."""
    return type_name in _PRIMITIVES


def uses_primitives(
    tables: Sequence[Table],
    table: str,
    column: str,
    foreign_table: str,
    foreign_column: str,
) -> bool:
    """Whether both ends of a relationship have primitive column types."""
    local_col = get_table(tables, table).get_column(column)
    foreign_col = get_table(tables, foreign_table).get_column(foreign_column)
    return is_primitive(local_col.type) and is_primitive(foreign_col.type)