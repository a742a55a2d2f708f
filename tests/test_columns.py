import dataclasses

import pytest

from sqlforge.columns import (
    Columns,
    ColumnsKind,
    blacklist,
    greylist,
    infer,
    none,
    whitelist,
)


def test_whitelist_constructor():
    cols = whitelist("a", "b")
    assert cols.kind is ColumnsKind.WHITELIST
    assert cols.is_whitelist()
    assert list(cols.cols) == ["a", "b"]


def test_blacklist_constructor():
    cols = blacklist("a", "b")
    assert cols.kind is ColumnsKind.BLACKLIST
    assert cols.is_blacklist()
    assert list(cols.cols) == ["a", "b"]


def test_greylist_constructor():
    cols = greylist("a", "b")
    assert cols.kind is ColumnsKind.GREYLIST
    assert cols.is_greylist()
    assert list(cols.cols) == ["a", "b"]


def test_infer_constructor():
    cols = infer()
    assert cols.kind is ColumnsKind.INFER
    assert cols.is_infer()
    assert len(cols.cols) == 0


def test_none_constructor():
    cols = none()
    assert cols.is_none()
    assert not cols.is_infer()
    assert cols.insert_column_set(["a"], ["a"], [], []) == ([], [])
    assert cols.update_column_set(["a", "b"], ["a"]) == []


COLUMNS = ["a", "b", "c"]
DEFAULTS = ["a", "c"]
NO_DEFAULTS = ["b"]


@pytest.mark.parametrize(
    "columns, defaults, no_defaults, non_zero, expected_set, expected_ret",
    [
        (infer(), None, None, [], ["b"], ["a", "c"]),
        (infer(), [], ["a", "b", "c"], [], ["a", "b", "c"], []),
        (infer(), None, None, ["a"], ["a", "b"], ["c"]),
        (infer(), None, None, ["c"], ["b", "c"], ["a"]),
        (whitelist("a"), None, None, [], ["a"], ["c"]),
        (whitelist("c"), None, None, [], ["c"], ["a"]),
        (whitelist("a", "c"), None, None, [], ["a", "c"], []),
        (whitelist("a", "b", "c"), None, None, [], ["a", "b", "c"], []),
        (whitelist("a"), None, None, ["c"], ["a"], ["c"]),
        (whitelist("c"), None, None, ["b"], ["c"], ["a"]),
        (blacklist("b"), None, None, ["c"], ["c"], ["a"]),
        (blacklist("c"), None, None, ["c"], ["b"], ["a", "c"]),
        (greylist("c"), None, None, [], ["b", "c"], ["a"]),
        (greylist("a"), None, None, [], ["a", "b"], ["c"]),
    ],
)
def test_insert_column_set(
    columns, defaults, no_defaults, non_zero, expected_set, expected_ret
):
    defaults = DEFAULTS if defaults is None else defaults
    no_defaults = NO_DEFAULTS if no_defaults is None else no_defaults
    got_set, got_ret = columns.insert_column_set(
        COLUMNS, defaults, no_defaults, non_zero
    )
    assert got_set == expected_set
    assert got_ret == expected_ret


@pytest.mark.parametrize(
    "columns, cols, pkeys, expected",
    [
        (infer(), ["a", "b"], ["a"], ["b"]),
        (whitelist("a"), ["a", "b"], ["a"], ["a"]),
        (whitelist("a", "b"), ["a", "b"], ["a"], ["a", "b"]),
        (blacklist("b"), ["a", "b"], ["a"], []),
        (greylist("a"), ["a", "b"], ["a"], ["a", "b"]),
    ],
)
def test_update_column_set(columns, cols, pkeys, expected):
    assert columns.update_column_set(cols, pkeys) == expected


def test_invalid_kind_raises():
    bogus = Columns(kind="bogus")
    with pytest.raises(ValueError):
        bogus.update_column_set(["a"], [])
    with pytest.raises(ValueError):
        bogus.insert_column_set(["a"], [], ["a"], [])


def test_columns_are_immutable():
    cols = whitelist("a")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cols.kind = ColumnsKind.INFER
    assert cols.kind is ColumnsKind.WHITELIST
    assert cols.is_whitelist()