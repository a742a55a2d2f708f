import io
import sys

import pytest

from sqlforge.context import (
    background,
    debug_writer_from,
    hooks_are_skipped,
    is_debug,
    set_debug_mode,
    set_debug_writer,
    skip_hooks,
    skip_timestamps,
    timestamps_are_skipped,
    with_debug,
    with_debug_writer,
)


@pytest.fixture
def restore_debug():
    yield
    set_debug_mode(False)
    set_debug_writer(None)


def test_skip_hooks():
    ctx = background()
    assert hooks_are_skipped(ctx) is False
    ctx = skip_hooks(ctx)
    assert hooks_are_skipped(ctx) is True


def test_skip_timestamps():
    ctx = background()
    assert timestamps_are_skipped(ctx) is False
    ctx = skip_timestamps(ctx)
    assert timestamps_are_skipped(ctx) is True


def test_skips_are_independent():
    ctx = skip_hooks(background())
    assert timestamps_are_skipped(ctx) is False
    assert hooks_are_skipped(background()) is False


def test_context_value_lookup_and_shadowing():
    root = background()
    child = root.with_value("k", 1)
    grandchild = child.with_value("k", 2).with_value("other", 3)
    assert root.value("k") is None
    assert child.value("k") == 1
    assert grandchild.value("k") == 2
    assert grandchild.value("other") == 3


def test_is_debug_falls_back_to_global(restore_debug):
    ctx = background()
    assert is_debug(ctx) is False
    set_debug_mode(True)
    assert is_debug(ctx) is True


def test_with_debug_overrides_global(restore_debug):
    set_debug_mode(True)
    assert is_debug(with_debug(background(), False)) is False
    set_debug_mode(False)
    assert is_debug(with_debug(background(), True)) is True


def test_debug_writer_defaults_to_stdout(restore_debug):
    assert debug_writer_from(background()) is sys.stdout


def test_debug_writer_global_and_context(restore_debug):
    global_writer = io.StringIO()
    ctx_writer = io.StringIO()
    set_debug_writer(global_writer)
    assert debug_writer_from(background()) is global_writer
    ctx = with_debug_writer(background(), ctx_writer)
    assert debug_writer_from(ctx) is ctx_writer