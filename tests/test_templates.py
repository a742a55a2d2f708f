import base64
import os

import pytest

from sqlforge.schema import Dialect
from sqlforge.templates import (
    Base64Loader,
    FileLoader,
    LazyTemplate,
    Once,
    TemplateData,
    TemplateError,
    TemplateList,
    load_templates,
    sort_template_names,
)


def _b64(text):
    return base64.b64encode(text.encode()).decode()


def test_sort_template_names():
    names = ["bob.tpl", "all.tpl", "struct.tpl", "ttt.tpl"]
    assert sort_template_names(names) == ["struct.tpl", "all.tpl", "bob.tpl", "ttt.tpl"]


def test_template_list_templates_filters_non_tpl():
    tpl_list = TemplateList({"wat.tpl": "hello", "que.tpl": "there", "not": "hello"})
    names = tpl_list.templates()
    assert "wat.tpl" in names
    assert "que.tpl" in names
    assert "not" not in names


def test_template_list_empty():
    assert TemplateList().templates() == []


def test_once():
    once = Once()
    assert once.has("a") is False
    assert once.put("a") is True
    assert once.put("a") is False
    assert once.has("a") is True


def test_quotes():
    data = TemplateData(lq="[", rq="]")
    assert data.quotes("users") == "[users]"


def test_schema_table():
    with_schema = TemplateData(lq='"', rq='"', schema="public", dialect=Dialect(use_schema=True))
    assert with_schema.schema_table("users") == '"public"."users"'
    without = TemplateData(lq='"', rq='"', schema="public", dialect=Dialect(use_schema=False))
    assert without.schema_table("users") == '"users"'


def test_base64_loader_round_trip():
    assert Base64Loader(_b64("hello")).load() == b"hello"


def test_base64_loader_str_shows_digest():
    expected = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    assert str(Base64Loader(_b64("hello"))) == f"base64:(sha256 of content): {expected}"


def test_base64_loader_rejects_bad_input():
    with pytest.raises(TemplateError):
        Base64Loader("not base64!!").load()


def test_file_loader(tmp_path):
    path = tmp_path / "a.tpl"
    path.write_text("content")
    loader = FileLoader(str(path))
    assert loader.load() == b"content"
    assert str(loader) == f"file:{path}"


def test_file_loader_missing(tmp_path):
    with pytest.raises(TemplateError):
        FileLoader(str(tmp_path / "missing.tpl")).load()


def test_load_templates_separates_tests():
    regular = os.path.join("templates", "a.tpl")
    test = os.path.join("templates_test", "b.tpl")
    lazies = [
        LazyTemplate(regular, Base64Loader(_b64("A"))),
        LazyTemplate(test, Base64Loader(_b64("B"))),
    ]
    assert load_templates(lazies, False).templates() == [regular]
    assert load_templates(lazies, True).templates() == [test]


def test_load_templates_parse_error():
    lazies = [LazyTemplate(os.path.join("templates", "bad.tpl"), Base64Loader(_b64("{% if %}")))]
    with pytest.raises(TemplateError, match="failed to parse template"):
        load_templates(lazies, False)


def test_render_with_mapping_uses_functions():
    tpl_list = TemplateList({"hello.tpl": "{{ title_case(name) }}"})
    assert tpl_list.render("hello.tpl", {"name": "user_id"}) == "UserID"


def test_render_with_template_data():
    tpl_list = TemplateList({"pkg.tpl": "package {{ pkg_name }} {{ quotes('t') }}"})
    data = TemplateData(pkg_name="models", lq="`", rq="`")
    assert tpl_list.render("pkg.tpl", data) == "package models `t`"


def test_render_undefined_raises():
    tpl_list = TemplateList({"x.tpl": "{{ missing }}"})
    with pytest.raises(TemplateError, match="failed to execute template"):
        tpl_list.render("x.tpl", {})