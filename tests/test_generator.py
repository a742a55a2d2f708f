import json
import os

import pytest

from sqlforge.config import Config
from sqlforge.generator import State, denormalize_slashes, find_templates, normalize_slashes
from sqlforge.schema import Column, Dialect, ForeignKey, ImportSet, Table, TypeReplace


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


STRUCT = (
    "type {{ aliases.table(table.name).up_singular }} struct {\n"
    "{% for c in table.columns %}{{ aliases.table(table.name).column(c.name) }} {{ c.type }}\n"
    "{% endfor %}}\n"
)


def _tables():
    return [
        Table(
            name="videos",
            columns=[Column(name="id", type="int"), Column(name="user_id", type="int")],
            pkey=("id",),
            fkeys=[
                ForeignKey(
                    name="fk_user",
                    table="videos",
                    column="user_id",
                    foreign_table="users",
                    foreign_column="id",
                )
            ],
        ),
        Table(name="users", columns=[Column(name="id", type="int")], pkey=("id",)),
        Table(
            name="video_users",
            pkey=("video_id", "user_id"),
            is_join_table=True,
            fkeys=[
                ForeignKey(name="fk_v", table="video_users", column="video_id",
                           foreign_table="videos", foreign_column="id"),
                ForeignKey(name="fk_u", table="video_users", column="user_id",
                           foreign_table="users", foreign_column="id"),
            ],
        ),
    ]


@pytest.fixture
def template_root(tmp_path):
    root = tmp_path / "tpl"
    _write(root / "templates" / "00_struct.go.tpl", STRUCT)
    _write(root / "templates" / "singleton" / "boil_queries.go.tpl", 'const pkg = "{{ pkg_name }}"\n')
    _write(root / "templates" / "js" / "00_page.js.tpl", "let t = '{{ table.name }}';\n")
    _write(root / "templates_test" / "00_struct.go.tpl", "func Test{{ title_case(table.name) }}() {}\n")
    return root


def _config(tmp_path, template_root, **kwargs):
    return Config(
        driver_name="mock",
        pkg_name="models",
        out_folder=str(tmp_path / "out"),
        template_dirs=[str(template_root / "templates"), str(template_root / "templates_test")],
        tag_ignore=["pass"],
        **kwargs,
    )


def test_normalize_and_denormalize_slashes():
    assert normalize_slashes("a/b\\c") == os.sep.join(["a", "b", "c"])
    assert denormalize_slashes("a\\b\\c") == "a/b/c"


def test_find_templates(template_root):
    found = find_templates(str(template_root), "templates")
    assert sorted(found) == sorted(
        [
            os.path.join("templates", "00_struct.go.tpl"),
            os.path.join("templates", "singleton", "boil_queries.go.tpl"),
            os.path.join("templates", "js", "00_page.js.tpl"),
        ]
    )
    assert found[os.path.join("templates", "00_struct.go.tpl")].load() == STRUCT.encode()


def test_find_templates_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        find_templates(str(tmp_path), "nope")


def test_run_writes_all_files(tmp_path, template_root):
    state = State(_config(tmp_path, template_root), _tables(), "public", Dialect())
    state.run()

    out = tmp_path / "out"
    files = {p.relative_to(out).as_posix() for p in out.rglob("*") if p.is_file()}
    assert files == {
        "videos.go", "users.go", "videos_test.go", "users_test.go",
        "boil_queries.go", "js/videos.js", "js/users.js",
    }
    assert "type Video struct {\n\tID int\n\tUserID int\n}\n" in (out / "videos.go").read_text()
    assert 'const pkg = "models"' in (out / "boil_queries.go").read_text()
    assert "func TestUsers() {}" in (out / "users_test.go").read_text()
    assert (out / "js" / "videos.js").read_text() == "let t = 'videos';\n"


def test_new_adds_context_import_and_fills_aliases(tmp_path, template_root):
    state = State(_config(tmp_path, template_root), _tables(), "public", Dialect())
    assert state.config.imports.all.standard == ['"context"']
    assert state.config.imports.test.standard == ['"context"']
    assert state.config.aliases.table("videos").relationship("fk_user").foreign == "User"
    assert state.config.aliases.table("video_users").relationship("fk_v").local == "Users"


def test_run_with_no_tests(tmp_path, template_root):
    state = State(_config(tmp_path, template_root, no_tests=True), _tables(), "", Dialect())
    state.run()
    assert not (tmp_path / "out" / "videos_test.go").exists()
    assert (tmp_path / "out" / "videos.go").exists()


def test_replacement(tmp_path, template_root):
    replacement = tmp_path / "other.tpl"
    replacement.write_text("var replaced = true\n")
    config = _config(
        tmp_path,
        template_root,
        replacements=[f"templates/00_struct.go.tpl;{replacement}"],
    )
    state = State(config, _tables(), "", Dialect())
    state.run()
    assert "var replaced = true" in (tmp_path / "out" / "videos.go").read_text()


@pytest.mark.parametrize(
    "replacement, message",
    [("only_one", "must have 2 arguments"), ("templates/nope.tpl;x", "does not exist")],
)
def test_bad_replacement(tmp_path, template_root, replacement, message):
    config = _config(tmp_path, template_root, replacements=[replacement])
    with pytest.raises(ValueError, match=message):
        State(config, _tables(), "", Dialect())


def test_no_tables(tmp_path, template_root):
    with pytest.raises(ValueError, match="no tables found in database"):
        State(_config(tmp_path, template_root), [], "", Dialect())


def test_missing_pkey(tmp_path, template_root):
    with pytest.raises(ValueError, match=r"primary key missing in tables \(videos\)"):
        State(_config(tmp_path, template_root), [Table(name="videos")], "", Dialect())


def test_tags_deduplicated(tmp_path, template_root):
    state = State(_config(tmp_path, template_root, tags=["xml", "xml", "json"]), _tables(), "", Dialect())
    assert state.config.tags == ["xml", "json"]


def test_invalid_tag(tmp_path, template_root):
    with pytest.raises(ValueError, match="invalid tag format"):
        State(_config(tmp_path, template_root, tags=["123"]), _tables(), "", Dialect())


def test_invalid_tag_ignore(tmp_path, template_root):
    config = _config(tmp_path, template_root)
    config.tag_ignore = ["bad-name"]
    state = State(config, _tables(), "", Dialect())
    with pytest.raises(ValueError, match="invalid column name"):
        state.run()


def test_wipe_removes_old_output(tmp_path, template_root):
    stale = tmp_path / "out" / "stale.go"
    _write(stale, "old")
    State(_config(tmp_path, template_root, wipe=True), _tables(), "", Dialect())
    assert not stale.exists()
    assert (tmp_path / "out" / "js").is_dir()


def test_debug_output(tmp_path, template_root, capsys):
    State(_config(tmp_path, template_root, debug=True), _tables(), "public", Dialect())
    printed = json.loads(capsys.readouterr().out.strip())
    assert printed["schema"] == "public"
    assert [t["name"] for t in printed["tables"]] == ["videos", "users", "video_users"]
    assert printed["templates"][0]["loader"].startswith("file:")


def test_process_type_replacements(tmp_path):
    domain = "a_domain"
    tables = [
        Table(
            pkey=("id",),
            columns=[
                Column(name="id", type="int", db_type="serial", default="some db nonsense"),
                Column(name="name", type="null.String", db_type="serial",
                       default="some db nonsense", nullable=True),
                Column(name="domain", type="int", db_type="numeric",
                       default="some db nonsense", domain_name=domain),
            ],
        ),
        Table(
            name="named_table",
            pkey=("id",),
            columns=[Column(name="id", type="int", db_type="serial", default="some db nonsense")],
        ),
    ]
    config = Config(
        out_folder=str(tmp_path / "out"),
        no_tests=True,
        type_replaces=[
            TypeReplace(
                match=Column(db_type="serial"),
                replace=Column(type="excellent.Type"),
                imports=ImportSet(third_party=['"rock.com/excellent"']),
            ),
            TypeReplace(
                tables=["named_table"],
                match=Column(db_type="serial"),
                replace=Column(type="excellent.NamedType"),
                imports=ImportSet(third_party=['"rock.com/excellent-name"']),
            ),
            TypeReplace(
                match=Column(type="null.String", nullable=True),
                replace=Column(type="int"),
                imports=ImportSet(standard=['"context"']),
            ),
            TypeReplace(
                match=Column(domain_name=domain),
                replace=Column(type="big.Int"),
                imports=ImportSet(standard=['"math/big"']),
            ),
        ],
    )

    state = State(config, tables, "", Dialect())
    based = state.config.imports.based_on_type

    assert state.tables[0].columns[0].type == "excellent.Type"
    assert based["excellent.Type"].third_party[0] == '"rock.com/excellent"'
    assert state.tables[0].columns[1].type == "int"
    assert based["int"].standard[0] == '"context"'
    assert state.tables[0].columns[2].type == "big.Int"
    assert based["big.Int"].standard[0] == '"math/big"'
    assert state.tables[1].columns[0].type == "excellent.NamedType"
    assert based["excellent.NamedType"].third_party[0] == '"rock.com/excellent-name"'