# sqlforge

sqlforge generates model code from a description of a database schema. You
give it your tables, columns and foreign keys. It works out readable names for
every table, column and relationship. It then renders Jinja2 templates into an
output folder: one file per table, plus one-off "singleton" files.

It also provides the small runtime helpers that generated code relies on:

- column-set inference for inserts and updates (`sqlforge.columns`),
- an immutable context carrying debug and hook switches (`sqlforge.context`),
- error wrapping (`sqlforge.errors`),
- a process-wide database handle and timestamp time zone (`sqlforge.database`).

## Column sets

`Columns` decides which columns an `INSERT` or `UPDATE` touches. Build one of
the five kinds with `none()`, `infer()`, `whitelist(...)`, `blacklist(...)` or
`greylist(...)`.

```python
from sqlforge.columns import infer, whitelist, greylist

cols = ["a", "b", "c"]
defaults = ["a", "c"]
no_defaults = ["b"]

insert, returning = infer().insert_column_set(cols, defaults, no_defaults, [])
# insert == ["b"], returning == ["a", "c"]

insert, returning = whitelist("a").insert_column_set(cols, defaults, no_defaults, [])
# insert == ["a"], returning == ["c"]

greylist("a").update_column_set(["a", "b"], ["a"])
# ["a", "b"]
```

| Kind      | insert                                       | update                     |
|-----------|----------------------------------------------|----------------------------|
| none      | nothing                                      | nothing                    |
| infer     | no-default columns + non-zero defaults       | all − primary keys         |
| whitelist | exactly the list                             | exactly the list           |
| blacklist | inferred − list                              | all − primary keys − list  |
| greylist  | inferred + list                              | all − primary keys + list  |

Inserted columns keep the order of `cols`. The returning columns are the
columns with defaults minus the inserted ones.

## Context switches

A `Context` is an immutable chain of values, and each helper returns a new one.

```python
from sqlforge.context import background, skip_hooks, hooks_are_skipped, with_debug, is_debug

ctx = background()
hooks_are_skipped(ctx)          # False
ctx = skip_hooks(ctx)
hooks_are_skipped(ctx)          # True

is_debug(with_debug(ctx, True)) # True
```

The other helpers work the same way:

- `skip_timestamps` and `timestamps_are_skipped` switch automatic timestamps off.
- `with_debug_writer` and `debug_writer_from` choose where debug output goes.
- `set_debug_mode` and `set_debug_writer` set the process-wide defaults. The
  default writer is standard output.

`HookPoint` lists the points at which hooks run.

## Errors

```python
from sqlforge.errors import wrap_err, is_boil_err

err = wrap_err(ValueError("test error"))
str(err)            # "test error"
is_boil_err(err)    # True
```

## Database handle

`set_db` and `get_db` keep one process-wide handle. If the handle also has
`exec_context`, `query_context` and `query_row_context`, `get_context_db`
returns it as well.

`begin()` calls the handle's `begin()`, and `begin_tx(ctx, options)` calls its
`begin_tx`. If the handle lacks that method, they raise `TypeError`.

`set_location` and `get_location` hold the time zone for automatic timestamps.
The default is UTC.

## Schema and naming

`sqlforge.schema` describes a schema with `Table`, `Column`, `ForeignKey` and
`Dialect`. `check_pkeys` raises `ValueError` naming every table that has no
primary key.

`sqlforge.naming` provides the name helpers:

- casing: `title_case`, `camel_case`,
- inflection: `singular`, `plural`,
- `trim_suffixes` (`"user_id"` → `"user"`),
- relationship names: `txt_name_to_one` and `txt_name_to_many`.

For example, a foreign key `videos.producer_id -> users.id` gives
`("ProducerVideos", "Producer")` from `txt_name_to_one`.

`fill_aliases(aliases, tables)` in `sqlforge.aliases` fills in every table,
column and relationship name that is not already set. Names that are already
set are kept. Look names up afterwards with these methods, each of which raises
`KeyError` for an unknown name:

- `Aliases.table`,
- `TableAlias.column`,
- `TableAlias.relationship`,
- `Aliases.many_relationship`.

## Configuration

`sqlforge.config.Config` holds a generation run's settings:

- package name and output folder,
- template directories and template replacements (`"original;replacement"`),
- struct tags and `tag_ignore` columns,
- feature switches such as `no_tests`, `no_context` and `wipe`,
- imports (`ImportCollection`),
- aliases and type replacements.

`convert_aliases` and `convert_type_replace` turn raw mappings, such as those
loaded from a configuration file, into `Aliases` and `TypeReplace` values.
Tables, columns and relationships may be keyed by name, or given as a list of
entries that each carry a `name`.

## Generating code

`sqlforge.generator.State` takes a `Config`, the schema's tables, the schema
name and a `Dialect`. When it is built it does the following:

- applies type replacements,
- loads the `.tpl` templates found in `config.template_dirs`,
- creates the output folders,
- fills in the aliases.

Then `run()` writes the files:

```python
from sqlforge.generator import State

state = State(config, tables, schema, dialect)
state.run()
state.cleanup()
```

Template names follow a simple convention:

- `templates/` holds per-table templates, and `templates/singleton/` holds
  templates rendered once.
- `templates_test/` holds the test counterparts, which are skipped when
  `no_tests` is set.
- A numeric prefix such as `00_` only orders templates and is dropped from the
  output file name.
- Templates in a subdirectory write into the matching subdirectory of the
  output folder.

Templates are Jinja2. They see every field of `TemplateData` (`table`,
`tables`, `aliases`, `pkg_name`, `dialect` and so on), along with `data`,
`quotes` and `schema_table`. Helper functions are also available as globals,
for example `title_case`, `plural`, `join` and `uses_primitives`.

Go output (`.go`) gets three things:

- a "generated, do not edit" header,
- a package line,
- its imports.

It is then tidied with `sqlforge.output.format_source`, which re-indents by
bracket nesting and collapses blank lines. Malformed source raises `ValueError`
showing the lines around the problem.

## What it does not do

- sqlforge does not connect to a database to read its schema. You pass the
  tables to `State` yourself.
- It ships no templates of its own. Templates come only from the directories
  you list in `template_dirs`.
- It has no command-line tool. Generation is driven from Python.
- `format_source` tidies layout only. It is not a full Go formatter or compiler
  check.