# ormkit

Building blocks for an object-relational mapper. The package has no
dependencies outside the standard library.

- `ormkit.dialect`: the `Dialect` interface, `CommonDialect`, the field
  description `StructField` with its `FieldKind`, and the dialect registry
  (`register_dialect`, `new_dialect`, `parse_field_struct_for_dialect`).
- `ormkit.mysql`, `ormkit.postgres`, `ormkit.sqlite3`, `ormkit.mssql`:
  `MySQLDialect`, `PostgresDialect`, `SQLite3Dialect` and `MSSQLDialect`.
  Importing a module registers its dialect under `"mysql"`, `"postgres"`,
  `"sqlite3"` or `"mssql"`. `ormkit.postgres` also provides `Hstore`.
- `ormkit.callbacks`: `Callback`, `CallbackProcessor` and `sort_processors`.
  These keep named create/update/delete/query/row-query hooks in order.
- `ormkit.errors`: `OrmError` and its subclasses (`RecordNotFoundError`,
  `InvalidSQLError`, `InvalidTransactionError`, `CantStartTransactionError`,
  `UnaddressableError`), and the `Errors` collection.
- `ormkit.logger`: `format_log`, `is_printable` and `Logger`, which print SQL
  statements with their bound values filled in.

## Installation

```
pip install .
```

## Dialects

```python
from ormkit.dialect import new_dialect, StructField, FieldKind
import ormkit.mysql  # registers "mysql"

dialect = new_dialect("mysql", db=None)
dialect.quote("users")                  # '`users`'
dialect.limit_and_offset_sql(10, 20)    # ' LIMIT 10 OFFSET 20'
dialect.select_from_dummy_table()       # 'FROM DUAL'

field = StructField(name="Name", db_name="name", kind=FieldKind.STRING)
dialect.data_type_of(field)             # 'varchar(255)'
```

If no dialect is registered under the requested name, `new_dialect` logs a
warning and returns a `CommonDialect`.

`data_type_of` chooses a column type from the field's `kind` and
`tag_settings`. The settings it reads are `"TYPE"`, `"SIZE"`, `"NOT NULL"`,
`"UNIQUE"`, `"DEFAULT"`, `"AUTO_INCREMENT"` and `"INDEX"`. If the field's
`value_type` has a callable `orm_data_type(dialect)`, its result is used as the
type. A kind that the dialect has no type for raises `ValueError`. Primary
keys and auto-increment fields can change `tag_settings`: depending on the
dialect, `"AUTO_INCREMENT"` is added or dropped.

Other per-dialect methods include `bind_var`, `last_insert_id_returning_suffix`
and `build_foreign_key_name`. For long names, `MySQLDialect` shortens the
foreign key name with a SHA-1 digest to fit 64 characters.

### Schema lookups

`has_table`, `has_column`, `has_index`, `has_foreign_key`, `current_database`
and `remove_index` run queries through the connection that was passed to
`new_dialect` or `set_db`. That connection needs only a DB-API style
`cursor()` with `execute`, `fetchone` and `close`. If a lookup query fails, the
lookup reports `False` (or an empty database name). If no connection is set, a
`RuntimeError` is raised.

## Hstore

```python
from ormkit.postgres import Hstore

Hstore({"a": "1", "b": None}).value()   # b'"a"=>"1","b"=>NULL'

h = Hstore()
h.scan(b'"x"=>"y", "z"=>NULL')          # h == {"x": "y", "z": None}
```

An empty `Hstore` stores as `None`. Scanning `None` or an empty hstore leaves
the mapping unchanged.

## Callbacks

```python
from ormkit.callbacks import Callback

callbacks = Callback()
callbacks.create().register("create", lambda scope: ...)
callbacks.create().before("create").register("validate", lambda scope: ...)
callbacks.create().after("create").register("notify", lambda scope: ...)
callbacks.create().replace("create", lambda scope: ...)
callbacks.create().remove("validate")

callbacks.creates                          # ordered list of hook functions
callbacks.create().get("notify")           # the registered function, or None
```

Each `register`, `replace` or `remove` call reorders the hooks straight away.
A row-query hook registered without `before` or `after` is placed before
`"ormkit:row_query"`. Duplicate names, replacements and removals are reported
through the `logging` module. `ormkit.callbacks.default_callback` is a shared,
empty `Callback`.

## Errors

```python
from ormkit.errors import Errors

errs = Errors([ValueError("First"), ValueError("Second")])
errs = errs.add(ValueError("Third"))
errs = errs.add(errs)          # nested collections are flattened, duplicates skipped
str(errs)                      # 'First; Second; Third'
```

`Errors` is an exception itself, so a collection can be raised. `add` returns
a new collection and leaves the original unchanged.

## Logging

```python
from datetime import timedelta
from ormkit.logger import Logger, format_log

Logger().print("sql", "app.py:10", timedelta(milliseconds=1.5),
               "SELECT * FROM users WHERE id = ?", [1])
```

The output is one coloured line with the source, the current time, the
duration (`[1.50ms]`) and the statement `SELECT * FROM users WHERE id = '1'`.
Both `?` and numbered `$1` placeholders are filled in. `None` values are
rendered as `NULL`, datetimes as `'YYYY-MM-DD HH:MM:SS'`, and non-printable
bytes as `'<binary>'`. A value with a callable `value()` method is rendered
through that method. Levels other than `"sql"` print their remaining values
highlighted. `Logger` writes to standard output unless you pass it a stream.

## What this package does not do

The package does not map model classes to tables, build queries, run create,
update, delete or query operations, manage transactions or connections, or
migrate schemas. The callback registry only keeps hooks in order; it never
calls them. The dialects render SQL fragments and column types, and run
simple schema lookups on a connection that you supply.

## Running the tests

```
pip install ".[test]"
pytest
```