import re

import pytest

from ormkit.dialect import CommonDialect, FieldKind, StructField, new_dialect
from ormkit.mysql import MySQLDialect


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def execute(self, sql, params=()):
        self.conn.executed.append((sql, tuple(params)))
        if self.conn.fail:
            raise RuntimeError("boom")

    def fetchone(self):
        return self.conn.rows.pop(0) if self.conn.rows else None

    def close(self):
        pass


class FakeConnection:
    def __init__(self, rows=(), fail=False):
        self.rows = list(rows)
        self.fail = fail
        self.executed = []

    def cursor(self):
        return FakeCursor(self)


def make_field(kind, primary=False, **tags):
    return StructField(name="Field", kind=kind, tag_settings=dict(tags), is_primary_key=primary)


def test_quote_uses_backticks():
    assert MySQLDialect().quote("users") == "`users`"


@pytest.mark.parametrize(
    "kind, expected",
    [
        (FieldKind.BOOL, "boolean"),
        (FieldKind.INT, "int"),
        (FieldKind.UINT, "int unsigned"),
        (FieldKind.INT64, "bigint"),
        (FieldKind.UINT64, "bigint unsigned"),
        (FieldKind.FLOAT, "double"),
        (FieldKind.TIME, "timestamp NULL"),
    ],
)
def test_plain_types(kind, expected):
    assert MySQLDialect().data_type_of(make_field(kind)) == expected


def test_primary_key_gets_auto_increment():
    field = make_field(FieldKind.INT, primary=True)
    assert MySQLDialect().data_type_of(field) == "int AUTO_INCREMENT"
    assert field.tag_settings["AUTO_INCREMENT"] == "AUTO_INCREMENT"

    big = make_field(FieldKind.UINT64, primary=True)
    assert MySQLDialect().data_type_of(big) == "bigint unsigned AUTO_INCREMENT"


def test_auto_increment_dropped_without_key():
    field = make_field(FieldKind.INT, AUTO_INCREMENT="AUTO_INCREMENT")
    assert MySQLDialect().data_type_of(field) == "int"
    assert "AUTO_INCREMENT" not in field.tag_settings


def test_auto_increment_kept_with_index():
    field = make_field(FieldKind.INT64, AUTO_INCREMENT="AUTO_INCREMENT", INDEX="INDEX")
    assert MySQLDialect().data_type_of(field) == "bigint AUTO_INCREMENT"
    assert "AUTO_INCREMENT" in field.tag_settings


def test_strings_and_bytes():
    dialect = MySQLDialect()
    assert dialect.data_type_of(make_field(FieldKind.STRING, SIZE="64")) == "varchar(64)"
    assert dialect.data_type_of(make_field(FieldKind.STRING, SIZE="0")) == "longtext"
    assert dialect.data_type_of(make_field(FieldKind.BYTES, SIZE="32")) == "varbinary(32)"
    assert dialect.data_type_of(make_field(FieldKind.BYTES, SIZE="70000")) == "longblob"


def test_not_null_timestamp():
    field = make_field(FieldKind.TIME, **{"NOT NULL": "NOT NULL"})
    assert MySQLDialect().data_type_of(field) == "timestamp NOT NULL"


def test_unsupported_kind_raises():
    with pytest.raises(ValueError, match="for mysql"):
        MySQLDialect().data_type_of(make_field(FieldKind.MAP))


def test_remove_index_sql():
    conn = FakeConnection()
    MySQLDialect(conn).remove_index("users", "idx_name")
    assert conn.executed == [("DROP INDEX idx_name ON `users`", ())]


def test_has_foreign_key_uses_current_database():
    conn = FakeConnection(rows=[("shop",), (1,)])
    assert MySQLDialect(conn).has_foreign_key("users", "fk_company") is True
    sql, params = conn.executed[-1]
    assert "FOREIGN KEY" in sql
    assert params == ("shop", "users", "fk_company")


def test_has_foreign_key_false_when_absent_or_failing():
    assert MySQLDialect(FakeConnection(rows=[("shop",), (0,)])).has_foreign_key("u", "fk") is False
    assert MySQLDialect(FakeConnection(fail=True)).has_foreign_key("u", "fk") is False


def test_current_database_and_dummy_table():
    assert MySQLDialect(FakeConnection(rows=[("shop",)])).current_database() == "shop"
    assert MySQLDialect().select_from_dummy_table() == "FROM DUAL"


def test_short_foreign_key_name_matches_common():
    args = ("users", "company_id", "companies(id)")
    assert MySQLDialect().build_foreign_key_name(*args) == CommonDialect().build_foreign_key_name(*args)


def test_long_foreign_key_name_is_hashed():
    dialect = MySQLDialect()
    table = "not_so_long_table_names"
    field = "really_long_thing_id"
    dest = "really_long_table_name_to_test_my_sql_name_length_limits(id)"
    name = dialect.build_foreign_key_name(table, field, dest)
    assert len(name) == 24 + 40
    assert name.startswith("really_long_table_name_t")
    assert re.fullmatch(r"[0-9a-f]{40}", name[24:])
    assert dialect.build_foreign_key_name(table, field, dest) == name
    assert dialect.build_foreign_key_name(table + "x", field, dest) != name


def test_long_name_with_short_dest():
    dest = "short_table(id)"
    name = MySQLDialect().build_foreign_key_name("really_long_thing_that_references_shorts", "short_id", dest)
    assert name.startswith("short_table_id_")
    assert len(name) == len("short_table_id_") + 40


def test_registered_as_mysql():
    conn = FakeConnection()
    dialect = new_dialect("mysql", conn)
    assert type(dialect) is MySQLDialect
    assert dialect.db is conn
    assert dialect.name == "mysql"