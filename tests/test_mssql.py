import pytest

from ormkit.dialect import FieldKind, StructField, new_dialect
from ormkit.mssql import MSSQLDialect


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def execute(self, sql, params=()):
        self.conn.executed.append((sql, tuple(params)))

    def fetchone(self):
        return self.conn.rows.pop(0) if self.conn.rows else None

    def close(self):
        pass


class FakeConnection:
    def __init__(self, rows=()):
        self.rows = list(rows)
        self.executed = []

    def cursor(self):
        return FakeCursor(self)


def field(kind, **kwargs):
    return StructField(name="Field", kind=kind, **kwargs)


def test_registered_under_mssql():
    conn = FakeConnection([("shop",)])
    dialect = new_dialect("mssql", conn)
    assert dialect.limit_and_offset_sql(10, None) == " OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"
    assert dialect.current_database() == "shop"
    assert conn.executed[0][0] == "SELECT DB_NAME() AS [Current Database]"


def test_bind_var_and_quote():
    dialect = MSSQLDialect()
    assert dialect.bind_var(3) == "$$"
    assert dialect.quote("users") == '"users"'


def test_primary_key_gets_identity():
    f = field(FieldKind.INT, is_primary_key=True)
    assert MSSQLDialect().data_type_of(f) == "int IDENTITY(1,1)"
    assert f.tag_settings["AUTO_INCREMENT"] == "AUTO_INCREMENT"


def test_auto_increment_bigint():
    f = field(FieldKind.UINT64, tag_settings={"AUTO_INCREMENT": ""})
    assert MSSQLDialect().data_type_of(f) == "bigint IDENTITY(1,1)"


@pytest.mark.parametrize(
    "kind, expected",
    [
        (FieldKind.BOOL, "bit"),
        (FieldKind.INT, "int"),
        (FieldKind.INT64, "bigint"),
        (FieldKind.FLOAT, "float"),
        (FieldKind.TIME, "datetime2"),
    ],
)
def test_simple_kinds(kind, expected):
    assert MSSQLDialect().data_type_of(field(kind)) == expected


def test_string_and_bytes_sizes():
    dialect = MSSQLDialect()
    assert dialect.data_type_of(field(FieldKind.STRING, tag_settings={"SIZE": "50"})) == "nvarchar(50)"
    assert dialect.data_type_of(field(FieldKind.BYTES, tag_settings={"SIZE": "50"})) == "varchar(50)"
    assert dialect.data_type_of(field(FieldKind.STRING, tag_settings={"SIZE": "0"})) == "text"


def test_unsupported_kind_raises():
    with pytest.raises(ValueError, match="for mssql"):
        MSSQLDialect().data_type_of(field(FieldKind.UUID))


def test_limit_alone_gets_zero_offset():
    assert MSSQLDialect().limit_and_offset_sql(10, None) == " OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"


def test_offset_then_limit():
    sql = MSSQLDialect().limit_and_offset_sql(10, 5)
    assert sql.startswith(" OFFSET 5 ROWS")
    assert sql.endswith(" FETCH NEXT 10 ROWS ONLY")
    assert "OFFSET 0 ROWS" not in sql


def test_non_positive_or_invalid_left_out():
    dialect = MSSQLDialect()
    assert dialect.limit_and_offset_sql(0, -1) == ""
    assert dialect.limit_and_offset_sql("abc", None) == ""
    assert dialect.limit_and_offset_sql(None, "7").strip() == "OFFSET 7 ROWS"


def test_has_index_argument_order():
    conn = FakeConnection([(1,)])
    assert MSSQLDialect(conn).has_index("users", "idx") is True
    sql, params = conn.executed[0]
    assert "sys.indexes" in sql
    assert params == ("idx", "users")


def test_has_table_uses_current_database():
    conn = FakeConnection([("shop",), (1,)])
    assert MSSQLDialect(conn).has_table("users") is True
    assert conn.executed[0][0] == "SELECT DB_NAME() AS [Current Database]"
    assert conn.executed[1][1] == ("users", "shop")


def test_has_column_missing():
    conn = FakeConnection([("shop",), (0,)])
    assert MSSQLDialect(conn).has_column("users", "name") is False
    assert conn.executed[1][1] == ("shop", "users", "name")


def test_remove_index_statement():
    conn = FakeConnection()
    MSSQLDialect(conn).remove_index("users", "idx")
    assert conn.executed == [('DROP INDEX idx ON "users"', ())]


def test_constant_answers():
    dialect = MSSQLDialect()
    assert dialect.has_foreign_key("users", "fk") is False
    assert dialect.select_from_dummy_table() == ""
    assert dialect.last_insert_id_returning_suffix("users", "id") == ""