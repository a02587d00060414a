"""SQLite dialect."""

from __future__ import annotations

from typing import ClassVar

from .dialect import (
    MAX_SIZED_LENGTH,
    CommonDialect,
    FieldKind,
    StructField,
    _invalid_type,
    _with_additional,
    parse_field_struct_for_dialect,
    register_dialect,
)

_AUTOINCREMENT_KEY = "integer primary key autoincrement"


class SQLite3Dialect(CommonDialect):
    """Dialect for SQLite databases."""

    name: ClassVar[str] = "sqlite3"

    @staticmethod
    def _integer(field: StructField, plain_type: str) -> str:
        if field.is_primary_key:
            field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
            return _AUTOINCREMENT_KEY
        return plain_type

    def data_type_of(self, field: StructField) -> str:
        """Return the column type for `field`."""
        kind, sql_type, size, additional = parse_field_struct_for_dialect(field, self)

        if not sql_type:
            if kind is FieldKind.BOOL:
                sql_type = "bool"
            elif kind in (FieldKind.INT, FieldKind.UINT):
                sql_type = self._integer(field, "integer")
            elif kind in (FieldKind.INT64, FieldKind.UINT64):
                sql_type = self._integer(field, "bigint")
            elif kind is FieldKind.FLOAT:
                sql_type = "real"
            elif kind is FieldKind.STRING:
                sql_type = f"varchar({size})" if 0 < size < MAX_SIZED_LENGTH else "text"
            elif kind is FieldKind.TIME:
                sql_type = "datetime"
            elif kind is FieldKind.BYTES:
                sql_type = "blob"

        if not sql_type:
            raise _invalid_type(field, kind, "sqlite3")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Report whether the table has the named index."""
        return self._count(
            f"SELECT count(*) FROM sqlite_master WHERE tbl_name = ? AND sql LIKE '%INDEX {index_name} ON%'",
            table_name,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        """Report whether the table exists."""
        return self._count(
            "SELECT count(*) FROM sqlite_master WHERE type='table' AND name=?",
            table_name,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Report whether the table's definition mentions the column."""
        return self._count(
            "SELECT count(*) FROM sqlite_master WHERE tbl_name = ? "
            f"AND (sql LIKE '%\"{column_name}\" %' OR sql LIKE '%{column_name} %')",
            table_name,
        ) > 0

    def current_database(self) -> str:
        """Return the name of the first attached database, or an empty string."""
        row = self._query_row("PRAGMA database_list")
        if not row or len(row) < 3 or row[1] is None:
            return ""
        return str(row[1])


register_dialect("sqlite3", SQLite3Dialect)