"""Microsoft SQL Server dialect."""

from __future__ import annotations

from typing import Any, ClassVar

from .dialect import (
    MAX_SIZED_LENGTH,
    CommonDialect,
    FieldKind,
    StructField,
    _invalid_type,
    _parse_int,
    _with_additional,
    parse_field_struct_for_dialect,
    register_dialect,
)


class MSSQLDialect(CommonDialect):
    """Dialect for Microsoft SQL Server databases."""

    name: ClassVar[str] = "mssql"

    def bind_var(self, i: int) -> str:
        """Return the placeholder for the i-th bound value."""
        return "$$"

    def quote(self, key: str) -> str:
        """Quote an identifier."""
        return f'"{key}"'

    @staticmethod
    def _identity(field: StructField, sql_type: str) -> str:
        if "AUTO_INCREMENT" in field.tag_settings or field.is_primary_key:
            field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
            return f"{sql_type} IDENTITY(1,1)"
        return sql_type

    def data_type_of(self, field: StructField) -> str:
        """Return the column type for `field`."""
        kind, sql_type, size, additional = parse_field_struct_for_dialect(field, self)

        if not sql_type:
            if kind is FieldKind.BOOL:
                sql_type = "bit"
            elif kind in (FieldKind.INT, FieldKind.UINT):
                sql_type = self._identity(field, "int")
            elif kind in (FieldKind.INT64, FieldKind.UINT64):
                sql_type = self._identity(field, "bigint")
            elif kind is FieldKind.FLOAT:
                sql_type = "float"
            elif kind is FieldKind.STRING:
                sql_type = f"nvarchar({size})" if 0 < size < MAX_SIZED_LENGTH else "text"
            elif kind is FieldKind.TIME:
                sql_type = "datetime2"
            elif kind is FieldKind.BYTES:
                sql_type = f"varchar({size})" if 0 < size < MAX_SIZED_LENGTH else "text"

        if not sql_type:
            raise _invalid_type(field, kind, "mssql")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Report whether the table has the named index."""
        return self._count(
            "SELECT count(*) FROM sys.indexes WHERE name=? AND object_id=OBJECT_ID(?)",
            index_name,
            table_name,
        ) > 0

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the named index from the table."""
        self._exec(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Foreign keys are not looked up for this dialect; always False."""
        return False

    def has_table(self, table_name: str) -> bool:
        """Report whether the table exists in the current database."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.tables WHERE table_name = ? AND table_catalog = ?",
            table_name,
            self.current_database(),
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Report whether the table has the column."""
        return self._count(
            "SELECT count(*) FROM information_schema.columns "
            "WHERE table_catalog = ? AND table_name = ? AND column_name = ?",
            self.current_database(),
            table_name,
            column_name,
        ) > 0

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        row = self._query_row("SELECT DB_NAME() AS [Current Database]")
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return the OFFSET/FETCH clause; a limit alone gets a zero offset."""
        sql = ""
        if offset is not None:
            parsed = _parse_int(offset)
            if parsed is not None and parsed > 0:
                sql += f" OFFSET {parsed} ROWS"
        if limit is not None:
            parsed = _parse_int(limit)
            if parsed is not None and parsed > 0:
                if not sql:
                    sql += " OFFSET 0 ROWS"
                sql += f" FETCH NEXT {parsed} ROWS ONLY"
        return sql

    def select_from_dummy_table(self) -> str:
        """Plain values need no FROM clause."""
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        """The new key is read through the last-insert id, so no suffix."""
        return ""


register_dialect("mssql", MSSQLDialect)