"""MySQL dialect."""

from __future__ import annotations

import hashlib
from typing import ClassVar

from .dialect import (
    _FOREIGN_KEY_CLEANUP,
    MAX_SIZED_LENGTH,
    CommonDialect,
    FieldKind,
    StructField,
    _invalid_type,
    _with_additional,
    parse_field_struct_for_dialect,
    register_dialect,
)

_MAX_IDENTIFIER_LENGTH = 64
_DEST_PREFIX_LENGTH = 24


class MySQLDialect(CommonDialect):
    """Dialect for MySQL databases."""

    name: ClassVar[str] = "mysql"

    def quote(self, key: str) -> str:
        """Quote an identifier with backticks."""
        return f"`{key}`"

    def _auto_increment(self, field: StructField, sql_type: str) -> str:
        if "AUTO_INCREMENT" in field.tag_settings or field.is_primary_key:
            field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
            return f"{sql_type} AUTO_INCREMENT"
        return sql_type

    def data_type_of(self, field: StructField) -> str:
        """Return the column type for `field`.

        Only key columns may auto-increment, so the setting is dropped from
        fields that are neither indexed nor primary keys.
        """
        kind, sql_type, size, additional = parse_field_struct_for_dialect(field, self)

        if "AUTO_INCREMENT" in field.tag_settings:
            if "INDEX" not in field.tag_settings and not field.is_primary_key:
                del field.tag_settings["AUTO_INCREMENT"]

        if not sql_type:
            if kind is FieldKind.BOOL:
                sql_type = "boolean"
            elif kind is FieldKind.INT:
                sql_type = self._auto_increment(field, "int")
            elif kind is FieldKind.UINT:
                sql_type = self._auto_increment(field, "int unsigned")
            elif kind is FieldKind.INT64:
                sql_type = self._auto_increment(field, "bigint")
            elif kind is FieldKind.UINT64:
                sql_type = self._auto_increment(field, "bigint unsigned")
            elif kind is FieldKind.FLOAT:
                sql_type = "double"
            elif kind is FieldKind.STRING:
                sql_type = f"varchar({size})" if 0 < size < MAX_SIZED_LENGTH else "longtext"
            elif kind is FieldKind.TIME:
                sql_type = "timestamp" if "NOT NULL" in field.tag_settings else "timestamp NULL"
            elif kind is FieldKind.BYTES:
                sql_type = f"varbinary({size})" if 0 < size < MAX_SIZED_LENGTH else "longblob"
        if not sql_type:
            raise _invalid_type(field, kind, "mysql")
        return _with_additional(sql_type, additional)

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the named index from the table."""
        self._exec(f"DROP INDEX {index_name} ON {self.quote(table_name)}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Report whether the table has the named foreign key constraint."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS "
            "WHERE CONSTRAINT_SCHEMA=? AND TABLE_NAME=? AND CONSTRAINT_NAME=? "
            "AND CONSTRAINT_TYPE='FOREIGN KEY'",
            self.current_database(),
            table_name,
            foreign_key_name,
        ) > 0

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        row = self._query_row("SELECT DATABASE()")
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def select_from_dummy_table(self) -> str:
        """MySQL selects plain values from DUAL."""
        return "FROM DUAL"

    def build_foreign_key_name(self, table_name: str, field: str, dest: str) -> str:
        """Return a foreign key name that fits MySQL's 64 character limit."""
        key_name = super().build_foreign_key_name(table_name, field, dest)
        if len(key_name) <= _MAX_IDENTIFIER_LENGTH:
            return key_name
        digest = hashlib.sha1(key_name.encode("utf-8")).hexdigest()
        dest_prefix = _FOREIGN_KEY_CLEANUP.sub("_", dest)[:_DEST_PREFIX_LENGTH]
        return dest_prefix + digest


register_dialect("mysql", MySQLDialect)