"""PostgreSQL dialect and the hstore column value type."""

from __future__ import annotations

from typing import Any, ClassVar

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


class PostgresDialect(CommonDialect):
    """Dialect for PostgreSQL databases."""

    name: ClassVar[str] = "postgres"

    def bind_var(self, i: int) -> str:
        """Return the numbered placeholder for the i-th bound value."""
        return f"${i}"

    @staticmethod
    def _serial(field: StructField, serial_type: str, plain_type: str) -> str:
        if "AUTO_INCREMENT" in field.tag_settings or field.is_primary_key:
            field.tag_settings["AUTO_INCREMENT"] = "AUTO_INCREMENT"
            return serial_type
        return plain_type

    def data_type_of(self, field: StructField) -> str:
        """Return the column type for `field`.

        Strings without an explicit SIZE become `text`.
        """
        kind, sql_type, size, additional = parse_field_struct_for_dialect(field, self)

        if not sql_type:
            if kind is FieldKind.BOOL:
                sql_type = "boolean"
            elif kind in (FieldKind.INT, FieldKind.UINT):
                sql_type = self._serial(field, "serial", "integer")
            elif kind in (FieldKind.INT64, FieldKind.UINT64):
                sql_type = self._serial(field, "bigserial", "bigint")
            elif kind is FieldKind.FLOAT:
                sql_type = "numeric"
            elif kind is FieldKind.STRING:
                if "SIZE" not in field.tag_settings:
                    size = 0
                sql_type = f"varchar({size})" if 0 < size < MAX_SIZED_LENGTH else "text"
            elif kind is FieldKind.TIME:
                sql_type = "timestamp with time zone"
            elif kind is FieldKind.MAP:
                if field.type_name == "Hstore":
                    sql_type = "hstore"
            elif kind is FieldKind.BYTES:
                sql_type = "bytea"
            elif kind is FieldKind.UUID:
                sql_type = "uuid"

        if not sql_type:
            raise _invalid_type(field, kind, "postgres")
        return _with_additional(sql_type, additional)

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Report whether the table has the named index."""
        return self._count(
            "SELECT count(*) FROM pg_indexes WHERE tablename = $1 AND indexname = $2",
            table_name,
            index_name,
        ) > 0

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Report whether the table has the named foreign key constraint."""
        return self._count(
            "SELECT count(con.conname) FROM pg_constraint con "
            "WHERE $1::regclass::oid = con.conrelid AND con.conname = $2 AND con.contype='f'",
            table_name,
            foreign_key_name,
        ) > 0

    def has_table(self, table_name: str) -> bool:
        """Report whether the base table exists."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.tables "
            "WHERE table_name = $1 AND table_type = 'BASE TABLE'",
            table_name,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Report whether the table has the column."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.columns WHERE table_name = $1 AND column_name = $2",
            table_name,
            column_name,
        ) > 0

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        row = self._query_row("SELECT CURRENT_DATABASE()")
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def last_insert_id_returning_suffix(self, table_name: str, key: str) -> str:
        """Return the RETURNING clause that yields the new key."""
        return f"RETURNING {table_name}.{key}"

    def support_last_insert_id(self) -> bool:
        """PostgreSQL reports new keys through RETURNING, not a last-insert id."""
        return False


def _hstore_quote(text: str | None) -> str:
    if text is None:
        return "NULL"
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class _HstoreReader:
    """Reads the textual hstore representation token by token."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def _error(self, message: str) -> ValueError:
        return ValueError(f"{message} at position {self.pos} in hstore {self.text!r}")

    def _skip_space(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def at_end(self) -> bool:
        self._skip_space()
        return self.pos >= len(self.text)

    def expect(self, token: str) -> None:
        self._skip_space()
        if not self.text.startswith(token, self.pos):
            raise self._error(f"expected {token!r}")
        self.pos += len(token)

    def token(self) -> tuple[str, bool]:
        """Return the next key or value and whether it was quoted."""
        self._skip_space()
        if self.pos >= len(self.text):
            raise self._error("unexpected end")
        if self.text[self.pos] == '"':
            self.pos += 1
            chars: list[str] = []
            while True:
                if self.pos >= len(self.text):
                    raise self._error("unterminated string")
                ch = self.text[self.pos]
                self.pos += 1
                if ch == "\\":
                    if self.pos >= len(self.text):
                        raise self._error("dangling escape")
                    chars.append(self.text[self.pos])
                    self.pos += 1
                elif ch == '"':
                    return "".join(chars), True
                else:
                    chars.append(ch)
        start = self.pos
        while (
            self.pos < len(self.text)
            and not self.text[self.pos].isspace()
            and self.text[self.pos] not in ",="
        ):
            self.pos += 1
        if self.pos == start:
            raise self._error("expected a key or value")
        return self.text[start:self.pos], False


def _parse_hstore(text: str) -> dict[str, str | None]:
    reader = _HstoreReader(text)
    result: dict[str, str | None] = {}
    if reader.at_end():
        return result
    while True:
        key, _ = reader.token()
        reader.expect("=>")
        value, quoted = reader.token()
        result[key] = None if not quoted and value.upper() == "NULL" else value
        if reader.at_end():
            return result
        reader.expect(",")


class Hstore(dict):
    """A PostgreSQL hstore value: string keys mapping to strings or None."""

    def value(self) -> bytes | None:
        """Return the hstore text to store, or None when empty."""
        if not self:
            return None
        parts = (f"{_hstore_quote(key)}=>{_hstore_quote(val)}" for key, val in self.items())
        return ",".join(parts).encode("utf-8")

    def scan(self, value: Any) -> None:
        """Fill this mapping from a stored hstore value.

        None or an empty hstore leaves the mapping unchanged.
        """
        if value is None:
            return
        if isinstance(value, (bytes, bytearray, memoryview)):
            text = bytes(value).decode("utf-8")
        elif isinstance(value, str):
            text = value
        else:
            raise TypeError(f"cannot scan {type(value).__name__} into Hstore")
        parsed = _parse_hstore(text)
        if not parsed:
            return
        self.clear()
        self.update(parsed)


register_dialect("postgres", PostgresDialect)