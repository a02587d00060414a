"""SQL dialects: the common behaviour and the registry of named dialects."""

from __future__ import annotations

import dataclasses
import enum
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol

_log = logging.getLogger(__name__)

_FOREIGN_KEY_CLEANUP = re.compile(r"(_*[^a-zA-Z]+_*|_+)")
_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
DEFAULT_SIZE = 255
MAX_SIZED_LENGTH = 65532


class _Cursor(Protocol):
    def execute(self, sql: str, params: Any = ...) -> Any: ...

    def fetchone(self) -> Any: ...

    def close(self) -> Any: ...


class _Connection(Protocol):
    """The minimal connection the dialects need: a DB-API style cursor factory."""

    def cursor(self) -> _Cursor: ...


class FieldKind(enum.Enum):
    """The kind of value a model field holds, as far as column types care."""

    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT = "float"
    STRING = "string"
    TIME = "time"
    BYTES = "bytes"
    UUID = "uuid"
    MAP = "map"
    STRUCT = "struct"
    OTHER = "other"


@dataclasses.dataclass
class StructField:
    """Description of one model field used to choose its column type.

    `tag_settings` holds upper-case setting names such as "SIZE", "TYPE",
    "NOT NULL", "UNIQUE", "DEFAULT", "AUTO_INCREMENT" or "INDEX".  If
    `value_type` has an `orm_data_type(dialect)` callable, its result is
    used as the column type.
    """

    name: str
    kind: FieldKind
    db_name: str = ""
    tag_settings: dict[str, str] = dataclasses.field(default_factory=dict)
    is_primary_key: bool = False
    type_name: str = ""
    value_type: type | None = None


def parse_field_struct_for_dialect(
    field: StructField, dialect: Dialect
) -> tuple[FieldKind, str, int, str]:
    """Return the field's kind, explicit SQL type, size and extra column options."""
    data_type = field.tag_settings.get("TYPE", "")
    hook = getattr(field.value_type, "orm_data_type", None)
    if callable(hook):
        data_type = hook(dialect)

    if "SIZE" in field.tag_settings:
        try:
            size = int(field.tag_settings["SIZE"])
        except ValueError:
            size = 0
    else:
        size = DEFAULT_SIZE

    additional = field.tag_settings.get("NOT NULL", "") + " " + field.tag_settings.get("UNIQUE", "")
    if "DEFAULT" in field.tag_settings:
        additional += " DEFAULT " + field.tag_settings["DEFAULT"]
    return field.kind, data_type, size, additional.strip()


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)
    if _LEGACY_OCTAL.fullmatch(text):
        number = int(text, 8)
    else:
        if text != text.strip():
            return None
        try:
            number = int(text, 0)
        except ValueError:
            return None
    return number if _INT64_MIN <= number <= _INT64_MAX else None


def _invalid_type(field: StructField, kind: FieldKind, dialect_name: str) -> ValueError:
    return ValueError(f"invalid sql type {field.type_name} ({kind.value}) for {dialect_name}")


def _with_additional(sql_type: str, additional: str) -> str:
    if not additional.strip():
        return sql_type
    return f"{sql_type} {additional}"


class Dialect(ABC):
    """Behaviour that differs between SQL databases."""

    name: ClassVar[str] = ""

    @abstractmethod
    def set_db(self, db: _Connection | None) -> None: ...

    @abstractmethod
    def bind_var(self, i: int) -> str: ...

    @abstractmethod
    def quote(self, key: str) -> str: ...

    @abstractmethod
    def data_type_of(self, field: StructField) -> str: ...

    @abstractmethod
    def has_index(self, table_name: str, index_name: str) -> bool: ...

    @abstractmethod
    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool: ...

    @abstractmethod
    def remove_index(self, table_name: str, index_name: str) -> None: ...

    @abstractmethod
    def has_table(self, table_name: str) -> bool: ...

    @abstractmethod
    def has_column(self, table_name: str, column_name: str) -> bool: ...

    @abstractmethod
    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str: ...

    @abstractmethod
    def select_from_dummy_table(self) -> str: ...

    @abstractmethod
    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str: ...

    @abstractmethod
    def build_foreign_key_name(self, table_name: str, field: str, dest: str) -> str: ...

    @abstractmethod
    def current_database(self) -> str: ...


class CommonDialect(Dialect):
    """Generic dialect used for databases without a dedicated one."""

    name: ClassVar[str] = "common"
    # "{index}" in the template is replaced by the position of the bound value.
    bind_var_template: ClassVar[str] = "$$"
    # "{table}" and "{column}" are replaced by the table and key column names.
    returning_suffix_template: ClassVar[str] = ""

    def __init__(self, db: _Connection | None = None) -> None:
        self.db = db

    def set_db(self, db: _Connection | None) -> None:
        """Attach the connection used for schema lookups."""
        self.db = db

    def bind_var(self, i: int) -> str:
        """Return the placeholder for the i-th bound value."""
        return self.bind_var_template.replace("{index}", str(i))

    def quote(self, key: str) -> str:
        """Quote an identifier."""
        return f'"{key}"'

    def data_type_of(self, field: StructField) -> str:
        """Return the column type for `field`."""
        kind, sql_type, size, additional = parse_field_struct_for_dialect(field, self)
        if not sql_type:
            auto_increment = "AUTO_INCREMENT" in field.tag_settings
            if kind is FieldKind.BOOL:
                sql_type = "BOOLEAN"
            elif kind in (FieldKind.INT, FieldKind.UINT):
                sql_type = "INTEGER AUTO_INCREMENT" if auto_increment else "INTEGER"
            elif kind in (FieldKind.INT64, FieldKind.UINT64):
                sql_type = "BIGINT AUTO_INCREMENT" if auto_increment else "BIGINT"
            elif kind is FieldKind.FLOAT:
                sql_type = "FLOAT"
            elif kind is FieldKind.STRING:
                sql_type = f"VARCHAR({size})" if 0 < size < MAX_SIZED_LENGTH else "VARCHAR(65532)"
            elif kind is FieldKind.TIME:
                sql_type = "TIMESTAMP"
            elif kind is FieldKind.BYTES:
                sql_type = f"BINARY({size})" if 0 < size < MAX_SIZED_LENGTH else "BINARY(65532)"
        if not sql_type:
            raise _invalid_type(field, kind, "commonDialect")
        return _with_additional(sql_type, additional)

    def _require_db(self) -> _Connection:
        if self.db is None:
            raise RuntimeError(f"no database connection set for dialect {self.name}")
        return self.db

    def _query_row(self, sql: str, *args: Any) -> Any:
        """Run a query and return its first row, or None if it fails or is empty."""
        cursor = self._require_db().cursor()
        try:
            cursor.execute(sql, args)
            return cursor.fetchone()
        except Exception:  # lookups report "not found" when the query cannot run
            return None
        finally:
            cursor.close()

    def _count(self, sql: str, *args: Any) -> int:
        row = self._query_row(sql, *args)
        if not row or row[0] is None:
            return 0
        try:
            return int(row[0])
        except (TypeError, ValueError):
            return 0

    def _exec(self, sql: str, *args: Any) -> None:
        cursor = self._require_db().cursor()
        try:
            cursor.execute(sql, args)
        finally:
            cursor.close()

    def has_index(self, table_name: str, index_name: str) -> bool:
        """Report whether the table has the named index."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.STATISTICS "
            "WHERE table_schema = ? AND table_name = ? AND index_name = ?",
            self.current_database(),
            table_name,
            index_name,
        ) > 0

    def remove_index(self, table_name: str, index_name: str) -> None:
        """Drop the named index."""
        self._exec(f"DROP INDEX {index_name}")

    def has_foreign_key(self, table_name: str, foreign_key_name: str) -> bool:
        """Foreign keys cannot be looked up generically; always False."""
        return False

    def has_table(self, table_name: str) -> bool:
        """Report whether the table exists."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.TABLES WHERE table_schema = ? AND table_name = ?",
            self.current_database(),
            table_name,
        ) > 0

    def has_column(self, table_name: str, column_name: str) -> bool:
        """Report whether the table has the column."""
        return self._count(
            "SELECT count(*) FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE table_schema = ? AND table_name = ? AND column_name = ?",
            self.current_database(),
            table_name,
            column_name,
        ) > 0

    def current_database(self) -> str:
        """Return the name of the current database, or an empty string."""
        row = self._query_row("SELECT DATABASE()")
        if not row or row[0] is None:
            return ""
        return str(row[0])

    def limit_and_offset_sql(self, limit: Any, offset: Any) -> str:
        """Return the LIMIT/OFFSET clause; non-positive or unparsable values are left out."""
        sql = ""
        if limit is not None:
            parsed = _parse_int(limit)
            if parsed is not None and parsed > 0:
                sql += f" LIMIT {parsed}"
        if offset is not None:
            parsed = _parse_int(offset)
            if parsed is not None and parsed > 0:
                sql += f" OFFSET {parsed}"
        return sql

    def select_from_dummy_table(self) -> str:
        """Return the FROM clause needed to select plain values."""
        return ""

    def last_insert_id_returning_suffix(self, table_name: str, column_name: str) -> str:
        """Return the suffix that makes an INSERT return the new key."""
        return self.returning_suffix_template.replace("{table}", table_name).replace(
            "{column}", column_name
        )

    def build_foreign_key_name(self, table_name: str, field: str, dest: str) -> str:
        """Return a foreign key name built from the table, field and reference."""
        key_name = f"{table_name}_{field}_{dest}_foreign"
        return _FOREIGN_KEY_CLEANUP.sub("_", key_name)


_dialects: dict[str, type[Dialect]] = {}


def register_dialect(name: str, dialect_class: type[Dialect]) -> None:
    """Register a dialect class under `name`."""
    _dialects[name] = dialect_class


def new_dialect(name: str, db: _Connection | None) -> Dialect:
    """Create the dialect registered as `name`, falling back to the common one."""
    dialect_class = _dialects.get(name)
    if dialect_class is None:
        _log.warning("`%s` is not officially supported, running under compatibility mode.", name)
        dialect_class = CommonDialect
    dialect = dialect_class()
    dialect.set_db(db)
    return dialect


register_dialect("common", CommonDialect)