"""SQL dialects, hstore values, callback ordering, errors and query log formatting for an object-relational mapper."""

__version__ = "0.1.0"

__all__ = ["errors", "callbacks", "logger", "dialect", "mysql", "postgres", "sqlite3", "mssql"]