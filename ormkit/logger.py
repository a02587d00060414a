"""Formatting and printing of SQL and diagnostic log lines."""

from __future__ import annotations

import re
import sys
from datetime import datetime, timedelta
from typing import Any, Callable, TextIO

_NUMERIC_PLACEHOLDER = re.compile(r"\$\d+")
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def is_printable(text: str) -> bool:
    """Report whether every character of `text` is printable."""
    return text.isprintable()


def _format_duration(duration: timedelta) -> str:
    nanoseconds = ((duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds) * 1000
    hundredths = abs(nanoseconds) // 10_000
    if nanoseconds < 0:
        hundredths = -hundredths
    return f" \033[36;1m[{hundredths / 100.0:.2f}ms]\033[0m "


def _plain(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_value(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, datetime):
        return f"'{value.strftime(_TIME_FORMAT)}'"
    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).decode("utf-8", errors="replace")
        return f"'{text}'" if is_printable(text) else "'<binary>'"
    to_value = getattr(value, "value", None)
    if callable(to_value):
        try:
            result = to_value()
        except Exception:
            return "NULL"
        return "NULL" if result is None else f"'{_plain(result)}'"
    return f"'{_plain(value)}'"


def _fill_placeholders(sql: str, formatted: list[str]) -> str:
    if _NUMERIC_PLACEHOLDER.search(sql):
        for index, value in enumerate(formatted, start=1):
            pattern = re.compile(rf"\${index}([^\d]|$)")
            sql = pattern.sub(lambda match, value=value: value + match.group(1), sql)
        return sql
    parts = sql.split("?")
    pieces = []
    for index, part in enumerate(parts):
        pieces.append(part)
        if index < len(formatted):
            pieces.append(formatted[index])
    return "".join(pieces)


def format_log(*args: Any) -> list[Any]:
    """Turn raw log values into the list of message parts to print.

    The values are a level and a source, then for level "sql" a duration
    (timedelta), the statement and its bound variables; for any other level
    the remaining values are printed highlighted.
    """
    if len(args) <= 1:
        return []
    level, source = args[0], args[1]
    current_time = "\n\033[33m[" + datetime.now().strftime(_TIME_FORMAT) + "]\033[0m"
    messages: list[Any] = [f"\033[35m({source})\033[0m", current_time]

    if level == "sql":
        duration, sql, variables = args[2], args[3], args[4]
        messages.append(_format_duration(duration))
        formatted = [_format_value(value) for value in variables]
        messages.append(_fill_placeholders(sql, formatted))
    else:
        messages.append("\033[31;1m")
        messages.extend(args[2:])
        messages.append("\033[0m")
    return messages


class Logger:
    """Writes formatted log lines to a text stream (standard output by default)."""

    def __init__(
        self,
        stream: TextIO | None = None,
        formatter: Callable[..., list[Any]] = format_log,
    ) -> None:
        self.stream = stream
        self.formatter = formatter

    def print(self, *args: Any) -> None:
        """Format the values and write them as one line."""
        messages = self.formatter(*args)
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write("\r\n" + " ".join(str(message) for message in messages) + "\n")


default_logger = Logger()