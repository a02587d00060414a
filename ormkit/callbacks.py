"""Ordered registry of create, update, delete and query callbacks."""

from __future__ import annotations

import logging
from typing import Any, Callable

_log = logging.getLogger(__name__)

ScopeCallback = Callable[[Any], None]

ROW_QUERY_CALLBACK = "ormkit:row_query"


class CallbackProcessor:
    """Describes one callback registration and where it goes in the order."""

    def __init__(self, kind: str, parent: Callback) -> None:
        self.name = ""
        self.before_name = ""
        self.after_name = ""
        self.is_replace = False
        self.is_remove = False
        self.kind = kind
        self.processor: ScopeCallback | None = None
        self.parent = parent

    def after(self, callback_name: str) -> CallbackProcessor:
        """Place the new callback after `callback_name`."""
        self.after_name = callback_name
        return self

    def before(self, callback_name: str) -> CallbackProcessor:
        """Place the new callback before `callback_name`."""
        self.before_name = callback_name
        return self

    def register(self, callback_name: str, callback: ScopeCallback) -> None:
        """Register a new callback under `callback_name`."""
        if self.kind == "row_query":
            if not self.before_name and not self.after_name and callback_name != ROW_QUERY_CALLBACK:
                _log.info(
                    "registering row query callback %s without an order, "
                    "placing it before %s",
                    callback_name,
                    ROW_QUERY_CALLBACK,
                )
                self.before_name = ROW_QUERY_CALLBACK
        self.name = callback_name
        self.processor = callback
        self.parent._add(self)

    def remove(self, callback_name: str) -> None:
        """Remove the callback registered under `callback_name`."""
        _log.info("removing callback `%s`", callback_name)
        self.name = callback_name
        self.is_remove = True
        self.parent._add(self)

    def replace(self, callback_name: str, callback: ScopeCallback) -> None:
        """Replace the callback registered under `callback_name`."""
        _log.info("replacing callback `%s`", callback_name)
        self.name = callback_name
        self.processor = callback
        self.is_replace = True
        self.parent._add(self)

    def get(self, callback_name: str) -> ScopeCallback | None:
        """Return the first callback registered under this name and kind."""
        for processor in self.parent.processors:
            if processor.name == callback_name and processor.kind == self.kind and not self.is_remove:
                return processor.processor
        return None


def _rindex(names: list[str], name: str) -> int:
    for index in range(len(names) - 1, -1, -1):
        if names[index] == name:
            return index
    return -1


def sort_processors(processors: list[CallbackProcessor]) -> list[ScopeCallback]:
    """Order processors by their before/after hints, applying replaces and removals."""
    all_names: list[str] = []
    sorted_names: list[str] = []

    for cp in processors:
        if _rindex(all_names, cp.name) > -1 and not cp.is_replace and not cp.is_remove:
            _log.warning("duplicated callback `%s`", cp.name)
        all_names.append(cp.name)

    def place(c: CallbackProcessor) -> None:
        if _rindex(sorted_names, c.name) != -1:
            return
        if c.before_name:
            index = _rindex(sorted_names, c.before_name)
            if index != -1:
                sorted_names.insert(index, c.name)
            else:
                index = _rindex(all_names, c.before_name)
                if index != -1:
                    sorted_names.append(c.name)
                    place(processors[index])

        if c.after_name:
            index = _rindex(sorted_names, c.after_name)
            if index != -1:
                sorted_names.insert(index + 1, c.name)
            else:
                index = _rindex(all_names, c.after_name)
                if index != -1:
                    target = processors[index]
                    if not target.before_name:
                        target.before_name = c.name
                    place(target)

        if _rindex(sorted_names, c.name) == -1:
            sorted_names.append(c.name)

    for cp in processors:
        place(cp)

    result: list[ScopeCallback] = []
    for name in sorted_names:
        chosen = processors[_rindex(all_names, name)]
        if not chosen.is_remove:
            result.append(chosen.processor)
    return result


class Callback:
    """Holds all registered callbacks, kept sorted per operation kind."""

    def __init__(self) -> None:
        self.creates: list[ScopeCallback] = []
        self.updates: list[ScopeCallback] = []
        self.deletes: list[ScopeCallback] = []
        self.queries: list[ScopeCallback] = []
        self.row_queries: list[ScopeCallback] = []
        self.processors: list[CallbackProcessor] = []

    def clone(self) -> Callback:
        """Return a copy that can be changed without touching this one."""
        copy = Callback()
        copy.creates = list(self.creates)
        copy.updates = list(self.updates)
        copy.deletes = list(self.deletes)
        copy.queries = list(self.queries)
        copy.row_queries = list(self.row_queries)
        copy.processors = list(self.processors)
        return copy

    def create(self) -> CallbackProcessor:
        """Start registering a callback run when creating."""
        return CallbackProcessor("create", self)

    def update(self) -> CallbackProcessor:
        """Start registering a callback run when updating."""
        return CallbackProcessor("update", self)

    def delete(self) -> CallbackProcessor:
        """Start registering a callback run when deleting."""
        return CallbackProcessor("delete", self)

    def query(self) -> CallbackProcessor:
        """Start registering a callback run by query methods."""
        return CallbackProcessor("query", self)

    def row_query(self) -> CallbackProcessor:
        """Start registering a callback run by row queries."""
        return CallbackProcessor("row_query", self)

    def _add(self, processor: CallbackProcessor) -> None:
        self.processors.append(processor)
        self._reorder()

    def _reorder(self) -> None:
        grouped: dict[str, list[CallbackProcessor]] = {
            kind: [] for kind in ("create", "update", "delete", "query", "row_query")
        }
        for processor in self.processors:
            if processor.name and processor.kind in grouped:
                grouped[processor.kind].append(processor)
        self.creates = sort_processors(grouped["create"])
        self.updates = sort_processors(grouped["update"])
        self.deletes = sort_processors(grouped["delete"])
        self.queries = sort_processors(grouped["query"])
        self.row_queries = sort_processors(grouped["row_query"])


default_callback = Callback()