"""Error types raised by the ORM and a collection type for several errors."""

from __future__ import annotations

from typing import Iterable, Iterator


class OrmError(Exception):
    """Base class of every error the ORM raises itself."""

    default_message = "orm error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class RecordNotFoundError(OrmError):
    """No matching record was found when looking up a single value."""

    default_message = "record not found"


class InvalidSQLError(OrmError):
    """The SQL that was passed in is not valid."""

    default_message = "invalid SQL"


class InvalidTransactionError(OrmError):
    """Commit or rollback was requested without a valid transaction."""

    default_message = "no valid transaction"


class CantStartTransactionError(OrmError):
    """A transaction could not be started."""

    default_message = "can't start transaction"


class UnaddressableError(OrmError):
    """A value that cannot be written to was used as a destination."""

    default_message = "using unaddressable value"


class Errors(Exception):
    """An ordered, duplicate-free collection of errors, itself raisable."""

    def __init__(self, errors: Iterable[BaseException] = ()) -> None:
        self._errors: tuple[BaseException, ...] = tuple(errors)
        super().__init__(*self._errors)

    def get_errors(self) -> list[BaseException]:
        """Return every collected error in order."""
        return list(self._errors)

    def add(self, *args: BaseException) -> Errors:
        """Return a new collection with the given errors appended.

        Nested collections are flattened; an error already present (the
        same object) is not added a second time.
        """
        collected = list(self._errors)
        self._extend(collected, args)
        return Errors(collected)

    @classmethod
    def _extend(cls, collected: list[BaseException], new_errors: Iterable[BaseException]) -> None:
        for error in new_errors:
            if isinstance(error, Errors):
                cls._extend(collected, error._errors)
            elif not any(error is existing for existing in collected):
                collected.append(error)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __str__(self) -> str:
        return "; ".join(str(error) for error in self._errors)