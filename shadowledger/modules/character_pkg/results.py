# shadowledger/modules/character_pkg/results.py
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from .schemas import Character

Amount = Union[int, float]


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INSUFFICIENT_RESOURCE = "insufficient_resource"
    INVALID_MODE = "invalid_mode"
    ALREADY_AT_LIMIT = "already_at_limit"
    DUPLICATE = "duplicate"
    INVALID_ARGUMENT = "invalid_argument"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    NOT_ELIGIBLE = "not_eligible"


class LedgerInvariantError(RuntimeError):
    """A snapshot broke a hard invariant. Always a bug in an operation."""


class LedgerResult(BaseModel):
    """
    Outcome of a ledger operation.

    On success `character` holds the new snapshot. On failure it is None and
    `error` carries a user-facing reason; nothing was changed.
    """
    model_config = ConfigDict(frozen=True)

    success: bool
    character: Optional[Character] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    resource: Optional[str] = None
    need: Optional[Amount] = None
    have: Optional[Amount] = None

    def __bool__(self) -> bool:
        return self.success


def format_amount(value: Amount) -> str:
    if isinstance(value, float):
        rounded = round(value, 2)
        if rounded == int(rounded):
            return str(int(rounded))
        return f"{rounded:g}"
    return str(value)


def ok(character: Character) -> LedgerResult:
    return LedgerResult(success=True, character=character)


def fail(kind: ErrorKind, message: str) -> LedgerResult:
    return LedgerResult(success=False, kind=kind, error=message)


def insufficient(resource: str, need: Amount, have: Amount) -> LedgerResult:
    """Not enough of a spendable resource, e.g. 'Not enough karma (need 13, have 4)'."""
    return LedgerResult(
        success=False,
        kind=ErrorKind.INSUFFICIENT_RESOURCE,
        error=f"Not enough {resource} (need {format_amount(need)}, have {format_amount(have)})",
        resource=resource,
        need=need,
        have=have,
    )


def not_found(what: str, name: str) -> LedgerResult:
    return fail(ErrorKind.NOT_FOUND, f"{what} '{name}' not found")


def duplicate(what: str, name: str) -> LedgerResult:
    return fail(ErrorKind.DUPLICATE, f"Already has {what} '{name}'")


def at_limit(message: str) -> LedgerResult:
    return fail(ErrorKind.ALREADY_AT_LIMIT, message)


def invalid(message: str) -> LedgerResult:
    return fail(ErrorKind.INVALID_ARGUMENT, message)
