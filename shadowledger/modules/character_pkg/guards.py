# shadowledger/modules/character_pkg/guards.py
"""
Checks and small snapshot helpers shared by every ledger operation module.

Each `check_*` helper returns None when the operation may proceed, or the
failed LedgerResult to hand straight back to the caller.
"""
from typing import Optional, Sequence, Tuple, TypeVar

from ...shared import generate_id, utc_now_iso
from .results import LedgerResult, ErrorKind, fail, insufficient
from .schemas import BuildPointAllocation, Character, ExpenseEntry

T = TypeVar("T")

CAREER_MODE_REQUIRED = "This action requires career mode"
CREATION_MODE_REQUIRED = "This action is only available during creation, not in career mode"


def check_creation(character: Character) -> Optional[LedgerResult]:
    if character.is_career:
        return fail(ErrorKind.INVALID_MODE, CREATION_MODE_REQUIRED)
    return None


def check_career(character: Character) -> Optional[LedgerResult]:
    if not character.is_career:
        return fail(ErrorKind.INVALID_MODE, CAREER_MODE_REQUIRED)
    return None


def check_nuyen(character: Character, cost: int) -> Optional[LedgerResult]:
    if cost > character.nuyen:
        return insufficient("nuyen", cost, character.nuyen)
    return None


def check_karma(character: Character, cost: int) -> Optional[LedgerResult]:
    if cost > character.karma:
        return insufficient("karma", cost, character.karma)
    return None


def check_positive(amount: int, what: str) -> Optional[LedgerResult]:
    if amount <= 0:
        return fail(ErrorKind.INVALID_ARGUMENT, f"{what} must be positive (got {amount})")
    return None


def charge_bp(character: Character, **deltas: int) -> Tuple[Optional[LedgerResult], BuildPointAllocation]:
    """
    Applies per-category BP deltas and checks the build point ceiling.

    The ceiling is only enforced when total spending goes up, so refunds
    always succeed. `ignore_rules` in the character settings lifts it.

    Returns:
        Tuple: (failure or None, updated allocation)
    """
    spent = character.build_points_spent
    changes = {category: getattr(spent, category) + delta for category, delta in deltas.items()}
    updated = spent.model_copy(update=changes)

    increase = updated.total() - spent.total()
    if increase > 0 and not character.settings.ignore_rules:
        if updated.total() > character.build_points:
            return insufficient("BP", increase, character.build_points - spent.total()), spent
    return None, updated


def touch(character: Character, **changes) -> Character:
    """Returns a new snapshot with `changes` applied and `updated_at` bumped."""
    changes["updated_at"] = utc_now_iso()
    return character.model_copy(update=changes)


def expense(entry_type: str, amount: int, reason: str) -> ExpenseEntry:
    return ExpenseEntry(
        id=generate_id(),
        date=utc_now_iso(),
        type=entry_type,
        amount=amount,
        reason=reason,
    )


def find_by_id(items: Sequence[T], item_id: str) -> Optional[T]:
    for item in items:
        if getattr(item, "id", None) == item_id:
            return item
    return None


def find_by_name(items: Sequence[T], name: str) -> Optional[T]:
    for item in items:
        if getattr(item, "name", None) == name:
            return item
    return None


def replace_by_id(items: Sequence[T], item_id: str, new_item: T) -> Tuple[T, ...]:
    return tuple(new_item if getattr(item, "id", None) == item_id else item for item in items)


def without_id(items: Sequence[T], item_id: str) -> Tuple[T, ...]:
    return tuple(item for item in items if getattr(item, "id", None) != item_id)
