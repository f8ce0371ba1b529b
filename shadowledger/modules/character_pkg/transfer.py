# shadowledger/modules/character_pkg/transfer.py
"""
JSON export and import of whole snapshots, for sharing characters outside
the snapshot store.
"""
import logging
from typing import Optional

from pydantic import ValidationError

from ...shared import generate_id, utc_now_iso
from ..rules_pkg.validation import invariant_violations
from .results import ErrorKind, LedgerResult, fail, ok
from .schemas import Character

logger = logging.getLogger("shadowledger.character.transfer")


def check_snapshot(character: Character) -> Optional[LedgerResult]:
    """
    Rejects a snapshot that breaks a hard invariant, such as a negative
    balance. Returns None when it is sound.
    """
    problems = invariant_violations(character)
    if not problems:
        return None
    logger.warning(f"Rejected character {character.id}: {problems}")
    return fail(ErrorKind.INVALID_ARGUMENT, f"Invalid character data: {'; '.join(problems)}")


def export_character_json(character: Character, indent: int = 2) -> str:
    return character.model_dump_json(indent=indent)


def import_character_json(text: str, keep_id: bool = False) -> LedgerResult:
    """
    Parses an exported snapshot.

    Malformed JSON, a document that does not describe a character and one
    that breaks a hard invariant all give a failed result instead of
    raising. Unless `keep_id` is set the imported character gets a new id
    so it never overwrites the one it came from.
    """
    try:
        character = Character.model_validate_json(text)
    except ValidationError as e:
        logger.warning(f"Rejected character import: {e.error_count()} validation error(s)")
        return fail(ErrorKind.INVALID_ARGUMENT, f"Invalid character data: {e.errors()[0]['msg']}")

    failure = check_snapshot(character)
    if failure:
        return failure

    if not keep_id:
        character = character.model_copy(update={"id": generate_id(), "updated_at": utc_now_iso()})
    logger.info(f"Imported character {character.id} ({character.identity.name or 'unnamed'})")
    return ok(character)
