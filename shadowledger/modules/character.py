# shadowledger/modules/character.py
"""
Adapter module for the character ledger.

A CharacterSession owns the single current snapshot. Every change goes
through `apply`, which runs one ledger operation against the current
snapshot, checks the result and swaps the snapshot in only on success.
Subscribers on the event bus are told about each swap.
"""
from typing import Any, Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from ..event_bus import (
    CHARACTER_CLEARED,
    CHARACTER_LOADED,
    CHARACTER_UPDATED,
    EventBus,
    get_event_bus,
)
from ..settings import load_settings
from .character_pkg import crud as char_crud
from .character_pkg import database as char_db
from .character_pkg import services as char_services
from .character_pkg import transfer as char_transfer
from .character_pkg.results import ErrorKind, LedgerInvariantError, LedgerResult, fail, ok
from .character_pkg.schemas import Character, CharacterSettings
from .rules_pkg.calculations import CharacterCalculations, calculate_all
from .rules_pkg.validation import ValidationIssue, invariant_violations, validate_character

logger = logging.getLogger("shadowledger.character")

Operation = Callable[..., LedgerResult]

NO_CHARACTER = "No character loaded"


def _op_name(operation: Operation) -> str:
    return getattr(operation, "__name__", repr(operation))


def settings_from_config(config: Optional[Dict[str, Any]] = None) -> CharacterSettings:
    """Builds per-character house rules from the engine settings."""
    config = config if config is not None else load_settings()
    return CharacterSettings(**{k: config[k] for k in CharacterSettings.model_fields if k in config})


class CharacterSession:
    """
    Holds the current character snapshot and serializes changes to it.
    """

    def __init__(self, character: Optional[Character] = None, bus: Optional[EventBus] = None):
        self._character = character
        self._bus = bus or get_event_bus()
        self._applying = False
        self._saved_json: Optional[str] = character.model_dump_json() if character else None

    @property
    def character(self) -> Optional[Character]:
        return self._character

    @property
    def bus(self) -> EventBus:
        return self._bus

    # --- Lifecycle ---

    def new_character(self, owner_id: str = "", build_method: str = "bp",
                      settings: Optional[CharacterSettings] = None) -> Character:
        character = char_services.new_character(
            owner_id=owner_id,
            build_method=build_method,
            settings=settings or settings_from_config(),
        )
        self._saved_json = None
        self._replace(character, CHARACTER_LOADED)
        return character

    def load(self, character: Character) -> LedgerResult:
        """
        Makes `character` the current snapshot, marked as saved. A snapshot
        that breaks a hard invariant is refused and the current one kept.
        """
        failure = char_transfer.check_snapshot(character)
        if failure:
            return failure
        self._saved_json = character.model_dump_json()
        self._replace(character, CHARACTER_LOADED)
        return ok(character)

    def clear(self) -> None:
        if self._character is None:
            return
        old_id = self._character.id
        self._character = None
        self._saved_json = None
        self._bus.publish(CHARACTER_CLEARED, old_id)
        logger.info(f"Cleared character {old_id}")

    def _replace(self, character: Character, topic: str) -> None:
        self._character = character
        self._bus.publish(topic, character)

    # --- Operations ---

    def apply(self, operation: Operation, *args, **kwargs) -> LedgerResult:
        """
        Runs `operation(current, *args, **kwargs)` and commits a successful
        result as the new current snapshot.

        Returns:
            LedgerResult: The operation's result, unchanged.

        Raises:
            RuntimeError: If called from inside another apply (e.g. by a subscriber).
            LedgerInvariantError: If the operation produced an impossible snapshot.
        """
        if self._character is None:
            logger.warning(f"Cannot run {_op_name(operation)}: {NO_CHARACTER}")
            return fail(ErrorKind.NOT_FOUND, NO_CHARACTER)
        if self._applying:
            raise RuntimeError(f"Re-entrant ledger operation {_op_name(operation)}")

        self._applying = True
        try:
            return self._run(operation, *args, **kwargs)
        finally:
            self._applying = False

    def _run(self, operation: Operation, *args, **kwargs) -> LedgerResult:
        result = operation(self._character, *args, **kwargs)
        if not result.success:
            logger.warning(f"{_op_name(operation)} failed for {self._character.id}: {result.error}")
            return result

        problems = invariant_violations(result.character)
        if problems:
            logger.error(f"{_op_name(operation)} broke invariants: {problems}")
            raise LedgerInvariantError(f"{_op_name(operation)} produced an invalid snapshot: {'; '.join(problems)}")

        # Subscribers run inside the guard, so they cannot start another apply.
        self._replace(result.character, CHARACTER_UPDATED)
        return result

    # --- Projections ---

    def calculations(self) -> Optional[CharacterCalculations]:
        if self._character is None:
            return None
        return calculate_all(self._character)

    def validate(self) -> List[ValidationIssue]:
        if self._character is None:
            return []
        return validate_character(self._character)

    # --- Dirty tracking ---

    def has_unsaved_changes(self) -> bool:
        if self._character is None:
            return False
        return self._character.model_dump_json() != self._saved_json

    def mark_saved(self) -> None:
        if self._character is not None:
            self._saved_json = self._character.model_dump_json()

    # --- Store ---

    def save(self, db: Optional[Session] = None) -> None:
        """Writes the current snapshot to the store and marks it saved."""
        if self._character is None:
            raise ValueError(NO_CHARACTER)
        own_session = db is None
        db = db or char_db.SessionLocal()
        try:
            char_crud.save_character(db, self._character)
        finally:
            if own_session:
                db.close()
        self.mark_saved()

    def open(self, character_id: str, db: Optional[Session] = None) -> bool:
        """Loads a stored character. Returns False when it is missing or refused."""
        own_session = db is None
        db = db or char_db.SessionLocal()
        try:
            character = char_crud.load_character(db, character_id)
        finally:
            if own_session:
                db.close()
        if character is None:
            return False
        return self.load(character).success

    def subscribe(self, topic: str, handler: Callable[[str, Any], None]) -> None:
        self._bus.subscribe(topic, handler)
