# crud.py
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from . import models
from .schemas import Character, CharacterSummary
from ...shared import generate_id, utc_now_iso
from typing import List, Optional
import logging

logger = logging.getLogger("shadowledger.character.crud")


def _copy_columns(record: models.CharacterRecord, character: Character) -> None:
    record.owner_id = character.owner_id
    record.name = character.identity.name
    record.alias = character.identity.alias
    record.metatype = character.identity.metatype
    record.status = character.status.value
    record.created_at = character.created_at
    record.updated_at = character.updated_at
    record.data = character.model_dump(mode="json")
    flag_modified(record, "data")


def get_record(db: Session, character_id: str) -> Optional[models.CharacterRecord]:
    return db.query(models.CharacterRecord).filter(models.CharacterRecord.id == character_id).first()


def save_character(db: Session, character: Character) -> models.CharacterRecord:
    """
    Inserts or replaces the stored snapshot for `character.id`.

    Args:
        db (Session): The database session.
        character (Character): The snapshot to store.

    Returns:
        models.CharacterRecord: The stored row.
    """
    record = get_record(db, character.id)
    if record is None:
        record = models.CharacterRecord(id=character.id)
        db.add(record)
        logger.info(f"Creating stored snapshot for character {character.id}")
    _copy_columns(record, character)
    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to save character {character.id}: {e}")
        raise
    db.refresh(record)
    return record


def load_character(db: Session, character_id: str) -> Optional[Character]:
    """
    Returns the stored snapshot, or None when no row exists.
    """
    record = get_record(db, character_id)
    if record is None:
        logger.warning(f"Character {character_id} not found in store")
        return None
    return Character.model_validate(record.data)


def list_characters(db: Session, owner_id: Optional[str] = None) -> List[CharacterSummary]:
    """Summaries of stored characters, most recently updated first."""
    query = db.query(models.CharacterRecord)
    if owner_id is not None:
        query = query.filter(models.CharacterRecord.owner_id == owner_id)
    records = query.order_by(models.CharacterRecord.updated_at.desc()).all()
    return [CharacterSummary.model_validate(r) for r in records]


def delete_character(db: Session, character_id: str) -> bool:
    record = get_record(db, character_id)
    if record is None:
        return False
    try:
        db.delete(record)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to delete character {character_id}: {e}")
        raise
    logger.info(f"Deleted character {character_id}")
    return True


def duplicate_character(db: Session, character_id: str, new_name: Optional[str] = None) -> Optional[Character]:
    """
    Stores a copy of a character under a fresh id.

    The copy keeps every field except id and timestamps; its name defaults
    to "<name> (Copy)".
    """
    original = load_character(db, character_id)
    if original is None:
        return None
    now = utc_now_iso()
    name = new_name if new_name is not None else f"{original.identity.name} (Copy)"
    copy = original.model_copy(update={
        "id": generate_id(),
        "identity": original.identity.model_copy(update={"name": name}),
        "created_at": now,
        "updated_at": now,
    })
    save_character(db, copy)
    logger.info(f"Duplicated character {character_id} as {copy.id}")
    return copy
