# shadowledger/modules/character_pkg/models.py
from sqlalchemy import Column, String, JSON
from .database import Base


class CharacterRecord(Base):
    """
    One stored snapshot. The full character lives in `data`; the other
    columns are copies used for listing and filtering.
    """
    __tablename__ = "characters"

    id = Column(String, primary_key=True, index=True)
    owner_id = Column(String, index=True, default="")
    name = Column(String, index=True, default="")
    alias = Column(String, default="")
    metatype = Column(String, default="")
    status = Column(String, default="creation")

    data = Column(JSON, nullable=False)

    created_at = Column(String, default="")
    updated_at = Column(String, default="")
