# shadowledger/modules/character_pkg/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ...settings import load_settings

DATABASE_URL = load_settings()["database_url"]


def make_engine(url: str):
    # check_same_thread lets a session created on one thread be used from another.
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


engine = make_engine(DATABASE_URL)

# Callers open one of these per unit of work and close it afterwards.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base is the class our database models will inherit from.
Base = declarative_base()


def init_db(bind=None) -> None:
    """Creates the snapshot tables if they do not exist yet."""
    from . import models  # noqa: F401  registers the tables on Base
    Base.metadata.create_all(bind=bind or engine)
