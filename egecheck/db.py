"""Database engine and table setup."""

from pathlib import Path

from sqlmodel import SQLModel, create_engine

from egecheck.settings import settings


engine = create_engine(settings.sqlite_url, connect_args={"check_same_thread": False})


def create_db_and_tables() -> None:
    """Create all SQLModel tables if they do not exist."""
    import egecheck.models  # noqa: F401

    Path(settings.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
