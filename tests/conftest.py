from __future__ import annotations

import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _reset_shared_state() -> None:
    from egecheck.ai.factory import reset_grading_backends
    from egecheck.persistence import reset_stores

    reset_stores()
    reset_grading_backends()
    yield
    reset_stores()
    reset_grading_backends()


@pytest.fixture
def evaluation_payload() -> dict:
    from egecheck.ai.mock import MOCK_EVALUATION

    return copy.deepcopy(MOCK_EVALUATION)


@pytest.fixture
def sqlite_engine(tmp_path, monkeypatch):
    from sqlmodel import SQLModel, create_engine

    import egecheck.models  # noqa: F401
    from egecheck import db
    from egecheck.settings import settings

    monkeypatch.setattr(settings, "data_dir", str(tmp_path / "data"))
    monkeypatch.setattr(settings, "sqlite_path", str(tmp_path / "test.db"))
    engine = create_engine(settings.sqlite_url, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(db, "engine", engine)
    return engine
