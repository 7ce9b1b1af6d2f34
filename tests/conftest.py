from __future__ import annotations

import os
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.bude.db.db_models import Base


TEST_CREDENTIALS = Path(__file__).resolve().parent / "data" / "runtime_credentials.json"

os.environ.setdefault("JWT_SIGNING_KEY", "test-signing-key")
os.environ.setdefault("ADMIN_CREDENTIALS_PATH", str(TEST_CREDENTIALS))
os.environ.setdefault("ADMIN_JWT_TTL_HOURS", "168")


@pytest.fixture
def session_factory():
    # one shared connection so TestClient worker threads see the same in-memory DB
    engine = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()
