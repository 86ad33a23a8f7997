import os
import tempfile
from pathlib import Path

import pytest

# Set env vars BEFORE any imports that might cache them
_TMP_DIR = Path(tempfile.mkdtemp(prefix="contact-book-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'contacts.db'}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from contact_book.models import Base  # noqa: E402
from contact_book.storage import SessionLocal, engine  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from contact_book.main import app

    with TestClient(app) as c:
        yield c
