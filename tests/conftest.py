from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.database import Base, get_db
from backend.main import app
from backend.services.pdf_text import PdfDecodeError


@pytest.fixture()
def db_session() -> Generator:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Tests use an in-memory DB via dependency override; skip the Alembic head check.
    original_startup = list(app.router.on_startup)
    app.router.on_startup.clear()
    with TestClient(app) as test_client:
        yield test_client
    app.router.on_startup[:] = original_startup
    app.dependency_overrides.clear()


@pytest.fixture()
def fake_pdf_pages(monkeypatch):
    """Route uploads through canned page texts keyed by the uploaded bytes.

    Bytes with no registered pages behave like an unreadable PDF.
    """
    pages_by_content: dict[bytes, list[str]] = {}

    def fake_extract_page_texts(file_bytes: bytes) -> list[str]:
        if file_bytes not in pages_by_content:
            raise PdfDecodeError("Failed to parse PDF")
        return pages_by_content[file_bytes]

    monkeypatch.setattr("backend.services.analysis.extract_page_texts", fake_extract_page_texts)
    return pages_by_content
