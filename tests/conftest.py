# tests/conftest.py
from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Callable, Generator, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault(
    "STORAGE_ROOT", str(Path(tempfile.mkdtemp(prefix="berth-board-")) / "dbFiles")
)

from berth_board.api.v1.endpoints import posts as posts_endpoints
from berth_board.core.settings import settings
from berth_board.db.session import Base
from berth_board.db.session import get_db as app_get_session
from berth_board.main import app as fastapi_app
from berth_board.repositories.post_repo import PostRepository
from berth_board.services.attachments import AttachmentLayout, AttachmentReconciler
from berth_board.services.file_store import FileStore
from berth_board.services.locks import IdentityLocks
from berth_board.services.post_service import PostService

TEST_DB_URL = "sqlite://"
FIXED_MILLIS = 1_718_000_000_000


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so each test wipes the tables it may have touched.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def storage_root() -> Iterator[Path]:
    """Yield the configured storage root, emptied before and after each test."""
    root = settings.storage_root.resolve()
    shutil.rmtree(root, ignore_errors=True)
    root.mkdir(parents=True)
    try:
        yield root
    finally:
        shutil.rmtree(root, ignore_errors=True)


@pytest.fixture()
def layout(storage_root: Path) -> AttachmentLayout:
    return AttachmentLayout(storage_root)


@pytest.fixture()
def clock() -> Callable[[], int]:
    """A frozen millisecond clock so canonical names are predictable."""
    return lambda: FIXED_MILLIS


@pytest.fixture()
def file_store() -> FileStore:
    return FileStore()


@pytest.fixture()
def reconciler(
    layout: AttachmentLayout, file_store: FileStore, clock: Callable[[], int]
) -> AttachmentReconciler:
    return AttachmentReconciler(layout, file_store, clock=clock)


@pytest.fixture()
def post_repo(db_session: Session) -> PostRepository:
    return PostRepository(db_session)


@pytest.fixture()
def post_service(post_repo: PostRepository, reconciler: AttachmentReconciler) -> PostService:
    return PostService(post_repo, reconciler, locks=IdentityLocks())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI, layout: AttachmentLayout) -> Iterator[TestClient]:
    app.dependency_overrides[posts_endpoints.get_attachment_layout] = lambda: layout
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(posts_endpoints.get_attachment_layout, None)


@pytest.fixture()
def seed(layout: AttachmentLayout) -> Callable[[str, dict[str, bytes]], list[str]]:
    """Return a helper writing files straight into a post directory."""

    def _seed(post_id: str, files: dict[str, bytes]) -> list[str]:
        directory = layout.post_directory(post_id)
        directory.mkdir(parents=True, exist_ok=True)
        references = []
        for name, content in files.items():
            (directory / name).write_bytes(content)
            references.append(layout.reference(post_id, name))
        return references

    return _seed


@pytest.fixture()
def read_reference(layout: AttachmentLayout) -> Callable[[str], bytes]:
    """Return a helper reading the bytes stored behind a persisted reference."""
    return lambda reference: (layout.root.parent / reference).read_bytes()
