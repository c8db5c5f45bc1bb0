import os

# Settings are read at import time; keep the app's own engine in memory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DUPLICATE_CACHE_BACKEND", "memory")

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import main
from api.attendance.attendance_schema import AttendanceCreate, AttendanceOut
from api.passes.pass_repository import PassRepository, SqlPassRepository
from api.passes.passes_model import Pass
from api.passes.passes_schema import PassDocument
from api.scans.scans_schema import ScanCreate, ScanEntry
from config.database import Base, build_engine
from utils.cache_utils import DuplicateCache
from utils.deps import get_cache, get_pass_repository


@pytest.fixture()
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'passgate_test.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def repository(session_factory):
    return SqlPassRepository(session_factory)


@pytest.fixture()
def cache():
    return DuplicateCache()


@pytest.fixture()
def use_repository():
    """Swap the repository the app resolves, e.g. for failure injection."""
    def _use(repo):
        main.app.dependency_overrides[get_pass_repository] = lambda: repo
        return repo
    return _use


@pytest.fixture()
def client(repository, cache):
    main.app.dependency_overrides[get_pass_repository] = lambda: repository
    main.app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture()
def add_pass(session_factory):
    def _add(doc_id: str, **fields) -> str:
        db = session_factory()
        try:
            db.add(Pass(id=doc_id, **fields))
            db.commit()
        finally:
            db.close()
        return doc_id
    return _add


class ExplodingRepository(PassRepository):
    """Fails the test if anything reaches the store"""

    async def get_pass(self, doc_id: str) -> Optional[PassDocument]:
        raise AssertionError("store accessed: get_pass")

    async def find_pass_by_field(self, pass_id: str) -> Optional[PassDocument]:
        raise AssertionError("store accessed: find_pass_by_field")

    async def update_pass(self, doc_id: str, changes: Dict[str, Any]) -> bool:
        raise AssertionError("store accessed: update_pass")

    async def first_valid_scan(self, pass_id: str) -> Optional[ScanEntry]:
        raise AssertionError("store accessed: first_valid_scan")

    async def append_scan(self, scan: ScanCreate) -> ScanEntry:
        raise AssertionError("store accessed: append_scan")

    async def list_scans(self, pass_id: str) -> List[ScanEntry]:
        raise AssertionError("store accessed: list_scans")

    async def add_attendance_if_absent(self, record: AttendanceCreate) -> bool:
        raise AssertionError("store accessed: add_attendance_if_absent")

    async def list_attendance(self, event_id=None, pass_id=None, attendance_date=None) -> List[AttendanceOut]:
        raise AssertionError("store accessed: list_attendance")

    async def ping(self) -> bool:
        raise AssertionError("store accessed: ping")


@pytest.fixture()
def exploding_repository():
    return ExplodingRepository()
