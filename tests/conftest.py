# tests/conftest.py
"""Shared fixtures for clipfeed tests."""

import pytest
from fastapi.testclient import TestClient

from clipfeed.config import settings
from clipfeed.ingestion.uploads import UploadPipeline
from clipfeed.storage.sqlite import SQLiteVideoRepository


class ZeroStream:
    """File-like object yielding ``size`` zero bytes without holding them in memory."""

    def __init__(self, size: int) -> None:
        self.remaining = size

    def read(self, n: int = -1) -> bytes:
        n = self.remaining if n < 0 else min(n, self.remaining)
        self.remaining -= n
        return b"\0" * n


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point the settings singleton at a throwaway data directory."""
    data_dir = tmp_path / "data"
    monkeypatch.setattr(settings, "data_dir", data_dir)
    settings.ensure_dirs()
    return data_dir


@pytest.fixture
def uploads_dir(isolated_data_dir):
    return settings.uploads_dir


@pytest.fixture
def sqlite_repo():
    """SQLiteVideoRepository backed by in-memory database."""
    repo = SQLiteVideoRepository(":memory:")
    yield repo
    repo.close()


@pytest.fixture
def seeded_repo(sqlite_repo):
    """Repository holding seven videos with ids 1..7."""
    for i in range(1, 8):
        sqlite_repo.insert(f"Clip {i}", f"clip_{i}.mp4")
    return sqlite_repo


@pytest.fixture
def pipeline(sqlite_repo, uploads_dir):
    """UploadPipeline with a small chunk size so cutoffs are exercised."""
    return UploadPipeline(sqlite_repo, uploads_dir=uploads_dir, chunk_size=1024)


@pytest.fixture
def service(sqlite_repo, pipeline):
    """Fully wired ClipFeedService on in-memory storage."""
    from clipfeed.service import ClipFeedService

    return ClipFeedService(repository=sqlite_repo, uploads=pipeline)


@pytest.fixture
def client(service):
    """TestClient over the HTTP API."""
    from clipfeed.api import create_app

    with TestClient(create_app(service)) as test_client:
        yield test_client


@pytest.fixture
def clip_file(tmp_path):
    """A small local MP4 file."""
    path = tmp_path / "My Holiday Clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42fake-mp4-data")
    return path


def stored_files(directory) -> list[str]:
    """Names of every file (including hidden partials) in the uploads directory."""
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir())


@pytest.fixture
def small_client(sqlite_repo, uploads_dir):
    """TestClient over an API whose upload ceiling is 1 KiB."""
    from clipfeed.api import create_app
    from clipfeed.service import ClipFeedService

    pipeline = UploadPipeline(sqlite_repo, uploads_dir=uploads_dir, max_bytes=1024, chunk_size=256)
    service = ClipFeedService(repository=sqlite_repo, uploads=pipeline)
    with TestClient(create_app(service)) as test_client:
        yield test_client
