from __future__ import annotations

import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Callable

_ASSETS = tempfile.mkdtemp(prefix="tubely-assets-")

# avant tout import de app.* : l'app module-level lit ces variables
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ASSETS_ROOT", _ASSETS)
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key")

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.features.media.urls import make_url_resolver
from app.main import create_app
from app.utils.spool import SpooledUpload
from tests.mocks.media import FakeObjectStore, FakeProber, FakeRemuxer


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_ASSETS, ignore_errors=True)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        spool_dir = tmp_path / "spool"
        spool_dir.mkdir(exist_ok=True)
        values = dict(
            ENV="test",
            LOG_LEVEL="WARNING",
            DATABASE_URL="sqlite://",
            ASSETS_ROOT=str(tmp_path / "assets"),
            TEMP_DIR=str(spool_dir),
            JWT_SECRET_KEY="test-signing-key",
            S3_BUCKET="test-bucket",
            S3_REGION="us-east-1",
            S3_KEY="test",
            S3_SECRET="test",
            S3_PUBLIC_BASE_URL="https://cdn.example.com",
            PUBLIC_BASE_URL="http://testserver",
        )
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def remuxer() -> FakeRemuxer:
    return FakeRemuxer()


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def make_client(make_settings, prober, remuxer, store):
    """Construit une app neuve (DB mémoire, cache de miniatures vide) avec les fakes injectés."""
    clients: list[TestClient] = []

    def _make(**overrides) -> TestClient:
        settings = make_settings(**overrides)
        app = create_app(settings)
        app.state.prober = prober
        app.state.remuxer = remuxer
        app.state.object_store = store
        app.state.url_resolver = make_url_resolver(settings, store)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def spooled_bytes(monkeypatch) -> list[int]:
    """Taille de chaque morceau écrit dans un spool pendant le test."""
    written: list[int] = []
    write = SpooledUpload.write

    def counting_write(self, chunk):
        written.append(len(chunk))
        return write(self, chunk)

    monkeypatch.setattr(SpooledUpload, "write", counting_write)
    return written
