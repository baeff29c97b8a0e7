"""
Pytest fixtures and configuration for Nexus Library tests
"""
import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from nexuslib.app import create_app
from nexuslib.candidates import CandidateGame, GameStatus, Mechanism
from nexuslib.constants import DEFAULT_SETTINGS
from nexuslib.db import db
from nexuslib.exceptions import MetadataServiceException
from nexuslib.metadata_cache import MetadataCache
from nexuslib.metadata_service import MetadataResolver
from nexuslib.scanner import ScannerService


class FakeClock:
    """Injectable clock; advance() moves it forward without sleeping"""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeCatalogClient:
    """Stands in for IGDBClient: canned id and search results"""

    def __init__(self, by_id=None, search_results=None, error=None):
        self.by_id = by_id or {}
        self.search_results = search_results or {}
        self.error = error
        self.searches = []
        self.lookups = []

    def get_by_id(self, igdb_id):
        self.lookups.append(igdb_id)
        if self.error:
            raise MetadataServiceException(self.error, service="igdb")
        return self.by_id.get(igdb_id)

    def search(self, title):
        self.searches.append(title)
        if self.error:
            raise MetadataServiceException(self.error, service="igdb")
        return self.search_results.get(title)


class FakeStorefront:
    """Stands in for SteamStoreClient"""

    def __init__(self, details=None, error=None):
        self.details = details or {}
        self.error = error

    @staticmethod
    def cover_url(appid):
        return f"https://cdn.test/{appid}/cover.jpg"

    @staticmethod
    def hero_url(appid):
        return f"https://cdn.test/{appid}/hero.jpg"

    def get_app_details(self, appid):
        if self.error:
            raise MetadataServiceException(self.error, service="steam")
        return self.details.get(str(appid))


class StubAdapter:
    """Source adapter returning a fixed candidate list"""

    def __init__(self, mechanism, candidates=None, fail=False):
        self.mechanism = mechanism
        self.candidates = list(candidates or [])
        self.fail = fail
        self.failed = False
        self.calls = 0

    def scan(self):
        self.calls += 1
        self.failed = self.fail
        if self.fail:
            return []
        return list(self.candidates)


def build_candidate(title, mechanism=Mechanism.STEAM, app_id=None, status=GameStatus.READY, **kwargs):
    return CandidateGame(
        title=title,
        mechanism=mechanism,
        app_id=app_id,
        install_path=kwargs.pop("install_path", f"/games/{title}"),
        status=status,
        **kwargs,
    )


@pytest.fixture
def make_candidate():
    """Factory for CandidateGame objects"""
    return build_candidate


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Default settings, isolated per test"""
    return copy.deepcopy(DEFAULT_SETTINGS)


@pytest.fixture
def resolver(clock):
    """Resolver with no network clients: fallback table and defaults only"""
    return MetadataResolver(cache=MetadataCache(clock=clock), clock=clock)


@pytest.fixture
def scanner(settings, resolver):
    """Scanner with no adapters; tests assign `scanner.adapters` as needed"""
    return ScannerService(adapters={}, resolver=resolver, settings=settings)


@pytest.fixture
def app(settings, scanner):
    """Application bound to an in-memory database"""
    _app = create_app(
        config_overrides={"SQLALCHEMY_DATABASE_URI": "sqlite://", "TESTING": True},
        settings=settings,
        scanner=scanner,
    )
    yield _app
    with _app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """Active application context for repository-level tests"""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def mock_session():
    """requests.Session double for the HTTP clients"""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point the settings module at a throwaway YAML file"""
    from nexuslib import settings as settings_module

    path = tmp_path / "settings.yaml"
    monkeypatch.setattr(settings_module, "CONFIG_FILE", str(path))
    monkeypatch.setattr(settings_module, "_cached_settings", None)
    monkeypatch.delenv("IGDB_CLIENT_ID", raising=False)
    monkeypatch.delenv("IGDB_CLIENT_SECRET", raising=False)
    return path
