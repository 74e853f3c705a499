"""
Shared pytest fixtures for the composer repository test suite.

Provides fixtures for:
- A JSON store seeded with users, packages and versions
- Stub metadata builders that count their calls
- Recording and failing mailers
- A fully wired package manager
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from composer_repo.core.events import EventDispatcher
from composer_repo.domain.errors import NotificationDeliveryError
from composer_repo.domain.models import (
    AccessScope,
    MetadataGraph,
    Package,
    ProviderEntry,
    RepositoryConfig,
    User,
    Version,
)
from composer_repo.services.authorization import AuthorizationChecker, ROLE_MAINTAINER
from composer_repo.services.dumper import InMemoryDumper
from composer_repo.services.metadata_cache import MetadataCache
from composer_repo.services.package_manager import PackageManager
from composer_repo.services.provider_manager import ProviderManager
from composer_repo.storage.cache_store import MemoryCacheStore
from composer_repo.storage.json_db_manager import JsonDatabaseManager


class StubBuilder:
    """Metadata builder returning canned documents and counting calls."""

    def __init__(self, graph: MetadataGraph, package_documents: Optional[Dict[str, Any]] = None):
        self.graph = graph
        self.package_documents = package_documents or {}
        self.dump_calls: List[AccessScope] = []
        self.dump_package_calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def dump(self, scope: AccessScope) -> MetadataGraph:
        self.dump_calls.append(scope)
        if self.error is not None:
            raise self.error
        return self.graph

    def dump_package(self, scope: AccessScope, name: str) -> Dict[str, Any]:
        self.dump_package_calls.append((scope, name))
        return self.package_documents.get(name, {"packages": {}})


class RecordingMailer:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def send(self, recipients: List[str], subject: str, html_body: str) -> None:
        self.sent.append({"recipients": recipients, "subject": subject, "body": html_body})


class FailingMailer:
    def __init__(self):
        self.attempts = 0

    def send(self, recipients: List[str], subject: str, html_body: str) -> None:
        self.attempts += 1
        raise NotificationDeliveryError("connection refused")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_version(
    version_id: int,
    package_id: int,
    version: str,
    normalized: str,
    time: str,
    normalized_v2: Optional[str] = None,
    **extra: Any,
) -> Version:
    return Version(
        id=version_id,
        package_id=package_id,
        version=version,
        version_normalized=normalized,
        version_normalized_v2=normalized_v2,
        time=time,
        extra=extra,
    )


def seed_store(db: JsonDatabaseManager) -> None:
    maintainer = User(
        id=1,
        username="alice",
        email="alice@example.com",
        roles=[ROLE_MAINTAINER],
    )
    customer = User(id=2, username="bob", email="bob@example.com", packages=["acme/*"])
    silent = User(id=3, username="carol", email="carol@example.com", failure_notifications=False)
    for user in (maintainer, customer, silent):
        db.persist(user)

    db.persist(Package(id=1, name="acme/foo", repository="https://git.example.com/acme/foo.git", maintainer_ids=[1, 3]))
    db.persist(Package(id=2, name="acme/bar", repository="https://git.example.com/acme/bar.git", maintainer_ids=[1]))
    db.persist(Package(id=3, name="other/baz", repository="https://git.example.com/other/baz.git"))

    license_mit = {"license": ["MIT"], "type": "library"}
    for version in (
        make_version(1, 1, "1.0.0", "1.0.0.0", "2023-01-01T00:00:00+00:00", **license_mit),
        make_version(2, 1, "2.0.0", "2.0.0.0", "2023-06-01T00:00:00+00:00", **license_mit),
        make_version(3, 1, "1.5.0", "1.5.0.0", "2023-03-01T00:00:00+00:00", **license_mit),
        make_version(4, 1, "dev-master", "9999999-dev", "2023-07-01T00:00:00+00:00", "dev-master", **license_mit),
        make_version(5, 1, "2.1.0-beta1", "2.1.0.0-beta1", "2023-06-15T00:00:00+00:00", license=["MIT"]),
        make_version(6, 2, "0.1.0", "0.1.0.0", "2022-01-01T00:00:00+00:00"),
        make_version(7, 3, "3.0.0", "3.0.0.0", "2021-01-01T00:00:00+00:00"),
    ):
        db.persist(version)

    for name in ("acme/foo", "acme/bar", "other/baz"):
        db.persist(ProviderEntry(package_name=name))

    db.flush()


@pytest.fixture
def db(tmp_path: Path) -> JsonDatabaseManager:
    """JSON store in a temporary directory, seeded with sample data."""
    manager = JsonDatabaseManager(tmp_path / "data")
    manager.initialize()
    seed_store(manager)
    return manager


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def dumper(db: JsonDatabaseManager) -> InMemoryDumper:
    return InMemoryDumper(db)


@pytest.fixture
def metadata_cache(dumper: InMemoryDumper, cache_store: MemoryCacheStore) -> MetadataCache:
    return MetadataCache(dumper, cache_store)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


def build_manager(
    db: JsonDatabaseManager,
    metadata_cache: MetadataCache,
    mailer: Any,
    dispatcher: Optional[EventDispatcher] = None,
    repository_factory: Any = None,
) -> PackageManager:
    return PackageManager(
        db,
        metadata_cache,
        metadata_cache.builder,
        AuthorizationChecker(),
        ProviderManager(db),
        dispatcher or EventDispatcher(),
        mailer,
        repository_factory=repository_factory,
        config=RepositoryConfig(base_url="https://repo.example.com"),
    )


@pytest.fixture
def manager(
    db: JsonDatabaseManager,
    metadata_cache: MetadataCache,
    mailer: RecordingMailer,
    dispatcher: EventDispatcher,
) -> PackageManager:
    """Package manager over the seeded store and the real dumper."""
    return build_manager(db, metadata_cache, mailer, dispatcher)
