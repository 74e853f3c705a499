"""
Pydantic models for the composer repository.

This module defines all data models used throughout the application, including:
- Repository configuration and settings
- Stored entities (packages, versions, users, provider index entries)
- Wire-level version records and lookup results
- Access scopes used to key the metadata cache

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Repository Configuration Models
# ---------------------------------------------------------------------------


class MailerSettings(BaseModel):
    """
    SMTP settings used for update-failure notifications.

    An empty host disables delivery; notifications then fail and are reported
    as "not sent" without touching the package state.
    """

    host: str = Field(
        default="",
        description="SMTP server host name. Empty disables outbound mail.",
    )
    port: int = Field(
        default=25,
        description="SMTP server port.",
    )
    username: Optional[str] = Field(
        default=None,
        description="Optional SMTP login user.",
    )
    password: Optional[str] = Field(
        default=None,
        description="Optional SMTP login password.",
    )
    use_tls: bool = Field(
        default=False,
        description="Upgrade the connection with STARTTLS before sending.",
    )
    sender: str = Field(
        default="composer-repo@localhost",
        description="From address of outgoing notifications.",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Socket timeout for the SMTP connection.",
    )


class RepositoryConfig(BaseModel):
    """
    Top-level configuration for the composer repository.

    Persisted at: <DATA_DIR>/repository.json
    """

    site_name: str = Field(
        default="Private composer repository",
        description="Human-friendly name used in notification mails.",
    )
    base_url: str = Field(
        default="http://localhost:8000",
        description="Public URL of the repository, used to build absolute links in mails.",
    )
    cache_ttl_seconds: int = Field(
        default=3600,
        ge=1,
        description="Lifetime of a cached metadata graph per access scope.",
    )
    cache_key_prefix: str = Field(
        default="pkg_user_cache_",
        description="Prefix of the cache keys holding the metadata graph; the scope id is appended.",
    )
    redis_url: str = Field(
        default="",
        description="Redis connection URL for the metadata cache. Empty uses an in-process store.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level.",
    )
    mailer: MailerSettings = Field(
        default_factory=MailerSettings,
        description="SMTP settings for outgoing notifications.",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Timestamp when this repository configuration was first created.",
    )


# ---------------------------------------------------------------------------
# Stored Entities
# ---------------------------------------------------------------------------


class User(BaseModel):
    """
    A repository user.

    Maintainers are users listed on a package; users with the maintainer role
    see the full metadata graph, everybody else only the packages matching
    one of their ``packages`` patterns.
    """

    id: int = Field(
        description="Stable numeric identifier, never 0 (0 is the anonymous scope).",
    )
    username: str
    email: Optional[str] = None
    roles: List[str] = Field(
        default_factory=list,
        description="Granted roles, e.g. 'ROLE_MAINTAINER'.",
    )
    failure_notifications: bool = Field(
        default=True,
        description="Opt-in for update-failure notification mails.",
    )
    packages: List[str] = Field(
        default_factory=list,
        description="Shell-style patterns of package names this user may read.",
    )


class Package(BaseModel):
    """
    A package as stored in the repository.

    ``vcs_driver`` and ``vcs_driver_error`` are runtime-only values filled by
    repository URL resolution and never persisted.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: int
    name: Optional[str] = None
    repository: Optional[str] = Field(
        default=None,
        description="VCS repository URL the package is read from.",
    )
    credentials: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Opaque credentials handed to the VCS driver factory.",
    )
    maintainer_ids: List[int] = Field(default_factory=list)
    update_failure_notified: bool = False
    created_at: datetime = Field(default_factory=_utcnow)

    vcs_driver: Optional[Any] = Field(default=None, exclude=True)
    vcs_driver_error: Optional[str] = Field(default=None, exclude=True)


class Version(BaseModel):
    """
    A single released version of a package.

    ``extra`` holds the remaining composer.json derived fields (require,
    autoload, dist, source, ...) which are passed through to clients verbatim.
    """

    id: int
    package_id: int
    version: str
    version_normalized: str
    version_normalized_v2: Optional[str] = None
    time: str = Field(
        description="Release time as an ISO-8601 string.",
    )
    extra: Dict[str, Any] = Field(default_factory=dict)


class ProviderEntry(BaseModel):
    """
    Provider index entry tracking when a package's metadata last changed.
    """

    package_name: str
    last_modified: datetime = Field(default_factory=_utcnow)


class StoreState(BaseModel):
    """
    Everything persisted by the JSON store.

    Persisted at: <DATA_DIR>/store.json
    """

    users: Dict[int, User] = Field(default_factory=dict)
    packages: Dict[int, Package] = Field(default_factory=dict)
    versions: Dict[int, Version] = Field(default_factory=dict)
    providers: Dict[str, ProviderEntry] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Protocol Models
# ---------------------------------------------------------------------------


class VersionRecord(BaseModel):
    """
    One entry of a package's version list as served to clients.

    Only the fields the protocol views rely on are typed; any other
    composer metadata is accepted as an extra field and left untouched.
    """

    model_config = ConfigDict(extra="allow")

    version: str
    version_normalized: str
    version_normalized_v2: Optional[str] = None
    time: str


class MetadataGraph(NamedTuple):
    """The ``(root, providers, packages)`` tuple produced by the metadata builder."""

    root: Dict[str, Any]
    providers: Dict[str, Any]
    packages: Dict[str, Any]


class AccessScope(BaseModel):
    """
    Effective viewing identity after authorization.

    Privileged users are folded into the anonymous scope (id 0) because both
    read the unfiltered graph.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int = 0

    @classmethod
    def resolve(cls, user: Optional[User], is_privileged: bool) -> "AccessScope":
        if user is None or is_privileged:
            return cls()
        return cls(user_id=user.id)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == 0


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_MODIFIED = "not_modified"
    ABSENT = "absent"


class Lookup(BaseModel):
    """
    Result of a provider or package lookup.

    Falsy unless a document was found, so ``if not lookup`` reads like the
    boolean "not modified" contract older callers expect.
    """

    status: LookupStatus
    document: Optional[Dict[str, Any]] = None

    @classmethod
    def found(cls, document: Dict[str, Any]) -> "Lookup":
        return cls(status=LookupStatus.FOUND, document=document)

    @classmethod
    def not_modified(cls) -> "Lookup":
        return cls(status=LookupStatus.NOT_MODIFIED)

    @classmethod
    def absent(cls) -> "Lookup":
        return cls(status=LookupStatus.ABSENT)

    def __bool__(self) -> bool:
        return self.status is LookupStatus.FOUND
