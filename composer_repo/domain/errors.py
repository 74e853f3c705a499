"""Exceptions raised by the repository core."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for all repository errors."""


class BuilderFailure(RepositoryError):
    """The metadata builder could not produce a graph."""


class MalformedVersionRecord(RepositoryError):
    """A version record is missing a field the v2 document requires."""

    def __init__(self, package: str, field: str, version: str | None = None):
        self.package = package
        self.field = field
        self.version = version
        where = f"{package} {version}" if version else package
        super().__init__(f"Version record of {where} is missing '{field}'")


class PersistenceError(RepositoryError):
    """A unit of work could not be committed; nothing was written."""


class NotificationDeliveryError(RepositoryError):
    """An email could not be handed to the mail server."""
