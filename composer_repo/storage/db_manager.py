from abc import ABC, abstractmethod
from typing import List, Optional, Union

from composer_repo.domain.models import (
    Package,
    ProviderEntry,
    User,
    Version,
)

Entity = Union[Package, Version, User, ProviderEntry]


class DatabaseManager(ABC):
    """
    Abstract base class for storage/database management.

    Writes go through a unit of work: ``persist`` and ``remove`` only stage
    changes, ``flush`` commits everything staged so far as a single unit or
    raises without applying any of it.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the storage subsystem (e.g. load from disk)."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by id."""
        pass

    @abstractmethod
    def get_package(self, package_id: int) -> Optional[Package]:
        """Get a package by id."""
        pass

    @abstractmethod
    def find_package_by_name(self, name: str) -> Optional[Package]:
        """Get a package by its composer name."""
        pass

    @abstractmethod
    def get_packages(self) -> List[Package]:
        """Get all packages ordered by id."""
        pass

    @abstractmethod
    def get_versions(self, package: Package) -> List[Version]:
        """Get the versions of a package ordered by id."""
        pass

    @abstractmethod
    def get_maintainers(self, package: Package) -> List[User]:
        """Get the users maintaining a package."""
        pass

    @abstractmethod
    def get_provider_entry(self, package_name: str) -> Optional[ProviderEntry]:
        """Get the provider index entry of a package."""
        pass

    @abstractmethod
    def persist(self, entity: Entity) -> None:
        """Stage a create or update of an entity."""
        pass

    @abstractmethod
    def remove(self, entity: Entity) -> None:
        """Stage the removal of an entity."""
        pass

    @abstractmethod
    def flush(self) -> None:
        """Commit all staged changes atomically."""
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Discard all staged changes."""
        pass
