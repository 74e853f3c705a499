"""
Contracts of the VCS repository drivers used to resolve package names.

Drivers themselves (git, GitHub, GitLab, ...) live outside this package;
anything implementing these protocols can be handed to the package manager.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class Driver(Protocol):
    def get_root_identifier(self) -> str:
        """Return the identifier of the default branch."""
        ...

    def get_composer_information(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Return the parsed composer.json at ``identifier``, if any."""
        ...


class VcsRepository(Protocol):
    def get_driver(self) -> Optional[Driver]:
        ...


class RepositoryFactory(Protocol):
    def create_repository(
        self,
        url: str,
        credentials: Optional[Dict[str, Any]] = None,
    ) -> VcsRepository:
        ...
