from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from composer_repo.domain.models import Package, ProviderEntry
from composer_repo.storage.db_manager import DatabaseManager

logger = logging.getLogger(__name__)


class ProviderManager:
    """
    Maintains the provider index: which package names are served and when
    their metadata last changed.

    Changes are staged on the database unit of work and become visible with
    the caller's next ``flush``.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def get_last_modified(self, package_name: str) -> Optional[datetime]:
        entry = self.db.get_provider_entry(package_name)
        return entry.last_modified if entry else None

    def touch(self, package: Package, when: Optional[datetime] = None) -> None:
        if not package.name:
            return
        entry = ProviderEntry(
            package_name=package.name,
            last_modified=when or datetime.now(timezone.utc),
        )
        self.db.persist(entry)

    def delete_package(self, package: Package) -> None:
        if not package.name:
            return
        entry = self.db.get_provider_entry(package.name)
        if entry is not None:
            logger.debug(f"Removing {package.name} from the provider index")
            self.db.remove(entry)
