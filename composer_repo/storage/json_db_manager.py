import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from composer_repo.domain.errors import PersistenceError
from composer_repo.domain.models import (
    Package,
    ProviderEntry,
    StoreState,
    User,
    Version,
)
from composer_repo.storage.db_manager import DatabaseManager, Entity

logger = logging.getLogger(__name__)

STORE_FILE_NAME = "store.json"


class JsonDatabaseManager(DatabaseManager):
    def __init__(self, data_dir: Path):
        self._data_dir = data_dir
        self._state = StoreState()
        self._pending: List[Tuple[str, Entity]] = []

        # Ensure data directory exists
        if not self._data_dir.exists():
            self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def store_path(self) -> Path:
        return self._data_dir / STORE_FILE_NAME

    def initialize(self) -> None:
        self._state = self._load_state()
        self._pending = []

    def get_user(self, user_id: int) -> Optional[User]:
        return self._state.users.get(user_id)

    def get_package(self, package_id: int) -> Optional[Package]:
        return self._state.packages.get(package_id)

    def find_package_by_name(self, name: str) -> Optional[Package]:
        for package in self._state.packages.values():
            if package.name == name:
                return package
        return None

    def get_packages(self) -> List[Package]:
        return [self._state.packages[k] for k in sorted(self._state.packages)]

    def get_versions(self, package: Package) -> List[Version]:
        versions = [v for v in self._state.versions.values() if v.package_id == package.id]
        versions.sort(key=lambda v: v.id)
        return versions

    def get_maintainers(self, package: Package) -> List[User]:
        return [
            self._state.users[user_id]
            for user_id in package.maintainer_ids
            if user_id in self._state.users
        ]

    def get_provider_entry(self, package_name: str) -> Optional[ProviderEntry]:
        return self._state.providers.get(package_name)

    def next_id(self, entity_type: type) -> int:
        """Allocate the next free numeric id for users, packages or versions."""
        table = self._table(self._state, entity_type)
        pending = [e.id for op, e in self._pending if op == "persist" and isinstance(e, entity_type)]
        return max([0, *table.keys(), *pending]) + 1

    def persist(self, entity: Entity) -> None:
        self._pending.append(("persist", entity))

    def remove(self, entity: Entity) -> None:
        self._pending.append(("remove", entity))

    def flush(self) -> None:
        state = StoreState.model_construct(
            users=dict(self._state.users),
            packages=dict(self._state.packages),
            versions=dict(self._state.versions),
            providers=dict(self._state.providers),
        )
        for op, entity in self._pending:
            table = self._table(state, type(entity))
            key = self._key(entity)
            if op == "persist":
                table[key] = entity
            else:
                table.pop(key, None)

        try:
            self._write_state(state)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to commit {len(self._pending)} staged change(s): {e}")
            self.rollback()
            raise PersistenceError(f"Failed to write {self.store_path}: {e}") from e

        self._state = state
        self._pending = []

    def rollback(self) -> None:
        self._pending = []

    @staticmethod
    def _table(state: StoreState, entity_type: type) -> Dict:
        if issubclass(entity_type, Package):
            return state.packages
        if issubclass(entity_type, Version):
            return state.versions
        if issubclass(entity_type, User):
            return state.users
        if issubclass(entity_type, ProviderEntry):
            return state.providers
        raise TypeError(f"Unsupported entity type: {entity_type.__name__}")

    @staticmethod
    def _key(entity: Entity):
        if isinstance(entity, ProviderEntry):
            return entity.package_name
        return entity.id

    def _write_state(self, state: StoreState) -> None:
        tmp_path = self.store_path.with_suffix(".json.tmp")
        tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.store_path)

    def _load_state(self) -> StoreState:
        path = self.store_path
        if not path.exists():
            return StoreState()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return StoreState(**raw)
        except Exception as e:
            raise PersistenceError(f"Failed to load {path}: {e}") from e
