"""
In-memory metadata builder.

Walks the stored packages and versions visible to an access scope and
produces the three documents a composer client reads: the root index, the
provider listing and one version list per package. Every provider digest
is the sha256 of the exact bytes ``encode_document`` produces for that
package, so clients can address documents by hash.
"""
from __future__ import annotations

import fnmatch
import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

from composer_repo.domain.models import AccessScope, MetadataGraph, Package, Version
from composer_repo.storage.db_manager import DatabaseManager

logger = logging.getLogger(__name__)

PROVIDERS_URL = "/p/%package%$%hash%.json"
METADATA_URL = "/p2/%package%.json"
PROVIDER_INCLUDE = "p/providers$%hash%.json"
NOTIFY_BATCH_URL = "/downloads/"

_RESERVED_FIELDS = {"name", "version", "version_normalized", "version_normalized_v2", "time", "uid"}


def encode_document(document: Any) -> bytes:
    """Serialize a document the way it is hashed and served."""
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256_document(document: Any) -> str:
    return hashlib.sha256(encode_document(document)).hexdigest()


class InMemoryDumper:
    """Builds the raw metadata graph straight from the database."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def dump(self, scope: AccessScope) -> MetadataGraph:
        packages: Dict[str, Any] = {}
        provider_hashes: Dict[str, Dict[str, str]] = {}

        for package in self._visible_packages(scope):
            document = self._package_document(package)
            packages[package.name] = document
            provider_hashes[package.name] = {"sha256": sha256_document(document)}

        providers = {"providers": provider_hashes}
        root = {
            "packages": [],
            "notify-batch": NOTIFY_BATCH_URL,
            "providers-url": PROVIDERS_URL,
            "metadata-url": METADATA_URL,
            "available-packages": sorted(packages),
            "provider-includes": {
                PROVIDER_INCLUDE: {"sha256": sha256_document(providers)},
            },
        }

        logger.debug(f"Dumped {len(packages)} package(s) for scope {scope.user_id}")
        return MetadataGraph(root, providers, packages)

    def dump_package(self, scope: AccessScope, name: str) -> Dict[str, Any]:
        package = self.db.find_package_by_name(name)
        if package is None or not self._is_visible(package, self._patterns(scope)):
            return {"packages": {}}
        return self._package_document(package)

    def _patterns(self, scope: AccessScope) -> Optional[List[str]]:
        # None means unrestricted
        if scope.is_anonymous:
            return None
        user = self.db.get_user(scope.user_id)
        return list(user.packages) if user else []

    @staticmethod
    def _is_visible(package: Package, patterns: Optional[List[str]]) -> bool:
        if not package.name:
            return False
        if patterns is None:
            return True
        return any(fnmatch.fnmatchcase(package.name, pattern) for pattern in patterns)

    def _visible_packages(self, scope: AccessScope) -> List[Package]:
        patterns = self._patterns(scope)
        return [p for p in self.db.get_packages() if self._is_visible(p, patterns)]

    def _package_document(self, package: Package) -> Dict[str, Any]:
        records = [self._version_record(package, v) for v in self.db.get_versions(package)]
        return {"packages": {package.name: records}}

    @staticmethod
    def _version_record(package: Package, version: Version) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "name": package.name,
            "version": version.version,
            "version_normalized": version.version_normalized,
        }
        for key, value in version.extra.items():
            if key not in _RESERVED_FIELDS:
                record[key] = value
        record["time"] = version.time
        record["uid"] = version.id
        if version.version_normalized_v2:
            record["version_normalized_v2"] = version.version_normalized_v2
        return record
