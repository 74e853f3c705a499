from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol

from composer_repo.domain.errors import BuilderFailure
from composer_repo.domain.models import AccessScope, MetadataGraph
from composer_repo.services.dumper import encode_document
from composer_repo.storage.cache_store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_KEY_PREFIX = "pkg_user_cache_"


class MetadataBuilder(Protocol):
    def dump(self, scope: AccessScope) -> MetadataGraph:
        ...

    def dump_package(self, scope: AccessScope, name: str) -> Dict[str, Any]:
        ...


class MetadataCache:
    """
    Time-boxed cache of the metadata graph, one entry per access scope.

    Entries are never invalidated explicitly; changes to the stored packages
    become visible once the entry expires or a caller asks for a refresh
    with ``use_cache=False``. Two requests racing on an expired entry both
    rebuild and the last write wins.
    """

    def __init__(
        self,
        builder: MetadataBuilder,
        store: CacheStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ):
        self.builder = builder
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def cache_key(self, scope: AccessScope) -> str:
        return f"{self.key_prefix}{scope.user_id}"

    def get(self, scope: AccessScope, use_cache: bool = True) -> MetadataGraph:
        """
        Return the metadata graph for ``scope``.

        ``scope`` must already be resolved (privileged users map to the
        anonymous scope). With ``use_cache=False`` the graph is rebuilt and
        the fresh result replaces whatever the cache held.
        """
        key = self.cache_key(scope)
        if use_cache:
            cached = self._read(key)
            if cached is not None:
                logger.debug(f"Metadata cache hit for {key}")
                return cached

        logger.debug(f"Rebuilding metadata graph for {key}")
        try:
            graph = self.builder.dump(scope)
        except Exception as e:
            logger.error(f"Metadata builder failed for {key}: {e}", exc_info=True)
            raise BuilderFailure(f"Failed to build metadata for scope {scope.user_id}: {e}") from e

        data = encode_document(list(graph))
        try:
            self.store.set_with_expiry(key, data, self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Could not store cache entry {key}: {e}")
        # Callers get decoded copies on hits and misses alike
        return self._decode(data)

    def _read(self, key: str) -> Optional[MetadataGraph]:
        try:
            data = self.store.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, treating as a miss: {e}")
            return None
        if data is None:
            return None
        try:
            return self._decode(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

    @staticmethod
    def _decode(data: Any) -> MetadataGraph:
        root, providers, packages = json.loads(data)
        return MetadataGraph(root, providers, packages)
