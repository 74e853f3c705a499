import json
import logging
import os
from pathlib import Path
from typing import Optional

from composer_repo.core.events import EventDispatcher
from composer_repo.domain.models import RepositoryConfig
from composer_repo.services.authorization import AuthorizationChecker
from composer_repo.services.dumper import InMemoryDumper
from composer_repo.services.mailer import SmtpMailer
from composer_repo.services.metadata_cache import MetadataCache
from composer_repo.services.package_manager import PackageManager
from composer_repo.services.provider_manager import ProviderManager
from composer_repo.storage.cache_store import CacheStore, MemoryCacheStore, RedisCacheStore
from composer_repo.storage.db_manager import DatabaseManager
from composer_repo.storage.json_db_manager import JsonDatabaseManager

DATA_ROOT_ENV_VAR = "COMPOSER_REPO_DATA_DIR"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"

logger = logging.getLogger(__name__)

_repository_config: Optional[RepositoryConfig] = None
_db_manager: Optional[DatabaseManager] = None
_cache_store: Optional[CacheStore] = None
_event_dispatcher: Optional[EventDispatcher] = None
_metadata_cache: Optional[MetadataCache] = None
_package_manager: Optional[PackageManager] = None


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable COMPOSER_REPO_DATA_DIR
    2. '<workspace root>/data'
    """
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        d = Path(env_path).expanduser()
    else:
        d = _DEFAULT_DATA_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def load_repository_config(data_dir: Path) -> RepositoryConfig:
    """
    Load repository.json, merging with defaults for any missing fields,
    and write it back so any new fields are persisted.
    """
    path = data_dir / "repository.json"
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            config = RepositoryConfig(**raw)
        except Exception as e:
            # If parsing fails, fall back to defaults and overwrite file.
            logger.warning(f"Ignoring unreadable {path}: {e}")
            config = RepositoryConfig()
    else:
        config = RepositoryConfig()

    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
    return config


def get_repository_config() -> RepositoryConfig:
    global _repository_config
    if _repository_config is None:
        _repository_config = load_repository_config(get_data_dir())
    return _repository_config


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = JsonDatabaseManager(get_data_dir())
        _db_manager.initialize()
    return _db_manager


def get_cache_store() -> CacheStore:
    global _cache_store
    if _cache_store is None:
        config = get_repository_config()
        if config.redis_url:
            _cache_store = RedisCacheStore.from_url(config.redis_url)
        else:
            _cache_store = MemoryCacheStore()
    return _cache_store


def get_event_dispatcher() -> EventDispatcher:
    global _event_dispatcher
    if _event_dispatcher is None:
        _event_dispatcher = EventDispatcher()
    return _event_dispatcher


def get_metadata_cache() -> MetadataCache:
    global _metadata_cache
    if _metadata_cache is None:
        config = get_repository_config()
        _metadata_cache = MetadataCache(
            InMemoryDumper(get_db_manager()),
            get_cache_store(),
            ttl_seconds=config.cache_ttl_seconds,
            key_prefix=config.cache_key_prefix,
        )
    return _metadata_cache


def get_package_manager() -> PackageManager:
    global _package_manager
    if _package_manager is None:
        config = get_repository_config()
        db = get_db_manager()
        metadata_cache = get_metadata_cache()
        _package_manager = PackageManager(
            db,
            metadata_cache,
            metadata_cache.builder,
            AuthorizationChecker(),
            ProviderManager(db),
            get_event_dispatcher(),
            SmtpMailer(config.mailer),
            config=config,
        )
    return _package_manager


def initialize_repository() -> PackageManager:
    """
    Called by the host application on startup.

    Loads the configuration, sets up logging, opens the store and wires the
    package manager.
    """
    config = get_repository_config()
    configure_logging(config.log_level)
    manager = get_package_manager()
    logger.info(f"Repository '{config.site_name}' initialized from {get_data_dir()}")
    return manager


def reset_dependencies() -> None:
    """Drop all cached singletons; the next getter call rebuilds them."""
    global _repository_config, _db_manager, _cache_store, _event_dispatcher
    global _metadata_cache, _package_manager
    _repository_config = None
    _db_manager = None
    _cache_store = None
    _event_dispatcher = None
    _metadata_cache = None
    _package_manager = None
