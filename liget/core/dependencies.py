from typing import Optional

from liget.core.config import configure_logging, get_data_dir, load_settings
from liget.domain.models import ClientSettings
from liget.services.catalog_client import CatalogClient
from liget.services.hashing import CryptoHashProvider
from liget.storage.physical_file_system import PhysicalFileSystem

_settings: Optional[ClientSettings] = None
_file_system: Optional[PhysicalFileSystem] = None
_catalog_client: Optional[CatalogClient] = None
_hash_provider: Optional[CryptoHashProvider] = None

def get_settings() -> ClientSettings:
    global _settings
    if _settings is None:
        _settings = load_settings()
        configure_logging(_settings.log_level)
    return _settings

def get_file_system() -> PhysicalFileSystem:
    global _file_system
    if _file_system is None:
        _file_system = PhysicalFileSystem(get_data_dir() / get_settings().packages_dir)
    return _file_system

def get_catalog_client() -> CatalogClient:
    global _catalog_client
    if _catalog_client is None:
        settings = get_settings()
        _catalog_client = CatalogClient(
            settings.feed_url,
            timeout=settings.request_timeout_seconds,
            hash_provider=get_hash_provider(),
        )
    return _catalog_client

def get_hash_provider() -> CryptoHashProvider:
    global _hash_provider
    if _hash_provider is None:
        _hash_provider = CryptoHashProvider(get_settings().hash_algorithm)
    return _hash_provider

def reset_dependencies() -> None:
    """Forget every cached instance, e.g. after the data directory changed."""
    global _settings, _file_system, _catalog_client, _hash_provider
    _settings = None
    _file_system = None
    _catalog_client = None
    _hash_provider = None
