"""Persistent configuration and credential store for an iSCSI initiator."""
from .config import StoreSettings
from .config_store import ConfigCache, open_config_cache
from .backends import (
    PropertyStore,
    YamlPropertyStore,
    CredentialVault,
    KeyringVault,
    MemoryVault,
)
from .exceptions import (
    PropertyListError,
    StoreSyncError,
    VaultError,
    InitiatorNotConfiguredError,
)
from .types import (
    Auth,
    AuthMethod,
    ConnectionConfig,
    DiscoveryRecord,
    Portal,
    SessionConfig,
    Target,
)

__all__ = [
    "StoreSettings",
    "ConfigCache",
    "open_config_cache",
    "PropertyStore",
    "YamlPropertyStore",
    "CredentialVault",
    "KeyringVault",
    "MemoryVault",
    "PropertyListError",
    "StoreSyncError",
    "VaultError",
    "InitiatorNotConfiguredError",
    "Auth",
    "AuthMethod",
    "ConnectionConfig",
    "DiscoveryRecord",
    "Portal",
    "SessionConfig",
    "Target",
]
