"""Backing stores for configuration values and CHAP secrets."""
from .property_store import (
    PropertyStore,
    YamlPropertyStore,
    DEFAULT_STORE_DIR,
    DEFAULT_APP_ID,
)
from .vault import CredentialVault, KeyringVault, MemoryVault

__all__ = [
    "PropertyStore",
    "YamlPropertyStore",
    "DEFAULT_STORE_DIR",
    "DEFAULT_APP_ID",
    "CredentialVault",
    "KeyringVault",
    "MemoryVault",
]
