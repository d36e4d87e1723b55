"""Store settings.

Environment variables:
- ISCSI_PLIST_DIR: Directory of the property files (default: ~/.iscsi-plist)
- ISCSI_PLIST_APP_ID: Application id, used as file name stem
- ISCSI_PLIST_HOST: Host scope (default: this machine's hostname)
- ISCSI_PLIST_VAULT: "keyring" (default) or "memory"
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..backends.property_store import DEFAULT_APP_ID, DEFAULT_STORE_DIR, YamlPropertyStore
from ..backends.vault import CredentialVault, KeyringVault, MemoryVault
from ..keys import CHAP_SERVICE_NAME

logger = logging.getLogger(__name__)

VAULT_BACKENDS = {
    "keyring": KeyringVault,
    "memory": MemoryVault,
}


@dataclass
class StoreSettings:
    """Where the property list lives and which vault holds CHAP secrets."""
    store_dir: Path = DEFAULT_STORE_DIR
    app_id: str = DEFAULT_APP_ID
    host: Optional[str] = None
    vault: str = "keyring"
    chap_service: str = CHAP_SERVICE_NAME

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """Load settings from environment variables."""
        store_dir = Path(os.environ.get("ISCSI_PLIST_DIR", str(DEFAULT_STORE_DIR))).expanduser()
        app_id = os.environ.get("ISCSI_PLIST_APP_ID", DEFAULT_APP_ID)
        host = os.environ.get("ISCSI_PLIST_HOST") or None

        vault = os.environ.get("ISCSI_PLIST_VAULT", "keyring").strip().lower()
        if vault not in VAULT_BACKENDS:
            logger.warning(f"Unknown vault backend '{vault}', using keyring")
            vault = "keyring"

        return cls(store_dir=store_dir, app_id=app_id, host=host, vault=vault)

    def create_store(self) -> YamlPropertyStore:
        return YamlPropertyStore(base_dir=self.store_dir, app_id=self.app_id, host=self.host)

    def create_vault(self) -> CredentialVault:
        return VAULT_BACKENDS[self.vault](service=self.chap_service)
