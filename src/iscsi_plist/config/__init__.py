"""Store settings loaded from the environment."""
from .settings import StoreSettings, VAULT_BACKENDS

__all__ = ["StoreSettings", "VAULT_BACKENDS"]
