"""Credential vaults holding CHAP secrets.

Secrets are stored per node, labelled with the node's IQN, under a fixed
service name. A missing entry is a normal outcome and reads back as None;
only backend failures raise ``VaultError``.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import keyring
from keyring.errors import KeyringError

from ..keys import CHAP_SERVICE_NAME
from ..exceptions import VaultError

logger = logging.getLogger(__name__)


class CredentialVault(ABC):
    """Secure store of (account, secret) pairs keyed by label.

    ``service`` names the namespace this vault reads from. Writers pass it
    back to ``set_secret`` so entries land where ``get_secret`` looks.
    """

    service: str = CHAP_SERVICE_NAME

    @abstractmethod
    def set_secret(self, service: str, account: str, label: str, secret: str) -> None:
        """Create the entry for label, or update it if it exists."""
        pass

    @abstractmethod
    def get_secret(self, label: str) -> Optional[tuple[str, str]]:
        """Return (account, secret) for label, or None if there is no entry."""
        pass


class KeyringVault(CredentialVault):
    """Vault backed by the system keyring.

    The keyring entry uses the label as user name and holds the account and
    secret together as a small JSON document.
    """

    def __init__(self, service: str = CHAP_SERVICE_NAME, backend: Optional[Any] = None):
        """
        Args:
            service: Service name entries are read from
            backend: Explicit keyring backend (default: the configured keyring)
        """
        self.service = service
        self._backend = backend if backend is not None else keyring

    def set_secret(self, service: str, account: str, label: str, secret: str) -> None:
        payload = json.dumps({"account": account, "secret": secret})
        try:
            self._backend.set_password(service, label, payload)
        except KeyringError as e:
            logger.error(f"Keyring rejected secret for {label}: {e}")
            raise VaultError(f"Failed to store secret for {label}: {e}") from e

        logger.info(f"Stored CHAP secret for {label} (account {account})")

    def get_secret(self, label: str) -> Optional[tuple[str, str]]:
        try:
            payload = self._backend.get_password(self.service, label)
        except KeyringError as e:
            logger.error(f"Keyring lookup failed for {label}: {e}")
            raise VaultError(f"Failed to read secret for {label}: {e}") from e

        if payload is None:
            return None

        try:
            data = json.loads(payload)
            return data["account"], data["secret"]
        except (ValueError, TypeError, KeyError) as e:
            raise VaultError(f"Malformed keyring entry for {label}") from e


class MemoryVault(CredentialVault):
    """Process-local vault, for tests and ephemeral use."""

    def __init__(self, service: str = CHAP_SERVICE_NAME):
        self.service = service
        self._entries: dict[tuple[str, str], tuple[str, str]] = {}

    def set_secret(self, service: str, account: str, label: str, secret: str) -> None:
        self._entries[(service, label)] = (account, secret)

    def get_secret(self, label: str) -> Optional[tuple[str, str]]:
        return self._entries.get((self.service, label))
