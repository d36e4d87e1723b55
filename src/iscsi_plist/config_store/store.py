"""Configuration cache for the iSCSI initiator property list.

Handles:
- Get-or-create navigation through targets, portals and the initiator
- Typed read/write accessors translated through the domain codecs
- CHAP secrets delegated to a credential vault
- Merged discovery records
- Synchronization with the backing property store
"""
import logging
from typing import Any, Optional

from ..backends.property_store import PropertyStore
from ..backends.vault import CredentialVault
from ..config.settings import StoreSettings
from ..exceptions import InitiatorNotConfiguredError, VaultError
from ..keys import AUTH_CHAP, AUTH_NONE
from ..types import (
    Auth,
    AuthMethod,
    ConnectionConfig,
    DiscoveryRecord,
    Portal,
    SessionConfig,
    Target,
)
from .nodes import InitiatorInfo, PortalInfo, TargetInfo
from .sync import Synchronizer
from .trees import CachedTree, DiscoveryTree, InitiatorTree, TargetsTree

logger = logging.getLogger(__name__)


class ConfigCache:
    """
    Owns the cached property list trees of one initiator.

    Trees (store key in parentheses):
        targets    ("Target Nodes")           target IQN -> target info -> portals
        discovery  ("SendTargets Discovery")  merged discovery records
        initiator  ("Initiator Node")         name, alias and auth method

    Read accessors never create entries and return None (or False) when a
    path does not exist. Write accessors create missing ancestors and mark
    the owning tree dirty. Nothing reaches the store until ``synchronize``.
    """

    def __init__(self, store: PropertyStore, vault: CredentialVault):
        """
        Initialize the cache.

        Args:
            store: Backing property store
            vault: Credential vault for CHAP secrets; its service name
                namespaces every secret written and read
        """
        self.store = store
        self.vault = vault

        self._targets = TargetsTree()
        self._discovery = DiscoveryTree()
        self._initiator = InitiatorTree()

        trees = (self._targets, self._discovery, self._initiator)
        self._trees: dict[str, CachedTree] = {}
        for tree in trees:
            self._trees[tree.name] = tree
            self._trees[tree.store_key] = tree

        self._synchronizer = Synchronizer(store, trees)
        self._open = False

    @property
    def app_id(self) -> Optional[str]:
        return getattr(self.store, "app_id", None)

    # === Lifecycle ===

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "ConfigCache":
        """Load all trees from the store, discarding anything cached."""
        self._synchronizer.reload_all()
        self._open = True
        logger.debug(f"Opened config cache for {self.app_id or 'store'}")
        return self

    def close(self) -> None:
        """Synchronize pending changes and release the cached trees.

        Released trees are reloaded from the store on their next access.
        """
        self.synchronize()
        self._release()
        logger.debug(f"Closed config cache for {self.app_id or 'store'}")

    def discard(self) -> None:
        """Release the cached trees, dropping any unsynchronized changes."""
        pending = [name for name, dirty in self.dirty.items() if dirty]
        if pending:
            logger.warning(f"Discarding unsynchronized trees {pending}")
        self._release()

    def _release(self) -> None:
        for tree in self._synchronizer.trees:
            tree.release()
            tree.dirty = False
        self._open = False

    def __enter__(self) -> "ConfigCache":
        if not self._open:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.discard()
        else:
            self.close()
        return False

    @property
    def dirty(self) -> dict[str, bool]:
        """Dirty flag of each tree, by tree name."""
        return {tree.name: tree.dirty for tree in self._synchronizer.trees}

    def synchronize(self) -> None:
        """Flush dirty trees to the store and reload clean ones."""
        self._synchronizer.synchronize()

    # === Navigation ===

    def get_or_create_tree(self, name: str, create_if_missing: bool = False) -> Optional[Any]:
        """
        Get a cached tree by name ("targets", "discovery", "initiator") or
        by store key.

        Returns None if the tree is not loaded and create_if_missing is False.
        """
        try:
            tree = self._trees[name]
        except KeyError:
            raise ValueError(f"Unknown tree: {name}") from None
        return tree.get_or_create(self.store, create_if_missing)

    def get_or_create_target_info(
        self,
        target_iqn: str,
        create_if_missing: bool = False,
    ) -> Optional[TargetInfo]:
        targets = self._targets.get_or_create(self.store, create_if_missing)
        if targets is None:
            return None

        if create_if_missing and target_iqn not in targets:
            targets[target_iqn] = TargetInfo()
            self._targets.mark_dirty()
            logger.debug(f"Created target entry {target_iqn}")

        return targets.get(target_iqn)

    def get_or_create_portals_list(
        self,
        target_iqn: str,
        create_if_missing: bool = False,
    ) -> Optional[dict[str, PortalInfo]]:
        target_info = self.get_or_create_target_info(target_iqn, create_if_missing)
        if target_info is None:
            return None

        if create_if_missing and target_info.portals is None:
            target_info.portals = {}
            self._targets.mark_dirty()

        return target_info.portals

    def get_or_create_portal_info(
        self,
        target_iqn: str,
        portal_address: str,
        create_if_missing: bool = False,
    ) -> Optional[PortalInfo]:
        portals = self.get_or_create_portals_list(target_iqn, create_if_missing)
        if portals is None:
            return None

        if create_if_missing and portal_address not in portals:
            # Placeholders for portal data, connection config and auth
            portals[portal_address] = PortalInfo()
            self._targets.mark_dirty()
            logger.debug(f"Created portal entry {portal_address} for {target_iqn}")

        return portals.get(portal_address)

    # === Targets ===

    def copy_target(self, target_iqn: str) -> Optional[Target]:
        target_info = self.get_or_create_target_info(target_iqn)
        if target_info is None or target_info.target_data is None:
            return None
        return Target.from_dict(target_info.target_data)

    def set_target(self, target: Target) -> None:
        target_info = self.get_or_create_target_info(target.iqn, create_if_missing=True)
        target_info.target_data = target.to_dict()
        self._targets.mark_dirty()

    def remove_target(self, target_iqn: str) -> None:
        """Remove a target and all of its portals. Unknown targets are ignored."""
        targets = self._targets.get_or_create(self.store, False)
        if not targets or target_iqn not in targets:
            return

        del targets[target_iqn]
        self._targets.mark_dirty()
        logger.info(f"Removed target {target_iqn}")

    def contains_target(self, target_iqn: str) -> bool:
        targets = self._targets.get_or_create(self.store, False)
        return bool(targets) and target_iqn in targets

    def list_target_iqns(self) -> Optional[list[str]]:
        """List configured target IQNs; None when there are none."""
        targets = self._targets.get_or_create(self.store, False)
        if not targets:
            return None
        return list(targets.keys())

    def copy_session_config(self, target_iqn: str) -> Optional[SessionConfig]:
        target_info = self.get_or_create_target_info(target_iqn)
        if target_info is None or target_info.session_config is None:
            return None
        return SessionConfig.from_dict(target_info.session_config)

    def set_session_config(self, target_iqn: str, session_config: SessionConfig) -> None:
        target_info = self.get_or_create_target_info(target_iqn, create_if_missing=True)
        target_info.session_config = session_config.to_dict()
        self._targets.mark_dirty()

    # === Portals ===

    def copy_portal_for_target(self, target_iqn: str, portal_address: str) -> Optional[Portal]:
        portal_info = self.get_or_create_portal_info(target_iqn, portal_address)
        if portal_info is None or portal_info.portal_data is None:
            return None
        return Portal.from_dict(portal_info.portal_data)

    def set_portal_for_target(self, target_iqn: str, portal: Portal) -> None:
        """Store a portal under its address for a target."""
        portal_info = self.get_or_create_portal_info(
            target_iqn, portal.address, create_if_missing=True
        )
        portal_info.portal_data = portal.to_dict()
        self._targets.mark_dirty()

    def remove_portal_for_target(self, target_iqn: str, portal_address: str) -> None:
        portals = self.get_or_create_portals_list(target_iqn)
        if portals is None or portal_address not in portals:
            return

        del portals[portal_address]
        self._targets.mark_dirty()
        logger.info(f"Removed portal {portal_address} from {target_iqn}")

    def contains_portal_for_target(self, target_iqn: str, portal_address: str) -> bool:
        portals = self.get_or_create_portals_list(target_iqn)
        return portals is not None and portal_address in portals

    def list_portal_addresses(self, target_iqn: str) -> Optional[list[str]]:
        """List portal addresses of a target; None when there are none."""
        portals = self.get_or_create_portals_list(target_iqn)
        if not portals:
            return None
        return list(portals.keys())

    def copy_connection_config(
        self,
        target_iqn: str,
        portal_address: str,
    ) -> Optional[ConnectionConfig]:
        portal_info = self.get_or_create_portal_info(target_iqn, portal_address)
        if portal_info is None or portal_info.connection_config is None:
            return None
        return ConnectionConfig.from_dict(portal_info.connection_config)

    def set_connection_config(
        self,
        target_iqn: str,
        portal_address: str,
        connection_config: ConnectionConfig,
    ) -> None:
        portal_info = self.get_or_create_portal_info(
            target_iqn, portal_address, create_if_missing=True
        )
        portal_info.connection_config = connection_config.to_dict()
        self._targets.mark_dirty()

    # === Initiator ===

    def _get_or_create_initiator(self, create_if_missing: bool) -> Optional[InitiatorInfo]:
        return self._initiator.get_or_create(self.store, create_if_missing)

    def copy_initiator_iqn(self) -> Optional[str]:
        initiator = self._get_or_create_initiator(False)
        return initiator.iqn if initiator is not None else None

    def set_initiator_iqn(self, initiator_iqn: str) -> None:
        initiator = self._get_or_create_initiator(True)
        initiator.iqn = initiator_iqn
        self._initiator.mark_dirty()

    def copy_initiator_alias(self) -> Optional[str]:
        initiator = self._get_or_create_initiator(False)
        return initiator.alias if initiator is not None else None

    def set_initiator_alias(self, initiator_alias: str) -> None:
        initiator = self._get_or_create_initiator(True)
        initiator.alias = initiator_alias
        self._initiator.mark_dirty()

    # === Authentication ===

    def _copy_chap_auth(self, node_iqn: str) -> Auth:
        """Look up CHAP credentials for a node, degrading to no authentication."""
        try:
            entry = self.vault.get_secret(node_iqn)
        except VaultError as e:
            logger.warning(f"CHAP lookup failed for {node_iqn}, using no authentication: {e}")
            return Auth.none()

        if entry is None:
            logger.warning(f"No CHAP secret stored for {node_iqn}, using no authentication")
            return Auth.none()

        account, secret = entry
        return Auth.chap(account, secret)

    def _store_chap_secret(self, node_iqn: str, auth: Auth) -> None:
        self.vault.set_secret(self.vault.service, auth.chap_user, node_iqn, auth.chap_secret)

    def copy_authentication_for_target(self, target_iqn: str) -> Optional[Auth]:
        """
        Get the authentication configured for a target.

        Returns None if the target does not exist. A CHAP target whose
        secret cannot be read from the vault reads back as no authentication.
        """
        target_info = self.get_or_create_target_info(target_iqn)
        if target_info is None:
            return None

        if AuthMethod.from_tag(target_info.auth_method) is AuthMethod.CHAP:
            return self._copy_chap_auth(target_iqn)
        return Auth.none()

    def set_authentication_for_target(self, target_iqn: str, auth: Auth) -> None:
        """
        Set the authentication for a target.

        CHAP credentials are written to the vault before the method is
        recorded, so a vault failure leaves the stored method unchanged.

        Raises:
            VaultError: If the vault rejects the CHAP secret
        """
        if auth.is_chap:
            self._store_chap_secret(target_iqn, auth)

        target_info = self.get_or_create_target_info(target_iqn, create_if_missing=True)
        target_info.auth_method = AUTH_CHAP if auth.is_chap else AUTH_NONE
        self._targets.mark_dirty()

    def copy_authentication_for_initiator(self) -> Optional[Auth]:
        """Get the initiator's authentication; None if no initiator is configured."""
        initiator = self._get_or_create_initiator(False)
        if initiator is None:
            return None

        if AuthMethod.from_tag(initiator.auth_method) is not AuthMethod.CHAP:
            return Auth.none()

        # The IQN may have changed since the method was set
        initiator_iqn = self.copy_initiator_iqn()
        if not initiator_iqn:
            logger.warning("Initiator uses CHAP but has no IQN, using no authentication")
            return Auth.none()
        return self._copy_chap_auth(initiator_iqn)

    def set_authentication_for_initiator(self, auth: Auth) -> None:
        """
        Set the initiator's authentication.

        Raises:
            InitiatorNotConfiguredError: If CHAP is requested before an IQN is set
            VaultError: If the vault rejects the CHAP secret
        """
        if auth.is_chap:
            initiator_iqn = self.copy_initiator_iqn()
            if not initiator_iqn:
                raise InitiatorNotConfiguredError(
                    "Set the initiator IQN before its CHAP credentials"
                )
            self._store_chap_secret(initiator_iqn, auth)

        initiator = self._get_or_create_initiator(True)
        initiator.auth_method = AUTH_CHAP if auth.is_chap else AUTH_NONE
        self._initiator.mark_dirty()

    # === Discovery ===

    def add_discovery_record(self, record: Optional[DiscoveryRecord]) -> None:
        """Merge a discovery record into the cache; later records win per key."""
        data = record.to_dict() if record is not None else None
        if not data:
            return

        discovery = self._discovery.get_or_create(self.store, True)
        for key, value in data.items():
            discovery[key] = value

        self._discovery.mark_dirty()
        logger.debug(f"Merged discovery record with {len(data)} target(s)")

    def copy_discovery_record(self) -> Optional[DiscoveryRecord]:
        discovery = self._discovery.get_or_create(self.store, False)
        if discovery is None:
            return None
        return DiscoveryRecord.from_dict(discovery)

    def clear_discovery_record(self) -> None:
        self._discovery.clear()
        logger.info("Cleared cached discovery record")


def open_config_cache(settings: Optional[StoreSettings] = None) -> ConfigCache:
    """Build a store, vault and cache from settings and open the cache."""
    settings = settings or StoreSettings.from_env()
    cache = ConfigCache(
        store=settings.create_store(),
        vault=settings.create_vault(),
    )
    return cache.open()
