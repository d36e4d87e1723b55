"""Typed nodes of the cached configuration trees.

Each node knows how to convert itself to and from its property list
dictionary. Opaque blobs (target data, session and connection
configuration, portal data) are kept as the dictionaries produced by the
codecs in ``iscsi_plist.types``.
"""
from dataclasses import dataclass
from typing import Any, Optional

from ..keys import (
    AUTH_KEY,
    AUTH_NONE,
    CONNECTION_CONFIG_KEY,
    INITIATOR_ALIAS_KEY,
    INITIATOR_IQN_KEY,
    PLACEHOLDER,
    PORTAL_DATA_KEY,
    PORTALS_KEY,
    SESSION_CONFIG_KEY,
    TARGET_DATA_KEY,
)


def _blob(value: Any) -> Optional[dict]:
    """Placeholders and malformed values read back as no blob."""
    return value if isinstance(value, dict) else None


def _text(value: Any, default: str) -> str:
    """Explicit nulls read back as the default, not as "None"."""
    return default if value is None else str(value)


@dataclass
class PortalInfo:
    """Portal entry of a target: address data, connection config and auth tag."""
    portal_data: Optional[dict] = None
    connection_config: Optional[dict] = None
    auth_method: str = PLACEHOLDER

    def to_plist(self) -> dict:
        return {
            PORTAL_DATA_KEY: self.portal_data if self.portal_data is not None else PLACEHOLDER,
            CONNECTION_CONFIG_KEY: (
                self.connection_config if self.connection_config is not None else PLACEHOLDER
            ),
            AUTH_KEY: self.auth_method,
        }

    @classmethod
    def from_plist(cls, data: dict) -> "PortalInfo":
        return cls(
            portal_data=_blob(data.get(PORTAL_DATA_KEY)),
            connection_config=_blob(data.get(CONNECTION_CONFIG_KEY)),
            auth_method=_text(data.get(AUTH_KEY), PLACEHOLDER),
        )


@dataclass
class TargetInfo:
    """Target entry: target data, session config, auth tag and portals.

    ``portals`` stays None until the first portal write creates it.
    """
    target_data: Optional[dict] = None
    session_config: Optional[dict] = None
    auth_method: Optional[str] = None
    portals: Optional[dict[str, PortalInfo]] = None

    def to_plist(self) -> dict:
        data: dict[str, Any] = {}
        if self.target_data is not None:
            data[TARGET_DATA_KEY] = self.target_data
        if self.session_config is not None:
            data[SESSION_CONFIG_KEY] = self.session_config
        if self.auth_method is not None:
            data[AUTH_KEY] = self.auth_method
        if self.portals is not None:
            data[PORTALS_KEY] = {
                address: portal.to_plist() for address, portal in self.portals.items()
            }
        return data

    @classmethod
    def from_plist(cls, data: dict) -> "TargetInfo":
        portals = data.get(PORTALS_KEY)
        auth_method = data.get(AUTH_KEY)
        return cls(
            target_data=_blob(data.get(TARGET_DATA_KEY)),
            session_config=_blob(data.get(SESSION_CONFIG_KEY)),
            auth_method=str(auth_method) if auth_method is not None else None,
            portals=(
                {
                    str(address): PortalInfo.from_plist(portal)
                    for address, portal in portals.items()
                    if isinstance(portal, dict)
                }
                if isinstance(portals, dict)
                else None
            ),
        )


@dataclass
class InitiatorInfo:
    """The single initiator record."""
    iqn: str = ""
    alias: str = ""
    auth_method: str = AUTH_NONE

    def to_plist(self) -> dict:
        return {
            INITIATOR_IQN_KEY: self.iqn,
            INITIATOR_ALIAS_KEY: self.alias,
            AUTH_KEY: self.auth_method,
        }

    @classmethod
    def from_plist(cls, data: dict) -> "InitiatorInfo":
        return cls(
            iqn=_text(data.get(INITIATOR_IQN_KEY), ""),
            alias=_text(data.get(INITIATOR_ALIAS_KEY), ""),
            auth_method=_text(data.get(AUTH_KEY), AUTH_NONE),
        )
