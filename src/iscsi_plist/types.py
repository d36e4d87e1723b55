"""iSCSI domain types and their dictionary codecs.

Each type converts to and from the plain string-keyed dictionaries held in
the property list. Authentication is the exception: CHAP credentials are
never dictionary encoded, they only travel to the credential vault.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_ISCSI_PORT = "3260"


class AuthMethod(str, Enum):
    """Authentication method tag as stored in the property list."""
    NONE = "None"
    CHAP = "CHAP"

    @classmethod
    def from_tag(cls, tag: Any) -> "AuthMethod":
        """Anything other than the literal CHAP tag means no authentication."""
        if tag == cls.CHAP.value:
            return cls.CHAP
        return cls.NONE


@dataclass
class Target:
    """An iSCSI target node."""
    iqn: str
    alias: str = ""

    def to_dict(self) -> dict:
        return {"Target IQN": self.iqn, "Target Alias": self.alias}

    @classmethod
    def from_dict(cls, data: dict) -> "Target":
        return cls(iqn=data["Target IQN"], alias=data.get("Target Alias", ""))


@dataclass
class Portal:
    """Network portal (address, port, host interface) of a target."""
    address: str
    port: str = DEFAULT_ISCSI_PORT
    host_interface: str = ""

    def to_dict(self) -> dict:
        return {
            "Address": self.address,
            "Port": self.port,
            "Host Interface": self.host_interface,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Portal":
        return cls(
            address=data["Address"],
            port=str(data.get("Port", DEFAULT_ISCSI_PORT)),
            host_interface=data.get("Host Interface", ""),
        )


@dataclass
class SessionConfig:
    """Session-wide negotiation parameters for a target."""
    error_recovery_level: int = 0
    target_portal_group_tag: int = 0
    max_connections: int = 1

    def to_dict(self) -> dict:
        return {
            "Error Recovery Level": self.error_recovery_level,
            "Target Portal Group Tag": self.target_portal_group_tag,
            "Maximum Connections": self.max_connections,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionConfig":
        return cls(
            error_recovery_level=int(data.get("Error Recovery Level", 0)),
            target_portal_group_tag=int(data.get("Target Portal Group Tag", 0)),
            max_connections=int(data.get("Maximum Connections", 1)),
        )


@dataclass
class ConnectionConfig:
    """Per-connection parameters for a portal."""
    header_digest: bool = False
    data_digest: bool = False

    def to_dict(self) -> dict:
        return {
            "Header Digest": self.header_digest,
            "Data Digest": self.data_digest,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionConfig":
        return cls(
            header_digest=bool(data.get("Header Digest", False)),
            data_digest=bool(data.get("Data Digest", False)),
        )


@dataclass
class Auth:
    """Authentication settings for a target or the initiator."""
    method: AuthMethod = AuthMethod.NONE
    chap_user: str = ""
    chap_secret: str = field(default="", repr=False)

    @classmethod
    def none(cls) -> "Auth":
        return cls(method=AuthMethod.NONE)

    @classmethod
    def chap(cls, user: str, secret: str) -> "Auth":
        return cls(method=AuthMethod.CHAP, chap_user=user, chap_secret=secret)

    @property
    def is_chap(self) -> bool:
        return self.method is AuthMethod.CHAP


@dataclass
class DiscoveryRecord:
    """Result of a SendTargets discovery.

    Maps target IQN -> portal group tag -> portals. Portal group tags are
    kept as strings so they survive the property list unchanged.
    """
    targets: dict[str, dict[str, list[Portal]]] = field(default_factory=dict)

    def add_portal(self, target_iqn: str, portal_group_tag: Any, portal: Portal) -> None:
        """Add a portal under a target's portal group."""
        groups = self.targets.setdefault(target_iqn, {})
        groups.setdefault(str(portal_group_tag), []).append(portal)

    def target_iqns(self) -> list[str]:
        return list(self.targets.keys())

    def portal_group_tags(self, target_iqn: str) -> list[str]:
        return list(self.targets.get(target_iqn, {}).keys())

    def portals(self, target_iqn: str, portal_group_tag: Any) -> list[Portal]:
        return list(self.targets.get(target_iqn, {}).get(str(portal_group_tag), []))

    def to_dict(self) -> dict:
        return {
            iqn: {
                tag: [p.to_dict() for p in portals]
                for tag, portals in groups.items()
            }
            for iqn, groups in self.targets.items()
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "DiscoveryRecord":
        record = cls()
        for iqn, groups in (data or {}).items():
            if not isinstance(groups, dict):
                logger.warning(f"Skipping malformed discovery entry for {iqn}")
                continue
            record.targets[iqn] = {
                str(tag): [Portal.from_dict(p) for p in portals or []]
                for tag, portals in groups.items()
            }
        return record
