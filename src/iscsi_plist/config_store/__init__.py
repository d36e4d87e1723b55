"""Configuration cache package for the iSCSI initiator property list.

This package provides:
- ConfigCache: Cached targets, discovery and initiator trees with typed accessors
- Synchronizer: Flush-if-dirty, reload-if-clean reconciliation with the store
- TargetInfo/PortalInfo/InitiatorInfo: Typed tree nodes

Persisted layout (one property store key per tree):
    Target Nodes
    └── <target IQN>
        ├── Target Data
        ├── Session Configuration
        ├── Authentication
        └── Portals
            └── <portal address>
                ├── Portal Data
                ├── Connection Configuration
                └── Authentication
    SendTargets Discovery
    Initiator Node
    ├── Name
    ├── Alias
    └── Authentication
"""

from .store import ConfigCache, open_config_cache
from .sync import Synchronizer
from .nodes import TargetInfo, PortalInfo, InitiatorInfo
from .trees import CachedTree, TargetsTree, DiscoveryTree, InitiatorTree

__all__ = [
    "ConfigCache",
    "open_config_cache",
    "Synchronizer",
    "TargetInfo",
    "PortalInfo",
    "InitiatorInfo",
    "CachedTree",
    "TargetsTree",
    "DiscoveryTree",
    "InitiatorTree",
]
