"""Property list key names shared by the cache, its trees and the store."""

# Store keys, one per cached tree
TARGETS_KEY = "Target Nodes"
DISCOVERY_KEY = "SendTargets Discovery"
INITIATOR_KEY = "Initiator Node"

STORE_KEYS = (TARGETS_KEY, DISCOVERY_KEY, INITIATOR_KEY)

# Target node keys
TARGET_DATA_KEY = "Target Data"
SESSION_CONFIG_KEY = "Session Configuration"
PORTALS_KEY = "Portals"

# Portal node keys
PORTAL_DATA_KEY = "Portal Data"
CONNECTION_CONFIG_KEY = "Connection Configuration"

# Shared by targets, portals and the initiator
AUTH_KEY = "Authentication"
AUTH_NONE = "None"
AUTH_CHAP = "CHAP"

# Initiator node keys
INITIATOR_IQN_KEY = "Name"
INITIATOR_ALIAS_KEY = "Alias"

# Empty placeholder written for portal fields not yet set
PLACEHOLDER = ""

# Credential vault service under which CHAP secrets are stored
CHAP_SERVICE_NAME = "iSCSI CHAP"
