"""Exception hierarchy for the iSCSI property list store."""


class PropertyListError(Exception):
    """Base exception for property list and credential failures."""
    pass


class StoreSyncError(PropertyListError):
    """Exception raised when the backing property store cannot be read or written."""
    pass


class VaultError(PropertyListError):
    """Exception raised when the credential vault rejects a read or write."""
    pass


class InitiatorNotConfiguredError(PropertyListError):
    """Exception raised when initiator credentials are set before its IQN."""
    pass
