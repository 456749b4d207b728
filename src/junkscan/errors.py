"""Error types raised at component boundaries."""


class JunkscanError(RuntimeError):
    """Base class for scanner errors."""


class FetchError(JunkscanError):
    """Raised when the protocol feed cannot be fetched or parsed."""


class StoreError(JunkscanError):
    """Raised when the signal store cannot be read or written."""


class NotifyError(JunkscanError):
    """Raised when an alert could not be delivered."""


class ConfigError(JunkscanError):
    """Raised for malformed configuration or credentials."""
