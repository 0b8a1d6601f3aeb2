"""Exception types raised by statsrelay."""


class RelayError(Exception):
    """Base class for all statsrelay errors."""


class ConfigError(RelayError):
    """Raised when the relay configuration is invalid.

    Configuration is validated once at startup, so this is never raised
    from inside a flush cycle.
    """
