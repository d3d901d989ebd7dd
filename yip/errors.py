from __future__ import annotations


class YipError(Exception):
    """Base class for errors raised by the bot core."""


class ConfigError(YipError):
    """Raised when the startup configuration is missing or invalid."""


class AuthorizationDenied(YipError):
    """Raised by the credential gate when an identity has not logged in.

    The message is meant to be shown to the user as-is.
    """


class ProtocolError(YipError):
    """Raised when a callback payload does not decode to a known action."""
