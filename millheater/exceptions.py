"""Exceptions for the Mill heater library."""


class MillHeaterError(Exception):
    """Base exception for Mill heater errors."""


class MillHeaterConnectionError(MillHeaterError):
    """Connection to the heater failed or timed out."""


class MillHeaterProtocolError(MillHeaterError):
    """The heater refused a request or answered with an unusable body."""


class MillHeaterAuthenticationError(MillHeaterProtocolError):
    """The heater rejected the configured API key."""


class MillHeaterValidationError(MillHeaterError, ValueError):
    """A user supplied value or configuration entry is invalid."""
