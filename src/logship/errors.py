"""Error taxonomy for the telemetry shipper."""

from __future__ import annotations


class LogshipError(Exception):
    """Base class for shipper errors."""


class ConfigurationError(LogshipError, ValueError):
    """Required configuration is missing or invalid."""


class TransientDeliveryError(LogshipError):
    """The collector could not be reached or rejected the event."""


class TransientPersistenceError(LogshipError):
    """A backlog write, read or enumeration failed."""


class UnexpectedBacklogEntryError(TransientPersistenceError):
    """A backlog file could not be parsed into an event."""


__all__ = [
    "LogshipError",
    "ConfigurationError",
    "TransientDeliveryError",
    "TransientPersistenceError",
    "UnexpectedBacklogEntryError",
]
