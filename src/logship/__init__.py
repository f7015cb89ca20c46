"""Store-and-forward telemetry shipper."""

from .config import ShipperOptions
from .errors import (
    ConfigurationError,
    LogshipError,
    TransientDeliveryError,
    TransientPersistenceError,
    UnexpectedBacklogEntryError,
)
from .logger import TelemetryLogger, default_logger
from .models import Event

__all__ = [
    "TelemetryLogger",
    "default_logger",
    "ShipperOptions",
    "Event",
    "LogshipError",
    "ConfigurationError",
    "TransientDeliveryError",
    "TransientPersistenceError",
    "UnexpectedBacklogEntryError",
]
