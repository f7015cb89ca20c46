"""Prometheus instruments for the shipper."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

EVENTS_ENQUEUED = Counter("logship_events_enqueued_total", "Events accepted by log()")
EVENTS_DELIVERED = Counter("logship_events_delivered_total", "Events delivered to the collector")
EVENTS_REQUEUED = Counter("logship_events_requeued_total", "Failed deliveries pushed back onto the queue")
EVENTS_PERSISTED = Counter("logship_events_persisted_total", "Events written to the backlog directory")
EVENTS_DROPPED = Counter("logship_events_dropped_total", "Events lost after every delivery path failed", ["reason"])
BACKLOG_RELOADED = Counter("logship_backlog_reloaded_total", "Backlog files moved back into the queue")
CONNECTIVITY = Gauge("logship_connectivity", "Latest connectivity probe result (1 = reachable)")

__all__ = [
    "EVENTS_ENQUEUED",
    "EVENTS_DELIVERED",
    "EVENTS_REQUEUED",
    "EVENTS_PERSISTED",
    "EVENTS_DROPPED",
    "BACKLOG_RELOADED",
    "CONNECTIVITY",
]
