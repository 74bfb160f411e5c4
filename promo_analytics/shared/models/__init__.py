"""Shared data models for the promo analytics service."""

from .events import EVENT_NAME_MAX_LENGTH, Event, MetricEvent, NewEvent
from .registrations import NewRegistration, Registration

__all__ = [
    "EVENT_NAME_MAX_LENGTH",
    "Event",
    "MetricEvent",
    "NewEvent",
    "NewRegistration",
    "Registration",
]
