"""Repository layer over the events and registrations tables."""

from .events import EventRepository
from .registrations import RegistrationRepository

__all__ = [
    "EventRepository",
    "RegistrationRepository",
]
