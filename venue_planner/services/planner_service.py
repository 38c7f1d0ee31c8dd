"""Stateful planning session consumed by presentation layers.

A front-end loads venues, books events on chosen venues (or asks the allocator
to place a whole set), and subscribes observers that redraw whenever the
bookings or the aggregate traffic change.
"""

from __future__ import annotations

from pathlib import Path
from threading import RLock
from typing import Mapping, Optional, Protocol, Sequence, Union

from venue_planner.domain.models import Event, InvalidTrafficError, Traffic, Venue
from venue_planner.repository.venue_reader import read_venues
from venue_planner.services.allocator_service import run_allocation
from venue_planner.utils.config import Settings, get_settings
from venue_planner.utils.logger import get_logger


logger = get_logger(__name__)


class PlannerValidationError(Exception):
    """Raised when a booking request cannot be applied to the session."""


class UnknownVenueError(PlannerValidationError):
    """Raised when a booking names a venue that is not loaded."""


class VenueUnavailableError(PlannerValidationError):
    """Raised when the requested venue already hosts another event."""


class VenueTooSmallError(PlannerValidationError):
    """Raised when the event is larger than the venue capacity."""


class EventNotFoundError(PlannerValidationError):
    """Raised when removing an event that is not booked."""


class AllocationObserver(Protocol):
    def allocation_changed(
        self,
        allocations: Mapping[Event, Venue],
        traffic: Traffic,
    ) -> None:
        ...


def _parse_size(size: Union[int, str]) -> int:
    if isinstance(size, str):
        raw = size.strip()
        if not raw.isdigit():
            raise PlannerValidationError(f"event size must be a positive integer, got {size!r}")
        return int(raw)
    return int(size)


class PlannerSession:
    """Holds the loaded venues, current bookings and their combined traffic."""

    def __init__(
        self,
        venues: Optional[Sequence[Venue]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._lock = RLock()
        self._venues: list[Venue] = list(venues or [])
        self._allocations: dict[Event, Venue] = {}
        self._traffic = Traffic()
        self._observers: list[AllocationObserver] = []

    @property
    def venues(self) -> list[Venue]:
        with self._lock:
            return list(self._venues)

    @property
    def allocations(self) -> dict[Event, Venue]:
        with self._lock:
            return dict(self._allocations)

    @property
    def traffic(self) -> Traffic:
        with self._lock:
            return self._traffic.copy()

    def subscribe(self, observer: AllocationObserver) -> None:
        with self._lock:
            self._observers.append(observer)
        observer.allocation_changed(self.allocations, self.traffic)

    def _notify(self) -> None:
        allocations = dict(self._allocations)
        traffic = self._traffic.copy()
        for observer in list(self._observers):
            observer.allocation_changed(allocations, traffic)

    def load_venues(self, path: Union[str, Path, None] = None) -> list[Venue]:
        """Replace the venues from a description file and clear all bookings."""
        venues = read_venues(path if path is not None else self._settings.venues_path)
        with self._lock:
            self._venues = venues
            self._allocations = {}
            self._traffic = Traffic()
            self._notify()
        return list(venues)

    def available_venues(self) -> list[Venue]:
        with self._lock:
            booked = set(self._allocations.values())
            return [venue for venue in self._venues if venue not in booked]

    def _find_venue(self, venue_name: str) -> Venue:
        for venue in self._venues:
            if venue.name == venue_name:
                return venue
        raise UnknownVenueError(f"no venue named '{venue_name}' is loaded")

    def add_event(self, name: str, size: Union[int, str], venue_name: str) -> Event:
        """Book a new event on the named venue, keeping traffic safe."""
        try:
            event = Event(name, _parse_size(size))
        except (TypeError, ValueError) as exc:
            raise PlannerValidationError(str(exc)) from exc

        with self._lock:
            venue = self._find_venue(venue_name)
            if venue in self._allocations.values():
                raise VenueUnavailableError(f"venue '{venue.name}' already hosts an event")
            if not venue.can_host(event):
                raise VenueTooSmallError(
                    f"venue '{venue.name}' ({venue.capacity}) cannot host {event}"
                )

            candidate = self._traffic.copy()
            candidate.merge(venue.traffic_for(event))
            overloaded = candidate.overloaded_corridors()
            if overloaded:
                raise InvalidTrafficError(
                    "booking would overload "
                    + ", ".join(str(corridor) for corridor in overloaded)
                )

            self._allocations[event] = venue
            self._traffic = candidate
            logger.info(
                "Event booked | event=%s | venue=%s | corridors=%s",
                event.name,
                venue.name,
                len(candidate),
            )
            self._notify()
        return event

    def remove_event(self, event: Event) -> None:
        with self._lock:
            venue = self._allocations.get(event)
            if venue is None:
                raise EventNotFoundError(f"event {event} is not booked")
            self._traffic.subtract(venue.traffic_for(event))
            del self._allocations[event]
            logger.info("Event removed | event=%s | venue=%s", event.name, venue.name)
            self._notify()

    def auto_allocate(self, events: Sequence[Event]) -> Optional[dict[Event, Venue]]:
        """Replace all bookings with a computed allocation of `events`.

        Returns None and keeps the current bookings when no safe allocation
        exists.
        """
        with self._lock:
            outcome = run_allocation(events, self._venues)
            if outcome.allocation is None:
                logger.warning(
                    "Automatic allocation found no solution | events=%s | venues=%s",
                    len(events),
                    len(self._venues),
                )
                return None
            self._allocations = dict(outcome.allocation)
            self._traffic = outcome.traffic.copy()
            self._notify()
            return dict(outcome.allocation)
