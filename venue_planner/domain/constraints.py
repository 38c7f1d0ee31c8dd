"""Domain-level validation rules for venue allocations."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Mapping, Sequence

from venue_planner.domain.models import Event, Traffic, Venue


@dataclass(frozen=True)
class SolverConfig:
    max_time_seconds: int
    random_seed: int
    workers: int


def validate_solver_config(config: SolverConfig) -> None:
    if config.max_time_seconds <= 0:
        raise ValueError("max_time_seconds must be > 0")
    if config.random_seed < 0:
        raise ValueError("random_seed must be >= 0")
    if config.workers <= 0:
        raise ValueError("workers must be > 0")


def aggregate_traffic(allocation: Mapping[Event, Venue]) -> Traffic:
    """Sum the traffic every allocated venue generates for its event."""
    total = Traffic()
    for event, venue in allocation.items():
        total.merge(venue.traffic_for(event))
    return total


def find_allocation_violations(
    events: Sequence[Event],
    venues: Sequence[Venue],
    allocation: Mapping[Event, Venue],
) -> list[str]:
    """Return every broken allocation rule as a readable message.

    An empty list means the allocation covers every event, uses only known
    venues that can host their events, books no venue twice and keeps the
    combined traffic within every corridor capacity.
    """
    issues: list[str] = []

    event_ids = {id(event) for event in events}
    for event in events:
        if event not in allocation:
            issues.append(f"UNALLOCATED: event {event} has no venue")
    for event in allocation:
        if id(event) not in event_ids:
            issues.append(f"UNKNOWN EVENT: {event} was not requested")

    known_venues = set(venues)
    hostable: dict[Event, Venue] = {}
    for event, venue in allocation.items():
        if venue not in known_venues:
            issues.append(f"UNKNOWN VENUE: {venue.name} is not an available venue")
        if not venue.can_host(event):
            issues.append(
                f"CAPACITY: {venue.name} ({venue.capacity}) cannot host {event}"
            )
        else:
            hostable[event] = venue

    bookings = Counter(allocation.values())
    for venue, count in sorted(bookings.items(), key=lambda item: item[0].name):
        if count > 1:
            issues.append(f"DOUBLE BOOKING: {venue.name} hosts {count} events")

    traffic = aggregate_traffic(hostable)
    for corridor in traffic.overloaded_corridors():
        issues.append(
            f"TRAFFIC: {corridor} carries {traffic.get_load(corridor)}"
        )
    return issues
