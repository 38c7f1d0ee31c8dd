"""Backtracking search that assigns events to venues with safe traffic.

The search keeps one mutable traffic ledger for the whole run. A venue's
profile is applied inside `_tentative_booking`, which always removes it again
when the branch finishes, so every sibling branch starts from the ledger its
parent saw.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

from venue_planner.domain.constraints import aggregate_traffic
from venue_planner.domain.models import Event, Traffic, Venue
from venue_planner.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class AllocationOutcome:
    allocation: Optional[dict[Event, Venue]]
    traffic: Traffic
    explored_nodes: int

    @property
    def feasible(self) -> bool:
        return self.allocation is not None


@dataclass
class _SearchState:
    profiles: list[Traffic]
    candidates: dict[int, list[int]]
    ledger: Traffic = field(default_factory=Traffic)
    consumed: set[int] = field(default_factory=set)
    chosen: dict[int, int] = field(default_factory=dict)
    solution: Optional[dict[int, int]] = None
    explored_nodes: int = 0


def _validate_inputs(events: Sequence[Event], venues: Sequence[Venue]) -> None:
    if events is None or venues is None:
        raise TypeError("events and venues must not be None")
    for event in events:
        if not isinstance(event, Event):
            raise TypeError(f"expected Event, got {event!r}")
    for venue in venues:
        if not isinstance(venue, Venue):
            raise TypeError(f"expected Venue, got {venue!r}")
    if len({id(event) for event in events}) != len(events):
        raise ValueError("the same event object appears more than once")
    if len(set(venues)) != len(venues):
        raise ValueError("equal venues appear more than once")


@contextmanager
def _tentative_booking(state: _SearchState, event_index: int, venue_index: int) -> Iterator[None]:
    state.ledger.merge(state.profiles[venue_index])
    state.consumed.add(venue_index)
    state.chosen[event_index] = venue_index
    try:
        yield
    finally:
        del state.chosen[event_index]
        state.consumed.discard(venue_index)
        state.ledger.subtract(state.profiles[venue_index])


def _open_candidates(state: _SearchState, event_index: int) -> Iterator[int]:
    for venue_index in state.candidates[event_index]:
        if venue_index in state.consumed:
            continue
        if not state.ledger.fits(state.profiles[venue_index]):
            continue
        yield venue_index


def _remaining_events_placeable(state: _SearchState, remaining: Sequence[int]) -> bool:
    return all(
        next(_open_candidates(state, event_index), None) is not None
        for event_index in remaining
    )


def _search(state: _SearchState, order: Sequence[int], depth: int) -> bool:
    if depth == len(order):
        state.solution = dict(state.chosen)
        return True

    event_index = order[depth]
    remaining = order[depth + 1:]
    for venue_index in list(_open_candidates(state, event_index)):
        state.explored_nodes += 1
        with _tentative_booking(state, event_index, venue_index):
            if not _remaining_events_placeable(state, remaining):
                continue
            if _search(state, order, depth + 1):
                return True
    return False


def _search_order(events: Sequence[Event], candidates: dict[int, list[int]]) -> list[int]:
    return sorted(
        range(len(events)),
        key=lambda index: (len(candidates[index]), -events[index].size, index),
    )


def _run_search(events: Sequence[Event], venues: Sequence[Venue]) -> tuple[Optional[dict[Event, Venue]], int]:
    _validate_inputs(events, venues)
    if not events:
        return {}, 0

    candidates = {
        event_index: [
            venue_index
            for venue_index, venue in enumerate(venues)
            if venue.can_host(event)
        ]
        for event_index, event in enumerate(events)
    }
    if len(events) > len(venues) or any(not options for options in candidates.values()):
        logger.debug(
            "Allocation rejected before search | events=%s | venues=%s",
            len(events),
            len(venues),
        )
        return None, 0

    state = _SearchState(
        profiles=[venue.traffic for venue in venues],
        candidates=candidates,
    )
    order = _search_order(events, candidates)
    found = _search(state, order, 0)
    logger.debug(
        "Allocation search finished | found=%s | explored_nodes=%s",
        found,
        state.explored_nodes,
    )
    if not found or state.solution is None:
        return None, state.explored_nodes
    allocation = {
        event: venues[state.solution[event_index]]
        for event_index, event in enumerate(events)
    }
    return allocation, state.explored_nodes


def allocate(events: Sequence[Event], venues: Sequence[Venue]) -> Optional[dict[Event, Venue]]:
    """Return a safe one-to-one allocation of `events` to `venues`, or None.

    None means no allocation exists: some event fits no free venue, or every
    combination that fits overloads a shared corridor. It is an ordinary
    result, not an error. Inputs are never mutated and identical inputs always
    produce the same allocation.
    """
    allocation, _ = _run_search(events, venues)
    return allocation


def run_allocation(events: Sequence[Event], venues: Sequence[Venue]) -> AllocationOutcome:
    """Allocate and report the aggregate traffic plus search statistics."""
    allocation, explored_nodes = _run_search(events, venues)
    traffic = aggregate_traffic(allocation) if allocation is not None else Traffic()
    logger.info(
        "Allocation completed | events=%s | venues=%s | feasible=%s | explored_nodes=%s",
        len(events),
        len(venues),
        allocation is not None,
        explored_nodes,
    )
    return AllocationOutcome(
        allocation=allocation,
        traffic=traffic,
        explored_nodes=explored_nodes,
    )
