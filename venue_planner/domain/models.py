"""Domain models for venues, corridors and the traffic ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Union


class InvalidTrafficError(ValueError):
    """Raised when a traffic amount would be negative or exceed a capacity."""


@dataclass(frozen=True, order=True)
class Location:
    name: str

    def __post_init__(self) -> None:
        if self.name is None:
            raise TypeError("location name must not be None")
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("location name must be a non-empty string")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, order=True)
class Corridor:
    """Directed traffic corridor between two distinct locations.

    Ordering is lexicographic on (start, end, capacity) which is also the order
    used by every canonical rendering.
    """

    start: Location
    end: Location
    capacity: int

    def __post_init__(self) -> None:
        if self.start is None or self.end is None:
            raise TypeError("the start and end locations must not be None")
        if self.start == self.end:
            raise ValueError("the start and end locations must be different")
        if self.capacity <= 0:
            raise ValueError("capacity must be greater than zero")

    def __str__(self) -> str:
        return f"Corridor {self.start} to {self.end} ({self.capacity})"


TrafficSource = Union["Traffic", Mapping[Corridor, int]]


class Traffic:
    """Mutable ledger of non-negative load per corridor.

    Corridors with zero load are never stored, so two ledgers compare equal
    exactly when their non-zero entries match. Constructing a ledger from
    another one (or calling `copy`) produces an independent deep copy.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, initial: Optional[TrafficSource] = None) -> None:
        self._loads: dict[Corridor, int] = {}
        if initial is None:
            return
        entries = initial.items()
        for corridor, load in entries:
            self.update(corridor, load)

    def copy(self) -> "Traffic":
        return Traffic(self)

    def get_load(self, corridor: Corridor) -> int:
        if corridor is None:
            raise TypeError("corridor must not be None")
        return self._loads.get(corridor, 0)

    def corridors_with_load(self) -> set[Corridor]:
        return set(self._loads)

    def items(self) -> list[tuple[Corridor, int]]:
        return [(corridor, self._loads[corridor]) for corridor in sorted(self._loads)]

    def update(self, corridor: Corridor, delta: int) -> None:
        """Add `delta` (possibly negative) to the load on `corridor`."""
        if corridor is None:
            raise TypeError("corridor must not be None")
        new_load = self._loads.get(corridor, 0) + delta
        if new_load < 0:
            raise InvalidTrafficError(
                f"traffic on {corridor} must not become negative (would be {new_load})"
            )
        if new_load == 0:
            self._loads.pop(corridor, None)
        else:
            self._loads[corridor] = new_load

    def merge(self, other: "Traffic") -> None:
        if other is None:
            raise TypeError("other traffic must not be None")
        for corridor, load in list(other._loads.items()):
            self.update(corridor, load)

    def subtract(self, other: "Traffic") -> None:
        """Remove all of `other` from this ledger, or nothing if any load would go negative."""
        if other is None:
            raise TypeError("other traffic must not be None")
        entries = list(other._loads.items())
        for corridor, load in entries:
            if self._loads.get(corridor, 0) < load:
                raise InvalidTrafficError(
                    f"cannot remove {load} from {corridor}: only "
                    f"{self._loads.get(corridor, 0)} recorded"
                )
        for corridor, load in entries:
            self.update(corridor, -load)

    def fits(self, other: "Traffic") -> bool:
        """Whether merging `other` keeps every corridor it touches within capacity."""
        return all(
            self._loads.get(corridor, 0) + load <= corridor.capacity
            for corridor, load in other._loads.items()
        )

    def is_safe(self) -> bool:
        return all(load <= corridor.capacity for corridor, load in self._loads.items())

    def overloaded_corridors(self) -> list[Corridor]:
        return sorted(
            corridor
            for corridor, load in self._loads.items()
            if load > corridor.capacity
        )

    def same_traffic(self, other: "Traffic") -> bool:
        if other is None:
            raise TypeError("other traffic must not be None")
        return self._loads == other._loads

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Traffic):
            return NotImplemented
        return self._loads == other._loads

    def __len__(self) -> int:
        return len(self._loads)

    def __iter__(self) -> Iterator[Corridor]:
        return iter(sorted(self._loads))

    def __repr__(self) -> str:
        entries = ", ".join(f"{corridor}: {load}" for corridor, load in self.items())
        return f"Traffic({{{entries}}})"

    def __str__(self) -> str:
        return "".join(f"{corridor}: {load}\n" for corridor, load in self.items())


@dataclass(frozen=True, eq=False)
class Event:
    """A named request for space; compared by identity so every booking is distinct."""

    name: str
    size: int

    def __post_init__(self) -> None:
        if self.name is None:
            raise TypeError("event name must not be None")
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("event name must be a non-empty string")
        if self.size <= 0:
            raise ValueError("event size must be greater than zero")

    def __str__(self) -> str:
        return f"{self.name} ({self.size})"


class Venue:
    """A place that can host one event at a time.

    `profile` is the traffic generated when hosting the largest event the venue
    can hold. Any event the venue can host is charged that full profile.
    """

    __slots__ = ("_name", "_capacity", "_profile")

    def __init__(self, name: str, capacity: int, traffic: TrafficSource) -> None:
        if name is None or traffic is None:
            raise TypeError("venue name and traffic must not be None")
        if not isinstance(name, str) or not name:
            raise ValueError("venue name must be a non-empty string")
        if capacity <= 0:
            raise ValueError("venue capacity must be greater than zero")

        profile = traffic.copy() if isinstance(traffic, Traffic) else Traffic(traffic)
        for corridor, load in profile.items():
            if load > corridor.capacity:
                raise InvalidTrafficError(
                    f"traffic {load} on {corridor} exceeds the corridor capacity"
                )
            if load > capacity:
                raise InvalidTrafficError(
                    f"traffic {load} on {corridor} exceeds the capacity of venue '{name}'"
                )

        self._name = name
        self._capacity = capacity
        self._profile: tuple[tuple[Corridor, int], ...] = tuple(profile.items())

    @property
    def name(self) -> str:
        return self._name

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def traffic(self) -> Traffic:
        return Traffic(dict(self._profile))

    @property
    def corridors(self) -> list[Corridor]:
        return [corridor for corridor, _ in self._profile]

    def can_host(self, event: Event) -> bool:
        if event is None:
            raise TypeError("event must not be None")
        return event.size <= self._capacity

    def traffic_for(self, event: Event) -> Traffic:
        if not self.can_host(event):
            raise ValueError(
                f"venue '{self._name}' ({self._capacity}) cannot host event {event}"
            )
        return self.traffic

    def _key(self) -> tuple[str, int, tuple[tuple[Corridor, int], ...]]:
        return (self._name, self._capacity, self._profile)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Venue):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"Venue({self._name!r}, {self._capacity})"

    def __str__(self) -> str:
        return f"{self._name} ({self._capacity})\n" + str(Traffic(dict(self._profile)))
