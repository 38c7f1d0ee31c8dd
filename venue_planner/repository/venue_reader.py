"""Loader for plain-text venue description files.

A file holds zero or more venue blocks, each made of a name line, a capacity
line, one `START, END, CAPACITY: TRAFFIC` line per corridor the venue loads
when hosting its largest event, and a terminating empty line::

    The Zoo
    93
    City, Royal Queensland Show - EKKA, 400: 51
    Valley, City, 300: 71

"""

from __future__ import annotations

import re
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Union

from venue_planner.domain.models import Corridor, Location, Traffic, Venue
from venue_planner.utils.logger import get_logger


logger = get_logger(__name__)

_POSITIVE_INT = re.compile(r"0*[1-9][0-9]*")
_CORRIDOR_LINE = re.compile(
    r"(?P<start>[^,:]+), (?P<end>[^,:]+), (?P<capacity>[^,:]*): (?P<traffic>[^,:]*)"
)


class VenueFormatError(ValueError):
    """Raised when a venue description file does not follow the expected format."""

    def __init__(self, message: str, line_number: int) -> None:
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number


class _VenueBlock:
    """Venue fields collected so far while reading one description."""

    def __init__(self) -> None:
        self.name: Optional[str] = None
        self.capacity: Optional[int] = None
        self.traffic = Traffic()


def _parse_positive_int(raw: str, label: str, line_number: int) -> int:
    if not _POSITIVE_INT.fullmatch(raw):
        raise VenueFormatError(f"{label} must be a positive integer, got {raw!r}", line_number)
    return int(raw)


def _parse_corridor_line(line: str, block: _VenueBlock, line_number: int) -> None:
    match = _CORRIDOR_LINE.fullmatch(line)
    if match is None:
        raise VenueFormatError(
            f"expected 'START, END, CAPACITY: TRAFFIC', got {line!r}",
            line_number,
        )

    capacity = _parse_positive_int(match.group("capacity"), "corridor capacity", line_number)
    amount = _parse_positive_int(match.group("traffic"), "traffic", line_number)
    try:
        corridor = Corridor(Location(match.group("start")), Location(match.group("end")), capacity)
    except ValueError as exc:
        raise VenueFormatError(f"invalid corridor: {exc}", line_number) from exc

    if corridor in block.traffic.corridors_with_load():
        raise VenueFormatError(f"{corridor} is listed more than once", line_number)
    if amount > corridor.capacity:
        raise VenueFormatError(f"traffic {amount} exceeds the capacity of {corridor}", line_number)
    if block.capacity is not None and amount > block.capacity:
        raise VenueFormatError(
            f"traffic {amount} exceeds the venue capacity {block.capacity}",
            line_number,
        )
    block.traffic.update(corridor, amount)


def _finish_block(block: _VenueBlock, venues: list[Venue], line_number: int) -> None:
    if block.name is None:
        raise VenueFormatError("unexpected empty line, expected a venue name", line_number)
    if block.capacity is None:
        raise VenueFormatError(
            f"venue '{block.name}' is missing its capacity line",
            line_number,
        )
    try:
        venue = Venue(block.name, block.capacity, block.traffic)
    except ValueError as exc:
        raise VenueFormatError(str(exc), line_number) from exc
    if venue in venues:
        raise VenueFormatError(f"venue '{venue.name}' is described more than once", line_number)
    venues.append(venue)


def parse_venues(lines: Iterable[str]) -> list[Venue]:
    """Parse venue descriptions from lines with their line endings stripped."""
    venues: list[Venue] = []
    block = _VenueBlock()
    line_number = 0
    last_line = ""

    for line_number, line in enumerate(lines, start=1):
        last_line = line
        if line == "":
            _finish_block(block, venues, line_number)
            block = _VenueBlock()
        elif block.name is None:
            block.name = line
        elif block.capacity is None:
            block.capacity = _parse_positive_int(line, "venue capacity", line_number)
        else:
            _parse_corridor_line(line, block, line_number)

    if line_number and last_line != "":
        raise VenueFormatError(
            "the last venue description must end with an empty line",
            line_number,
        )
    return venues


def _decoded_lines(handle: BinaryIO) -> Iterator[str]:
    for line_number, raw in enumerate(handle, start=1):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise VenueFormatError("line is not valid UTF-8 text", line_number) from exc
        yield line.rstrip("\r\n")


def read_venues(path: Union[str, Path]) -> list[Venue]:
    """Read venues in file order; raises OSError if the file cannot be read."""
    file_path = Path(path)
    with file_path.open("rb") as handle:
        venues = parse_venues(_decoded_lines(handle))
    logger.info("Venues loaded | path=%s | venues=%s", file_path, len(venues))
    return venues
