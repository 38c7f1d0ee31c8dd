"""Command-line controller for loading venues and allocating events."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from venue_planner.domain.constraints import find_allocation_violations
from venue_planner.domain.models import Event, Venue
from venue_planner.repository.venue_reader import VenueFormatError, read_venues
from venue_planner.services.allocator_service import run_allocation
from venue_planner.services.feasibility_service import SolverDependencyError, certify
from venue_planner.services.report_service import allocation_frame, traffic_frame, venue_frame
from venue_planner.utils.config import get_settings
from venue_planner.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_NO_SOLUTION = 1
EXIT_INPUT_ERROR = 2
EXIT_CHECK_DISAGREEMENT = 3

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EventRequest(BaseModel):
    """Input DTO validated before entering the allocator."""

    name: str = Field(min_length=1)
    size: int = Field(gt=0)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("event name must not be blank")
        return value

    def to_event(self) -> Event:
        return Event(self.name, self.size)


_EVENT_LIST = TypeAdapter(list[EventRequest])


def load_events(path: Path) -> list[Event]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    requests = _EVENT_LIST.validate_python(payload)
    return [request.to_event() for request in requests]


def _print_frame(frame: pd.DataFrame, output_format: str) -> None:
    if output_format == "csv":
        print(frame.to_csv(index=False), end="")
    elif frame.empty:
        print("(none)")
    else:
        print(frame.to_string(index=False))


def _show_venues(venues: Sequence[Venue], output_format: str) -> int:
    if output_format == "csv":
        _print_frame(venue_frame(venues), output_format)
        return EXIT_OK
    for venue in venues:
        print(venue)
    return EXIT_OK


def _allocate(
    events: Sequence[Event],
    venues: Sequence[Venue],
    *,
    output_format: str,
    verify: bool,
) -> int:
    outcome = run_allocation(events, venues)

    if verify:
        result = certify(events, venues)
        if result.feasible != outcome.feasible and result.status_name != "UNKNOWN":
            print(
                f"Feasibility check disagrees with the allocator (status={result.status_name})",
                file=sys.stderr,
            )
            return EXIT_CHECK_DISAGREEMENT
        print(f"Feasibility check: {result.status_name}")

    if outcome.allocation is None:
        print("No safe allocation exists")
        return EXIT_NO_SOLUTION

    issues = find_allocation_violations(events, venues, outcome.allocation)
    if issues:
        raise RuntimeError("allocator returned an invalid allocation: " + "; ".join(issues))

    print("Allocation:")
    _print_frame(allocation_frame(outcome.allocation), output_format)
    print("Traffic:")
    _print_frame(traffic_frame(outcome.traffic), output_format)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="venue-planner",
        description="Allocate events to venues without overloading traffic corridors",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level, written to stderr (default WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    venues_parser = subparsers.add_parser("venues", help="Show the venues in a description file")
    venues_parser.add_argument("--venues", help="Path to the venue description file")
    venues_parser.add_argument("--format", choices=["text", "csv"], default="text")

    allocate_parser = subparsers.add_parser("allocate", help="Allocate events to venues")
    allocate_parser.add_argument("--events", required=True, help="Path to a JSON list of events")
    allocate_parser.add_argument("--venues", help="Path to the venue description file")
    allocate_parser.add_argument("--format", choices=["text", "csv"], default="text")
    allocate_parser.add_argument(
        "--verify",
        action="store_true",
        help="Cross-check the result with the CP-SAT feasibility model",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    logger.info("CLI command started | command=%s", args.command)

    settings = get_settings()
    venues_path = Path(args.venues) if args.venues else settings.venues_path
    try:
        venues = read_venues(venues_path)
        if args.command == "venues":
            return _show_venues(venues, args.format)
        events = load_events(Path(args.events))
        return _allocate(events, venues, output_format=args.format, verify=args.verify)
    except OSError as exc:
        print(f"Failed to read input: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except VenueFormatError as exc:
        print(f"Failed to load {venues_path}: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except (ValidationError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        print(f"Invalid events file: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except SolverDependencyError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_INPUT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
