"""Independent CP-SAT feasibility check for event allocations.

The backtracking allocator is the production engine. This module states the
same problem as a constraint model so that callers (and the test-suite) can
confirm that a reported NO_SOLUTION really is infeasible.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Optional, Sequence

try:
    from ortools.sat.python import cp_model
except ModuleNotFoundError:  # pragma: no cover - runtime dependency guard
    cp_model = None  # type: ignore[assignment]

from venue_planner.domain.constraints import SolverConfig, validate_solver_config
from venue_planner.domain.models import Corridor, Event, Venue
from venue_planner.utils.config import Settings, get_settings
from venue_planner.utils.logger import get_logger


logger = get_logger(__name__)


class SolverDependencyError(Exception):
    """Raised when OR-Tools is unavailable in the runtime."""


@dataclass(frozen=True)
class BuildArtifacts:
    model: Any
    variables: dict[tuple[int, int], Any]
    events: Sequence[Event]
    venues: Sequence[Venue]


@dataclass(frozen=True)
class FeasibilityResult:
    status_name: str
    allocation: Optional[dict[Event, Venue]]

    @property
    def feasible(self) -> bool:
        return self.allocation is not None

    @property
    def proven_infeasible(self) -> bool:
        return self.status_name == "INFEASIBLE"


def _ensure_solver_dependency() -> None:
    if cp_model is None:
        raise SolverDependencyError(
            "OR-Tools is not installed. Install 'ortools' to enable feasibility checks."
        )


def solver_config_from_settings(settings: Optional[Settings] = None) -> SolverConfig:
    resolved = settings or get_settings()
    config = SolverConfig(
        max_time_seconds=resolved.solver_max_time_seconds,
        random_seed=resolved.solver_random_seed,
        workers=resolved.solver_workers,
    )
    validate_solver_config(config)
    return config


def build_model(*, events: Sequence[Event], venues: Sequence[Venue]) -> BuildArtifacts:
    """Build the assignment model: one boolean per hostable (event, venue) pair."""
    _ensure_solver_dependency()
    model = cp_model.CpModel()
    variables: dict[tuple[int, int], cp_model.IntVar] = {}

    for event_index, event in enumerate(events):
        for venue_index, venue in enumerate(venues):
            if not venue.can_host(event):
                continue
            variables[(event_index, venue_index)] = model.NewBoolVar(
                f"x_event_{event_index}_venue_{venue_index}"
            )

    for event_index in range(len(events)):
        event_vars = [
            var
            for (candidate_event, _), var in variables.items()
            if candidate_event == event_index
        ]
        if event_vars:
            model.Add(sum(event_vars) == 1)
        else:
            # no venue can host this event
            unplaceable = model.NewIntVar(0, 0, f"unplaceable_event_{event_index}")
            model.Add(unplaceable == 1)

    venue_usage: dict[int, Any] = {}
    for venue_index in range(len(venues)):
        venue_vars = [
            var
            for (_, candidate_venue), var in variables.items()
            if candidate_venue == venue_index
        ]
        if venue_vars:
            model.Add(sum(venue_vars) <= 1)
            venue_usage[venue_index] = sum(venue_vars)

    corridor_terms: dict[Corridor, list[Any]] = defaultdict(list)
    for venue_index, venue in enumerate(venues):
        if venue_index not in venue_usage:
            continue
        for corridor, load in venue.traffic.items():
            corridor_terms[corridor].append(load * venue_usage[venue_index])

    for corridor in sorted(corridor_terms):
        model.Add(sum(corridor_terms[corridor]) <= corridor.capacity)
        logger.debug(
            "Corridor capacity constraint added | corridor=%s | venues=%s",
            corridor,
            len(corridor_terms[corridor]),
        )

    return BuildArtifacts(
        model=model,
        variables=variables,
        events=events,
        venues=venues,
    )


def solve_model(*, artifacts: BuildArtifacts, config: SolverConfig) -> FeasibilityResult:
    """Solve the model within the configured time limit."""
    _ensure_solver_dependency()
    validate_solver_config(config)

    if not artifacts.events:
        return FeasibilityResult(status_name="OPTIMAL", allocation={})

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(config.max_time_seconds)
    solver.parameters.num_search_workers = config.workers
    solver.parameters.random_seed = config.random_seed

    status = solver.Solve(artifacts.model)
    status_name = solver.StatusName(status)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        logger.info("Feasibility check found no allocation | status=%s", status_name)
        return FeasibilityResult(status_name=status_name, allocation=None)

    chosen: dict[int, int] = {}
    for (event_index, venue_index), var in artifacts.variables.items():
        if solver.Value(var) == 1:
            chosen[event_index] = venue_index

    allocation = {
        event: artifacts.venues[chosen[event_index]]
        for event_index, event in enumerate(artifacts.events)
    }
    logger.info(
        "Feasibility check completed | status=%s | events=%s",
        status_name,
        len(allocation),
    )
    return FeasibilityResult(status_name=status_name, allocation=allocation)


def certify(
    events: Sequence[Event],
    venues: Sequence[Venue],
    config: Optional[SolverConfig] = None,
) -> FeasibilityResult:
    """Decide feasibility of `allocate(events, venues)` with CP-SAT."""
    resolved_config = config or solver_config_from_settings()
    artifacts = build_model(events=events, venues=venues)
    return solve_model(artifacts=artifacts, config=resolved_config)
