"""Tabular views of allocations, venues and corridor utilisation."""

from __future__ import annotations

from typing import Mapping, Sequence

import pandas as pd

from venue_planner.domain.models import Event, Traffic, Venue


ALLOCATION_COLUMNS = ["event", "size", "venue", "venue_capacity"]
TRAFFIC_COLUMNS = ["start", "end", "capacity", "load", "utilisation", "safe"]
VENUE_COLUMNS = ["venue", "capacity", "corridors", "peak_load"]


def allocation_frame(allocation: Mapping[Event, Venue]) -> pd.DataFrame:
    rows = [
        {
            "event": event.name,
            "size": event.size,
            "venue": venue.name,
            "venue_capacity": venue.capacity,
        }
        for event, venue in allocation.items()
    ]
    frame = pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)
    return frame.sort_values(["event", "venue"], kind="stable").reset_index(drop=True)


def traffic_frame(traffic: Traffic) -> pd.DataFrame:
    """One row per loaded corridor in corridor order, with load as a share of capacity."""
    rows = [
        {
            "start": corridor.start.name,
            "end": corridor.end.name,
            "capacity": corridor.capacity,
            "load": load,
            "utilisation": round(load / corridor.capacity, 4),
            "safe": load <= corridor.capacity,
        }
        for corridor, load in traffic.items()
    ]
    return pd.DataFrame(rows, columns=TRAFFIC_COLUMNS)


def venue_frame(venues: Sequence[Venue]) -> pd.DataFrame:
    rows = []
    for venue in venues:
        loads = [load for _, load in venue.traffic.items()]
        rows.append(
            {
                "venue": venue.name,
                "capacity": venue.capacity,
                "corridors": len(loads),
                "peak_load": max(loads, default=0),
            }
        )
    return pd.DataFrame(rows, columns=VENUE_COLUMNS)
