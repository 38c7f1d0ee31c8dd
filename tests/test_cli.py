"""End-to-end tests for the command-line controller."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from venue_planner.controllers import cli_controller
from venue_planner.controllers.cli_controller import (
    EXIT_CHECK_DISAGREEMENT,
    EXIT_INPUT_ERROR,
    EXIT_NO_SOLUTION,
    EXIT_OK,
    load_events,
    main,
)
from venue_planner.services.feasibility_service import FeasibilityResult


DATA_DIR = Path(__file__).parent / "data"


def write_events(tmp_path: Path, payload) -> Path:
    path = tmp_path / "events.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_load_events_builds_distinct_events() -> None:
    events = load_events(DATA_DIR / "events_task_sheet.json")

    assert [(event.name, event.size) for event in events] == [("e0", 10), ("e1", 7), ("e2", 5)]


def test_venues_command_prints_each_venue(capsys) -> None:
    code = main(["venues", "--venues", str(DATA_DIR / "venues_many.txt")])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "The Gabba (200)\nCorridor l1 to l2 (200): 150\nCorridor l2 to l3 (100): 50\n" in out
    assert "Tivoli (50)\n" in out


def test_venues_command_csv(capsys) -> None:
    code = main(["venues", "--venues", str(DATA_DIR / "venues_many.txt"), "--format", "csv"])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "venue,capacity,corridors,peak_load" in out
    assert "Tivoli,50,0,0" in out


def test_allocate_prints_allocation_and_traffic(capsys) -> None:
    code = main(
        [
            "allocate",
            "--events",
            str(DATA_DIR / "events_task_sheet.json"),
            "--venues",
            str(DATA_DIR / "venues_task_sheet.txt"),
        ]
    )

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "Allocation:" in out
    assert "Traffic:" in out
    assert "Brisbane Powerhouse" in out
    assert "The Tivoli" not in out


def test_allocate_csv_output(capsys) -> None:
    code = main(
        [
            "allocate",
            "--events",
            str(DATA_DIR / "events_task_sheet.json"),
            "--venues",
            str(DATA_DIR / "venues_task_sheet.txt"),
            "--format",
            "csv",
        ]
    )

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "event,size,venue,venue_capacity" in out
    assert "e2,5,Brisbane Powerhouse,5" in out
    assert "City,Valley,12,6,0.5,True" in out


def test_allocate_without_solution_exits_with_one(tmp_path: Path, capsys) -> None:
    events = write_events(tmp_path, [{"name": "a", "size": 40}, {"name": "b", "size": 45}])

    code = main(
        ["allocate", "--events", str(events), "--venues", str(DATA_DIR / "venues_shared_corridor.txt")]
    )

    assert code == EXIT_NO_SOLUTION
    assert "No safe allocation exists" in capsys.readouterr().out


def test_allocate_with_no_events_succeeds(tmp_path: Path, capsys) -> None:
    events = write_events(tmp_path, [])

    code = main(["allocate", "--events", str(events), "--venues", str(DATA_DIR / "venues_empty.txt")])

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert "(none)" in out


@pytest.mark.parametrize(
    "payload",
    [
        [{"name": "a", "size": 0}],
        [{"name": " ", "size": 5}],
        [{"size": 5}],
        {"name": "a", "size": 5},
    ],
)
def test_invalid_events_file_exits_with_two(tmp_path: Path, capsys, payload) -> None:
    events = write_events(tmp_path, payload)

    code = main(["allocate", "--events", str(events), "--venues", str(DATA_DIR / "venues_zoo.txt")])

    assert code == EXIT_INPUT_ERROR
    assert "Invalid events file" in capsys.readouterr().err


def test_events_file_that_is_not_json_exits_with_two(tmp_path: Path, capsys) -> None:
    path = tmp_path / "events.json"
    path.write_text("not json", encoding="utf-8")

    code = main(["allocate", "--events", str(path), "--venues", str(DATA_DIR / "venues_zoo.txt")])

    assert code == EXIT_INPUT_ERROR
    assert "Invalid events file" in capsys.readouterr().err


def test_missing_venues_file_exits_with_two(tmp_path: Path, capsys) -> None:
    code = main(["venues", "--venues", str(tmp_path / "missing.txt")])

    assert code == EXIT_INPUT_ERROR
    assert "Failed to read input" in capsys.readouterr().err


def test_malformed_venues_file_reports_line(tmp_path: Path, capsys) -> None:
    path = tmp_path / "venues.txt"
    path.write_text("Hall\nbig\n\n", encoding="utf-8")

    code = main(["venues", "--venues", str(path)])

    assert code == EXIT_INPUT_ERROR
    assert "line 2:" in capsys.readouterr().err


def test_verify_reports_solver_status(tmp_path: Path, capsys) -> None:
    pytest.importorskip("ortools")
    events = write_events(tmp_path, [{"name": "a", "size": 40}, {"name": "b", "size": 45}])

    code = main(
        [
            "allocate",
            "--events",
            str(events),
            "--venues",
            str(DATA_DIR / "venues_shared_corridor.txt"),
            "--verify",
        ]
    )

    out = capsys.readouterr().out
    assert code == EXIT_NO_SOLUTION
    assert "Feasibility check: INFEASIBLE" in out


def test_undecodable_venues_file_exits_with_two(tmp_path: Path, capsys) -> None:
    path = tmp_path / "venues.txt"
    path.write_bytes(b"Zoo\xff\n10\n\n")

    code = main(["venues", "--venues", str(path)])

    assert code == EXIT_INPUT_ERROR
    assert "line 1:" in capsys.readouterr().err


def test_undecodable_events_file_exits_with_two(tmp_path: Path, capsys) -> None:
    path = tmp_path / "events.json"
    path.write_bytes(b'[{"name": "\xff", "size": 5}]')

    code = main(["allocate", "--events", str(path), "--venues", str(DATA_DIR / "venues_zoo.txt")])

    assert code == EXIT_INPUT_ERROR
    assert "Invalid events file" in capsys.readouterr().err


def test_unknown_log_level_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--log-level", "loud", "venues", "--venues", str(DATA_DIR / "venues_empty.txt")])

    assert excinfo.value.code == 2
    assert "--log-level" in capsys.readouterr().err


def test_log_level_is_case_insensitive_and_csv_stays_clean(capsys) -> None:
    code = main(
        [
            "--log-level",
            "info",
            "venues",
            "--venues",
            str(DATA_DIR / "venues_many.txt"),
            "--format",
            "csv",
        ]
    )

    out = capsys.readouterr().out
    assert code == EXIT_OK
    assert out.splitlines() == [
        "venue,capacity,corridors,peak_load",
        "The Gabba,200,2,150",
        "Tivoli,50,0,0",
        "Suncorp Stadium,100,2,70",
    ]


def test_checker_disagreement_has_its_own_exit_code(tmp_path: Path, capsys, monkeypatch) -> None:
    events = write_events(tmp_path, [{"name": "a", "size": 40}, {"name": "b", "size": 45}])
    monkeypatch.setattr(
        cli_controller,
        "certify",
        lambda events, venues: FeasibilityResult(status_name="OPTIMAL", allocation={}),
    )

    code = main(
        [
            "allocate",
            "--events",
            str(events),
            "--venues",
            str(DATA_DIR / "venues_shared_corridor.txt"),
            "--verify",
        ]
    )

    assert code == EXIT_CHECK_DISAGREEMENT
    assert EXIT_CHECK_DISAGREEMENT not in (EXIT_OK, EXIT_NO_SOLUTION, EXIT_INPUT_ERROR)
    assert "disagrees" in capsys.readouterr().err
