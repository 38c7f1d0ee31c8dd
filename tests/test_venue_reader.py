"""Tests for the venue description file loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from venue_planner.repository.venue_reader import VenueFormatError, parse_venues, read_venues


DATA_DIR = Path(__file__).parent / "data"


def write_venues(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "venues.txt"
    path.write_text(content, encoding="utf-8")
    return path


def test_reads_single_venue() -> None:
    venues = read_venues(DATA_DIR / "venues_zoo.txt")

    assert len(venues) == 1
    assert str(venues[0]) == (
        "The Zoo (93)\n"
        "Corridor City to Royal Queensland Show - EKKA (400): 51\n"
        "Corridor City to St. Lucia (500): 7\n"
        "Corridor Valley to City (300): 71\n"
    )


def test_reads_venues_in_file_order() -> None:
    venues = read_venues(DATA_DIR / "venues_many.txt")

    assert [str(venue) for venue in venues] == [
        "The Gabba (200)\nCorridor l1 to l2 (200): 150\nCorridor l2 to l3 (100): 50\n",
        "Tivoli (50)\n",
        "Suncorp Stadium (100)\nCorridor l0 to l1 (100): 25\nCorridor l1 to l2 (200): 70\n",
    ]


def test_empty_file_has_no_venues() -> None:
    assert read_venues(DATA_DIR / "venues_empty.txt") == []


def test_windows_line_endings_are_accepted(tmp_path: Path) -> None:
    path = tmp_path / "venues.txt"
    path.write_bytes(b"Hall\r\n20\r\nCity, Valley, 30: 10\r\n\r\n")

    venues = read_venues(path)

    assert str(venues[0]) == "Hall (20)\nCorridor City to Valley (30): 10\n"


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        read_venues(tmp_path / "missing.txt")


@pytest.mark.parametrize(
    ("content", "line_number"),
    [
        ("Hall\n20\nCity, Valley, 30: 10\n", 3),
        ("\n", 1),
        ("Hall\n\n", 2),
        ("Hall\n0\n\n", 2),
        ("Hall\n00\n\n", 2),
        ("Hall\ntwenty\n\n", 2),
        ("Hall\n20\nCity, Valley, 30 10\n\n", 3),
        ("Hall\n20\nCity,Valley, 30: 10\n\n", 3),
        ("Hall\n20\nCity, Valley, 30: 0\n\n", 3),
        ("Hall\n20\nCity, Valley, 0: 5\n\n", 3),
        ("Hall\n20\nCity, City, 30: 5\n\n", 3),
        ("Hall\n20\nCity, Valley, 30: 5\nCity, Valley, 30: 6\n\n", 4),
        ("Hall\n20\nCity, Valley, 30: 31\n\n", 3),
        ("Hall\n20\nCity, Valley, 30: 21\n\n", 3),
        ("Hall\n20\n\nHall\n20\n\n", 6),
        ("Hall\n20\n\n\n", 4),
    ],
)
def test_malformed_files_report_the_line(tmp_path: Path, content: str, line_number: int) -> None:
    with pytest.raises(VenueFormatError) as excinfo:
        read_venues(write_venues(tmp_path, content))

    assert excinfo.value.line_number == line_number
    assert str(excinfo.value).startswith(f"line {line_number}:")


def test_same_corridor_with_different_capacity_is_a_separate_corridor() -> None:
    venues = parse_venues(["Hall", "20", "City, Valley, 30: 5", "City, Valley, 40: 6", ""])

    assert len(venues[0].corridors) == 2


def test_same_name_with_different_details_are_distinct_venues() -> None:
    venues = parse_venues(["Hall", "20", "", "Hall", "30", ""])

    assert [venue.capacity for venue in venues] == [20, 30]


def test_zero_padded_numbers_are_accepted() -> None:
    venues = parse_venues(["The Zoo", "093", "City, Valley, 0300: 071", ""])

    assert str(venues[0]) == "The Zoo (93)\nCorridor City to Valley (300): 71\n"


def test_undecodable_bytes_report_the_line(tmp_path: Path) -> None:
    path = tmp_path / "venues.txt"
    path.write_bytes(b"Hall\n20\n\nZoo\xff\n10\n\n")

    with pytest.raises(VenueFormatError) as excinfo:
        read_venues(path)

    assert excinfo.value.line_number == 4
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
