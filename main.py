"""
main.py — Command-line launcher.

Run this file to work with a venue description file directly:

    python main.py venues --venues venues.txt
    python main.py allocate --events events.json --venues venues.txt --verify

This file does NOT contain application logic. See
venue_planner/controllers/cli_controller.py for argument handling and
venue_planner/services/ for the allocator itself.

Installed usage:
    venue-planner allocate --events events.json
"""

from __future__ import annotations

from venue_planner.controllers.cli_controller import main


if __name__ == "__main__":
    raise SystemExit(main())
