#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from hudur.db import build_engine, get_db, init_db
from hudur.errors import HudurError
from hudur.logging_utils import setup_json_logging
from hudur.services.daily_attendance import calculate_attendance_records
from hudur.services.records import save_daily_attendance
from hudur.services.snapshot import load_snapshot
from hudur.services.summary import summarize_attendance

logger = logging.getLogger("hudur.scripts.calculate")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute daily attendance records from a JSON snapshot.")
    parser.add_argument("snapshot", type=Path, help="JSON file with employees, punches, missions, leaves, specialRules")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Limit the run to one YYYY-MM-DD day")
    parser.add_argument("--save", action="store_true", help="Upsert the records into DATABASE_URL")
    parser.add_argument("--month", default=None, help="Restrict the printed summary to YYYY-MM")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    setup_json_logging()
    args = _parse_args(argv)

    try:
        snapshot = load_snapshot(args.snapshot)
    except HudurError as exc:
        print(json.dumps(exc.to_payload(), ensure_ascii=False, indent=2))
        return 1

    records = calculate_attendance_records(
        snapshot.employees,
        snapshot.punches,
        snapshot.missions,
        snapshot.leaves,
        snapshot.special_rules,
        target_date=args.date,
    )

    if args.save:
        engine = build_engine()
        try:
            init_db(engine)
            for db in get_db(engine):
                records = save_daily_attendance(db, records)
        finally:
            engine.dispose()

    summary = summarize_attendance(snapshot.employees, records, month=args.month)
    output = {
        "record_count": len(records),
        "saved": bool(args.save),
        "summary": [item.model_dump(mode="json", by_alias=True) for item in summary],
    }
    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
