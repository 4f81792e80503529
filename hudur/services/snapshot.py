from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from hudur.errors import SnapshotError
from hudur.schemas import AttendanceSnapshot


def load_snapshot(path: Path) -> AttendanceSnapshot:
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc

    try:
        return AttendanceSnapshot.model_validate(raw)
    except ValidationError as exc:
        raise SnapshotError(f"Snapshot failed validation: {exc.error_count()} error(s)\n{exc}") from exc
