from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from sleep_fusion.errors import E_INPUT_INVALID, E_INPUT_MISSING, StagingError
from sleep_fusion.io.schema import NightInput, SegmentRecord, is_aware
from sleep_fusion.models import Segment


def read_night(path: str | Path) -> NightInput:
    path = Path(path)
    if not path.exists():
        raise StagingError(
            code=E_INPUT_MISSING,
            message="Night input file not found",
            details={"path": str(path)},
        )
    try:
        return NightInput.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise StagingError(
            code=E_INPUT_INVALID,
            message="Night input failed validation",
            details={"path": str(path), "errors": _error_locations(exc)},
        ) from exc


def read_segments(path: str | Path) -> list[Segment]:
    path = Path(path)
    if not path.exists():
        raise StagingError(
            code=E_INPUT_MISSING,
            message="Segments file not found",
            details={"path": str(path)},
        )
    segments: list[Segment] = []
    with path.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                record = SegmentRecord.model_validate(json.loads(line))
            except (json.JSONDecodeError, ValidationError) as exc:
                raise StagingError(
                    code=E_INPUT_INVALID,
                    message="Invalid segment record",
                    details={"path": str(path), "line": line_no, "error": str(exc)},
                ) from exc
            segments.append(record.to_segment())
    stamps = [stamp for segment in segments for stamp in (segment.start_time, segment.end_time)]
    if len({is_aware(stamp) for stamp in stamps}) > 1:
        raise StagingError(
            code=E_INPUT_INVALID,
            message="Segment timestamps mix naive and timezone-aware values",
            details={"path": str(path)},
        )
    return segments


def _error_locations(exc: ValidationError) -> list[dict[str, str]]:
    return [
        {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
        for error in exc.errors()
    ]
