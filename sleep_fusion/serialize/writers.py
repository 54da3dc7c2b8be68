from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from sleep_fusion.io.schema import SegmentRecord, SleepSummary
from sleep_fusion.models import Segment


def write_segments_jsonl(segments: Iterable[Segment], path: str | Path) -> Path:
    path = Path(path)
    with path.open("w", encoding="utf-8") as handle:
        for segment in segments:
            record = SegmentRecord.from_segment(segment)
            handle.write(record.model_dump_json() + "\n")
    return path


def write_summary(summary: SleepSummary, path: str | Path) -> Path:
    path = Path(path)
    path.write_text(summary.model_dump_json(indent=2) + "\n", encoding="utf-8")
    return path


def write_metadata(metadata: dict[str, Any], path: str | Path) -> Path:
    path = Path(path)
    payload = json.dumps(metadata, indent=2, sort_keys=True, default=str)
    path.write_text(payload + "\n", encoding="utf-8")
    return path


def write_night_outputs(
    segments: list[Segment],
    metadata: dict[str, Any],
    out_dir: str | Path,
    record_id: str,
) -> dict[str, Path]:
    record_dir = Path(out_dir) / record_id
    record_dir.mkdir(parents=True, exist_ok=True)
    return {
        "record_dir": record_dir,
        "segments": write_segments_jsonl(segments, record_dir / "segments.jsonl"),
        "metadata": write_metadata(metadata, record_dir / "metadata.json"),
    }
