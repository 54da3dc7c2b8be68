from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from sleep_fusion.config import StagingConfig, load_config
from sleep_fusion.core.logging import LOG_LEVELS, configure_logging
from sleep_fusion.core.settings import Settings, get_settings
from sleep_fusion.errors import (
    E_CONFIG_INVALID,
    E_INPUT_INVALID,
    E_INPUT_MISSING,
    E_OUTPUT_CONFLICT,
    StagingError,
    to_failure_payload,
)
from sleep_fusion.io.reader import read_night, read_segments
from sleep_fusion.io.schema import is_aware
from sleep_fusion.models import Segment
from sleep_fusion.pipeline import stage_night
from sleep_fusion.serialize.writers import write_night_outputs, write_summary
from sleep_fusion.summary.aggregates import LookbackRange, summarize

logger = logging.getLogger("sleep_fusion.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sleep-fusion")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Overrides SLEEP_FUSION_LOG_LEVEL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    stage_parser = subparsers.add_parser("stage", help="Stage one or more night input files")
    stage_parser.add_argument("--input", required=True, help="Night .json file or directory")
    stage_parser.add_argument("--output", required=True, help="Output directory")
    stage_parser.add_argument("--config", default=None, help="Path to config YAML")
    stage_parser.add_argument("--manifest", dest="manifest", action="store_true")
    stage_parser.add_argument("--no-manifest", dest="manifest", action="store_false")
    stage_parser.set_defaults(manifest=True)

    summary_parser = subparsers.add_parser("summary", help="Aggregate a segments.jsonl file")
    summary_parser.add_argument("--segments", required=True, help="segments.jsonl path")
    summary_parser.add_argument("--now", default=None, help="ISO-8601 end of the lookback window")
    window = summary_parser.add_mutually_exclusive_group()
    window.add_argument(
        "--range",
        dest="lookback",
        choices=[item.value for item in LookbackRange],
        default=None,
    )
    window.add_argument("--days", type=float, default=None)
    summary_parser.add_argument("--config", default=None, help="Path to config YAML")
    summary_parser.add_argument("--output", default=None, help="Write summary JSON here")
    return parser


def find_night_files(input_path: Path) -> list[Path]:
    if input_path.is_file():
        return [input_path]
    files: list[Path] = []
    for root, _, filenames in os.walk(input_path):
        for name in filenames:
            if name.lower().endswith(".json"):
                files.append(Path(root) / name)
    return sorted(files)


def record_id_for(path: Path, input_path: Path) -> str:
    """``nights/2026/03/night.json`` under ``nights`` becomes ``2026__03__night``."""
    if input_path.is_file():
        return path.stem
    relative = path.relative_to(input_path).with_suffix("")
    return "__".join(relative.parts)


def run_stage(args: argparse.Namespace, config: StagingConfig) -> None:
    out_dir = Path(args.output)
    input_path = Path(args.input)

    files = find_night_files(input_path)
    if not files:
        raise StagingError(
            code=E_INPUT_MISSING,
            message="No night .json files found",
            details={"input": str(args.input)},
        )

    record_ids: dict[str, Path] = {}
    for path in files:
        record_id = record_id_for(path, input_path)
        if record_id in record_ids:
            raise StagingError(
                code=E_OUTPUT_CONFLICT,
                message="Two night files map to the same record id",
                details={
                    "record_id": record_id,
                    "paths": [str(record_ids[record_id]), str(path)],
                },
            )
        record_ids[record_id] = path

    out_dir.mkdir(parents=True, exist_ok=True)
    manifest_entries: list[dict[str, object]] = []
    for record_id, path in record_ids.items():
        night = read_night(path)
        result = stage_night(night.to_streams(), night.range_start, night.range_end, config)
        outputs = write_night_outputs(result.segments, result.metadata, out_dir, record_id)
        manifest_entries.append(
            {
                "record_id": record_id,
                "source_path": str(path),
                "segments": str(outputs["segments"]),
                "metadata": str(outputs["metadata"]),
                "n_segments": len(result.segments),
            }
        )
        logger.info(
            "night_written",
            extra={"record_id": record_id, "record_dir": str(outputs["record_dir"])},
        )

    if args.manifest:
        with (out_dir / "manifest.jsonl").open("w", encoding="utf-8") as handle:
            for entry in manifest_entries:
                handle.write(json.dumps(entry, separators=(",", ":")) + "\n")


def run_summary(args: argparse.Namespace, config: StagingConfig) -> None:
    segments = read_segments(args.segments)
    now = _resolve_now(args.now, segments)
    if args.days is not None:
        window_days = args.days
    elif args.lookback is not None:
        window_days = LookbackRange(args.lookback).days
    else:
        window_days = config.default_lookback_days

    summary = summarize(segments, now, window_days)
    if args.output:
        write_summary(summary, args.output)
    else:
        sys.stdout.write(summary.model_dump_json(indent=2) + "\n")


def _resolve_now(value: str | None, segments: list[Segment]) -> datetime:
    segments_aware = is_aware(segments[0].start_time) if segments else None
    if value is None:
        return datetime.now() if segments_aware is False else datetime.now(timezone.utc)
    try:
        now = datetime.fromisoformat(value)
    except ValueError as exc:
        raise StagingError(
            code=E_INPUT_INVALID,
            message="--now is not an ISO-8601 timestamp",
            details={"now": value},
        ) from exc
    if segments_aware is not None and is_aware(now) != segments_aware:
        raise StagingError(
            code=E_INPUT_INVALID,
            message="--now and the segment timestamps must both be naive or both carry an offset",
            details={"now": value, "segments_aware": segments_aware},
        )
    return now


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="Invalid SLEEP_FUSION_* settings",
            details={
                "errors": [
                    {"loc": ".".join(str(part) for part in error["loc"]), "msg": error["msg"]}
                    for error in exc.errors()
                ]
            },
        ) from exc


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = _load_settings()
        configure_logging(args.log_level or settings.log_level, settings.app_name)
        config = load_config(args.config or settings.config_path)
        if args.command == "stage":
            run_stage(args, config)
        elif args.command == "summary":
            run_summary(args, config)
    except StagingError as exc:
        logger.error("command_failed", extra={"error_code": exc.code})
        sys.stderr.write(json.dumps(to_failure_payload(exc), default=str) + "\n")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
