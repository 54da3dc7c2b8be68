from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from sleep_fusion.cli.main import main
from sleep_fusion.core.settings import get_settings

START = datetime(2026, 3, 2, 0, 0, tzinfo=timezone.utc)


def _write_night(path) -> None:
    heart_rate = []
    hrv = []
    t = START + timedelta(minutes=30)
    while t < START + timedelta(hours=2):
        heart_rate.append({"timestamp": (t + timedelta(seconds=5)).isoformat(), "value": 50.0})
        hrv.append({"timestamp": (t + timedelta(seconds=5)).isoformat(), "value": 20.0})
        t += timedelta(seconds=30)
    payload = {
        "range_start": START.isoformat(),
        "range_end": (START + timedelta(hours=2)).isoformat(),
        "annotations": [
            {
                "start_time": START.isoformat(),
                "end_time": (START + timedelta(minutes=30)).isoformat(),
                "stage": "inBed",
            }
        ],
        "heart_rate": heart_rate,
        "hrv": hrv,
        "motion": [],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_stage_then_summary(tmp_path, capsys) -> None:
    nights = tmp_path / "nights"
    nights.mkdir()
    _write_night(nights / "night1.json")
    out_dir = tmp_path / "out"

    assert main(["stage", "--input", str(nights), "--output", str(out_dir)]) == 0

    segments_path = out_dir / "night1" / "segments.jsonl"
    lines = segments_path.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["stage"] for r in records] == ["in_bed", "deep"]
    assert records[1]["duration_minutes"] == 90.0

    metadata = json.loads((out_dir / "night1" / "metadata.json").read_text(encoding="utf-8"))
    assert metadata["n_segments"] == 2
    manifest = (out_dir / "manifest.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(manifest[0])["record_id"] == "night1"

    now = (START + timedelta(hours=2)).isoformat()
    assert main(["summary", "--segments", str(segments_path), "--now", now, "--range", "week"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["total_sleep_hours"] == 1.5
    assert summary["sleep_efficiency_pct"] == 300.0
    assert summary["nights"] == 1


def test_summary_written_to_file(tmp_path) -> None:
    nights = tmp_path / "night.json"
    _write_night(nights)
    out_dir = tmp_path / "out"
    assert main(["stage", "--input", str(nights), "--output", str(out_dir), "--no-manifest"]) == 0
    assert not (out_dir / "manifest.jsonl").exists()

    summary_path = tmp_path / "summary.json"
    code = main(
        [
            "summary",
            "--segments",
            str(out_dir / "night" / "segments.jsonl"),
            "--now",
            (START + timedelta(days=20)).isoformat(),
            "--days",
            "30",
            "--output",
            str(summary_path),
        ]
    )
    assert code == 0
    summary = json.loads(summary_path.read_text(encoding="utf-8"))
    assert summary["segment_count"] == 2
    assert summary["average_sleep_hours_per_night"] == 1.5


def test_missing_input_reports_failure_payload(tmp_path, capsys) -> None:
    code = main(["stage", "--input", str(tmp_path / "missing"), "--output", str(tmp_path / "out")])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_INPUT_MISSING"


def test_bad_now_is_rejected(tmp_path, capsys) -> None:
    segments = tmp_path / "segments.jsonl"
    segments.write_text("", encoding="utf-8")
    code = main(["summary", "--segments", str(segments), "--now", "yesterday"])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_INPUT_INVALID"


def _write_segments(path, *stamps: str) -> None:
    lines = []
    for start, end in zip(stamps, stamps[1:]):
        lines.append(json.dumps({"start_time": start, "end_time": end, "stage": "core"}))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def test_naive_now_against_aware_segments_is_rejected(tmp_path, capsys) -> None:
    segments = tmp_path / "segments.jsonl"
    _write_segments(segments, "2026-03-02T00:00:00+00:00", "2026-03-02T02:00:00+00:00")
    code = main(["summary", "--segments", str(segments), "--now", "2026-03-03T00:00:00"])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_INPUT_INVALID"
    assert payload["details"]["segments_aware"] is True


def test_aware_now_against_naive_segments_is_rejected(tmp_path, capsys) -> None:
    segments = tmp_path / "segments.jsonl"
    _write_segments(segments, "2026-03-02T00:00:00", "2026-03-02T02:00:00")
    code = main(["summary", "--segments", str(segments), "--now", "2026-03-03T00:00:00+00:00"])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_INPUT_INVALID"


def test_naive_now_with_naive_segments(tmp_path, capsys) -> None:
    segments = tmp_path / "segments.jsonl"
    _write_segments(segments, "2026-03-02T00:00:00", "2026-03-02T02:00:00")
    code = main(["summary", "--segments", str(segments), "--now", "2026-03-03T00:00:00"])
    assert code == 0
    assert json.loads(capsys.readouterr().out)["total_sleep_hours"] == 2.0


def test_mixed_segment_timestamps_are_rejected(tmp_path, capsys) -> None:
    segments = tmp_path / "segments.jsonl"
    _write_segments(
        segments,
        "2026-03-02T00:00:00+00:00",
        "2026-03-02T01:00:00+00:00",
        "2026-03-02T02:00:00",
    )
    code = main(["summary", "--segments", str(segments), "--now", "2026-03-03T00:00:00+00:00"])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_INPUT_INVALID"


def test_same_stem_in_different_directories(tmp_path) -> None:
    nights = tmp_path / "nights"
    (nights / "alice").mkdir(parents=True)
    (nights / "bob").mkdir()
    _write_night(nights / "alice" / "night.json")
    _write_night(nights / "bob" / "night.json")
    out_dir = tmp_path / "out"

    assert main(["stage", "--input", str(nights), "--output", str(out_dir)]) == 0

    assert (out_dir / "alice__night" / "segments.jsonl").exists()
    assert (out_dir / "bob__night" / "segments.jsonl").exists()
    manifest = (out_dir / "manifest.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["record_id"] for line in manifest] == ["alice__night", "bob__night"]


def test_colliding_record_ids_are_rejected(tmp_path, capsys) -> None:
    nights = tmp_path / "nights"
    (nights / "alice").mkdir(parents=True)
    _write_night(nights / "alice" / "night.json")
    _write_night(nights / "alice__night.json")
    out_dir = tmp_path / "out"

    code = main(["stage", "--input", str(nights), "--output", str(out_dir)])
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_OUTPUT_CONFLICT"
    assert payload["details"]["record_id"] == "alice__night"
    assert not out_dir.exists()


def test_unknown_log_level_flag_is_a_usage_error(tmp_path) -> None:
    segments = tmp_path / "segments.jsonl"
    segments.write_text("", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--log-level", "verbose", "summary", "--segments", str(segments)])
    assert exc.value.code == 2


def test_log_level_flag_is_case_insensitive(tmp_path) -> None:
    segments = tmp_path / "segments.jsonl"
    segments.write_text("", encoding="utf-8")
    assert main(["--log-level", "debug", "summary", "--segments", str(segments)]) == 0


def test_unknown_log_level_setting_reports_failure_payload(tmp_path, capsys, monkeypatch) -> None:
    segments = tmp_path / "segments.jsonl"
    segments.write_text("", encoding="utf-8")
    monkeypatch.setenv("SLEEP_FUSION_LOG_LEVEL", "verbose")
    get_settings.cache_clear()
    try:
        code = main(["summary", "--segments", str(segments)])
    finally:
        monkeypatch.delenv("SLEEP_FUSION_LOG_LEVEL")
        get_settings.cache_clear()
    assert code == 2
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert payload["error_code"] == "E_CONFIG_INVALID"
    assert payload["details"]["errors"][0]["loc"] == "log_level"
