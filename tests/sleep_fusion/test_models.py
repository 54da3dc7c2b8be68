from __future__ import annotations

from datetime import datetime, timedelta

from sleep_fusion.models import OfficialAnnotation, Segment, Stage


def test_stage_depths() -> None:
    assert {stage: stage.depth for stage in Stage} == {
        Stage.IN_BED: -0.5,
        Stage.AWAKE: 0.0,
        Stage.REM: 1.0,
        Stage.ASLEEP: 1.5,
        Stage.CORE: 2.0,
        Stage.DEEP: 3.0,
    }


def test_sleep_stage_group() -> None:
    asleep = {stage for stage in Stage if stage.is_sleep}
    assert asleep == {Stage.ASLEEP, Stage.DEEP, Stage.REM, Stage.CORE}


def test_segment_durations() -> None:
    start = datetime(2026, 3, 2, 23, 0)
    segment = Segment(start, start + timedelta(minutes=90), Stage.CORE)
    assert segment.duration_minutes == 90.0
    assert segment.duration_hours == 1.5


def test_annotation_end_is_exclusive() -> None:
    start = datetime(2026, 3, 2, 23, 0)
    annotation = OfficialAnnotation(start, start + timedelta(seconds=30), Stage.IN_BED)
    assert annotation.covers(start)
    assert annotation.covers(start + timedelta(seconds=29))
    assert not annotation.covers(start + timedelta(seconds=30))
