from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sleep_fusion.constants import SLEEP_STAGE_VALUES, STAGE_DEPTH


class Stage(str, Enum):
    IN_BED = "in_bed"
    AWAKE = "awake"
    REM = "rem"
    CORE = "core"
    DEEP = "deep"
    ASLEEP = "asleep"

    @property
    def depth(self) -> float:
        """Chart depth; only meaningful to consumers that plot a hypnogram."""
        return STAGE_DEPTH[self.value]

    @property
    def is_sleep(self) -> bool:
        return self.value in SLEEP_STAGE_VALUES


@dataclass(frozen=True)
class HeartRateSample:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class HRVSample:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class MotionSample:
    timestamp: datetime
    level: int


@dataclass(frozen=True)
class OfficialAnnotation:
    start_time: datetime
    end_time: datetime
    stage: Stage

    def covers(self, instant: datetime) -> bool:
        return self.start_time <= instant < self.end_time


@dataclass(frozen=True)
class SampleStreams:
    """The four sample collections for one staging run."""

    annotations: tuple[OfficialAnnotation, ...] = ()
    heart_rate: tuple[HeartRateSample, ...] = ()
    hrv: tuple[HRVSample, ...] = ()
    motion: tuple[MotionSample, ...] = ()


@dataclass(frozen=True)
class Epoch:
    start_time: datetime
    end_time: datetime
    average_heart_rate: float | None
    average_hrv: float | None
    motion_level: int
    official_stage: Stage | None
    inferred_stage: Stage | None

    @property
    def effective_stage(self) -> Stage:
        if self.official_stage is not None:
            return self.official_stage
        if self.inferred_stage is not None:
            return self.inferred_stage
        return Stage.ASLEEP


@dataclass(frozen=True)
class Segment:
    start_time: datetime
    end_time: datetime
    stage: Stage

    @property
    def duration_minutes(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 60.0

    @property
    def duration_hours(self) -> float:
        return self.duration_minutes / 60.0
