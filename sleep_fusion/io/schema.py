from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sleep_fusion.io.categories import stage_from_category_value, stage_from_label
from sleep_fusion.models import (
    HeartRateSample,
    HRVSample,
    MotionSample,
    OfficialAnnotation,
    SampleStreams,
    Segment,
    Stage,
)


def is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


class BaseSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ValueSampleIn(BaseSchema):
    timestamp: datetime
    value: float = Field(ge=0)


class MotionSampleIn(BaseSchema):
    timestamp: datetime
    level: int = Field(ge=0, le=2)


class AnnotationIn(BaseSchema):
    start_time: datetime
    end_time: datetime
    stage: Stage

    @field_validator("stage", mode="before")
    @classmethod
    def coerce_stage(cls, value: Any) -> Any:
        if isinstance(value, Stage):
            return value
        if isinstance(value, bool):
            raise ValueError("stage must be a label or category value")
        if isinstance(value, int):
            return stage_from_category_value(value)
        if isinstance(value, str):
            stage = stage_from_label(value)
            if stage is None:
                raise ValueError(f"unknown stage label: {value}")
            return stage
        raise ValueError("stage must be a label or category value")

    @model_validator(mode="after")
    def check_interval(self) -> "AnnotationIn":
        if self.end_time <= self.start_time:
            raise ValueError("annotation end_time must be after start_time")
        return self


class NightInput(BaseSchema):
    """One night of already-fetched samples plus the range to stage."""

    range_start: datetime
    range_end: datetime
    annotations: list[AnnotationIn] = Field(default_factory=list)
    heart_rate: list[ValueSampleIn] = Field(default_factory=list)
    hrv: list[ValueSampleIn] = Field(default_factory=list)
    motion: list[MotionSampleIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_timezones(self) -> "NightInput":
        stamps = [self.range_start, self.range_end]
        for annotation in self.annotations:
            stamps.extend((annotation.start_time, annotation.end_time))
        stamps.extend(sample.timestamp for sample in self.heart_rate)
        stamps.extend(sample.timestamp for sample in self.hrv)
        stamps.extend(sample.timestamp for sample in self.motion)
        if len({is_aware(stamp) for stamp in stamps}) > 1:
            raise ValueError("timestamps must be all timezone-aware or all naive")
        return self

    def to_streams(self) -> SampleStreams:
        return SampleStreams(
            annotations=tuple(
                OfficialAnnotation(item.start_time, item.end_time, item.stage)
                for item in self.annotations
            ),
            heart_rate=tuple(
                HeartRateSample(item.timestamp, item.value) for item in self.heart_rate
            ),
            hrv=tuple(HRVSample(item.timestamp, item.value) for item in self.hrv),
            motion=tuple(MotionSample(item.timestamp, item.level) for item in self.motion),
        )


class SegmentRecord(BaseSchema):
    start_time: datetime
    end_time: datetime
    stage: Stage
    duration_minutes: float | None = None

    @classmethod
    def from_segment(cls, segment: Segment) -> "SegmentRecord":
        return cls(
            start_time=segment.start_time,
            end_time=segment.end_time,
            stage=segment.stage,
            duration_minutes=segment.duration_minutes,
        )

    def to_segment(self) -> Segment:
        return Segment(start_time=self.start_time, end_time=self.end_time, stage=self.stage)


class SleepSummary(BaseSchema):
    window_start: datetime
    window_end: datetime
    segment_count: int
    nights: int
    total_sleep_hours: float
    average_sleep_hours_per_night: float
    sleep_efficiency_pct: float
    time_in_stage_minutes: dict[str, float]
