"""Overnight sleep-stage inference from official annotations, heart rate, HRV and motion."""

from sleep_fusion.constants import ENGINE_VERSION, EPOCH_SEC
from sleep_fusion.epoching.builder import build_epochs
from sleep_fusion.models import (
    Epoch,
    HeartRateSample,
    HRVSample,
    MotionSample,
    OfficialAnnotation,
    SampleStreams,
    Segment,
    Stage,
)
from sleep_fusion.pipeline import StagingResult, stage_night
from sleep_fusion.staging.classifier import classify
from sleep_fusion.staging.segments import compress
from sleep_fusion.summary.aggregates import (
    LookbackRange,
    average_sleep_time_per_night,
    filtered_segments,
    sleep_efficiency,
    summarize,
    total_sleep_time,
)

__all__ = [
    "ENGINE_VERSION",
    "EPOCH_SEC",
    "Epoch",
    "HRVSample",
    "HeartRateSample",
    "LookbackRange",
    "MotionSample",
    "OfficialAnnotation",
    "SampleStreams",
    "Segment",
    "Stage",
    "StagingResult",
    "average_sleep_time_per_night",
    "build_epochs",
    "classify",
    "compress",
    "filtered_segments",
    "sleep_efficiency",
    "stage_night",
    "summarize",
    "total_sleep_time",
]
