from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

import numpy as np

from sleep_fusion.constants import EPOCH_SEC, MISSING_HRV_VALUE, MOTION_STILL
from sleep_fusion.models import (
    Epoch,
    HeartRateSample,
    HRVSample,
    MotionSample,
    OfficialAnnotation,
    Stage,
)
from sleep_fusion.staging.classifier import classify

_MICROSECOND = timedelta(microseconds=1)


def build_epochs(
    official_annotations: Sequence[OfficialAnnotation],
    heart_rate_samples: Iterable[HeartRateSample],
    hrv_samples: Iterable[HRVSample],
    motion_samples: Iterable[MotionSample],
    range_start: datetime,
    range_end: datetime,
    epoch_sec: float = EPOCH_SEC,
) -> list[Epoch]:
    """Partition ``[range_start, range_end)`` into epochs and aggregate each stream.

    Sample streams do not need to be sorted. An epoch covers ``[t, t')`` and
    a sample belongs to it when ``t <= timestamp < t'``. An empty or inverted
    range gives no epochs.
    """
    if epoch_sec <= 0:
        raise ValueError("epoch_sec must be positive")
    if range_start >= range_end:
        return []

    epoch_us = int(round(epoch_sec * 1_000_000))
    if epoch_us <= 0:
        raise ValueError("epoch_sec is below timestamp resolution")
    total_us = (range_end - range_start) // _MICROSECOND
    starts = np.arange(0, total_us, epoch_us, dtype=np.int64)
    ends = np.minimum(starts + epoch_us, total_us)

    hr_offsets, hr_values = _sorted_stream(
        ((s.timestamp, s.value) for s in heart_rate_samples), range_start
    )
    hrv_offsets, hrv_values = _sorted_stream(
        ((s.timestamp, s.value) for s in hrv_samples), range_start
    )
    motion_offsets, motion_values = _sorted_stream(
        ((s.timestamp, s.level) for s in motion_samples), range_start
    )
    hr_means = _window_means(hr_offsets, hr_values, starts, ends)
    hrv_means = _window_means(hrv_offsets, hrv_values, starts, ends)
    motion_levels = _window_max(motion_offsets, motion_values, starts, ends)
    annotations = list(official_annotations)

    epochs: list[Epoch] = []
    for idx in range(starts.shape[0]):
        epoch_start = range_start + timedelta(microseconds=int(starts[idx]))
        epoch_end = range_start + timedelta(microseconds=int(ends[idx]))
        official = _official_stage_at(annotations, epoch_start)
        heart_rate = hr_means[idx]
        hrv = hrv_means[idx]
        motion_level = motion_levels[idx]
        inferred: Stage | None = None
        if official is None and heart_rate is not None:
            inferred = classify(
                heart_rate,
                hrv if hrv is not None else MISSING_HRV_VALUE,
                motion_level,
            )
        epochs.append(
            Epoch(
                start_time=epoch_start,
                end_time=epoch_end,
                average_heart_rate=heart_rate,
                average_hrv=hrv,
                motion_level=motion_level,
                official_stage=official,
                inferred_stage=inferred,
            )
        )
    return epochs


def _official_stage_at(
    annotations: list[OfficialAnnotation], instant: datetime
) -> Stage | None:
    # Overlapping annotations are not rejected; input order decides.
    for annotation in annotations:
        if annotation.covers(instant):
            return annotation.stage
    return None


def _sorted_stream(
    pairs: Iterable[tuple[datetime, float]], range_start: datetime
) -> tuple[np.ndarray, np.ndarray]:
    offsets: list[int] = []
    values: list[float] = []
    for timestamp, value in pairs:
        offsets.append((timestamp - range_start) // _MICROSECOND)
        values.append(value)
    offset_arr = np.asarray(offsets, dtype=np.int64)
    value_arr = np.asarray(values, dtype=np.float64)
    order = np.argsort(offset_arr, kind="stable")
    return offset_arr[order], value_arr[order]


def _window_bounds(
    offsets: np.ndarray, starts: np.ndarray, ends: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    lo = np.searchsorted(offsets, starts, side="left")
    hi = np.searchsorted(offsets, ends, side="left")
    return lo, hi


def _window_means(
    offsets: np.ndarray,
    values: np.ndarray,
    starts: np.ndarray,
    ends: np.ndarray,
) -> list[float | None]:
    lo, hi = _window_bounds(offsets, starts, ends)
    means: list[float | None] = []
    for left, right in zip(lo, hi):
        if right <= left:
            means.append(None)
        else:
            means.append(float(np.mean(values[left:right])))
    return means


def _window_max(
    offsets: np.ndarray,
    values: np.ndarray,
    starts: np.ndarray,
    ends: np.ndarray,
) -> list[int]:
    lo, hi = _window_bounds(offsets, starts, ends)
    levels: list[int] = []
    for left, right in zip(lo, hi):
        if right <= left:
            levels.append(MOTION_STILL)
        else:
            levels.append(int(np.max(values[left:right])))
    return levels
