from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sleep_fusion.config import StagingConfig, as_dict as config_as_dict
from sleep_fusion.epoching.builder import build_epochs
from sleep_fusion.models import Epoch, SampleStreams, Segment
from sleep_fusion.staging.segments import compress

logger = logging.getLogger(__name__)


@dataclass
class StagingResult:
    segments: list[Segment]
    epochs: list[Epoch]
    metadata: dict[str, Any]


def stage_night(
    streams: SampleStreams,
    range_start: datetime,
    range_end: datetime,
    config: StagingConfig | None = None,
) -> StagingResult:
    config = config or StagingConfig()
    epochs = build_epochs(
        streams.annotations,
        streams.heart_rate,
        streams.hrv,
        streams.motion,
        range_start,
        range_end,
        epoch_sec=config.epoch_sec,
    )
    if range_start > range_end:
        logger.warning(
            "inverted_range",
            extra={"range_start": range_start.isoformat(), "range_end": range_end.isoformat()},
        )
    segments = compress(epochs, range_end if epochs else None)

    sources = _count_sources(epochs)
    metadata: dict[str, Any] = {
        "range_start": range_start.isoformat(),
        "range_end": range_end.isoformat(),
        "n_epochs": len(epochs),
        "n_segments": len(segments),
        "epoch_sources": sources,
        "sample_counts": {
            "annotations": len(streams.annotations),
            "heart_rate": len(streams.heart_rate),
            "hrv": len(streams.hrv),
            "motion": len(streams.motion),
        },
        "engine_version": config.engine_version,
        "config_hash": config.to_hash(),
        "config_payload": config_as_dict(config),
    }
    logger.info(
        "night_staged",
        extra={
            "n_epochs": len(epochs),
            "n_segments": len(segments),
            "official_epochs": sources["official"],
            "inferred_epochs": sources["inferred"],
            "fallback_epochs": sources["fallback"],
        },
    )
    return StagingResult(segments=segments, epochs=epochs, metadata=metadata)


def _count_sources(epochs: list[Epoch]) -> dict[str, int]:
    counts = {"official": 0, "inferred": 0, "fallback": 0}
    for epoch in epochs:
        if epoch.official_stage is not None:
            counts["official"] += 1
        elif epoch.inferred_stage is not None:
            counts["inferred"] += 1
        else:
            counts["fallback"] += 1
    return counts
