from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sleep_fusion.models import Epoch, Segment, Stage


def effective_stage(epoch: Epoch) -> Stage:
    return epoch.effective_stage


def compress(epochs: Sequence[Epoch], range_end: datetime | None = None) -> list[Segment]:
    """Run-length encode per-epoch stages into contiguous segments.

    The last segment is closed at ``range_end`` when given, otherwise at the
    end of the final epoch (already capped at the range end by the builder).
    """
    if not epochs:
        return []
    close_at = range_end if range_end is not None else epochs[-1].end_time

    segments: list[Segment] = []
    current_start = epochs[0].start_time
    current_stage = effective_stage(epochs[0])
    for epoch in epochs[1:]:
        stage = effective_stage(epoch)
        if stage == current_stage:
            continue
        segments.append(
            Segment(start_time=current_start, end_time=epoch.start_time, stage=current_stage)
        )
        current_start = epoch.start_time
        current_stage = stage
    segments.append(Segment(start_time=current_start, end_time=close_at, stage=current_stage))
    return segments
