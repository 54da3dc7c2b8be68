from __future__ import annotations

from sleep_fusion.constants import (
    DEEP_MAX_HEART_RATE,
    DEEP_MAX_HRV,
    MOTION_SIGNIFICANT,
    MOTION_STILL,
    REM_MIN_HEART_RATE,
    REM_MIN_HRV,
)
from sleep_fusion.models import Stage


def classify(heart_rate: float, hrv: float, motion_level: int) -> Stage:
    """Rule-based stage for an epoch with no official annotation.

    Rules are evaluated in order and the first match wins:

    1. significant movement -> awake, whatever the physiology says
    2. low heart rate, low HRV, still -> deep
    3. high heart rate, high HRV, still -> REM
    4. anything else -> core
    """
    if motion_level == MOTION_SIGNIFICANT:
        return Stage.AWAKE
    if motion_level == MOTION_STILL:
        if heart_rate < DEEP_MAX_HEART_RATE and hrv < DEEP_MAX_HRV:
            return Stage.DEEP
        if heart_rate > REM_MIN_HEART_RATE and hrv > REM_MIN_HRV:
            return Stage.REM
    return Stage.CORE
