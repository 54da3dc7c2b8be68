ENGINE_VERSION = "0.1.0"
EPOCH_SEC = 30

# Fallback classifier thresholds (bpm / ms).
DEEP_MAX_HEART_RATE = 55.0
DEEP_MAX_HRV = 30.0
REM_MIN_HEART_RATE = 65.0
REM_MIN_HRV = 50.0

MOTION_STILL = 0
MOTION_LIGHT = 1
MOTION_SIGNIFICANT = 2
MOTION_LEVELS = (MOTION_STILL, MOTION_LIGHT, MOTION_SIGNIFICANT)

# Used by the classifier when an epoch has heart rate but no HRV samples.
MISSING_HRV_VALUE = 0.0

LOOKBACK_WEEK_DAYS = 7
LOOKBACK_MONTH_DAYS = 30

STAGE_DEPTH = {
    "in_bed": -0.5,
    "awake": 0.0,
    "rem": 1.0,
    "asleep": 1.5,
    "core": 2.0,
    "deep": 3.0,
}

SLEEP_STAGE_VALUES = ("asleep", "deep", "rem", "core")
