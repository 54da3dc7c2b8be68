from __future__ import annotations

from sleep_fusion.models import Stage

# Sleep-analysis category values as reported by the platform health store.
CATEGORY_VALUE_TO_STAGE = {
    0: Stage.IN_BED,
    1: Stage.ASLEEP,
    2: Stage.AWAKE,
    3: Stage.CORE,
    4: Stage.DEEP,
    5: Stage.REM,
}

STAGE_LABELS = {
    "inbed": Stage.IN_BED,
    "in_bed": Stage.IN_BED,
    "awake": Stage.AWAKE,
    "wake": Stage.AWAKE,
    "w": Stage.AWAKE,
    "rem": Stage.REM,
    "remsleep": Stage.REM,
    "r": Stage.REM,
    "core": Stage.CORE,
    "coresleep": Stage.CORE,
    "light": Stage.CORE,
    "deep": Stage.DEEP,
    "deepsleep": Stage.DEEP,
    "asleep": Stage.ASLEEP,
    "asleepgeneric": Stage.ASLEEP,
    "asleepunspecified": Stage.ASLEEP,
}


def stage_from_category_value(value: int) -> Stage:
    """Unknown category values are treated as unspecified sleep."""
    return CATEGORY_VALUE_TO_STAGE.get(int(value), Stage.ASLEEP)


def stage_from_label(label: str) -> Stage | None:
    key = label.strip().lower().replace(" ", "").replace("-", "")
    if key in STAGE_LABELS:
        return STAGE_LABELS[key]
    key = key.replace("_", "")
    return STAGE_LABELS.get(key)
