from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sleep_fusion.constants import ENGINE_VERSION

E_INPUT_MISSING = "E_INPUT_MISSING"
E_INPUT_INVALID = "E_INPUT_INVALID"
E_CONFIG_INVALID = "E_CONFIG_INVALID"
E_OUTPUT_CONFLICT = "E_OUTPUT_CONFLICT"
E_INTERNAL = "E_INTERNAL"


@dataclass
class StagingError(Exception):
    """Raised at the input boundary: unreadable documents, bad config, bad CLI values.

    The staging engine itself never raises this; missing samples and malformed
    ranges degrade to empty or fallback output instead.
    """

    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def to_failure_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, StagingError):
        return {
            "error_code": exc.code,
            "message": exc.message,
            "details": exc.details,
            "engine_version": ENGINE_VERSION,
        }
    return {
        "error_code": E_INTERNAL,
        "message": str(exc),
        "details": {"exception_type": exc.__class__.__name__},
        "engine_version": ENGINE_VERSION,
    }
