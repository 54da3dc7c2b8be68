from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sleep_fusion.constants import ENGINE_VERSION, EPOCH_SEC, LOOKBACK_WEEK_DAYS
from sleep_fusion.errors import E_CONFIG_INVALID, StagingError


@dataclass(frozen=True)
class StagingConfig:
    engine_version: str = ENGINE_VERSION
    epoch_sec: int = EPOCH_SEC
    default_lookback_days: int = LOOKBACK_WEEK_DAYS

    def to_hash(self) -> str:
        payload = json.dumps(as_dict(self), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def load_config(path: str | Path | None = None) -> StagingConfig:
    config_path = Path(path) if path is not None else Path(__file__).with_name("defaults.yaml")
    if not config_path.exists():
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="Config file not found",
            details={"path": str(config_path)},
        )
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> StagingConfig:
    if not isinstance(raw, dict):
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="Config root must be a mapping",
            details={"type": type(raw).__name__},
        )
    try:
        config = StagingConfig(
            engine_version=str(raw.get("engine_version", ENGINE_VERSION)),
            epoch_sec=int(raw.get("epoch_sec", EPOCH_SEC)),
            default_lookback_days=int(raw.get("default_lookback_days", LOOKBACK_WEEK_DAYS)),
        )
    except (TypeError, ValueError) as exc:
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="Config value has the wrong type",
            details={"error": str(exc)},
        ) from exc
    if config.epoch_sec <= 0:
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="epoch_sec must be positive",
            details={"epoch_sec": config.epoch_sec},
        )
    if config.default_lookback_days <= 0:
        raise StagingError(
            code=E_CONFIG_INVALID,
            message="default_lookback_days must be positive",
            details={"default_lookback_days": config.default_lookback_days},
        )
    return config


def as_dict(config: StagingConfig) -> dict[str, Any]:
    return {
        "engine_version": config.engine_version,
        "epoch_sec": config.epoch_sec,
        "default_lookback_days": config.default_lookback_days,
    }
