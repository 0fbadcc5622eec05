"""Configuration loading and the top-level OptimizerConfig model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import InvalidConfigurationError
from .settings import (
    AdjusterThresholds,
    CapabilityOverrides,
    LoggingSettings,
    SamplerSettings,
    UsageMonitorSettings,
)


class OptimizerConfig(BaseModel):
    """Everything the optimizer can be configured with. All sections optional."""

    model_config = ConfigDict(extra="forbid")

    capabilities: CapabilityOverrides = Field(default_factory=CapabilityOverrides)
    sampler: SamplerSettings = Field(default_factory=SamplerSettings)
    adjuster: AdjusterThresholds = Field(default_factory=AdjusterThresholds)
    usage_monitor: UsageMonitorSettings = Field(default_factory=UsageMonitorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {str(k).lower(): v for k, v in d.items()}


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: OPTIMIZER_SAMPLER__WINDOW_MS=500 overrides sampler.window_ms
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        cur[path[-1]] = _coerce(value)


def load_optimizer_config(
    path: Optional[Path | str] = None,
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "OPTIMIZER_",
) -> OptimizerConfig:
    """Load YAML config (if given) and return a typed `OptimizerConfig`.

    Without a path the defaults are used, still subject to env overrides.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Config file not found: {p}")
        with open(p, "r") as fh:
            raw = yaml.safe_load(fh) or {}
        if not isinstance(raw, dict):
            raise InvalidConfigurationError(
                "Optimizer configuration must be a mapping", config_path=str(p)
            )
        data = _lower_keys(raw)

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    try:
        return OptimizerConfig(**data)
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid optimizer configuration: {e}",
            config_path=str(path) if path is not None else None,
            original_exception=e,
        ) from e
