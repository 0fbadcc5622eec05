"""Configuration module for the adaptive optimizer.

Submodules:
    - settings: pydantic models for each configuration section
    - loader: OptimizerConfig and YAML/env loading
"""

from .settings import (
    AdjusterThresholds,
    CapabilityOverrides,
    LoggingSettings,
    SamplerSettings,
    UsageMonitorSettings,
    UsageMonitorThresholds,
    UsageThreshold,
)
from .loader import OptimizerConfig, load_optimizer_config

__all__ = [
    "AdjusterThresholds",
    "CapabilityOverrides",
    "LoggingSettings",
    "SamplerSettings",
    "UsageMonitorSettings",
    "UsageMonitorThresholds",
    "UsageThreshold",
    "OptimizerConfig",
    "load_optimizer_config",
]
