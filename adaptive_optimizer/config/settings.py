"""Optimizer, sampler and monitoring settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Capability Detection
# =============================================================================

class CapabilityOverrides(BaseModel):
    """Values the host cannot introspect, or wants to pin.

    Any field left as ``None`` is read from the host (or falls back to its
    default when the host cannot provide it).
    """
    logical_cores: Optional[int] = Field(default=None, ge=1, description="Pin the logical CPU count")
    memory_ceiling_gb: Optional[float] = Field(default=None, gt=0.0, allow_inf_nan=False, description="Pin the memory ceiling in GB")
    pixel_ratio: Optional[float] = Field(default=None, gt=0.0, allow_inf_nan=False, description="Display pixel density")
    connection_class: Optional[str] = Field(default=None, description="slow-2g, 2g, 3g, 4g or unknown")
    gpu_descriptor: Optional[str] = Field(default=None, description="Free-text GPU identifier")


# =============================================================================
# Feedback Loop
# =============================================================================

class SamplerSettings(BaseModel):
    """Frame sampling configuration."""
    window_ms: float = Field(default=1000.0, ge=100.0, le=10000.0, description="Sampling window length in milliseconds")
    target_frame_rate: int = Field(default=60, ge=1, le=240, description="Loop wake-ups per second when self-driven")


class AdjusterThresholds(BaseModel):
    """Auto-adjustment thresholds."""
    low_fps: int = Field(default=30, ge=1, description="Below this FPS the quality tier steps down")
    high_fps: int = Field(default=55, ge=1, description="At or above this FPS the quality tier may step up")
    memory_pressure_ratio: float = Field(default=0.8, gt=0.0, le=1.0, description="Share of the memory ceiling that shrinks the worker pool")
    memory_headroom_ratio: float = Field(default=0.5, gt=0.0, le=1.0, description="Share of the memory ceiling below which upgrades are allowed")
    min_worker_pool: int = Field(default=2, ge=2, le=8, description="Worker pool never shrinks below this size")

    @model_validator(mode="after")
    def _check_ordering(self) -> "AdjusterThresholds":
        if self.high_fps <= self.low_fps:
            raise ValueError("high_fps must be greater than low_fps")
        if self.memory_headroom_ratio >= self.memory_pressure_ratio:
            raise ValueError("memory_headroom_ratio must be below memory_pressure_ratio")
        return self


# =============================================================================
# Usage Monitoring
# =============================================================================

class UsageThreshold(BaseModel):
    """Warning / critical utilisation percentages for one resource."""
    warning: float = Field(ge=0.0, le=100.0)
    critical: float = Field(ge=0.0, le=100.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> "UsageThreshold":
        if self.critical < self.warning:
            raise ValueError("critical threshold must not be below warning threshold")
        return self


class UsageMonitorThresholds(BaseModel):
    """Alert thresholds per resource."""
    cpu: UsageThreshold = Field(default_factory=lambda: UsageThreshold(warning=70.0, critical=90.0))
    memory: UsageThreshold = Field(default_factory=lambda: UsageThreshold(warning=75.0, critical=90.0))
    network: UsageThreshold = Field(default_factory=lambda: UsageThreshold(warning=80.0, critical=95.0))
    gpu: UsageThreshold = Field(default_factory=lambda: UsageThreshold(warning=75.0, critical=90.0))


class UsageMonitorSettings(BaseModel):
    """Resource usage time-series configuration."""
    enabled: bool = Field(default=False, description="Start the usage monitor with the optimizer")
    monitoring_interval_seconds: float = Field(default=1.0, ge=0.1, le=60.0, description="Sampling interval in seconds")
    max_data_points: int = Field(default=60, ge=1, le=3600, description="Samples kept in history")
    max_alerts: int = Field(default=20, ge=1, le=500, description="Alerts kept in history")
    alert_retention_seconds: float = Field(default=600.0, ge=1.0, description="Alerts older than this are dropped")
    alert_dedup_seconds: float = Field(default=5.0, ge=0.0, description="Suppress repeat alerts for the same resource within this window")
    network_capacity_mbps: float = Field(default=100.0, gt=0.0, description="Link capacity used to turn throughput into a percentage")

    thresholds: UsageMonitorThresholds = Field(default_factory=UsageMonitorThresholds)


# =============================================================================
# Logging
# =============================================================================

class LoggingSettings(BaseModel):
    """Structured logging configuration."""
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    log_dir: Optional[str] = Field(default="logs", description="Directory for JSON logs; null disables file logging")
    console: bool = Field(default=True, description="Also log to the console")

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return value
