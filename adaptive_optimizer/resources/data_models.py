"""
Data models for adaptive resource optimization.

This module contains the enums and dataclasses used throughout the
resources package. It has no internal dependencies to serve as a stable
foundation layer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class QualityTier(str, Enum):
    """Ordered video quality tiers, lowest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    def step_up(self) -> "QualityTier":
        """Next tier up, or self when already at the top."""
        return _TIER_ORDER[min(self.rank + 1, len(_TIER_ORDER) - 1)]

    def step_down(self) -> "QualityTier":
        """Next tier down, or self when already at the bottom."""
        return _TIER_ORDER[max(self.rank - 1, 0)]


_TIER_ORDER = (QualityTier.LOW, QualityTier.MEDIUM, QualityTier.HIGH, QualityTier.ULTRA)


class ConnectionClass(str, Enum):
    """Effective network connection class reported by the host."""

    SLOW_2G = "slow-2g"
    TWO_G = "2g"
    THREE_G = "3g"
    FOUR_G = "4g"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ConnectionClass":
        """Map a free-form host value onto a known class."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class CacheStrategy(str, Enum):
    """How much data the host should keep cached."""

    MINIMAL = "minimal"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class Capabilities:
    """Snapshot of host capability signals, taken once per session."""

    logical_cores: int = 4
    memory_ceiling_gb: float = 4.0
    pixel_ratio: float = 1.0
    connection_class: ConnectionClass = ConnectionClass.UNKNOWN
    gpu_descriptor: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["connection_class"] = self.connection_class.value
        return data


@dataclass(frozen=True)
class OptimizationSettings:
    """Active optimization settings. Replaced, never mutated in place."""

    video_quality_tier: QualityTier
    worker_pool_size: int
    max_concurrent_tasks: int
    chunk_size_bytes: int
    parallel_processing_enabled: bool
    cache_strategy: CacheStrategy
    image_compression_quality: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["video_quality_tier"] = self.video_quality_tier.value
        data["cache_strategy"] = self.cache_strategy.value
        return data


@dataclass(frozen=True)
class PerformanceMetrics:
    """Live responsiveness measured over the most recent sampling window.

    ``memory_used_mb == 0`` means the host exposes no memory introspection.
    """

    frames_per_second: int = 60
    memory_used_mb: float = 0.0
    last_load_time_ms: float = 0.0

    @property
    def memory_known(self) -> bool:
        return self.memory_used_mb > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


NO_ADJUSTMENT = "no_adjustment_needed"


@dataclass(frozen=True)
class Adjustment:
    """Outcome of one auto-adjustment pass."""

    settings: OptimizationSettings
    reason: str = NO_ADJUSTMENT

    @property
    def changed(self) -> bool:
        return self.reason != NO_ADJUSTMENT


@dataclass
class ResourceSample:
    """Utilisation percentages captured by the usage monitor."""

    timestamp: float
    cpu: float
    memory: float
    network: float
    gpu: float
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResourceAlert:
    """Threshold breach raised by the usage monitor."""

    id: str
    resource: str  # "cpu", "memory", "network", "gpu"
    severity: str  # "warning", "critical"
    message: str
    timestamp: float
