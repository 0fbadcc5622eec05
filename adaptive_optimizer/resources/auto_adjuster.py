"""
Feedback controller for the active optimization settings.

At most one rule fires per call, checked in this order:

1. low FPS steps the quality tier down one level
2. memory pressure shrinks the worker pool by one
3. FPS and memory headroom step the quality tier up one level
   (only out of medium or high; low never upgrades automatically)

Moving one step per sampling window keeps the loop from oscillating.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .data_models import (
    Adjustment,
    Capabilities,
    OptimizationSettings,
    PerformanceMetrics,
    QualityTier,
)

if TYPE_CHECKING:
    from ..config import AdjusterThresholds
    from ..logger import ProductionLogger

LOW_FPS_DOWNGRADE = "low_fps_downgrade"
MEMORY_PRESSURE_SHRINK_POOL = "memory_pressure_shrink_pool"
HEADROOM_UPGRADE = "headroom_upgrade"

_UPGRADABLE = (QualityTier.MEDIUM, QualityTier.HIGH)


class AutoAdjuster:
    """Decides whether live metrics warrant a one-step settings change."""

    def __init__(
        self,
        thresholds: Optional["AdjusterThresholds"] = None,
        logger: Optional["ProductionLogger"] = None,
    ):
        self.logger = logger

        self.low_fps = thresholds.low_fps if thresholds else 30
        self.high_fps = thresholds.high_fps if thresholds else 55
        self.memory_pressure_ratio = thresholds.memory_pressure_ratio if thresholds else 0.8
        self.memory_headroom_ratio = thresholds.memory_headroom_ratio if thresholds else 0.5
        self.min_worker_pool = thresholds.min_worker_pool if thresholds else 2

        self.adjustment_history: List[Dict[str, Any]] = []

    def adjust(
        self,
        current: OptimizationSettings,
        metrics: PerformanceMetrics,
        caps: Capabilities,
    ) -> Adjustment:
        """
        Apply the first matching rule.

        Returns:
            Adjustment whose ``changed`` flag tells the caller whether to publish
        """
        fps = metrics.frames_per_second
        memory = metrics.memory_used_mb
        ceiling_mb = caps.memory_ceiling_gb * 1024
        tier = current.video_quality_tier

        if fps < self.low_fps and tier is not QualityTier.LOW:
            new_settings = replace(current, video_quality_tier=tier.step_down())
            return self._record(current, new_settings, LOW_FPS_DOWNGRADE, metrics)

        # memory_used_mb == 0 means unknown; never shrink on it
        if (
            metrics.memory_known
            and memory > ceiling_mb * self.memory_pressure_ratio
            and current.worker_pool_size > self.min_worker_pool
        ):
            new_settings = replace(current, worker_pool_size=current.worker_pool_size - 1)
            return self._record(current, new_settings, MEMORY_PRESSURE_SHRINK_POOL, metrics)

        if (
            fps >= self.high_fps
            and memory < ceiling_mb * self.memory_headroom_ratio
            and tier in _UPGRADABLE
        ):
            new_settings = replace(current, video_quality_tier=tier.step_up())
            return self._record(current, new_settings, HEADROOM_UPGRADE, metrics)

        return Adjustment(settings=current)

    def _record(
        self,
        old: OptimizationSettings,
        new: OptimizationSettings,
        reason: str,
        metrics: PerformanceMetrics,
    ) -> Adjustment:
        """Remember the adjustment and log it."""
        record = {
            "timestamp": time.time(),
            "reason": reason,
            "old_tier": old.video_quality_tier.value,
            "new_tier": new.video_quality_tier.value,
            "old_worker_pool_size": old.worker_pool_size,
            "new_worker_pool_size": new.worker_pool_size,
            "fps": metrics.frames_per_second,
            "memory_used_mb": metrics.memory_used_mb,
        }
        self.adjustment_history.append(record)

        if len(self.adjustment_history) > 100:
            self.adjustment_history = self.adjustment_history[-50:]

        if self.logger:
            self.logger.info("Settings auto-adjusted", **record)

        return Adjustment(settings=new, reason=reason)
