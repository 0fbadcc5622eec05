"""
Adaptive resource optimizer facade.

Wires capability probing, settings derivation, performance sampling,
auto-adjustment and settings publication into one explicitly owned object.
Nothing runs until the host calls ``start()``; ``stop()`` (or leaving the
``with`` block) cancels the background loops.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union, TYPE_CHECKING

from ..config import OptimizerConfig, load_optimizer_config
from ..logger import get_logger
from .auto_adjuster import AutoAdjuster
from .capability_probe import CapabilityProbe, CapabilitySource, HostCapabilitySource
from .data_models import (
    Adjustment,
    Capabilities,
    OptimizationSettings,
    PerformanceMetrics,
    QualityTier,
)
from .performance_sampler import PerformanceSampler
from .publisher import SettingsObserver, SettingsPublisher, Unsubscribe
from .settings_deriver import derive_settings
from .usage_monitor import ResourceUsageMonitor

if TYPE_CHECKING:
    from ..logger import ProductionLogger


class OptimizerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PROBED = "probed"
    DERIVED = "derived"
    RUNNING = "running"
    STOPPED = "stopped"


class ResourceOptimizer:
    """
    Session-scoped adaptive optimizer.

    Features:
    - One-shot capability snapshot with safe defaults
    - Initial quality tier derived from the snapshot
    - Background FPS / memory sampling feeding a one-step feedback controller
    - Replay-on-join settings subscriptions
    - Manual overrides (forced tier, reset to the derived optimum)
    """

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        capability_source: Optional[CapabilitySource] = None,
        logger: Optional["ProductionLogger"] = None,
        memory_reader: Optional[Callable[[], Optional[float]]] = None,
        clock: Optional[Callable[[], float]] = None,
        gpu_reader: Optional[Callable[[], float]] = None,
    ):
        self.config = config or OptimizerConfig()
        self.logger = logger
        self.state = OptimizerState.UNINITIALIZED
        self._settings_lock = threading.RLock()

        source = capability_source or HostCapabilitySource(self.config.capabilities)
        self.capabilities: Capabilities = CapabilityProbe(source, logger).detect()
        self.state = OptimizerState.PROBED

        initial = derive_settings(self.capabilities)
        self.state = OptimizerState.DERIVED

        self.publisher = SettingsPublisher(initial, logger)
        self.adjuster = AutoAdjuster(self.config.adjuster, logger)
        self.sampler = PerformanceSampler(
            window_ms=self.config.sampler.window_ms,
            target_frame_rate=self.config.sampler.target_frame_rate,
            memory_reader=memory_reader,
            clock=clock,
            on_window=self.on_window,
            logger=logger,
        )
        self.usage_monitor = ResourceUsageMonitor(
            self.config.usage_monitor, gpu_reader=gpu_reader, logger=logger
        )

        if self.logger:
            self.logger.info("Initial optimization settings derived", **initial.to_dict())

    @classmethod
    def from_config(
        cls,
        path: Optional[Union[str, Path]] = None,
        capability_source: Optional[CapabilitySource] = None,
        **kwargs,
    ) -> "ResourceOptimizer":
        """Load configuration (file and/or environment) and build a logged optimizer."""
        config = load_optimizer_config(path)
        logger = get_logger(
            log_level=config.logging.level,
            log_dir=config.logging.log_dir,
            console=config.logging.console,
        )
        return cls(config=config, capability_source=capability_source, logger=logger, **kwargs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start sampling (and usage monitoring when enabled)."""
        if self.state is OptimizerState.RUNNING:
            return

        self.sampler.start_sampling()
        if self.config.usage_monitor.enabled:
            self.usage_monitor.start_monitoring()
        self.state = OptimizerState.RUNNING

        if self.logger:
            self.logger.info("Resource optimizer started")

    def stop(self) -> None:
        """Cancel every background loop. Safe to call more than once."""
        if self.state is not OptimizerState.RUNNING:
            return

        self.sampler.stop_sampling()
        self.usage_monitor.stop_monitoring()
        self.state = OptimizerState.STOPPED

        if self.logger:
            self.logger.info("Resource optimizer stopped")

    def __enter__(self) -> "ResourceOptimizer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Feedback loop
    # ------------------------------------------------------------------

    def on_window(self, metrics: PerformanceMetrics) -> Adjustment:
        """Run the adjuster for one completed sampling window and publish changes."""
        with self._settings_lock:
            adjustment = self.adjuster.adjust(
                self.publisher.current(), metrics, self.capabilities
            )
            if adjustment.changed:
                self.publisher.publish(adjustment.settings)
        return adjustment

    # ------------------------------------------------------------------
    # Observers and accessors
    # ------------------------------------------------------------------

    def subscribe(self, observer: SettingsObserver) -> Unsubscribe:
        # Same lock order as on_window: settings, then publisher delivery
        with self._settings_lock:
            return self.publisher.subscribe(observer)

    def get_settings(self) -> OptimizationSettings:
        return self.publisher.current()

    def get_capabilities(self) -> Capabilities:
        return self.capabilities

    def get_metrics(self) -> PerformanceMetrics:
        return self.sampler.current_metrics()

    def update_metrics(self, **fields) -> PerformanceMetrics:
        """Merge host-reported metric fields, e.g. ``last_load_time_ms``."""
        return self.sampler.update_metrics(**fields)

    # ------------------------------------------------------------------
    # Manual controls
    # ------------------------------------------------------------------

    def force_quality(self, tier: Union[QualityTier, str]) -> OptimizationSettings:
        """Pin the quality tier directly and notify observers."""
        tier = QualityTier(tier)
        with self._settings_lock:
            current = self.publisher.current()
            forced = replace(current, video_quality_tier=tier)
            self.publisher.publish(forced)

        if self.logger:
            self.logger.info(
                "Quality tier forced",
                old_tier=current.video_quality_tier.value,
                new_tier=tier.value,
            )
        return forced

    def reset_to_optimal(self) -> OptimizationSettings:
        """Re-derive settings from the capability snapshot and notify observers."""
        optimal = derive_settings(self.capabilities)
        with self._settings_lock:
            self.publisher.publish(optimal)

        if self.logger:
            self.logger.info("Settings reset to optimal", **optimal.to_dict())
        return optimal

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the optimizer for dashboards and diagnostics."""
        current_usage = self.usage_monitor.get_current_usage()
        return {
            "timestamp": time.time(),
            "state": self.state.value,
            "capabilities": self.capabilities.to_dict(),
            "settings": self.get_settings().to_dict(),
            "metrics": self.get_metrics().to_dict(),
            "observers": self.publisher.observer_count,
            "windows_completed": self.sampler.windows_completed,
            "recent_adjustments": self.adjuster.adjustment_history[-10:],
            "usage": {
                "monitoring": self.usage_monitor.is_monitoring,
                "current": current_usage.__dict__ if current_usage else None,
                "alerts": len(self.usage_monitor.alerts),
            },
        }
