"""
Resources package for adaptive quality optimization.

Provides capability probing, tiered settings derivation, live performance
sampling, one-step auto-adjustment, settings publication and resource
usage monitoring.
"""

from .data_models import (
    Adjustment,
    CacheStrategy,
    Capabilities,
    ConnectionClass,
    OptimizationSettings,
    PerformanceMetrics,
    QualityTier,
    ResourceAlert,
    ResourceSample,
)
from .capability_probe import CapabilityProbe, CapabilitySource, HostCapabilitySource, StaticCapabilitySource
from .settings_deriver import derive_settings, get_optimal_frame_rate, get_optimal_video_resolution
from .performance_sampler import PerformanceSampler
from .auto_adjuster import AutoAdjuster
from .publisher import SettingsPublisher
from .usage_monitor import ResourceUsageMonitor
from .manager import OptimizerState, ResourceOptimizer

__all__ = [
    # Data models
    "Adjustment",
    "CacheStrategy",
    "Capabilities",
    "ConnectionClass",
    "OptimizationSettings",
    "PerformanceMetrics",
    "QualityTier",
    "ResourceAlert",
    "ResourceSample",
    # Capability detection
    "CapabilityProbe",
    "CapabilitySource",
    "HostCapabilitySource",
    "StaticCapabilitySource",
    # Settings
    "derive_settings",
    "get_optimal_frame_rate",
    "get_optimal_video_resolution",
    # Feedback loop
    "PerformanceSampler",
    "AutoAdjuster",
    "SettingsPublisher",
    "ResourceUsageMonitor",
    # Facade
    "OptimizerState",
    "ResourceOptimizer",
]
