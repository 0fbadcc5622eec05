"""
Adaptive optimizer core package.

Detects what the host can handle, derives a starting quality tier, and keeps
nudging it one step at a time from live frame-rate and memory readings.
"""

from _version import __version__, get_full_version, get_version_dict

from .config import OptimizerConfig, load_optimizer_config
from .exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    ObserverNotificationError,
    OptimizerError,
)
from .logger import JSONFormatter, ProductionLogger, get_logger
from .resources import (
    Capabilities,
    OptimizationSettings,
    PerformanceMetrics,
    QualityTier,
    ResourceOptimizer,
    derive_settings,
    get_optimal_frame_rate,
    get_optimal_video_resolution,
)

__all__ = [
    # Version
    "__version__",
    "get_full_version",
    "get_version_dict",
    # Config
    "OptimizerConfig",
    "load_optimizer_config",
    # Errors
    "OptimizerError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "ObserverNotificationError",
    # Logging
    "JSONFormatter",
    "ProductionLogger",
    "get_logger",
    # Optimizer
    "Capabilities",
    "OptimizationSettings",
    "PerformanceMetrics",
    "QualityTier",
    "ResourceOptimizer",
    "derive_settings",
    "get_optimal_frame_rate",
    "get_optimal_video_resolution",
]
