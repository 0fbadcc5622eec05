"""
Initial settings derivation and per-tier lookup tables.

``derive_settings`` is a pure function of the capability snapshot: the same
``Capabilities`` always yields the same ``OptimizationSettings``.
"""

from __future__ import annotations

import math
from typing import Dict, Tuple

from .data_models import (
    CacheStrategy,
    Capabilities,
    ConnectionClass,
    OptimizationSettings,
    QualityTier,
)

MAX_WORKER_POOL = 8
MEMORY_PER_TASK_GB = 0.5

CHUNK_SIZE_BYTES: Dict[QualityTier, int] = {
    QualityTier.ULTRA: 8192,
    QualityTier.HIGH: 4096,
    QualityTier.MEDIUM: 2048,
    QualityTier.LOW: 1024,
}

IMAGE_COMPRESSION_QUALITY: Dict[QualityTier, int] = {
    QualityTier.ULTRA: 95,
    QualityTier.HIGH: 85,
    QualityTier.MEDIUM: 75,
    QualityTier.LOW: 65,
}

VIDEO_RESOLUTION: Dict[QualityTier, Tuple[int, int]] = {
    QualityTier.ULTRA: (1920, 1080),
    QualityTier.HIGH: (1280, 720),
    QualityTier.MEDIUM: (854, 480),
    QualityTier.LOW: (640, 360),
}

FRAME_RATE: Dict[QualityTier, int] = {
    QualityTier.ULTRA: 60,
    QualityTier.HIGH: 30,
    QualityTier.MEDIUM: 24,
    QualityTier.LOW: 15,
}


def select_quality_tier(caps: Capabilities) -> QualityTier:
    """Pick the starting tier from hardware, then cap it for slow networks."""
    memory, cores = caps.memory_ceiling_gb, caps.logical_cores

    if memory >= 8 and cores >= 8:
        tier = QualityTier.ULTRA
    elif memory >= 4 and cores >= 4:
        tier = QualityTier.HIGH
    elif memory >= 2 and cores >= 2:
        tier = QualityTier.MEDIUM
    else:
        tier = QualityTier.LOW

    if caps.connection_class in (ConnectionClass.SLOW_2G, ConnectionClass.TWO_G):
        tier = QualityTier.LOW
    elif caps.connection_class is ConnectionClass.THREE_G and tier is QualityTier.ULTRA:
        tier = QualityTier.HIGH

    return tier


def select_cache_strategy(memory_ceiling_gb: float) -> CacheStrategy:
    if memory_ceiling_gb >= 8:
        return CacheStrategy.AGGRESSIVE
    if memory_ceiling_gb >= 4:
        return CacheStrategy.MODERATE
    return CacheStrategy.MINIMAL


def derive_settings(caps: Capabilities) -> OptimizationSettings:
    """Map a capability snapshot to its initial optimization settings."""
    tier = select_quality_tier(caps)

    return OptimizationSettings(
        video_quality_tier=tier,
        worker_pool_size=min(caps.logical_cores, MAX_WORKER_POOL),
        max_concurrent_tasks=max(1, math.floor(caps.memory_ceiling_gb / MEMORY_PER_TASK_GB)),
        chunk_size_bytes=CHUNK_SIZE_BYTES[tier],
        parallel_processing_enabled=caps.logical_cores >= 4 and caps.memory_ceiling_gb >= 2,
        cache_strategy=select_cache_strategy(caps.memory_ceiling_gb),
        image_compression_quality=IMAGE_COMPRESSION_QUALITY[tier],
    )


def get_optimal_video_resolution(tier: QualityTier | str) -> Tuple[int, int]:
    """(width, height) for a quality tier."""
    return VIDEO_RESOLUTION[QualityTier(tier)]


def get_optimal_frame_rate(tier: QualityTier | str) -> int:
    """Frames per second for a quality tier."""
    return FRAME_RATE[QualityTier(tier)]
