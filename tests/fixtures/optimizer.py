"""Optimizer fixtures: deterministic capability sources and clocks."""

from dataclasses import replace

import pytest

from adaptive_optimizer.config import OptimizerConfig
from adaptive_optimizer.resources import (
    Capabilities,
    ConnectionClass,
    OptimizationSettings,
    ResourceOptimizer,
    StaticCapabilitySource,
    derive_settings,
)


class FakeClock:
    """Manually advanced monotonic clock. Reads in seconds, counts in whole milliseconds."""

    def __init__(self, start_ms: int = 1_000_000):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms / 1000.0

    def advance_ms(self, ms: float) -> None:
        self.now_ms += ms


def make_capabilities(
    cores: int = 4,
    memory: float = 4.0,
    connection: str = "4g",
    pixel_ratio: float = 1.0,
    gpu: str = "unknown",
) -> Capabilities:
    return Capabilities(
        logical_cores=cores,
        memory_ceiling_gb=memory,
        pixel_ratio=pixel_ratio,
        connection_class=ConnectionClass.parse(connection),
        gpu_descriptor=gpu,
    )


def make_settings(caps: Capabilities = None, **overrides) -> OptimizationSettings:
    """Derived settings for ``caps`` with selected fields replaced."""
    settings = derive_settings(caps or make_capabilities())
    return replace(settings, **overrides)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def desktop_source():
    """8 cores, 8GB, 4g: derives the ultra tier."""
    return StaticCapabilitySource(
        logical_cores=8,
        memory_ceiling_gb=8.0,
        pixel_ratio=2.0,
        connection_class="4g",
        gpu_descriptor="ANGLE (NVIDIA GeForce RTX 3060)",
    )


@pytest.fixture
def low_end_source():
    """2 cores, 1.5GB, 4g: derives the low tier."""
    return StaticCapabilitySource(logical_cores=2, memory_ceiling_gb=1.5, connection_class="4g")


@pytest.fixture
def optimizer(desktop_source, fake_clock):
    """Optimizer on a fixed desktop profile with a manual clock and fixed memory reading."""
    opt = ResourceOptimizer(
        config=OptimizerConfig(),
        capability_source=desktop_source,
        memory_reader=lambda: 512.0,
        clock=fake_clock,
    )
    yield opt
    opt.stop()
