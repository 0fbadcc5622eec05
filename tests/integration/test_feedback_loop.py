"""
Integration tests for the live feedback loop.

These run the real sampling thread against the wall clock, so they use
the shortest window the configuration allows and poll with a deadline.
"""

import threading
import time

import pytest

from adaptive_optimizer.config import OptimizerConfig
from adaptive_optimizer.resources import (
    QualityTier,
    ResourceOptimizer,
    StaticCapabilitySource,
)


def _wait_for(predicate, timeout=5.0, interval=0.02):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def slow_loop_optimizer():
    """Desktop profile whose own loop can only reach ~10 FPS, well under the downgrade threshold."""
    config = OptimizerConfig(sampler={"window_ms": 100, "target_frame_rate": 10})
    source = StaticCapabilitySource(logical_cores=8, memory_ceiling_gb=8.0, connection_class="4g")
    opt = ResourceOptimizer(config=config, capability_source=source, memory_reader=lambda: 256.0)
    yield opt
    opt.stop()


class TestLiveFeedbackLoop:

    def test_low_frame_rate_steps_quality_down(self, slow_loop_optimizer):
        seen = []
        slow_loop_optimizer.subscribe(seen.append)
        assert slow_loop_optimizer.get_settings().video_quality_tier is QualityTier.ULTRA

        with slow_loop_optimizer:
            assert _wait_for(
                lambda: slow_loop_optimizer.get_settings().video_quality_tier is QualityTier.LOW
            )

        tiers = [s.video_quality_tier for s in seen]
        assert tiers[:4] == [
            QualityTier.ULTRA,
            QualityTier.HIGH,
            QualityTier.MEDIUM,
            QualityTier.LOW,
        ]
        assert slow_loop_optimizer.get_metrics().frames_per_second < 30
        assert slow_loop_optimizer.get_metrics().memory_used_mb == 256.0

    def test_stop_leaves_no_sampling_thread(self, slow_loop_optimizer):
        slow_loop_optimizer.start()
        assert _wait_for(lambda: slow_loop_optimizer.sampler.windows_completed >= 1)

        slow_loop_optimizer.stop()
        completed = slow_loop_optimizer.sampler.windows_completed
        time.sleep(0.3)

        assert not slow_loop_optimizer.sampler.is_running
        assert slow_loop_optimizer.sampler.windows_completed == completed
        assert not any(t.name == "PerformanceSampler" for t in threading.enumerate())

    def test_host_frames_and_loop_share_one_window(self, slow_loop_optimizer):
        """Host-driven frames and loop ticks never overlap a window callback."""
        active = []
        overlaps = []

        def observer(settings):
            if active:
                overlaps.append(settings)
            active.append(settings)
            time.sleep(0.005)
            active.pop()

        slow_loop_optimizer.subscribe(observer)
        slow_loop_optimizer.start()

        # Host render loop on this thread at well over the loop's own rate
        deadline = time.monotonic() + 0.6
        while time.monotonic() < deadline:
            slow_loop_optimizer.sampler.record_frame()
            time.sleep(0.001)

        slow_loop_optimizer.stop()
        assert overlaps == []
        assert slow_loop_optimizer.sampler.windows_completed >= 2

    def test_failing_observer_does_not_stall_loop(self, slow_loop_optimizer):
        def broken(settings):
            raise RuntimeError("panel unavailable")

        healthy = []
        slow_loop_optimizer.subscribe(broken)
        slow_loop_optimizer.subscribe(healthy.append)

        with slow_loop_optimizer:
            assert _wait_for(lambda: len(healthy) >= 3)

        assert slow_loop_optimizer.publisher.failed_notifications >= 2
