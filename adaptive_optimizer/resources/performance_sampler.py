"""
Frame-cadence and memory sampling.

The sampler counts frames. A frame is either one wake-up of its own
background loop (``start_sampling``) or one ``record_frame()`` call from a
host that owns a real render loop. Whenever a window of ``window_ms`` has
elapsed, the frames counted in it are turned into an FPS figure, process
memory is read, and the window callback runs on the same thread before the
next frame is counted.
"""

from __future__ import annotations

import threading
import time
from dataclasses import replace
from typing import Callable, Optional, TYPE_CHECKING

import psutil

from .data_models import PerformanceMetrics

if TYPE_CHECKING:
    from ..logger import ProductionLogger

WindowCallback = Callable[[PerformanceMetrics], None]


class ProcessMemoryReader:
    """Resident set size of the current process in MB."""

    def __init__(self):
        self._process = psutil.Process()

    def __call__(self) -> float:
        return self._process.memory_info().rss / 1048576


class PerformanceSampler:
    """Measures live FPS and memory once per sampling window."""

    def __init__(
        self,
        window_ms: float = 1000.0,
        target_frame_rate: int = 60,
        memory_reader: Optional[Callable[[], Optional[float]]] = None,
        clock: Optional[Callable[[], float]] = None,
        on_window: Optional[WindowCallback] = None,
        logger: Optional["ProductionLogger"] = None,
    ):
        self.window_ms = window_ms
        self.frame_interval = 1.0 / target_frame_rate
        self.memory_reader = memory_reader or ProcessMemoryReader()
        self.clock = clock or time.monotonic
        self.on_window = on_window
        self.logger = logger

        self._metrics = PerformanceMetrics()
        self._metrics_lock = threading.RLock()
        # Held for a whole frame, window callback included, so ticks never overlap
        self._tick_lock = threading.Lock()

        self._frame_count = 0
        self._window_start = self._now_ms()
        self._windows_completed = 0

        self._stop_event = threading.Event()
        self._sampling_thread: Optional[threading.Thread] = None
        self._state_lock = threading.RLock()

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

    @property
    def is_running(self) -> bool:
        thread = self._sampling_thread
        return thread is not None and thread.is_alive()

    @property
    def windows_completed(self) -> int:
        return self._windows_completed

    def start_sampling(self) -> None:
        """Start the self-driven frame loop on a daemon thread."""
        with self._state_lock:
            if self.is_running:
                return

            self._stop_event.clear()
            self.reset_window()
            self._sampling_thread = threading.Thread(
                target=self._sample_loop, daemon=True, name="PerformanceSampler"
            )
            self._sampling_thread.start()

    def stop_sampling(self) -> None:
        """Stop the frame loop and wait for it to exit."""
        with self._state_lock:
            self._stop_event.set()
            thread = self._sampling_thread
            if thread and thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=2.0)
            self._sampling_thread = None

    def _sample_loop(self) -> None:
        while not self._stop_event.wait(self.frame_interval):
            try:
                self.record_frame()
            except Exception:
                if self.logger:
                    self.logger.exception("Sampling window callback failed")

    def reset_window(self) -> None:
        """Discard the frames counted so far and start a fresh window."""
        with self._tick_lock:
            self._frame_count = 0
            self._window_start = self._now_ms()

    def record_frame(self) -> Optional[PerformanceMetrics]:
        """Count one frame. Returns the new metrics when this frame closed a window."""
        with self._tick_lock:
            now = self._now_ms()
            self._frame_count += 1

            if now < self._window_start + self.window_ms:
                return None

            elapsed = now - self._window_start
            fps = round((self._frame_count * 1000) / elapsed)
            memory = self._read_memory_mb()

            with self._metrics_lock:
                self._metrics = replace(
                    self._metrics, frames_per_second=fps, memory_used_mb=memory
                )
                metrics = self._metrics

            self._frame_count = 0
            self._window_start = now
            self._windows_completed += 1

            if self.on_window is not None:
                self.on_window(metrics)

            return metrics

    def _read_memory_mb(self) -> float:
        """Rounded memory use in MB, or 0 when the host cannot tell."""
        try:
            value = self.memory_reader()
        except Exception:
            return 0.0
        if value is None or value < 0:
            return 0.0
        return float(round(value))

    def current_metrics(self) -> PerformanceMetrics:
        """Metrics of the latest completed window."""
        with self._metrics_lock:
            return self._metrics

    def update_metrics(self, **fields) -> PerformanceMetrics:
        """Merge host-reported values (e.g. ``last_load_time_ms``) into the metrics."""
        with self._metrics_lock:
            self._metrics = replace(self._metrics, **fields)
            return self._metrics
