"""
Resource usage time series with threshold alerts.

Features:
- CPU, memory, network and GPU utilisation sampled at a fixed interval
- Bounded sample history for dashboards
- Warning / critical alerts with per-resource de-duplication
- Alert retention window and bounded alert history
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, TYPE_CHECKING

import psutil

from .data_models import ResourceAlert, ResourceSample

if TYPE_CHECKING:
    from ..config import UsageMonitorSettings
    from ..logger import ProductionLogger

RESOURCES = ("cpu", "memory", "network", "gpu")


class ResourceUsageMonitor:
    """
    Samples host utilisation percentages and raises alerts on threshold breaches.

    GPU utilisation has no portable reader; hosts that can measure it pass
    ``gpu_reader``, otherwise it is reported as 0.
    """

    def __init__(
        self,
        settings: Optional["UsageMonitorSettings"] = None,
        gpu_reader: Optional[Callable[[], float]] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional["ProductionLogger"] = None,
    ):
        if settings is None:
            from ..config import UsageMonitorSettings

            settings = UsageMonitorSettings()

        self.settings = settings
        self.monitoring_interval = settings.monitoring_interval_seconds
        self.thresholds: Dict[str, Dict[str, float]] = {
            name: getattr(settings.thresholds, name).model_dump() for name in RESOURCES
        }
        self.gpu_reader = gpu_reader
        self.clock = clock or time.time
        self.logger = logger

        self._samples: Deque[ResourceSample] = deque(maxlen=settings.max_data_points)
        self._alerts: List[ResourceAlert] = []

        self._last_net_bytes: Optional[int] = None
        self._last_net_time: Optional[float] = None

        self._monitoring_active = False
        self._stop_event = threading.Event()
        self._monitoring_thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring_active

    def start_monitoring(self) -> None:
        """Collect one sample immediately, then keep sampling in the background."""
        with self._lock:
            if self._monitoring_active:
                return

            # Prime psutil's cpu_percent so the first reading is meaningful
            psutil.cpu_percent(interval=None)
            self.collect()

            self._monitoring_active = True
            self._stop_event.clear()
            self._monitoring_thread = threading.Thread(
                target=self._monitor_loop, daemon=True, name="ResourceUsageMonitor"
            )
            self._monitoring_thread.start()

    def stop_monitoring(self) -> None:
        with self._lock:
            self._monitoring_active = False
            self._stop_event.set()
            thread, self._monitoring_thread = self._monitoring_thread, None

        # Join outside the lock; the loop takes it to store samples
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _monitor_loop(self) -> None:
        while not self._stop_event.wait(self.monitoring_interval):
            try:
                self.collect()
            except Exception:
                if self.logger:
                    self.logger.exception("Resource usage sample failed")

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def collect(self) -> ResourceSample:
        """Capture one sample, store it and check it against the thresholds."""
        sample = ResourceSample(
            timestamp=self.clock(),
            cpu=self._read_cpu(),
            memory=self._read_memory(),
            network=self._read_network(),
            gpu=self._read_gpu(),
        )
        with self._lock:
            self._samples.append(sample)
        self.check_alerts(sample)
        return sample

    def _read_cpu(self) -> float:
        try:
            return min(float(psutil.cpu_percent(interval=None)), 100.0)
        except Exception:
            return 0.0

    def _read_memory(self) -> float:
        try:
            return float(psutil.virtual_memory().percent)
        except Exception:
            return 0.0

    def _read_network(self) -> float:
        """Throughput since the previous reading as a share of link capacity."""
        try:
            counters = psutil.net_io_counters()
        except Exception:
            return 0.0
        if counters is None:
            return 0.0

        now = self.clock()
        total_bytes = counters.bytes_sent + counters.bytes_recv
        previous_bytes, previous_time = self._last_net_bytes, self._last_net_time
        self._last_net_bytes, self._last_net_time = total_bytes, now

        if previous_bytes is None or previous_time is None or now <= previous_time:
            return 0.0

        mbps = (total_bytes - previous_bytes) * 8 / (now - previous_time) / 1_000_000
        return max(0.0, min(mbps / self.settings.network_capacity_mbps * 100, 100.0))

    def _read_gpu(self) -> float:
        if self.gpu_reader is None:
            return 0.0
        try:
            return max(0.0, min(float(self.gpu_reader()), 100.0))
        except Exception:
            return 0.0

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def check_alerts(self, sample: ResourceSample) -> List[ResourceAlert]:
        """Raise alerts for breached thresholds. Returns the alerts actually kept."""
        timestamp = sample.timestamp
        candidates: List[ResourceAlert] = []

        for name in RESOURCES:
            value = getattr(sample, name)
            limits = self.thresholds[name]
            if value >= limits["critical"]:
                severity, wording = "critical", "critical"
            elif value >= limits["warning"]:
                severity, wording = "warning", "high"
            else:
                continue
            candidates.append(
                ResourceAlert(
                    id=f"{name}-{int(timestamp * 1000)}",
                    resource=name,
                    severity=severity,
                    message=f"{name.upper()} usage {wording}: {value:.1f}%",
                    timestamp=timestamp,
                )
            )

        if not candidates:
            return []

        retention = self.settings.alert_retention_seconds
        dedup = self.settings.alert_dedup_seconds

        with self._lock:
            recent = [a for a in self._alerts if timestamp - a.timestamp < retention]
            fresh = [
                alert for alert in candidates
                if not any(
                    existing.resource == alert.resource
                    and alert.timestamp - existing.timestamp < dedup
                    for existing in recent
                )
            ]
            self._alerts = (recent + fresh)[-self.settings.max_alerts:]

        if self.logger:
            for alert in fresh:
                self.logger.warning(
                    alert.message, resource=alert.resource, severity=alert.severity
                )

        return fresh

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def samples(self) -> List[ResourceSample]:
        with self._lock:
            return list(self._samples)

    @property
    def alerts(self) -> List[ResourceAlert]:
        with self._lock:
            return list(self._alerts)

    def get_current_usage(self) -> Optional[ResourceSample]:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def clear_alerts(self) -> None:
        with self._lock:
            self._alerts = []

    def dismiss_alert(self, alert_id: str) -> bool:
        """Remove one alert. Returns False when no alert had that id."""
        with self._lock:
            remaining = [a for a in self._alerts if a.id != alert_id]
            removed = len(remaining) != len(self._alerts)
            self._alerts = remaining
        return removed
