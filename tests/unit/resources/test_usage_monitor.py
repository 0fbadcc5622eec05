"""
Tests for the ResourceUsageMonitor.

Sampling is tested with psutil patched; alerting is tested by feeding
samples straight into check_alerts().
"""

import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from adaptive_optimizer.config import UsageMonitorSettings
from adaptive_optimizer.resources import ResourceSample, ResourceUsageMonitor


def _sample(timestamp, cpu=10.0, memory=10.0, network=10.0, gpu=10.0):
    return ResourceSample(timestamp=timestamp, cpu=cpu, memory=memory, network=network, gpu=gpu)


@pytest.fixture
def monitor():
    return ResourceUsageMonitor(UsageMonitorSettings(monitoring_interval_seconds=0.1))


class TestSampling:
    """Tests for collect()."""

    @pytest.mark.fast
    @patch("psutil.net_io_counters")
    @patch("psutil.virtual_memory")
    @patch("psutil.cpu_percent", return_value=42.0)
    def test_collect_reads_psutil(self, _cpu, mock_vm, mock_net):
        mock_vm.return_value.percent = 61.5
        mock_net.return_value = SimpleNamespace(bytes_sent=0, bytes_recv=0)
        clock = MagicMock(side_effect=[100.0, 100.0])

        monitor = ResourceUsageMonitor(gpu_reader=lambda: 33.0, clock=clock)
        sample = monitor.collect()

        assert sample.cpu == 42.0
        assert sample.memory == 61.5
        assert sample.network == 0.0
        assert sample.gpu == 33.0
        assert monitor.get_current_usage() is sample

    @pytest.mark.fast
    @patch("psutil.net_io_counters")
    def test_network_share_of_capacity(self, mock_net):
        times = iter([10.0, 11.0])
        monitor = ResourceUsageMonitor(
            UsageMonitorSettings(network_capacity_mbps=100.0), clock=lambda: next(times)
        )
        mock_net.return_value = SimpleNamespace(bytes_sent=0, bytes_recv=0)
        assert monitor._read_network() == 0.0

        # 6.25MB in one second = 50Mbps on a 100Mbps link
        mock_net.return_value = SimpleNamespace(bytes_sent=3_125_000, bytes_recv=3_125_000)
        assert monitor._read_network() == pytest.approx(50.0)

    @pytest.mark.fast
    @patch("psutil.net_io_counters", side_effect=RuntimeError("no counters"))
    def test_network_unavailable(self, _mock_net, monitor):
        assert monitor._read_network() == 0.0

    @pytest.mark.fast
    def test_gpu_reader_clamped_and_guarded(self):
        assert ResourceUsageMonitor(gpu_reader=lambda: 140.0)._read_gpu() == 100.0
        assert ResourceUsageMonitor()._read_gpu() == 0.0

        def broken():
            raise RuntimeError("driver gone")

        assert ResourceUsageMonitor(gpu_reader=broken)._read_gpu() == 0.0

    @pytest.mark.fast
    def test_history_is_bounded(self):
        monitor = ResourceUsageMonitor(UsageMonitorSettings(max_data_points=5))
        for _ in range(8):
            monitor.collect()
        assert len(monitor.samples) == 5


class TestAlerts:
    """Threshold evaluation and alert bookkeeping."""

    @pytest.mark.fast
    def test_below_thresholds_no_alert(self, monitor):
        assert monitor.check_alerts(_sample(1000.0)) == []
        assert monitor.alerts == []

    @pytest.mark.fast
    def test_warning_and_critical(self, monitor):
        alerts = monitor.check_alerts(_sample(1000.0, cpu=75.0, memory=92.0))

        by_resource = {a.resource: a for a in alerts}
        assert by_resource["cpu"].severity == "warning"
        assert by_resource["cpu"].message == "CPU usage high: 75.0%"
        assert by_resource["memory"].severity == "critical"
        assert by_resource["memory"].message == "MEMORY usage critical: 92.0%"
        assert set(by_resource) == {"cpu", "memory"}

    @pytest.mark.fast
    def test_threshold_is_inclusive(self, monitor):
        alerts = monitor.check_alerts(_sample(1000.0, network=95.0))
        assert alerts[0].severity == "critical"

    @pytest.mark.fast
    def test_repeat_alert_suppressed_within_dedup_window(self, monitor):
        monitor.check_alerts(_sample(1000.0, cpu=95.0))
        assert monitor.check_alerts(_sample(1003.0, cpu=95.0)) == []
        assert len(monitor.check_alerts(_sample(1006.0, cpu=95.0))) == 1
        assert len(monitor.alerts) == 2

    @pytest.mark.fast
    def test_old_alerts_expire(self, monitor):
        monitor.check_alerts(_sample(1000.0, gpu=80.0))
        monitor.check_alerts(_sample(1000.0 + 601, cpu=80.0))
        assert [a.resource for a in monitor.alerts] == ["cpu"]

    @pytest.mark.fast
    def test_alert_history_is_bounded(self):
        monitor = ResourceUsageMonitor(UsageMonitorSettings(max_alerts=3))
        for i in range(6):
            monitor.check_alerts(_sample(1000.0 + i * 10, cpu=99.0))
        assert len(monitor.alerts) == 3
        assert monitor.alerts[-1].timestamp == 1050.0

    @pytest.mark.fast
    def test_dismiss_and_clear(self, monitor):
        alerts = monitor.check_alerts(_sample(1000.0, cpu=99.0, gpu=99.0))

        assert monitor.dismiss_alert(alerts[0].id) is True
        assert monitor.dismiss_alert("missing") is False
        assert len(monitor.alerts) == 1

        monitor.clear_alerts()
        assert monitor.alerts == []

    @pytest.mark.fast
    def test_alerts_are_logged(self):
        logger = MagicMock()
        monitor = ResourceUsageMonitor(logger=logger)
        monitor.check_alerts(_sample(1000.0, memory=80.0))
        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs == {"resource": "memory", "severity": "warning"}


class TestLifecycle:
    """Background monitoring."""

    def test_start_collects_immediately_and_stops(self, monitor):
        monitor.start_monitoring()
        try:
            assert monitor.is_monitoring
            assert len(monitor.samples) >= 1
            time.sleep(0.35)
        finally:
            monitor.stop_monitoring()

        assert not monitor.is_monitoring
        count = len(monitor.samples)
        assert count >= 2
        time.sleep(0.25)
        assert len(monitor.samples) == count

    def test_stop_does_not_wait_out_in_flight_sample(self):
        in_loop_sample = threading.Event()
        calls = []

        def slow_gpu():
            calls.append(1)
            if len(calls) == 2:
                in_loop_sample.set()
                time.sleep(0.2)
            return 10.0

        monitor = ResourceUsageMonitor(
            UsageMonitorSettings(monitoring_interval_seconds=0.1), gpu_reader=slow_gpu
        )
        monitor.start_monitoring()
        try:
            assert in_loop_sample.wait(timeout=2.0)
        finally:
            started = time.monotonic()
            monitor.stop_monitoring()
            elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert len(monitor.samples) == 2
