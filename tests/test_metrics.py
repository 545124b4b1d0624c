"""
Tests for metrics collection.
"""

from tests.conftest import make_success
from tls_host_checker.errors import ConnectError
from tls_host_checker.metrics import MetricsCollector
from tls_host_checker.models import ProbeFailure


class TestMetricsCollector:
    """Test metrics collector functionality."""

    def test_metrics_collector_initialization(self):
        """Test metrics collector initialization."""
        metrics = MetricsCollector()

        assert metrics.registry is not None
        assert metrics.tls_check_probes_total is not None
        assert metrics.tls_check_in_flight is not None

    def test_collectors_are_independent(self):
        """Test each collector owns its registry."""
        first = MetricsCollector()
        second = MetricsCollector()

        first.record_attempt_failure(ConnectError("refused"))

        assert "ConnectError" in first.get_metrics()
        assert "ConnectError" not in second.get_metrics()

    def test_record_success_outcome(self):
        """Test certificate metrics are set for successful hosts."""
        metrics = MetricsCollector()

        metrics.record_outcome(make_success("www.example.com"), duration=0.25)

        output = metrics.get_metrics()
        assert 'tls_check_probes_total{status="success"} 1.0' in output
        assert "tls_check_cert_expiration_timestamp" in output
        assert 'hostname="www.example.com"' in output
        assert "tls_check_probe_duration_seconds_count 1.0" in output

    def test_record_failure_outcome(self):
        """Test failures are counted without certificate metrics."""
        metrics = MetricsCollector()

        metrics.record_outcome(ProbeFailure(hostname="down.example.com", error="x"), duration=1.0)

        output = metrics.get_metrics()
        assert 'tls_check_probes_total{status="error"} 1.0' in output
        assert 'hostname="down.example.com"' not in output

    def test_write_textfile(self, tmp_path):
        """Test metrics are written in text exposition format."""
        metrics = MetricsCollector()
        metrics.mark_run_complete()
        path = tmp_path / "tls_checker.prom"

        metrics.write_textfile(str(path))

        content = path.read_text()
        assert "tls_check_last_run_timestamp" in content
