"""
Prometheus metrics collection for TLS Host Checker.
"""

import time

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    write_to_textfile,
)

from tls_host_checker.logger import get_logger
from tls_host_checker.models import ConnectionOutcome, ProbeSuccess


class MetricsCollector:
    """Prometheus metrics for probe runs."""

    def __init__(self) -> None:
        self.logger = get_logger("metrics")
        self.registry = CollectorRegistry()

        # Outcome metrics
        self.tls_check_probes_total = Counter(
            "tls_check_probes_total",
            "Final probe outcomes per host",
            ["status"],
            registry=self.registry,
        )

        self.tls_check_attempt_failures_total = Counter(
            "tls_check_attempt_failures_total",
            "Failed probe attempts, retried or final",
            ["error_type"],
            registry=self.registry,
        )

        self.tls_check_probe_duration_seconds = Histogram(
            "tls_check_probe_duration_seconds",
            "Time from admission to final outcome for one host, retries included",
            registry=self.registry,
        )

        # Scheduler metrics
        self.tls_check_in_flight = Gauge(
            "tls_check_in_flight",
            "Probes currently occupying a concurrency slot",
            registry=self.registry,
        )

        self.tls_check_last_run_timestamp = Gauge(
            "tls_check_last_run_timestamp",
            "Completion time of the last batch (Unix timestamp)",
            registry=self.registry,
        )

        # Certificate metrics
        self.tls_check_cert_expiration_timestamp = Gauge(
            "tls_check_cert_expiration_timestamp",
            "Peer certificate expiration time (Unix timestamp)",
            ["hostname", "subject", "issuer"],
            registry=self.registry,
        )

        self.tls_check_cert_authorized = Gauge(
            "tls_check_cert_authorized",
            "1 if the peer certificate was trusted for the hostname, 0 otherwise",
            ["hostname"],
            registry=self.registry,
        )

        self.logger.debug("Metrics collector initialized")

    def record_attempt_failure(self, error: Exception) -> None:
        """Count a failed attempt by error type."""
        self.tls_check_attempt_failures_total.labels(error_type=type(error).__name__).inc()

    def record_outcome(self, outcome: ConnectionOutcome, duration: float) -> None:
        """
        Record the final outcome for a host.

        Args:
            outcome: Success or failure outcome
            duration: Seconds spent on the host, retries included
        """
        self.tls_check_probes_total.labels(status=outcome.status).inc()
        self.tls_check_probe_duration_seconds.observe(duration)

        if isinstance(outcome, ProbeSuccess):
            cert = outcome.certificate
            self.tls_check_cert_expiration_timestamp.labels(
                hostname=outcome.hostname, subject=cert.subject, issuer=cert.issuer
            ).set(cert.expiration_timestamp)
            self.tls_check_cert_authorized.labels(hostname=outcome.hostname).set(
                1 if outcome.tls.authorized else 0
            )

    def mark_run_complete(self) -> None:
        self.tls_check_last_run_timestamp.set(int(time.time()))

    def get_metrics(self) -> str:
        """
        Get Prometheus metrics in text format.

        Returns:
            Metrics in Prometheus text format
        """
        return generate_latest(self.registry).decode("utf-8")

    def write_textfile(self, path: str) -> None:
        """Write metrics for the node exporter textfile collector."""
        write_to_textfile(path, self.registry)
        self.logger.info(f"Metrics written to {path}")
