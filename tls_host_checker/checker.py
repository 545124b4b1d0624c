"""
TLS checker facade wiring resolution, connection, retries and scheduling.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from tls_host_checker.config import Config
from tls_host_checker.connector import SecureConnector
from tls_host_checker.formatter import ResultFormatter
from tls_host_checker.metrics import MetricsCollector
from tls_host_checker.models import ConnectionOutcome, ProbeSuccess
from tls_host_checker.probe import RetryingProbe
from tls_host_checker.resolver import AddressResolver
from tls_host_checker.scheduler import BoundedScheduler


class TLSChecker:
    """Check TLS certificates and connection parameters for hostnames."""

    def __init__(
        self,
        config: Optional[Union[Config, Mapping[str, Any]]] = None,
        resolver: Optional[AddressResolver] = None,
        connector: Optional[SecureConnector] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        if not isinstance(config, Config):
            config = Config.from_options(config)
        self.config = config

        self.metrics = metrics or MetricsCollector()
        self.resolver = resolver or AddressResolver(config)
        self.connector = connector or SecureConnector(config)
        self.formatter = ResultFormatter()
        self.probe = RetryingProbe(config, self.resolver, self.connector, self.metrics)
        self.scheduler = BoundedScheduler(config, self.probe.probe, self.metrics)

    async def check_tls(self, hostname: str) -> ProbeSuccess:
        """
        Check a single hostname, retrying per configuration.

        Raises:
            RetryableError: If every attempt failed
        """
        return await self.probe.probe(hostname)

    async def run(self, hostnames: Any) -> List[ConnectionOutcome]:
        """Check many hostnames and return the raw outcomes."""
        return await self.scheduler.run_all(hostnames)

    async def check_multiple(self, hostnames: Any) -> Dict[str, Any]:
        """
        Check many hostnames with bounded concurrency.

        Args:
            hostnames: List of hostnames

        Returns:
            Final report with summary counts and one record per hostname

        Raises:
            InvalidInputError: If hostnames is not a list
        """
        outcomes = await self.run(hostnames)
        return self.formatter.format_final_results(outcomes)
