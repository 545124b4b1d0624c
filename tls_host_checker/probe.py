"""
Per-host probe with a fixed-delay retry policy.
"""

import asyncio
from typing import Optional

from tls_host_checker.config import Config
from tls_host_checker.connector import SecureConnector
from tls_host_checker.errors import RetryableError
from tls_host_checker.logger import get_logger, log_attempt_failed
from tls_host_checker.metrics import MetricsCollector
from tls_host_checker.models import ProbeSuccess
from tls_host_checker.resolver import AddressResolver


class RetryingProbe:
    """
    Resolve, connect and inspect one hostname, retrying failed attempts.

    A host gets ``retries + 1`` attempts. Only resolution and connection
    errors are retried; the delay between attempts is fixed and never applied
    after the last one. When every attempt fails the last error is raised.
    """

    def __init__(
        self,
        config: Config,
        resolver: AddressResolver,
        connector: SecureConnector,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.resolver = resolver
        self.connector = connector
        self.metrics = metrics
        self.logger = get_logger("probe")

    async def probe(self, hostname: str) -> ProbeSuccess:
        """
        Check a hostname.

        Args:
            hostname: Hostname to check

        Returns:
            Success outcome

        Raises:
            RetryableError: The last attempt's error once attempts are exhausted
        """
        max_attempts = self.config.max_attempts
        attempts = 0

        while True:
            try:
                return await self._attempt(hostname)
            except RetryableError as e:
                attempts += 1
                if self.metrics is not None:
                    self.metrics.record_attempt_failure(e)
                log_attempt_failed(self.logger, hostname, attempts, max_attempts, e)

                if attempts >= max_attempts:
                    raise

            await asyncio.sleep(self.config.retry_delay_seconds)

    async def _attempt(self, hostname: str) -> ProbeSuccess:
        address = await self.resolver.resolve(hostname)
        handle = await self.connector.connect(hostname, address)
        try:
            return ProbeSuccess(
                hostname=hostname,
                ip=address,
                tls=handle.tls,
                certificate=handle.certificate,
            )
        finally:
            await handle.close()
