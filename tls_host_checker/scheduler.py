"""
Bounded concurrent scheduler for host probes.
"""

import asyncio
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, List, Optional, Set

from tls_host_checker.config import Config
from tls_host_checker.errors import InvalidInputError
from tls_host_checker.logger import (
    get_logger,
    log_batch_complete,
    log_batch_start,
    log_probe_complete,
)
from tls_host_checker.metrics import MetricsCollector
from tls_host_checker.models import ConnectionOutcome, HostTask, ProbeFailure

ProbeFunc = Callable[[str], Awaitable[ConnectionOutcome]]


class BoundedScheduler:
    """
    Run probes for many hostnames with at most ``concurrency`` in flight.

    Hostnames are admitted in input order. Outcomes are returned in
    completion order, exactly one per input hostname; a probe that raises is
    recorded as a failure and never aborts the batch.
    """

    def __init__(
        self,
        config: Config,
        probe: ProbeFunc,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.probe = probe
        self.metrics = metrics
        self.logger = get_logger("scheduler")
        self.max_in_flight = 0

    async def run_all(self, hostnames: Any) -> List[ConnectionOutcome]:
        """
        Probe every hostname and collect the outcomes.

        Args:
            hostnames: List of hostnames

        Returns:
            One outcome per hostname, in completion order

        Raises:
            InvalidInputError: If hostnames is not a list
        """
        if not isinstance(hostnames, list):
            raise InvalidInputError("Hostnames must be a list")

        results: List[ConnectionOutcome] = []
        self.max_in_flight = 0
        if not hostnames:
            return results

        start_time = time.time()
        log_batch_start(self.logger, len(hostnames), self.config.concurrency)

        pending: Deque[HostTask] = deque(HostTask(h, self.config) for h in hostnames)
        in_flight: Set["asyncio.Task[ConnectionOutcome]"] = set()

        try:
            while pending or in_flight:
                while pending and len(in_flight) < self.config.concurrency:
                    task = pending.popleft()
                    in_flight.add(
                        asyncio.create_task(self._run_task(task), name=f"probe:{task.hostname}")
                    )
                self.max_in_flight = max(self.max_in_flight, len(in_flight))
                self._set_in_flight_gauge(len(in_flight))

                done, in_flight = await asyncio.wait(
                    in_flight, return_when=asyncio.FIRST_COMPLETED
                )
                for finished in done:
                    results.append(finished.result())
        finally:
            for leftover in in_flight:
                leftover.cancel()
            self._set_in_flight_gauge(0)

        if self.metrics is not None:
            self.metrics.mark_run_complete()

        successful = sum(1 for r in results if r.ok)
        log_batch_complete(
            self.logger,
            time.time() - start_time,
            successful,
            len(results) - successful,
            self.max_in_flight,
        )
        return results

    async def _run_task(self, task: HostTask) -> ConnectionOutcome:
        """Run one probe, converting any exception into a failure outcome."""
        start_time = time.time()
        outcome: ConnectionOutcome
        try:
            outcome = await self.probe(task.hostname)
        except Exception as e:
            outcome = ProbeFailure.from_exception(task.hostname, e)

        duration = time.time() - start_time
        log_probe_complete(self.logger, task.hostname, outcome.status, duration)
        if self.metrics is not None:
            self.metrics.record_outcome(outcome, duration)
        return outcome

    def _set_in_flight_gauge(self, count: int) -> None:
        if self.metrics is not None:
            self.metrics.tls_check_in_flight.set(count)
