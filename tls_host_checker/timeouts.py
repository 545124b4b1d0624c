"""
Timeout race used by the DNS and TLS stages.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from tls_host_checker.errors import ProbeTimeoutError

T = TypeVar("T")


async def race(
    operation: Awaitable[T], timeout_ms: float, message: Optional[str] = None
) -> T:
    """
    Await an operation, failing if it does not finish within the timeout.

    The losing operation is cancelled; releasing whatever it opened is the
    caller's job.

    Args:
        operation: Awaitable to run
        timeout_ms: Time budget in milliseconds, must be positive
        message: Error message used on expiry

    Returns:
        The operation's result

    Raises:
        ProbeTimeoutError: If the timer fires first
    """
    if timeout_ms <= 0:
        # Close a bare coroutine so it doesn't warn about never being awaited
        if asyncio.iscoroutine(operation):
            operation.close()
        raise ValueError(f"timeout must be a positive number, got {timeout_ms}")

    try:
        return await asyncio.wait_for(operation, timeout=timeout_ms / 1000.0)
    except asyncio.TimeoutError as e:
        raise ProbeTimeoutError(
            message or f"Operation timed out after {timeout_ms:g}ms", timeout_ms
        ) from e
