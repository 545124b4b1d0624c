"""
TLS Host Checker

Checks TLS certificates and connection parameters for a list of hostnames
with bounded concurrency, per-host retries and independent DNS and connect
timeouts.
"""

__version__ = "1.0.0"
__author__ = "TLS Host Checker Team"
__description__ = "Concurrent TLS certificate and connection checker"

from tls_host_checker.checker import TLSChecker
from tls_host_checker.config import Config
from tls_host_checker.scheduler import BoundedScheduler

__all__ = [
    "BoundedScheduler",
    "Config",
    "TLSChecker",
]
