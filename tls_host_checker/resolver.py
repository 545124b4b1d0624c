"""
IPv4 address resolution for TLS Host Checker.
"""

from typing import Optional

import dns.asyncresolver
import dns.exception
import dns.rdatatype

from tls_host_checker.config import Config
from tls_host_checker.errors import ProbeTimeoutError, ResolutionError
from tls_host_checker.logger import get_logger
from tls_host_checker.timeouts import race


class AddressResolver:
    """Resolve a hostname to a single IPv4 address, bounded by the DNS timeout."""

    def __init__(self, config: Config, resolver: Optional[dns.asyncresolver.Resolver] = None):
        self.config = config
        self.logger = get_logger("resolver")
        if resolver is None:
            resolver = dns.asyncresolver.Resolver()
            # dnspython defaults to a 5s lifetime; match the DNS budget instead
            resolver.lifetime = self.config.dns_timeout_seconds
        self._resolver = resolver

    async def resolve(self, hostname: str) -> str:
        """
        Resolve hostname to the first A record returned.

        Every call re-queries; nothing is cached.

        Args:
            hostname: Hostname to look up

        Returns:
            IPv4 address as a string

        Raises:
            ResolutionError: On lookup failure or timeout
        """
        try:
            answer = await race(
                self._resolver.resolve(hostname, dns.rdatatype.A),
                self.config.dns_timeout,
                "DNS lookup timeout",
            )
        except ProbeTimeoutError as e:
            raise ResolutionError(hostname, ResolutionError.TIMEOUT, e) from e
        except dns.exception.Timeout as e:
            raise ResolutionError(hostname, ResolutionError.TIMEOUT, e) from e
        except (dns.exception.DNSException, OSError) as e:
            raise ResolutionError(hostname, ResolutionError.LOOKUP_FAILED, e) from e

        addresses = [str(rdata) for rdata in answer]
        if not addresses:
            raise ResolutionError(hostname, ResolutionError.LOOKUP_FAILED)

        self.logger.debug(f"Resolved {hostname} to {addresses[0]} ({len(addresses)} address(es))")
        return addresses[0]
