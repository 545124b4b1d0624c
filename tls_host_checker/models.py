"""
Data model for TLS Host Checker: tasks and per-host outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from tls_host_checker.config import Config


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class HostTask:
    """A hostname waiting to be probed, bound to the run's configuration."""

    hostname: str
    config: Config


@dataclass(frozen=True)
class CertificateFields:
    """Peer certificate fields surfaced by a connection."""

    subject: str
    issuer: str
    valid_from: str
    valid_to: str
    alt_names: List[str] = field(default_factory=list)
    expiration_timestamp: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "issuer": self.issuer,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "altNames": list(self.alt_names),
        }


@dataclass(frozen=True)
class TLSDetails:
    """Negotiated channel parameters."""

    version: str
    cipher: str
    authorized: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "cipher": self.cipher, "authorized": self.authorized}


@dataclass(frozen=True)
class ProbeSuccess:
    """Successful outcome for one hostname."""

    hostname: str
    ip: str
    tls: TLSDetails
    certificate: CertificateFields
    timestamp: str = field(default_factory=utc_timestamp)

    status = "success"

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ProbeFailure:
    """Failed outcome for one hostname after all retries."""

    hostname: str
    error: str
    error_type: str = "Exception"
    timestamp: str = field(default_factory=utc_timestamp)

    status = "error"

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, hostname: str, error: BaseException) -> "ProbeFailure":
        return cls(hostname=hostname, error=str(error), error_type=type(error).__name__)


ConnectionOutcome = Union[ProbeSuccess, ProbeFailure]
