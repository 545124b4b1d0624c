"""
JSON-shaped result formatting for TLS Host Checker.
"""

from typing import Any, Dict, List, Sequence

from tls_host_checker.models import ConnectionOutcome, ProbeSuccess, utc_timestamp


class ResultFormatter:
    """Turn probe outcomes into plain dictionaries and a run summary."""

    def format_success(self, outcome: ProbeSuccess) -> Dict[str, Any]:
        """Format the TLS and certificate details of a successful probe."""
        return {
            "timestamp": outcome.timestamp,
            "hostname": outcome.hostname,
            "ip": outcome.ip,
            "tls": outcome.tls.to_dict(),
            "certificate": outcome.certificate.to_dict(),
        }

    def format_outcome(self, outcome: ConnectionOutcome) -> Dict[str, Any]:
        """Format a per-host record with its status."""
        if isinstance(outcome, ProbeSuccess):
            return {
                "hostname": outcome.hostname,
                "status": outcome.status,
                **self.format_success(outcome),
            }
        return {
            "hostname": outcome.hostname,
            "status": outcome.status,
            "error": outcome.error,
            "timestamp": outcome.timestamp,
        }

    def format_final_results(self, outcomes: Sequence[ConnectionOutcome]) -> Dict[str, Any]:
        """
        Consolidate per-host outcomes into the final report.

        Args:
            outcomes: Outcomes from a scheduler run

        Returns:
            Summary counts, per-host records and the report time
        """
        scans: List[Dict[str, Any]] = [self.format_outcome(o) for o in outcomes]
        successful = sum(1 for s in scans if s["status"] == "success")
        return {
            "summary": {
                "total": len(scans),
                "successful": successful,
                "failed": len(scans) - successful,
            },
            "scans": scans,
            "scanTime": utc_timestamp(),
        }
