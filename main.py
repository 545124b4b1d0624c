#!/usr/bin/env python3
"""
TLS Host Checker - Command Line Entry Point
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
import yaml

from tls_host_checker import __version__
from tls_host_checker.checker import TLSChecker
from tls_host_checker.config import Config, create_example_config, load_config
from tls_host_checker.errors import InvalidInputError, TLSCheckerError
from tls_host_checker.logger import setup_logging

EXIT_OK = 0
EXIT_HOST_FAILURES = 1
EXIT_USAGE = 2


class TLSHostCheckerApp:
    """Command-line application running one batch of TLS checks."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        output_path: Optional[str] = None,
        metrics_path: Optional[str] = None,
    ):
        self.config_path = config_path
        self.overrides = overrides or {}
        self.output_path = output_path
        self.metrics_path = metrics_path
        self.config: Optional[Config] = None
        self.checker: Optional[TLSChecker] = None
        self.logger = logging.getLogger(__name__)

    def initialize(self) -> None:
        """Load configuration and build the checker."""
        self.config = load_config(self.config_path, self.overrides)
        setup_logging(self.config)
        self.checker = TLSChecker(self.config)

    async def run(self, hostnames: List[str]) -> Dict[str, Any]:
        """Check hostnames (or the configured ones) and emit the report."""
        if self.checker is None:
            self.initialize()
        assert self.checker is not None and self.config is not None

        targets = hostnames or list(self.config.hostnames)
        if not targets:
            raise InvalidInputError("No hostnames to check")

        results = await self.checker.check_multiple(targets)

        report = json.dumps(results, indent=2)
        if self.output_path:
            Path(self.output_path).write_text(report + "\n", encoding="utf-8")
            self.logger.info(f"Results written to {self.output_path}")
        else:
            click.echo(report)

        if self.metrics_path:
            self.checker.metrics.write_textfile(self.metrics_path)

        return results


def _read_hostnames_file(path: Path) -> List[str]:
    """Read one hostname per line, skipping blanks and # comments."""
    hostnames = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            hostnames.append(line)
    return hostnames


@click.command()
@click.argument("hostnames", nargs=-1)
@click.option(
    "--config",
    "-f",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--hostnames-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File with one hostname per line",
)
@click.option("--timeout", type=float, help="Connect timeout in milliseconds")
@click.option("--dns-timeout", type=float, help="DNS timeout in milliseconds")
@click.option("--port", type=int, help="TLS port to connect to")
@click.option("--concurrency", type=int, help="Maximum hosts checked at once")
@click.option("--retries", type=int, help="Retries per host after the first attempt")
@click.option("--retry-delay", type=float, help="Delay between attempts in milliseconds")
@click.option(
    "--reject-unauthorized/--no-reject-unauthorized",
    default=None,
    help="Fail connections whose certificate does not verify",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False), help="Write JSON results to a file"
)
@click.option(
    "--metrics-file",
    type=click.Path(dir_okay=False),
    help="Write Prometheus metrics in textfile-collector format",
)
@click.option(
    "--create-config",
    type=click.Path(dir_okay=False),
    help="Write an example configuration file and exit",
)
@click.option("--version", "-v", is_flag=True, help="Show version information")
def main(
    hostnames: Tuple[str, ...],
    config: Optional[Path],
    hostnames_file: Optional[Path],
    timeout: Optional[float],
    dns_timeout: Optional[float],
    port: Optional[int],
    concurrency: Optional[int],
    retries: Optional[int],
    retry_delay: Optional[float],
    reject_unauthorized: Optional[bool],
    log_level: Optional[str],
    output: Optional[str],
    metrics_file: Optional[str],
    create_config: Optional[str],
    version: bool,
) -> None:
    """TLS Host Checker - Check TLS certificates and connection details for HOSTNAMES."""

    if version:
        click.echo(f"TLS Host Checker v{__version__}")
        return

    if create_config:
        create_example_config(create_config)
        click.echo(f"Example configuration written to {create_config}")
        return

    targets = list(hostnames)
    if hostnames_file:
        targets.extend(_read_hostnames_file(hostnames_file))

    overrides = {
        "timeout": timeout,
        "dns_timeout": dns_timeout,
        "port": port,
        "concurrency": concurrency,
        "retries": retries,
        "retry_delay": retry_delay,
        "reject_unauthorized": reject_unauthorized,
        "log_level": log_level.upper() if log_level else None,
    }

    try:
        app = TLSHostCheckerApp(
            str(config) if config else None,
            overrides=overrides,
            output_path=output,
            metrics_path=metrics_file,
        )
        app.initialize()
        results = asyncio.run(app.run(targets))
    except KeyboardInterrupt:
        click.echo("\nShutdown requested by user", err=True)
        sys.exit(130)
    except (TLSCheckerError, FileNotFoundError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_USAGE)

    sys.exit(EXIT_OK if results["summary"]["failed"] == 0 else EXIT_HOST_FAILURES)


if __name__ == "__main__":
    main()
