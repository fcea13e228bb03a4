"""CLI interface for ethtool-stats."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time

from . import __build_date__, __commit__, __version__
from .collector.base import Batch
from .config import FORMATS, STATS_BACKENDS, ExporterConfig, load_config
from .errors import ConfigError, ExporterError, StatsProviderInitError

logger = logging.getLogger(__name__)

USAGE_HINT = "Usage: ethtool-stats --prom=http://localhost:9090/api/v1/write [--debug]"


def _print_version() -> None:
    print(f"ethtool-stats {__version__}")
    print(f"  commit: {__commit__}")
    print(f"  built:  {__build_date__}")


def _apply_args(cfg: ExporterConfig, args: argparse.Namespace) -> ExporterConfig:
    """Command-line flags take precedence over file and environment values."""
    if args.prom:
        cfg.push.url = args.prom
    if args.debug:
        cfg.debug = True
    if args.format:
        cfg.push.format = args.format
    if args.interval is not None:
        cfg.scheduler.interval_seconds = args.interval
    if args.timeout is not None:
        cfg.push.timeout_seconds = args.timeout
    if args.neighbor_table:
        cfg.discovery.neighbor_table = args.neighbor_table
    if args.stats_backend:
        cfg.stats.backend = args.stats_backend
    return cfg


def print_batches(batches: list[Batch]) -> None:
    """Pretty-print collected counters to the terminal using Rich."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title="ethtool statistics", show_lines=False)
    table.add_column("Interface", style="cyan", width=16)
    table.add_column("Metric", style="green")
    table.add_column("Value", justify="right")

    for batch in batches:
        for s in batch.samples:
            table.add_row(batch.interface, s.name, str(s.value))

    console = Console()
    console.print(table)
    if not batches:
        console.print("  (no interfaces reported counters)")


def _dry_run(cfg: ExporterConfig) -> int:
    """Collect once and print the counters instead of pushing them."""
    from .collector.discovery import InterfaceDiscoverer
    from .collector.manager import create_stats_provider

    provider = create_stats_provider(cfg.stats)
    try:
        try:
            interfaces = InterfaceDiscoverer(cfg.discovery.neighbor_table).discover()
        except ExporterError as exc:
            logger.error("Interface discovery failed: %s", exc)
            return 1
        batches: list[Batch] = []
        for iface in interfaces:
            try:
                counters = provider.stats(iface)
            except ExporterError as exc:
                logger.warning("Failed to get stats for %s: %s", iface, exc)
                continue
            batches.append(Batch.from_counters(iface, counters, time.time()))
    finally:
        provider.close()
    print_batches(batches)
    return 0


def _run(cfg: ExporterConfig, *, once: bool) -> int:
    from .collector.manager import CollectionScheduler, create_stats_provider

    logger.debug("Starting ethtool-stats exporter (version: %s, commit: %s)", __version__, __commit__)
    logger.debug("Metrics endpoint: %s (format=%s)", cfg.push.url, cfg.push.format)

    provider = create_stats_provider(cfg.stats)
    logger.debug("Stats backend %s initialized", provider.name)

    try:
        scheduler = CollectionScheduler.from_config(cfg, provider)
    except ConfigError:
        provider.close()
        raise

    def _handle_signal(_sig: int, _frame: object) -> None:
        scheduler.stop()

    previous = {
        sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    try:
        scheduler.run_forever(max_cycles=1 if once else None)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        scheduler.close()
    logger.debug("Collection stopped")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ethtool-stats",
        description="Push NIC driver statistics to a Prometheus remote-write endpoint",
    )
    parser.add_argument("--prom", default=None, help="Prometheus Remote Write API endpoint (required)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="store_true", help="Show version information")
    parser.add_argument("--config", "-c", default=None, help="Path to ethtool_stats.yaml")
    parser.add_argument("--format", choices=FORMATS, default=None, help="Wire format (default: remote_write)")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between collection cycles")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds (0 disables)")
    parser.add_argument("--neighbor-table", default=None, help="Neighbor table to read (default: /proc/net/arp)")
    parser.add_argument("--stats-backend", choices=STATS_BACKENDS, default=None, help="Counter source")
    parser.add_argument("--once", action="store_true", help="Run a single collection cycle and exit")
    parser.add_argument("--dry-run", action="store_true", help="Print counters instead of pushing them")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ethtool-stats CLI."""
    args = build_parser().parse_args(argv)

    if args.version:
        _print_version()
        return 0

    try:
        cfg = _apply_args(load_config(args.config), args)
        cfg.validate()
    except ConfigError as exc:
        print(f"ethtool-stats: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if cfg.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        if args.dry_run:
            return _dry_run(cfg)

        if not cfg.push.url:
            print(USAGE_HINT)
            return 1

        return _run(cfg, once=args.once)
    except StatsProviderInitError as exc:
        logger.critical("%s", exc)
        return 1
    except ConfigError as exc:
        print(f"ethtool-stats: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
