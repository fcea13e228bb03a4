"""Collection scheduler: discover → read counters → encode → push, on a fixed interval."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Protocol

from ..config import ExporterConfig, StatsConfig
from ..errors import ConfigError, DiscoveryError, ExporterError
from ..exporter.base import BaseEncoder
from ..exporter.pusher import Pusher
from ..exporter.remote_write import RemoteWriteEncoder
from ..exporter.text import TextEncoder
from .base import Batch, BaseStatsProvider
from .discovery import InterfaceDiscoverer

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float:
        """Seconds since the epoch."""

    def sleep(self, seconds: float) -> None:
        """Block for *seconds* or until woken."""

    def wake(self) -> None:
        """Interrupt a pending :meth:`sleep`."""


class SystemClock:
    """Wall clock whose sleep can be cut short from a signal handler."""

    def __init__(self) -> None:
        self._wakeup = threading.Event()

    def now(self) -> float:
        return time.time()

    def sleep(self, seconds: float) -> None:
        self._wakeup.wait(seconds)

    def wake(self) -> None:
        self._wakeup.set()


@dataclass
class CycleReport:
    """Outcome of one collection cycle."""

    started_at: float
    discovered: list[str] = field(default_factory=list)
    pushed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    discovery_error: str = ""


def create_stats_provider(config: StatsConfig) -> BaseStatsProvider:
    """Instantiate the configured statistics backend.

    May raise :class:`~ethtool_stats.errors.StatsProviderInitError`.
    """
    if config.backend == "ethtool":
        from .ethtool import EthtoolStatsProvider
        return EthtoolStatsProvider()
    if config.backend == "netio":
        from .netio import NetIOStatsProvider
        return NetIOStatsProvider()
    raise ConfigError(f"unknown stats backend {config.backend!r}")


def create_encoder(fmt: str) -> BaseEncoder:
    if fmt == "remote_write":
        return RemoteWriteEncoder()
    if fmt == "text":
        return TextEncoder()
    raise ConfigError(f"unknown push format {fmt!r}")


class CollectionScheduler:
    """Runs collection cycles back to back with a fixed pause between them.

    Everything happens on the calling thread. Interfaces are processed one
    at a time; a failure for one interface is logged and the next one is
    processed. A discovery failure skips the rest of the cycle.
    """

    def __init__(
        self,
        discoverer: InterfaceDiscoverer,
        provider: BaseStatsProvider,
        encoder: BaseEncoder,
        pusher: Pusher,
        *,
        interval_seconds: float = 30.0,
        clock: Clock | None = None,
    ) -> None:
        self._discoverer = discoverer
        self._provider = provider
        self._encoder = encoder
        self._pusher = pusher
        self._interval = interval_seconds
        self._clock = clock or SystemClock()
        self._stop_requested = False

    @classmethod
    def from_config(
        cls,
        config: ExporterConfig,
        provider: BaseStatsProvider,
        clock: Clock | None = None,
    ) -> CollectionScheduler:
        return cls(
            InterfaceDiscoverer(config.discovery.neighbor_table),
            provider,
            create_encoder(config.push.format),
            Pusher(config.push.url, timeout=config.push.timeout_seconds),
            interval_seconds=config.scheduler.interval_seconds,
            clock=clock,
        )

    def collect_interface(self, interface: str) -> Batch:
        """Read counters for *interface* into a batch stamped with the current time."""
        logger.debug("Collecting stats for interface %s", interface)
        counters = self._provider.stats(interface)
        return Batch.from_counters(interface, counters, self._clock.now())

    def process_interface(self, interface: str) -> bool:
        """Collect, encode and push one interface. Returns False if there was nothing to push."""
        batch = self.collect_interface(interface)
        if not batch.samples:
            logger.debug("No counters reported for %s, nothing to push", interface)
            return False
        payload = self._encoder.encode(batch)
        logger.debug("Pushing %d metrics for %s to %s", len(batch), interface, self._pusher.url)
        self._pusher.push(payload)
        return True

    def run_cycle(self) -> CycleReport:
        """Run one discovery pass and process every interface found."""
        report = CycleReport(started_at=self._clock.now())
        logger.debug("Starting collection cycle")
        try:
            report.discovered = self._discoverer.discover()
        except DiscoveryError as exc:
            logger.warning("Interface discovery failed: %s", exc)
            report.discovery_error = str(exc)
            return report
        except Exception as exc:
            logger.exception("Interface discovery failed")
            report.discovery_error = str(exc)
            return report

        for interface in report.discovered:
            try:
                if self.process_interface(interface):
                    report.pushed.append(interface)
                else:
                    report.skipped.append(interface)
            except ExporterError as exc:
                logger.warning("%s for %s: %s", type(exc).__name__, interface, exc)
                report.failed[interface] = str(exc)
            except Exception as exc:
                logger.exception("Unexpected failure for %s", interface)
                report.failed[interface] = f"{type(exc).__name__}: {exc}"

        logger.debug(
            "Cycle done: %d discovered, %d pushed, %d skipped, %d failed",
            len(report.discovered), len(report.pushed), len(report.skipped), len(report.failed),
        )
        return report

    def run_forever(self, max_cycles: int | None = None) -> int:
        """Loop until :meth:`stop` is called or *max_cycles* have run.

        Returns the number of cycles completed.
        """
        cycles = 0
        while not self._stop_requested:
            self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            if self._stop_requested:
                break
            logger.debug("Sleeping for %.0f seconds", self._interval)
            self._clock.sleep(self._interval)
        return cycles

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._stop_requested = True
        self._clock.wake()

    def close(self) -> None:
        self._provider.close()
        self._pusher.close()
