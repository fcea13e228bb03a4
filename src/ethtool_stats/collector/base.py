"""Sample types and the statistics provider interface."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Mapping

METRIC_PREFIX = "ethtool_"
INTERFACE_LABEL = "interface"


def normalize_metric_name(counter: str) -> str:
    """Map a driver counter name to an exportable metric name.

    ``-`` and ``.`` become ``_`` and the ``ethtool_`` prefix is added once,
    so normalizing an already normalized name returns it unchanged.
    """
    name = counter.replace("-", "_").replace(".", "_")
    if name.startswith(METRIC_PREFIX):
        return name
    return METRIC_PREFIX + name


@dataclass(frozen=True)
class MetricSample:
    """A single normalized counter observation."""

    name: str
    value: int
    timestamp: float
    labels: Mapping[str, str]

    @property
    def interface(self) -> str:
        return self.labels[INTERFACE_LABEL]


@dataclass(frozen=True)
class Batch:
    """All samples read from one interface in one cycle.

    Every sample shares the batch's interface label and timestamp.
    """

    interface: str
    timestamp: float
    samples: tuple[MetricSample, ...]

    @classmethod
    def from_counters(
        cls, interface: str, counters: Mapping[str, int], timestamp: float
    ) -> Batch:
        samples = tuple(
            MetricSample(
                name=normalize_metric_name(counter),
                value=value,
                timestamp=timestamp,
                labels={INTERFACE_LABEL: interface},
            )
            for counter, value in sorted(counters.items())
        )
        return cls(interface=interface, timestamp=timestamp, samples=samples)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)

    def __len__(self) -> int:
        return len(self.samples)


class BaseStatsProvider(abc.ABC):
    """Abstract source of per-interface driver counters."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Backend name used in configuration and logs."""

    @abc.abstractmethod
    def stats(self, interface: str) -> dict[str, int]:
        """Return counter name to value for *interface*.

        Raises :class:`~ethtool_stats.errors.StatsError` on any failure.
        """

    def close(self) -> None:
        """Release backend resources."""
