"""Exception hierarchy for the collection pipeline.

Every failure the scheduler can recover from derives from
:class:`ExporterError`; each subclass marks the scope it aborts.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for recoverable pipeline errors."""


class ConfigError(ExporterError):
    """Configuration is missing or invalid."""


class DiscoveryError(ExporterError):
    """The neighbor table could not be read. Skips the whole cycle."""


class StatsError(ExporterError):
    """Counters for one interface could not be retrieved."""

    def __init__(self, interface: str, detail: str) -> None:
        super().__init__(f"{interface}: {detail}")
        self.interface = interface
        self.detail = detail


class StatsProviderInitError(ExporterError):
    """The statistics backend could not be initialized. Fatal at startup."""


class EncodingError(ExporterError):
    """A batch could not be serialized."""


class DeliveryError(ExporterError):
    """A payload was rejected by the endpoint or never reached it."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
