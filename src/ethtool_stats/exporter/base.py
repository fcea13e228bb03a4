"""Encoder interface shared by the wire formats."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

from ..collector.base import Batch


@dataclass(frozen=True)
class EncodedPayload:
    """A request body plus the headers needed to interpret it."""

    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")


class BaseEncoder(abc.ABC):
    """Abstract base for encoders that turn a batch into a payload."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Format name used in configuration."""

    @abc.abstractmethod
    def encode(self, batch: Batch) -> EncodedPayload:
        """Serialize *batch*.

        Raises :class:`~ethtool_stats.errors.EncodingError` on failure.
        """
