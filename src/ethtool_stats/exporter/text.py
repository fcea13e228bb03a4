"""Plain text exposition encoder."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST

from ..collector.base import INTERFACE_LABEL, Batch
from .base import BaseEncoder, EncodedPayload


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


class TextEncoder(BaseEncoder):
    """Writes one ``name{interface="..."} value`` line per sample.

    Lines are rendered directly rather than through a
    ``prometheus_client`` registry: ``generate_latest`` adds ``# HELP`` and
    ``# TYPE`` lines and prints every value as a float, which loses
    precision on 64-bit counters.
    """

    @property
    def name(self) -> str:
        return "text"

    def render(self, batch: Batch) -> str:
        label = f'{INTERFACE_LABEL}="{escape_label_value(batch.interface)}"'
        return "".join(f"{s.name}{{{label}}} {s.value}\n" for s in batch.samples)

    def encode(self, batch: Batch) -> EncodedPayload:
        return EncodedPayload(
            body=self.render(batch).encode("utf-8"),
            headers={"Content-Type": CONTENT_TYPE_LATEST},
        )
