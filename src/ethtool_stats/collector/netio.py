"""Generic per-NIC kernel counters for interfaces without driver statistics."""

from __future__ import annotations

import psutil

from ..errors import StatsError
from .base import BaseStatsProvider


class NetIOStatsProvider(BaseStatsProvider):
    """Reports the kernel's generic interface counters through psutil.

    Counter names follow the ``/sys/class/net/<iface>/statistics`` naming.
    """

    @property
    def name(self) -> str:
        return "netio"

    def stats(self, interface: str) -> dict[str, int]:
        try:
            counters = psutil.net_io_counters(pernic=True)
        except (psutil.Error, OSError) as exc:
            raise StatsError(interface, str(exc)) from exc

        nio = counters.get(interface)
        if nio is None:
            raise StatsError(interface, "no such interface")

        return {
            "rx_bytes": nio.bytes_recv,
            "tx_bytes": nio.bytes_sent,
            "rx_packets": nio.packets_recv,
            "tx_packets": nio.packets_sent,
            "rx_errors": nio.errin,
            "tx_errors": nio.errout,
            "rx_dropped": nio.dropin,
            "tx_dropped": nio.dropout,
        }
