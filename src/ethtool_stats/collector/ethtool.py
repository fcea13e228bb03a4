"""Driver statistics via the SIOCETHTOOL ioctl (what ``ethtool -S`` prints)."""

from __future__ import annotations

import array
import errno
import fcntl
import logging
import socket
import struct

from ..errors import StatsError, StatsProviderInitError
from .base import BaseStatsProvider

logger = logging.getLogger(__name__)

SIOCETHTOOL = 0x8946

ETHTOOL_GDRVINFO = 0x00000003
ETHTOOL_GSTRINGS = 0x0000001B
ETHTOOL_GSTATS = 0x0000001D

ETH_SS_STATS = 1
ETH_GSTRING_LEN = 32
IFNAMSIZ = 16

# The kernel sizes GSTRINGS/GSTATS replies from the driver's current count,
# not from the request, so reply buffers always hold this many entries.
MAX_GSTRINGS = 32768

# sizeof(struct ifreq) on LP64
_IFREQ_SIZE = 40
# struct ethtool_drvinfo
_DRVINFO_SIZE = 196
_DRVINFO_DRIVER = slice(4, 36)
_DRVINFO_N_STATS_OFFSET = 180


def _cstr(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def parse_gstrings(raw: bytes, count: int) -> list[str]:
    """Split the data area of an ``ethtool_gstrings`` reply into names."""
    return [
        _cstr(raw[i * ETH_GSTRING_LEN:(i + 1) * ETH_GSTRING_LEN])
        for i in range(count)
    ]


def pack_ifreq(interface: str, data_address: int) -> bytes:
    """Build a ``struct ifreq`` whose ``ifr_data`` points at *data_address*."""
    name = interface.encode("utf-8")
    if not name or len(name) >= IFNAMSIZ:
        raise ValueError(f"invalid interface name {interface!r}")
    return struct.pack(f"{IFNAMSIZ}sP", name, data_address).ljust(_IFREQ_SIZE, b"\0")


class EthtoolStatsProvider(BaseStatsProvider):
    """Reads NIC driver counters through an AF_INET control socket.

    The socket is opened once at construction; failure to open it is
    reported as :class:`StatsProviderInitError`.
    """

    def __init__(self) -> None:
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            raise StatsProviderInitError(f"cannot open ethtool control socket: {exc}") from exc
        logger.debug("Ethtool control socket opened (fd=%d)", self._sock.fileno())

    @property
    def name(self) -> str:
        return "ethtool"

    def _ioctl(self, interface: str, buf: array.array) -> None:
        address, _ = buf.buffer_info()
        try:
            ifreq = pack_ifreq(interface, address)
        except ValueError as exc:
            raise StatsError(interface, str(exc)) from exc
        try:
            fcntl.ioctl(self._sock.fileno(), SIOCETHTOOL, ifreq)
        except OSError as exc:
            reason = errno.errorcode.get(exc.errno or 0, "")
            detail = f"{exc.strerror or exc}" + (f" ({reason})" if reason else "")
            raise StatsError(interface, detail) from exc

    def driver_info(self, interface: str) -> tuple[str, int]:
        """Return ``(driver name, number of statistics)`` for *interface*."""
        buf = array.array("B", struct.pack("I", ETHTOOL_GDRVINFO).ljust(_DRVINFO_SIZE, b"\0"))
        self._ioctl(interface, buf)
        raw = buf.tobytes()
        (n_stats,) = struct.unpack_from("I", raw, _DRVINFO_N_STATS_OFFSET)
        return _cstr(raw[_DRVINFO_DRIVER]), n_stats

    def _names(self, interface: str, count: int) -> list[str]:
        header = struct.pack("III", ETHTOOL_GSTRINGS, ETH_SS_STATS, count)
        buf = array.array("B", header + bytes(MAX_GSTRINGS * ETH_GSTRING_LEN))
        self._ioctl(interface, buf)
        raw = buf.tobytes()
        (returned,) = struct.unpack_from("I", raw, 8)
        return parse_gstrings(raw[12:], min(returned, count))

    def _values(self, interface: str, count: int) -> tuple[int, ...]:
        header = struct.pack("II", ETHTOOL_GSTATS, count)
        buf = array.array("B", header + bytes(MAX_GSTRINGS * 8))
        self._ioctl(interface, buf)
        raw = buf.tobytes()
        (returned,) = struct.unpack_from("I", raw, 4)
        return struct.unpack_from(f"{min(returned, count)}Q", raw, 8)

    def stats(self, interface: str) -> dict[str, int]:
        driver, count = self.driver_info(interface)
        logger.debug("Interface %s: driver=%s, %d statistics", interface, driver, count)
        if count == 0:
            return {}
        count = min(count, MAX_GSTRINGS)
        names = self._names(interface, count)
        values = self._values(interface, count)
        return dict(zip(names, values))

    def close(self) -> None:
        self._sock.close()
        logger.debug("Ethtool control socket closed")
