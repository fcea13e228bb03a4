"""Interface discovery from the kernel neighbor (ARP) table."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from ..errors import DiscoveryError

logger = logging.getLogger(__name__)

DEFAULT_NEIGHBOR_TABLE = "/proc/net/arp"
DEVICE_FIELD = 5


def parse_neighbor_table(lines: Iterable[str]) -> list[str]:
    """Return the sorted distinct device names in a neighbor-table dump.

    The first line is a header. Records with fewer than six
    whitespace-separated fields are skipped.
    """
    interfaces: set[str] = set()
    it = iter(lines)
    next(it, None)
    for line in it:
        fields = line.split()
        if len(fields) > DEVICE_FIELD:
            interfaces.add(fields[DEVICE_FIELD])
    return sorted(interfaces)


class InterfaceDiscoverer:
    """Lists the interfaces that currently have neighbor entries."""

    def __init__(self, path: str | Path = DEFAULT_NEIGHBOR_TABLE) -> None:
        self._path = Path(path)

    def discover(self) -> list[str]:
        logger.debug("Reading %s to discover interfaces", self._path)
        try:
            with open(self._path, encoding="utf-8", errors="replace") as fh:
                interfaces = parse_neighbor_table(fh)
        except OSError as exc:
            raise DiscoveryError(f"cannot read {self._path}: {exc}") from exc
        logger.debug("Discovered %d interface(s): %s", len(interfaces), interfaces)
        return interfaces
