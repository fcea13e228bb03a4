"""Tests for the statistics providers."""

import struct

import psutil
import pytest

from ethtool_stats.collector.ethtool import (
    ETH_GSTRING_LEN,
    ETHTOOL_GDRVINFO,
    ETHTOOL_GSTATS,
    ETHTOOL_GSTRINGS,
    EthtoolStatsProvider,
    pack_ifreq,
    parse_gstrings,
)
from ethtool_stats.collector.manager import create_stats_provider
from ethtool_stats.collector.netio import NetIOStatsProvider
from ethtool_stats.config import StatsConfig
from ethtool_stats.errors import ConfigError, StatsError


def test_parse_gstrings():
    names = [b"rx_packets", b"tx-errors", b"rx_queue_0.bytes"]
    raw = b"".join(n.ljust(ETH_GSTRING_LEN, b"\0") for n in names)
    assert parse_gstrings(raw, 3) == ["rx_packets", "tx-errors", "rx_queue_0.bytes"]
    assert parse_gstrings(raw, 0) == []


def test_parse_gstrings_full_width_name():
    name = b"x" * ETH_GSTRING_LEN
    assert parse_gstrings(name, 1) == ["x" * ETH_GSTRING_LEN]


def test_pack_ifreq_layout():
    ifreq = pack_ifreq("eth0", 0x1234)
    assert len(ifreq) == 40
    assert ifreq[:16] == b"eth0".ljust(16, b"\0")
    (address,) = struct.unpack_from("P", ifreq, 16)
    assert address == 0x1234


@pytest.mark.parametrize("name", ["", "a" * 16, "interface-name-too-long"])
def test_pack_ifreq_rejects_bad_names(name):
    with pytest.raises(ValueError):
        pack_ifreq(name, 0)


class TestEthtoolStatsProvider:

    def test_name_too_long(self):
        provider = EthtoolStatsProvider()
        try:
            assert provider.name == "ethtool"
            with pytest.raises(StatsError) as excinfo:
                provider.stats("x" * 20)
            assert excinfo.value.interface == "x" * 20
        finally:
            provider.close()

    def test_unknown_interface(self):
        provider = EthtoolStatsProvider()
        try:
            with pytest.raises(StatsError):
                provider.stats("nosuchif0")
        finally:
            provider.close()


    def test_counter_growth_between_calls(self, monkeypatch):
        """The reply buffers hold more entries than the driver-info count."""
        grown = [(b"rx_packets", 10), (b"tx_packets", 20), (b"rx_q2", 30), (b"tx_q2", 40)]

        def fake_ioctl(interface, buf):
            (cmd,) = struct.unpack_from("I", buf, 0)
            if cmd == ETHTOOL_GDRVINFO:
                struct.pack_into("I", buf, 180, 2)
            elif cmd == ETHTOOL_GSTRINGS:
                assert len(buf) >= 12 + len(grown) * ETH_GSTRING_LEN
                struct.pack_into("I", buf, 8, len(grown))
                for i, (name, _) in enumerate(grown):
                    struct.pack_into("32s", buf, 12 + i * ETH_GSTRING_LEN, name)
            elif cmd == ETHTOOL_GSTATS:
                assert len(buf) >= 8 + len(grown) * 8
                struct.pack_into("I", buf, 4, len(grown))
                struct.pack_into(f"{len(grown)}Q", buf, 8, *(v for _, v in grown))

        provider = EthtoolStatsProvider()
        try:
            monkeypatch.setattr(provider, "_ioctl", fake_ioctl)
            assert provider.stats("eth0") == {"rx_packets": 10, "tx_packets": 20}
        finally:
            provider.close()


class TestNetIOStatsProvider:

    def test_existing_interface(self):
        nics = psutil.net_io_counters(pernic=True)
        if not nics:
            pytest.skip("no network interfaces visible")
        iface = sorted(nics)[0]
        stats = NetIOStatsProvider().stats(iface)
        assert set(stats) == {
            "rx_bytes", "tx_bytes", "rx_packets", "tx_packets",
            "rx_errors", "tx_errors", "rx_dropped", "tx_dropped",
        }
        assert all(isinstance(v, int) and v >= 0 for v in stats.values())

    def test_unknown_interface(self):
        with pytest.raises(StatsError):
            NetIOStatsProvider().stats("nosuchif0")


def test_create_stats_provider():
    provider = create_stats_provider(StatsConfig(backend="netio"))
    assert provider.name == "netio"
    provider = create_stats_provider(StatsConfig(backend="ethtool"))
    assert provider.name == "ethtool"
    provider.close()
    with pytest.raises(ConfigError):
        create_stats_provider(StatsConfig(backend="snmp"))
