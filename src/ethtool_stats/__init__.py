"""ethtool-stats: push NIC driver statistics to a Prometheus-compatible backend."""

__version__ = "0.1.0"

# Overridden by release builds.
__commit__ = "none"
__build_date__ = "unknown"
