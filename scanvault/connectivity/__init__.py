"""Connectivity probing and the feature gate built on it."""

from .gate import FeatureGate
from .probe import (
    DEFAULT_PROBE_TIMEOUT,
    ConnectivityProbe,
    ConnectivityState,
    HttpReachability,
    Reachability,
)

__all__ = [
    "FeatureGate",
    "DEFAULT_PROBE_TIMEOUT",
    "ConnectivityProbe",
    "ConnectivityState",
    "HttpReachability",
    "Reachability",
]
