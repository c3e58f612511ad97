"""Shared utilities for the recoverwell engine."""
from .pii import hash_pii, configure_pii_salt, configure_pii_salt_from_env
from .clock import Clock, SystemClock, FixedClock, hour_distance

__all__ = [
    "hash_pii",
    "configure_pii_salt",
    "configure_pii_salt_from_env",
    "Clock",
    "SystemClock",
    "FixedClock",
    "hour_distance",
]
