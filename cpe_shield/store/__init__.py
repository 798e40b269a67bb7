"""Vulnerability data stores for CPEShield."""

from .base import VulnerabilityStore
from .offline import OfflineVulnerabilityStore, StoreConfig

__all__ = [
    "VulnerabilityStore",
    "OfflineVulnerabilityStore",
    "StoreConfig",
]
