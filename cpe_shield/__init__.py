"""CPEShield - match CPE-identified software versions against vulnerable-software ranges."""

__version__ = "0.1.0"

from .core.matcher import MatchingEngine
from .core.aggregator import Aggregator
from .core.scanner import VulnerabilityScanner
from .core.version import Version
from .store.offline import OfflineVulnerabilityStore, StoreConfig
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "MatchingEngine",
    "Aggregator",
    "VulnerabilityScanner",
    "Version",
    "OfflineVulnerabilityStore",
    "StoreConfig",
    "ConsoleFormatter",
    "JSONFormatter",
]
