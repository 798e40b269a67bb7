"""Version algebra, matching and aggregation logic for CPEShield."""

from .version import Version, UNSPECIFIED, compare, parse_version
from .cpe import SoftwareIdentifier
from .models import (
    CandidateGroup,
    MatchResult,
    RangeEntry,
    Reference,
    SoftwareRecord,
    Vulnerability,
)
from .matcher import MatchingEngine, DEFAULT_BOUNDARY_RULES, vendor_product_rule
from .aggregator import Aggregator, aggregate_matches
from .scanner import VulnerabilityScanner

__all__ = [
    "Version",
    "UNSPECIFIED",
    "compare",
    "parse_version",
    "SoftwareIdentifier",
    "CandidateGroup",
    "MatchResult",
    "RangeEntry",
    "Reference",
    "SoftwareRecord",
    "Vulnerability",
    "MatchingEngine",
    "DEFAULT_BOUNDARY_RULES",
    "vendor_product_rule",
    "Aggregator",
    "aggregate_matches",
    "VulnerabilityScanner",
]
