"""Core vulnerability matching logic for CPEShield."""

from typing import Callable, Iterable, List, Optional, Set, Union

from ..utils.logging import get_logger
from .models import MatchResult, RangeEntry
from .version import Token, UNSPECIFIED, Version, same_major

# Predicate over (vendor, product); True keeps open ranges inside the
# identified version's major release line for that product.
BoundaryRule = Callable[[str, str], bool]

IdentifiedVersion = Union[Version, str, None]


def vendor_product_rule(vendor: str, product: str) -> BoundaryRule:
    """Build a boundary rule that applies to one vendor/product pair.

    Args:
        vendor: Vendor name, compared case-insensitively
        product: Product name, compared case-insensitively

    Returns:
        Predicate suitable for ``MatchingEngine(boundary_rules=...)``
    """
    vendor = vendor.lower()
    product = product.lower()

    def rule(candidate_vendor: str, candidate_product: str) -> bool:
        return (candidate_vendor or "").lower() == vendor and (candidate_product or "").lower() == product

    rule.__name__ = f"vendor_product_rule[{vendor}:{product}]"
    return rule


# Struts 2 is a different code base from Struts 1, so "1.x and earlier"
# never reaches into 2.x.
DEFAULT_BOUNDARY_RULES = (vendor_product_rule("apache", "struts"),)


class MatchingEngine:
    """Decides which entry, if any, makes a vulnerability apply to a version.

    The engine keeps no per-call state; one instance can be shared between
    threads once its boundary rules are set up.
    """

    def __init__(self, boundary_rules: Optional[Iterable[BoundaryRule]] = None) -> None:
        """Initialize the matching engine.

        Args:
            boundary_rules: Rules stopping open ranges at major-version
                boundaries; defaults to ``DEFAULT_BOUNDARY_RULES``
        """
        self.logger = get_logger("MatchingEngine")
        self._boundary_rules: List[BoundaryRule] = list(
            DEFAULT_BOUNDARY_RULES if boundary_rules is None else boundary_rules
        )

    @property
    def boundary_rules(self) -> List[BoundaryRule]:
        return list(self._boundary_rules)

    def add_boundary_rule(self, rule: BoundaryRule) -> None:
        self._boundary_rules.append(rule)

    def keeps_major_boundary(self, vendor: str, product: str) -> bool:
        """True when open ranges for this product must not cross a major version."""
        return any(rule(vendor, product) for rule in self._boundary_rules)

    def match(
        self,
        identified_version: IdentifiedVersion,
        candidates: Iterable[RangeEntry],
        vendor: str,
        product: str
    ) -> Optional[MatchResult]:
        """Find the entry that makes a vulnerability apply to the identified version.

        Entries are considered in the order given. An entry for every version
        of the product wins outright; exact entries are checked before open
        ranges; when the identified version's major release line has its own
        open range and other lines do too, entries from the other lines are
        ignored.

        Args:
            identified_version: Version being checked; None or unparseable means unknown
            candidates: Entries of one vulnerability, all for ``vendor``/``product``
            vendor: Vendor of the identified software
            product: Product of the identified software

        Returns:
            MatchResult for the winning entry, None when nothing applies
        """
        entries = list(candidates)
        identified = _coerce(identified_version)

        for entry in entries:
            if entry.is_unspecified:
                self.logger.debug(f"{entry.cpe} covers all versions of {vendor}:{product}")
                return MatchResult.from_entry(entry)

        if identified.is_unspecified:
            # An unknown version can only fall inside an open range.
            for entry in entries:
                if entry.affects_all_prior:
                    self.logger.debug(f"Unknown version matched open range {entry.cpe}")
                    return MatchResult.from_entry(entry)
            return None

        open_ranges = [entry for entry in entries if entry.affects_all_prior]
        open_majors: Set[Token] = {entry.version.major for entry in open_ranges}
        anchor = max(
            (entry for entry in open_ranges if same_major(entry.version, identified)),
            key=lambda entry: entry.version,
            default=None,
        )

        if anchor is not None and len(open_majors) > 1:
            survivors = [entry for entry in entries if same_major(entry.version, anchor.version)]
            self.logger.debug(
                f"Restricting {len(entries)} entries to major version {anchor.version.major} "
                f"({len(survivors)} remain)"
            )
        else:
            survivors = entries

        for entry in survivors:
            if not entry.affects_all_prior and entry.version == identified:
                self.logger.debug(f"{identified} equals {entry.cpe}")
                return MatchResult.from_entry(entry)

        within_major = self.keeps_major_boundary(vendor, product)
        for entry in survivors:
            if not entry.affects_all_prior or identified > entry.version:
                continue
            if within_major and not same_major(entry.version, identified):
                self.logger.debug(f"{entry.cpe} does not cross into major version {identified.major}")
                continue
            self.logger.debug(f"{identified} is at or before {entry.cpe}")
            return MatchResult.from_entry(entry)

        return None


def _coerce(identified_version: IdentifiedVersion) -> Version:
    if identified_version is None:
        return UNSPECIFIED
    if isinstance(identified_version, Version):
        return identified_version
    return Version.parse(identified_version)
