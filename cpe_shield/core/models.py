"""Data models shared by the matching engine, aggregator and stores."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .cpe import SoftwareIdentifier
from .version import Version, UNSPECIFIED_TEXT


@dataclass(frozen=True)
class RangeEntry:
    """One vulnerable-software entry of a vulnerability.

    ``affects_all_prior`` makes the entry the half-open range ``(-inf, version]``;
    otherwise it is the single version. An unspecified version means every
    version of the product.
    """

    cpe: str
    vendor: str
    product: str
    version_text: str
    version: Version
    affects_all_prior: bool = False

    @classmethod
    def from_cpe(cls, cpe: str, affects_all_prior: bool = False) -> "RangeEntry":
        identifier = SoftwareIdentifier.parse(cpe)
        return cls(
            cpe=identifier.cpe,
            vendor=identifier.vendor,
            product=identifier.product,
            version_text=identifier.version_text,
            version=identifier.version,
            affects_all_prior=affects_all_prior,
        )

    @property
    def is_unspecified(self) -> bool:
        return self.version.is_unspecified


@dataclass(frozen=True)
class SoftwareRecord:
    """A row of the vulnerable-software stream supplied by a store.

    A non-empty ``previous_version`` marks the entry as affecting all earlier
    versions.
    """

    vulnerability_id: str
    cpe: str
    previous_version: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.vulnerability_id:
            raise ValueError("Vulnerability ID cannot be empty")

    @property
    def affects_all_prior(self) -> bool:
        return bool(self.previous_version)

    def to_entry(self) -> RangeEntry:
        return RangeEntry.from_cpe(self.cpe, self.affects_all_prior)


class CandidateGroup:
    """Range entries collected for one vulnerability, in arrival order."""

    def __init__(self, vulnerability_id: Optional[str] = None) -> None:
        self.vulnerability_id = vulnerability_id
        self._entries: List[RangeEntry] = []

    def add(self, entry: RangeEntry) -> None:
        self._entries.append(entry)

    def reset(self, vulnerability_id: Optional[str]) -> None:
        """Empty the group and start collecting for another vulnerability."""
        self.vulnerability_id = vulnerability_id
        self._entries.clear()

    def __iter__(self) -> Iterator[RangeEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


@dataclass(frozen=True)
class MatchResult:
    """The entry that made a vulnerability apply to the identified version."""

    cpe: str
    version_text: str
    affects_all_prior: bool

    @classmethod
    def from_entry(cls, entry: RangeEntry) -> "MatchResult":
        return cls(
            cpe=entry.cpe,
            version_text=entry.version_text,
            affects_all_prior=entry.affects_all_prior,
        )

    @property
    def matched_version(self) -> str:
        """Original version string of the matched entry, ``-`` when unspecified."""
        return self.version_text or UNSPECIFIED_TEXT


@dataclass
class Reference:
    """External reference attached to a vulnerability."""

    source: str
    name: str
    url: str


@dataclass
class Vulnerability:
    """Descriptive vulnerability record, enriched with the match that selected it."""

    id: str
    description: str = ""
    cwe: Optional[str] = None
    cvss_score: Optional[float] = None
    cvss_vector: Optional[str] = None
    references: List[Reference] = field(default_factory=list)
    vulnerable_software: List[SoftwareRecord] = field(default_factory=list)
    matched: Optional[MatchResult] = None

    def __post_init__(self) -> None:
        """Validate vulnerability data."""
        if not self.id:
            raise ValueError("Vulnerability ID cannot be empty")
        if not self.description:
            self.description = "No description available"

    @property
    def severity(self) -> str:
        """CVSS v2 qualitative rating of the score."""
        if self.cvss_score is None:
            return "UNKNOWN"
        if self.cvss_score >= 7.0:
            return "HIGH"
        if self.cvss_score >= 4.0:
            return "MEDIUM"
        return "LOW"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "cwe": self.cwe,
            "cvss_score": self.cvss_score,
            "cvss_vector": self.cvss_vector,
            "severity": self.severity,
            "references": [
                {"source": r.source, "name": r.name, "url": r.url} for r in self.references
            ],
            "matched_cpe": self.matched.cpe if self.matched else None,
            "matched_version": self.matched.matched_version if self.matched else None,
            "affects_all_prior": self.matched.affects_all_prior if self.matched else None,
        }
