"""Read-only vulnerability store backed by local JSON files."""

import json
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from ..core.cpe import SoftwareIdentifier
from ..core.models import Reference, SoftwareRecord, Vulnerability
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark
from .base import VulnerabilityStore

ProductKey = Tuple[str, str]


@dataclass
class StoreConfig:
    """Location of the JSON vulnerability data."""

    database_path: Path
    pattern: str = "*.json"

    def __post_init__(self) -> None:
        """Validate configuration."""
        self.database_path = Path(self.database_path)
        if not self.database_path.exists():
            raise ValueError(f"Database path does not exist: {self.database_path}")


class OfflineVulnerabilityStore(VulnerabilityStore):
    """Vulnerability store loaded from a JSON file or a directory of JSON files.

    Each file holds one vulnerability object or a list of them::

        {"id": "CVE-2016-3081", "description": "...", "cwe": "CWE-77",
         "cvss_score": 9.3, "cvss_vector": "AV:N/AC:M/Au:N/C:C/I:C/A:C",
         "references": [{"source": "BID", "name": "87327", "url": "..."}],
         "vulnerable_software": [
             {"cpe": "cpe:/a:apache:struts:2.3.28", "previous_version": "1"},
             "cpe:/a:apache:struts:2.3.20.1"]}

    A vulnerable-software item with a non-empty ``previous_version`` affects
    that version and every earlier one.
    """

    def __init__(self, config: Optional[StoreConfig] = None) -> None:
        """Initialize the store.

        Args:
            config: Where to load data from; None for a store filled in memory
        """
        self.config = config
        self.logger = get_logger("OfflineVulnerabilityStore")
        self.performance_monitor = PerformanceMonitor()
        self._vulnerabilities: Dict[str, Vulnerability] = {}
        self._product_index: Dict[ProductKey, List[SoftwareRecord]] = {}
        self._loaded = config is None
        self._load_lock = threading.Lock()

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "OfflineVulnerabilityStore":
        """Build a store from vulnerability dictionaries already in memory."""
        store = cls()
        for data in records:
            vulnerability = store._parse_vulnerability(data)
            if vulnerability:
                store.add_vulnerability(vulnerability)
        return store

    @benchmark
    def load(self, show_progress: bool = False) -> int:
        """Load every vulnerability from the configured path.

        Args:
            show_progress: Show a progress spinner

        Returns:
            Number of vulnerabilities held after loading
        """
        if self.config is None:
            return len(self._vulnerabilities)

        with self.performance_monitor.measure("load") as metric:
            if show_progress:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    transient=True
                ) as progress:
                    task = progress.add_task("Loading vulnerabilities...", total=None)
                    for vulnerability in self._load_vulnerabilities_generator():
                        self.add_vulnerability(vulnerability)
                        progress.update(task, advance=1)
            else:
                for vulnerability in self._load_vulnerabilities_generator():
                    self.add_vulnerability(vulnerability)
            metric.items = len(self._vulnerabilities)

        self._loaded = True
        self.logger.info(
            f"Loaded {len(self._vulnerabilities)} vulnerabilities for "
            f"{len(self._product_index)} products from {self.config.database_path}"
        )
        return len(self._vulnerabilities)

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        # concurrent lookups may arrive before the first load has finished
        with self._load_lock:
            if not self._loaded:
                self.load()

    def _data_files(self) -> List[Path]:
        path = self.config.database_path
        if path.is_file():
            return [path]
        return sorted(path.rglob(self.config.pattern))

    def _load_vulnerabilities_generator(self) -> Iterator[Vulnerability]:
        """Yield vulnerabilities from the data files, skipping unreadable ones."""
        for data_file in self._data_files():
            try:
                with open(data_file, 'r', encoding='utf-8') as f:
                    document = json.load(f)
            except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
                self.logger.warning(f"Failed to parse {data_file}: {e}")
                continue

            items = document if isinstance(document, list) else [document]
            for data in items:
                vulnerability = self._parse_vulnerability(data)
                if vulnerability:
                    yield vulnerability
                else:
                    self.logger.debug(f"Skipped an entry in {data_file}")

    def _parse_vulnerability(self, data: Any) -> Optional[Vulnerability]:
        """Convert one JSON object into a Vulnerability.

        Args:
            data: Decoded JSON value

        Returns:
            Vulnerability, or None if the object is unusable
        """
        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring non-object vulnerability entry: {type(data).__name__}")
            return None

        vulnerability_id = data.get("id")
        if not vulnerability_id or not isinstance(vulnerability_id, str):
            self.logger.warning("Ignoring vulnerability entry without an id")
            return None

        score = data.get("cvss_score")
        try:
            cvss_score = float(score) if score is not None else None
        except (TypeError, ValueError):
            self.logger.warning(f"{vulnerability_id}: invalid CVSS score {score!r}")
            cvss_score = None

        return Vulnerability(
            id=vulnerability_id,
            description=data.get("description") or "",
            cwe=data.get("cwe"),
            cvss_score=cvss_score,
            cvss_vector=data.get("cvss_vector"),
            references=self._parse_references(data.get("references") or []),
            vulnerable_software=self._parse_software(vulnerability_id, data.get("vulnerable_software") or []),
        )

    def _parse_references(self, items: Any) -> List[Reference]:
        references = []
        for item in items if isinstance(items, list) else []:
            if isinstance(item, str):
                references.append(Reference(source="", name=item, url=item))
            elif isinstance(item, dict) and item.get("url"):
                references.append(Reference(
                    source=item.get("source", ""),
                    name=item.get("name") or item["url"],
                    url=item["url"],
                ))
        return references

    def _parse_software(self, vulnerability_id: str, items: Any) -> List[SoftwareRecord]:
        records = []
        for item in items if isinstance(items, list) else []:
            if isinstance(item, str):
                cpe, previous = item, None
            elif isinstance(item, dict) and isinstance(item.get("cpe"), str):
                cpe, previous = item["cpe"], item.get("previous_version")
            else:
                self.logger.warning(f"{vulnerability_id}: ignoring vulnerable software entry {item!r}")
                continue

            if isinstance(previous, bool):
                previous = "1" if previous else None
            elif previous is not None:
                previous = str(previous)
            records.append(SoftwareRecord(vulnerability_id, cpe, previous))
        return records

    def add_vulnerability(self, vulnerability: Vulnerability) -> None:
        """Add or replace a vulnerability and index its software entries."""
        if vulnerability.id in self._vulnerabilities:
            self.logger.warning(f"Duplicate vulnerability {vulnerability.id}; keeping the last one")
            self._remove_from_index(vulnerability.id)

        self._vulnerabilities[vulnerability.id] = vulnerability
        for record in vulnerability.vulnerable_software:
            identifier = SoftwareIdentifier.parse(record.cpe)
            if not identifier.is_valid:
                self.logger.warning(f"{vulnerability.id}: cannot index {record.cpe!r}")
                continue
            key = (identifier.vendor, identifier.product)
            self._product_index.setdefault(key, []).append(record)

    def _remove_from_index(self, vulnerability_id: str) -> None:
        for key in list(self._product_index):
            remaining = [r for r in self._product_index[key] if r.vulnerability_id != vulnerability_id]
            if remaining:
                self._product_index[key] = remaining
            else:
                del self._product_index[key]

    def iter_software_records(self, vendor: str, product: str) -> Iterator[SoftwareRecord]:
        self._ensure_loaded()
        records = self._product_index.get((vendor.lower(), product.lower()), [])
        return iter(sorted(records, key=lambda record: record.vulnerability_id))

    def get_vulnerability(self, vulnerability_id: str) -> Optional[Vulnerability]:
        self._ensure_loaded()
        return self._vulnerabilities.get(vulnerability_id)

    def get_cpes(self, vendor: str, product: str) -> Set[str]:
        self._ensure_loaded()
        return {record.cpe for record in self._product_index.get((vendor.lower(), product.lower()), [])}

    def get_vendor_product_list(self) -> Set[ProductKey]:
        self._ensure_loaded()
        return set(self._product_index)

    def get_database_stats(self) -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with database statistics
        """
        self._ensure_loaded()
        total_products = len(self._product_index)
        total_entries = sum(len(records) for records in self._product_index.values())
        return {
            "total_vulnerabilities": len(self._vulnerabilities),
            "total_products": total_products,
            "total_software_entries": total_entries,
            "average_entries_per_product": total_entries / total_products if total_products > 0 else 0,
        }
