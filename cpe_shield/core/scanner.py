"""Lookup of the vulnerabilities affecting an identified piece of software."""

import asyncio
import dataclasses
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..store.base import VulnerabilityStore
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark
from .aggregator import Aggregator
from .cpe import SoftwareIdentifier
from .matcher import MatchingEngine
from .models import MatchResult, Vulnerability


class VulnerabilityScanner:
    """Matches CPE names against a vulnerability store.

    The scanner owns no data; the store it is given supplies the ordered
    software stream and the vulnerability descriptions.
    """

    def __init__(
        self,
        store: VulnerabilityStore,
        engine: Optional[MatchingEngine] = None,
        presorted: bool = True,
        enable_performance_monitoring: bool = True
    ) -> None:
        """Initialize the scanner.

        Args:
            store: Source of software records and vulnerability details
            engine: Matching engine; a default one is created if omitted
            presorted: Trust the store to return records ordered by vulnerability id
            enable_performance_monitoring: Record lookup timings
        """
        self.store = store
        self.engine = engine or MatchingEngine()
        self.presorted = presorted
        self.logger = get_logger("VulnerabilityScanner")
        self.performance_monitor = PerformanceMonitor(enable_performance_monitoring)

    def match_ids(self, cpe: str) -> Iterator[Tuple[str, MatchResult]]:
        """Lazily yield ``(vulnerability_id, MatchResult)`` for a CPE name.

        Args:
            cpe: CPE 2.2 or 2.3 name of the identified software

        Returns:
            Iterator over the matching vulnerabilities, in store order
        """
        identifier = SoftwareIdentifier.parse(cpe)
        if not identifier.is_valid:
            self.logger.warning(f"Cannot determine vendor and product of {cpe!r}")
            return iter(())

        aggregator = Aggregator(
            self.engine,
            identifier.vendor,
            identifier.product,
            identifier.version,
            presorted=self.presorted,
        )
        records = self.store.iter_software_records(identifier.vendor, identifier.product)
        return aggregator.aggregate(records)

    @benchmark
    def get_vulnerabilities(self, cpe: str) -> List[Vulnerability]:
        """Retrieve the vulnerabilities affecting a CPE name.

        Each returned vulnerability is a copy of the store's record with
        ``matched`` set to the entry that selected it.

        Args:
            cpe: CPE 2.2 or 2.3 name of the identified software

        Returns:
            List of vulnerabilities
        """
        with self.performance_monitor.measure("get_vulnerabilities") as metric:
            vulnerabilities = []
            for vulnerability_id, match in self.match_ids(cpe):
                vulnerability = self.store.get_vulnerability(vulnerability_id)
                if vulnerability is None:
                    self.logger.warning(f"{vulnerability_id} matched {cpe} but has no details in the store")
                    continue
                vulnerabilities.append(dataclasses.replace(vulnerability, matched=match))
            metric.items = len(vulnerabilities)

        self.logger.debug(f"{cpe}: {len(vulnerabilities)} vulnerabilities")
        return vulnerabilities

    async def get_vulnerabilities_for_many_async(self, cpes: Iterable[str]) -> Dict[str, List[Vulnerability]]:
        """Look up several CPE names concurrently.

        Every lookup runs on a worker thread with its own aggregator; the
        store is only read.

        Args:
            cpes: CPE names to look up

        Returns:
            Vulnerabilities keyed by CPE name
        """
        unique_cpes = list(dict.fromkeys(cpes))
        results = await asyncio.gather(
            *(asyncio.to_thread(self.get_vulnerabilities, cpe) for cpe in unique_cpes)
        )
        return dict(zip(unique_cpes, results))

    def get_performance_summary(self) -> Dict[str, Any]:
        return self.performance_monitor.get_summary()

    def print_performance_summary(self) -> None:
        """Print performance summary to console."""
        self.performance_monitor.print_summary()
