"""Grouping of a vulnerability-ordered software stream into per-vulnerability matches."""

from typing import Iterable, Iterator, Optional, Tuple, Union

from ..utils.logging import get_logger
from .matcher import IdentifiedVersion, MatchingEngine
from .models import CandidateGroup, MatchResult, RangeEntry, SoftwareRecord

StreamItem = Union[Tuple[str, RangeEntry], SoftwareRecord]


class Aggregator:
    """Regroups a stream of ``(vulnerability_id, entry)`` pairs and matches each group.

    The stream must be sorted by vulnerability id: entries of one vulnerability
    have to arrive next to each other. Unsorted input is not detected; it
    splits groups and yields wrong results. Pass ``presorted=False`` to sort
    the stream first, which reads it fully into memory.
    """

    def __init__(
        self,
        engine: MatchingEngine,
        vendor: str,
        product: str,
        identified_version: IdentifiedVersion,
        presorted: bool = True
    ) -> None:
        self.engine = engine
        self.vendor = vendor
        self.product = product
        self.identified_version = identified_version
        self.presorted = presorted
        self.logger = get_logger("Aggregator")
        self.groups_seen = 0
        self.groups_matched = 0

    def aggregate(self, records: Iterable[StreamItem]) -> Iterator[Tuple[str, MatchResult]]:
        """Yield ``(vulnerability_id, MatchResult)`` for every matching group.

        Args:
            records: Pairs or SoftwareRecords ordered by vulnerability id

        Yields:
            One result per vulnerability whose entries match
        """
        items = _as_pairs(records)
        if not self.presorted:
            items = iter(sorted(items, key=lambda pair: pair[0]))

        group = CandidateGroup()
        # ids are opaque, so None is a valid id and cannot mark "no group yet"
        started = False
        for vulnerability_id, entry in items:
            if not started or vulnerability_id != group.vulnerability_id:
                if started:
                    result = self._finalize(group)
                    if result is not None:
                        yield result
                group.reset(vulnerability_id)
                started = True
            group.add(entry)

        # the last group has no following id to trigger it
        if started:
            result = self._finalize(group)
            if result is not None:
                yield result

        self.logger.debug(
            f"{self.vendor}:{self.product} {self.identified_version or '-'}: "
            f"{self.groups_matched} of {self.groups_seen} vulnerabilities matched"
        )

    def _finalize(self, group: CandidateGroup) -> Optional[Tuple[str, MatchResult]]:
        self.groups_seen += 1
        if not group:
            return None
        match = self.engine.match(self.identified_version, group, self.vendor, self.product)
        if match is None:
            return None
        self.groups_matched += 1
        return group.vulnerability_id, match


def aggregate_matches(
    records: Iterable[StreamItem],
    vendor: str,
    product: str,
    identified_version: IdentifiedVersion,
    engine: Optional[MatchingEngine] = None,
    presorted: bool = True
) -> Iterator[Tuple[str, MatchResult]]:
    """Functional form of :meth:`Aggregator.aggregate`."""
    aggregator = Aggregator(engine or MatchingEngine(), vendor, product, identified_version, presorted)
    return aggregator.aggregate(records)


def _as_pairs(records: Iterable[StreamItem]) -> Iterator[Tuple[str, RangeEntry]]:
    for record in records:
        if isinstance(record, SoftwareRecord):
            yield record.vulnerability_id, record.to_entry()
        else:
            yield record
