"""Interface of the vulnerability store the scanner reads from."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Set, Tuple

from ..core.models import SoftwareRecord, Vulnerability


class VulnerabilityStore(ABC):
    """Read side of a vulnerability database."""

    @abstractmethod
    def iter_software_records(self, vendor: str, product: str) -> Iterator[SoftwareRecord]:
        """Stream the vulnerable-software rows of one product.

        Rows must be ordered by vulnerability id so that all rows of one
        vulnerability are adjacent; the order inside one vulnerability is free.

        Args:
            vendor: Vendor name
            product: Product name

        Returns:
            Iterator of records sorted by vulnerability id
        """

    @abstractmethod
    def get_vulnerability(self, vulnerability_id: str) -> Optional[Vulnerability]:
        """Fetch the descriptive record of one vulnerability.

        Args:
            vulnerability_id: Vulnerability identifier (e.g. a CVE id)

        Returns:
            Vulnerability, or None if the store does not know it
        """

    @abstractmethod
    def get_cpes(self, vendor: str, product: str) -> Set[str]:
        """All CPE names registered for a vendor/product pair."""

    @abstractmethod
    def get_vendor_product_list(self) -> Set[Tuple[str, str]]:
        """Every vendor/product pair present in the store."""

    def data_exists(self) -> bool:
        """Check whether the store holds any vulnerable-software data."""
        return bool(self.get_vendor_product_list())
