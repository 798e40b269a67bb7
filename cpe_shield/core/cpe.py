"""CPE identifier parsing."""

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import unquote

from .version import Version

CPE22_PREFIX = "cpe:/"
CPE23_PREFIX = "cpe:2.3:"

# Split on ':' unless it is backslash-escaped (CPE 2.3 formatted strings).
_CPE23_SPLIT = re.compile(r"(?<!\\):")
_CPE23_UNESCAPE = re.compile(r"\\(.)")


@dataclass(frozen=True)
class SoftwareIdentifier:
    """Vendor, product and version fields of a CPE name."""

    cpe: str
    part: str = ""
    vendor: str = ""
    product: str = ""
    version_text: str = ""
    update: str = ""

    @classmethod
    def parse(cls, text: Optional[str]) -> "SoftwareIdentifier":
        """Parse a CPE 2.2 URI or CPE 2.3 formatted string.

        Unrecognised text gives an identifier with empty vendor and product and
        an unspecified version rather than an error.

        Args:
            text: CPE name

        Returns:
            Parsed identifier
        """
        if not text:
            return cls(cpe=text or "")

        raw = text.strip()
        lowered = raw.lower()
        if lowered.startswith(CPE23_PREFIX):
            fields = [_CPE23_UNESCAPE.sub(r"\1", f) for f in _CPE23_SPLIT.split(raw[len(CPE23_PREFIX):])]
        elif lowered.startswith(CPE22_PREFIX):
            fields = [unquote(f) for f in raw[len(CPE22_PREFIX):].split(":")]
        else:
            return cls(cpe=raw)

        return cls(
            cpe=raw,
            part=_field(fields, 0).lower(),
            vendor=_field(fields, 1).lower(),
            product=_field(fields, 2).lower(),
            version_text=_field(fields, 3),
            update=_field(fields, 4),
        )

    @property
    def version(self) -> Version:
        """Version with the update component appended as a trailing token."""
        return Version.from_parts(self.version_text, self.update)

    @property
    def is_valid(self) -> bool:
        return bool(self.vendor and self.product)

    def __str__(self) -> str:
        return self.cpe


def _field(fields: List[str], index: int) -> str:
    if index < len(fields):
        return fields[index]
    return ""
