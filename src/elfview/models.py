"""Data models for elfview."""

from dataclasses import dataclass
from typing import Tuple

from .constants import (
    EI_ABIVERSION,
    EI_CLASS,
    EI_DATA,
    EI_MAG0,
    EI_OSABI,
    EI_VERSION,
)
from .ranges import Ranges, describe


@dataclass(frozen=True)
class IdentityRecord:
    """The 16-byte ELF identity block (e_ident)."""
    magic: bytes  # First 4 bytes
    ei_class: int  # 1 = 32-bit, 2 = 64-bit
    endianness: int  # 1 = little endian, 2 = big endian
    version: int
    abi: int  # OS/ABI identification
    abi_version: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "IdentityRecord":
        """Build from the first 16 bytes of ``data`` without validation."""
        return cls(
            magic=bytes(data[EI_MAG0:EI_MAG0 + 4]),
            ei_class=data[EI_CLASS],
            endianness=data[EI_DATA],
            version=data[EI_VERSION],
            abi=data[EI_OSABI],
            abi_version=data[EI_ABIVERSION],
        )


@dataclass(frozen=True)
class InfoRow:
    """A single summary row for display."""
    id: str  # Stable identifier, matches range labels where one exists
    label: str
    value: str
    anomalous: bool = False  # Value deviates from what is normally seen

    def as_triple(self) -> Tuple[str, str, str]:
        return (self.id, self.label, self.value)


@dataclass(frozen=True)
class ParseResult:
    """Complete result of parsing an ELF file."""
    source_name: str
    info_rows: Tuple[InfoRow, ...]
    raw_bytes: bytes
    ranges: Ranges

    def to_dict(self) -> dict:
        """Convert result to dictionary for JSON serialization."""
        return {
            "source_name": self.source_name,
            "size": len(self.raw_bytes),
            "info": [
                {
                    "id": row.id,
                    "label": row.label,
                    "value": row.value,
                    "anomalous": row.anomalous,
                }
                for row in self.info_rows
            ],
            "ranges": [
                {
                    "start": start,
                    "length": length,
                    "id": describe(range_type).identifier,
                    "class": describe(range_type).css_classes(),
                }
                for start, length, range_type in self.ranges.spans()
            ],
        }
