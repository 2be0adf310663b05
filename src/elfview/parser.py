"""Core ELF identity parsing and the parse pipeline."""

import logging
from typing import List

from .constants import (
    EI_ABIVERSION,
    EI_CLASS,
    EI_DATA,
    EI_MAG0,
    EI_NIDENT,
    EI_OSABI,
    EI_PAD,
    EI_VERSION,
    ELF_MAGIC,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    ELFOSABI_SYSV,
    EV_CURRENT,
    get_abi_name,
)
from .exceptions import (
    BadMagicError,
    FileOpenError,
    InvalidRangeError,
    StructuralParseError,
    TooSmallError,
    UnknownClassError,
    UnknownEndiannessError,
)
from .headers import parse_elf32, parse_elf64
from .models import IdentityRecord, InfoRow, ParseResult
from .ranges import IDENTITY, Ranges, RangeType

log = logging.getLogger(__name__)

STRUCTURAL_PARSERS = {
    ELFCLASS32: parse_elf32,
    ELFCLASS64: parse_elf64,
}

# (label, offset, length) of each identity field, in registration order
IDENTITY_FIELD_RANGES = [
    ("magic", EI_MAG0, 4),
    ("class", EI_CLASS, 1),
    ("data", EI_DATA, 1),
    ("ver", EI_VERSION, 1),
    ("abi", EI_OSABI, 1),
    ("abi_ver", EI_ABIVERSION, 1),
    ("pad", EI_PAD, EI_NIDENT - EI_PAD),
]


def read_identity(data: bytes) -> IdentityRecord:
    """
    Parse and validate the identity block.

    Args:
        data: File contents as bytes.

    Returns:
        IdentityRecord with a valid magic and class.

    Raises:
        TooSmallError: If the file is smaller than the identity block.
        BadMagicError: If the ELF magic is missing.
        UnknownClassError: If the class is neither 32-bit nor 64-bit.
    """
    if len(data) < EI_NIDENT:
        raise TooSmallError("file is smaller than ELF header's e_ident")

    identity = IdentityRecord.from_bytes(data)

    if identity.magic != ELF_MAGIC:
        raise BadMagicError("mismatched magic: not an ELF file")

    if identity.ei_class not in (ELFCLASS32, ELFCLASS64):
        raise UnknownClassError(identity.ei_class)

    return identity


def identity_rows(identity: IdentityRecord) -> List[InfoRow]:
    """
    Build summary rows for the identity block.

    Version and ABI version rows are only produced when they deviate from
    the usual values.

    Raises:
        UnknownClassError: If the class is neither 32-bit nor 64-bit.
        UnknownEndiannessError: If the data encoding is unknown.
    """
    rows: List[InfoRow] = []

    if identity.ei_class == ELFCLASS32:
        bitness = "32-bit"
    elif identity.ei_class == ELFCLASS64:
        bitness = "64-bit"
    else:
        raise UnknownClassError(identity.ei_class)
    rows.append(InfoRow("class", "Object class", bitness))

    if identity.endianness == ELFDATA2LSB:
        encoding = "Little endian"
    elif identity.endianness == ELFDATA2MSB:
        encoding = "Big endian"
    else:
        raise UnknownEndiannessError(identity.endianness)
    rows.append(InfoRow("data", "Data encoding", encoding))

    if identity.version != EV_CURRENT:
        rows.append(InfoRow("ver", "Version", str(identity.version), anomalous=True))

    sysv = identity.abi == ELFOSABI_SYSV
    rows.append(InfoRow(
        "abi",
        "ABI" if sysv else "Uncommon ABI",
        get_abi_name(identity.abi),
        anomalous=not sysv,
    ))

    # Default SYSV with ABI version 0 produces no row at all
    if not (sysv and identity.abi_version == 0):
        rows.append(InfoRow(
            "abi_ver",
            "Uncommon ABI version" if sysv else "ABI version",
            str(identity.abi_version),
            anomalous=sysv,
        ))

    return rows


def add_identity_ranges(ranges: Ranges) -> None:
    """Register the identity block and each of its fields."""
    ranges.add_range(0, EI_NIDENT, IDENTITY)
    for label, offset, length in IDENTITY_FIELD_RANGES:
        ranges.add_range(offset, length, RangeType.field(label))


def parse_bytes(data: bytes, source_name: str = "<bytes>") -> ParseResult:
    """
    Parse an ELF image from raw bytes.

    Args:
        data: ELF file contents as bytes.
        source_name: Name reported in the result.

    Returns:
        ParseResult with info rows and byte ranges.

    Raises:
        TooSmallError: If the file is smaller than the identity block.
        BadMagicError: If the ELF magic is missing.
        UnknownClassError: If the class is neither 32-bit nor 64-bit.
        UnknownEndiannessError: If the data encoding is unknown.
        StructuralParseError: If the file or program headers are malformed.
    """
    data = bytes(data)
    identity = read_identity(data)
    log.debug(
        "%s: class=%d data=%d version=%d abi=%d",
        source_name,
        identity.ei_class,
        identity.endianness,
        identity.version,
        identity.abi,
    )

    ranges = Ranges(len(data))
    information: List[InfoRow] = []

    structural_parser = STRUCTURAL_PARSERS[identity.ei_class]
    try:
        structural_parser(data, identity, information, ranges)
    except InvalidRangeError as e:
        raise StructuralParseError(str(e)) from e

    information.extend(identity_rows(identity))
    add_identity_ranges(ranges)
    ranges.freeze()

    log.debug(
        "%s: %d info rows, %d ranges",
        source_name,
        len(information),
        sum(1 for _ in ranges.spans()),
    )

    return ParseResult(
        source_name=source_name,
        info_rows=tuple(information),
        raw_bytes=data,
        ranges=ranges,
    )


def parse_file(filename: str) -> ParseResult:
    """
    Parse an ELF file from disk.

    Raises:
        FileOpenError: If the file cannot be read.
        ElfViewError: Any parse error from ``parse_bytes``.
    """
    try:
        with open(filename, "rb") as f:
            data = f.read()
    except (IOError, OSError) as e:
        raise FileOpenError(f"Failed to open file: {e}") from e

    return parse_bytes(data, source_name=filename)
