"""ELF file header and program header table parsing for both bitnesses."""

import logging
import struct
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from .constants import (
    ELF32_EHDR_SIZE,
    ELF32_PHDR_SIZE,
    ELF64_EHDR_SIZE,
    ELF64_PHDR_SIZE,
    ELFDATA2MSB,
    EV_CURRENT,
    format_segment_flags,
    get_machine_name,
    get_segment_type_name,
    get_type_name,
)
from .exceptions import StructuralParseError
from .models import IdentityRecord, InfoRow
from .ranges import FILE_HEADER, PROGRAM_HEADER_ENTRY, Ranges, RangeType

log = logging.getLogger(__name__)

# (name, offset, struct format) for each field
FieldLayout = List[Tuple[str, int, str]]


@dataclass(frozen=True)
class HeaderLayout:
    """Field layout of the file header and program header entries."""
    bits: int
    ehdr_size: int
    phdr_size: int
    ehdr_fields: FieldLayout
    phdr_fields: FieldLayout


ELF32_LAYOUT = HeaderLayout(
    bits=32,
    ehdr_size=ELF32_EHDR_SIZE,
    phdr_size=ELF32_PHDR_SIZE,
    ehdr_fields=[
        ("e_type", 16, "H"),
        ("e_machine", 18, "H"),
        ("e_version", 20, "I"),
        ("e_entry", 24, "I"),
        ("e_phoff", 28, "I"),
        ("e_shoff", 32, "I"),
        ("e_flags", 36, "I"),
        ("e_ehsize", 40, "H"),
        ("e_phentsize", 42, "H"),
        ("e_phnum", 44, "H"),
        ("e_shentsize", 46, "H"),
        ("e_shnum", 48, "H"),
        ("e_shstrndx", 50, "H"),
    ],
    phdr_fields=[
        ("p_type", 0, "I"),
        ("p_offset", 4, "I"),
        ("p_vaddr", 8, "I"),
        ("p_paddr", 12, "I"),
        ("p_filesz", 16, "I"),
        ("p_memsz", 20, "I"),
        ("p_flags", 24, "I"),
        ("p_align", 28, "I"),
    ],
)

ELF64_LAYOUT = HeaderLayout(
    bits=64,
    ehdr_size=ELF64_EHDR_SIZE,
    phdr_size=ELF64_PHDR_SIZE,
    ehdr_fields=[
        ("e_type", 16, "H"),
        ("e_machine", 18, "H"),
        ("e_version", 20, "I"),
        ("e_entry", 24, "Q"),
        ("e_phoff", 32, "Q"),
        ("e_shoff", 40, "Q"),
        ("e_flags", 48, "I"),
        ("e_ehsize", 52, "H"),
        ("e_phentsize", 54, "H"),
        ("e_phnum", 56, "H"),
        ("e_shentsize", 58, "H"),
        ("e_shnum", 60, "H"),
        ("e_shstrndx", 62, "H"),
    ],
    phdr_fields=[
        ("p_type", 0, "I"),
        ("p_flags", 4, "I"),
        ("p_offset", 8, "Q"),
        ("p_vaddr", 16, "Q"),
        ("p_paddr", 24, "Q"),
        ("p_filesz", 32, "Q"),
        ("p_memsz", 40, "Q"),
        ("p_align", 48, "Q"),
    ],
)


def byte_order(identity: IdentityRecord) -> str:
    """
    Struct byte-order prefix for the identity's data encoding.

    Unknown encodings read as little endian; the identity summary reports
    them once structural parsing has finished.
    """
    return ">" if identity.endianness == ELFDATA2MSB else "<"


def read_fields(
    data: bytes, base: int, fields: FieldLayout, order: str
) -> Dict[str, int]:
    """Unpack named fields located relative to ``base``."""
    return {
        name: struct.unpack_from(order + fmt, data, base + offset)[0]
        for name, offset, fmt in fields
    }


def _hex(value: int) -> str:
    return f"0x{value:x}"


# (label, formatter) for each file header field row
EHDR_ROWS: Dict[str, Tuple[str, Callable[[int], str]]] = {
    "e_type": ("Type", get_type_name),
    "e_machine": ("Machine", get_machine_name),
    "e_version": ("Version", _hex),
    "e_entry": ("Entry point", _hex),
    "e_phoff": ("Program header offset", lambda v: f"{v} (bytes into file)"),
    "e_shoff": ("Section header offset", lambda v: f"{v} (bytes into file)"),
    "e_flags": ("Flags", _hex),
    "e_ehsize": ("ELF header size", lambda v: f"{v} (bytes)"),
    "e_phentsize": ("Program header entry size", lambda v: f"{v} (bytes)"),
    "e_phnum": ("Program header count", str),
    "e_shentsize": ("Section header entry size", lambda v: f"{v} (bytes)"),
    "e_shnum": ("Section header count", str),
    "e_shstrndx": ("Section name string table index", str),
}


def _is_anomalous(name: str, header: Dict[str, int], layout: HeaderLayout) -> bool:
    if name == "e_version":
        return header["e_version"] != EV_CURRENT
    if name == "e_ehsize":
        return header["e_ehsize"] != layout.ehdr_size
    if name == "e_phentsize":
        return header["e_phnum"] > 0 and header["e_phentsize"] != layout.phdr_size
    return False


def parse_file_header(
    data: bytes,
    identity: IdentityRecord,
    layout: HeaderLayout,
    information: List[InfoRow],
    ranges: Ranges,
) -> Dict[str, int]:
    """
    Parse the file header that follows the identity block.

    Args:
        data: File contents as bytes.
        identity: Validated identity block.
        layout: Field layout for the file's bitness.
        information: Info rows to append to.
        ranges: Annotation store to register field ranges in.

    Returns:
        Dictionary of raw file header field values.

    Raises:
        StructuralParseError: If the file is smaller than the file header.
    """
    if len(data) < layout.ehdr_size:
        raise StructuralParseError("file is smaller than the ELF file header")

    header = read_fields(data, 0, layout.ehdr_fields, byte_order(identity))

    for name, _, _ in layout.ehdr_fields:
        label, render = EHDR_ROWS[name]
        information.append(InfoRow(
            id=name,
            label=label,
            value=render(header[name]),
            anomalous=_is_anomalous(name, header, layout),
        ))

    ranges.add_range(0, layout.ehdr_size, FILE_HEADER)
    for name, offset, fmt in layout.ehdr_fields:
        ranges.add_range(offset, struct.calcsize(fmt), RangeType.field(name))

    return header


def parse_program_headers(
    data: bytes,
    identity: IdentityRecord,
    layout: HeaderLayout,
    header: Dict[str, int],
    information: List[InfoRow],
    ranges: Ranges,
) -> None:
    """
    Parse the program header table described by the file header.

    Raises:
        StructuralParseError: If the table is truncated, overlaps the file
            header, or its entries are too small to hold a program header.
    """
    phoff = header["e_phoff"]
    phnum = header["e_phnum"]
    phentsize = header["e_phentsize"]

    if phnum == 0:
        return

    if phentsize < layout.phdr_size:
        raise StructuralParseError(
            f"Program header entry size too small: {phentsize}"
        )
    if phoff < layout.ehdr_size:
        raise StructuralParseError(
            f"Program header table overlaps the file header: 0x{phoff:x}"
        )
    if phoff + phnum * phentsize > len(data):
        raise StructuralParseError(
            f"Program header table runs past end of file: "
            f"0x{phoff:x} + {phnum} * {phentsize}"
        )

    order = byte_order(identity)
    width = layout.bits // 4

    for index in range(phnum):
        base = phoff + index * phentsize
        entry = read_fields(data, base, layout.phdr_fields, order)

        information.append(InfoRow(
            id="phdr",
            label=f"Program header {index}",
            value=(
                f"{get_segment_type_name(entry['p_type'])} "
                f"offset=0x{entry['p_offset']:0{width}x} "
                f"vaddr=0x{entry['p_vaddr']:0{width}x} "
                f"filesz=0x{entry['p_filesz']:x} "
                f"memsz=0x{entry['p_memsz']:x} "
                f"flags={format_segment_flags(entry['p_flags'])}"
            ),
        ))
        ranges.add_range(base, phentsize, PROGRAM_HEADER_ENTRY)

    log.debug("Parsed %d program headers at 0x%x", phnum, phoff)


def _parse(
    data: bytes,
    identity: IdentityRecord,
    layout: HeaderLayout,
    information: List[InfoRow],
    ranges: Ranges,
) -> None:
    header = parse_file_header(data, identity, layout, information, ranges)
    parse_program_headers(data, identity, layout, header, information, ranges)


def parse_elf32(
    data: bytes,
    identity: IdentityRecord,
    information: List[InfoRow],
    ranges: Ranges,
) -> None:
    """Parse the file header and program headers of a 32-bit ELF file."""
    _parse(data, identity, ELF32_LAYOUT, information, ranges)


def parse_elf64(
    data: bytes,
    identity: IdentityRecord,
    information: List[InfoRow],
    ranges: Ranges,
) -> None:
    """Parse the file header and program headers of a 64-bit ELF file."""
    _parse(data, identity, ELF64_LAYOUT, information, ranges)
