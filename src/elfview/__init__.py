"""
elfview - Describe ELF executables byte by byte.

Parses the identity block, file header and program header table of an ELF
image into display rows plus a per-offset map of annotated byte ranges.
"""

__version__ = "1.0.0"

from .parser import parse_file, parse_bytes, read_identity
from .models import IdentityRecord, InfoRow, ParseResult
from .ranges import (
    RangeKind,
    RangeType,
    RenderDescriptor,
    Ranges,
    describe,
    SPAN_END,
    IDENTITY,
    FILE_HEADER,
    PROGRAM_HEADER_ENTRY,
)
from .constants import (
    ELF_MAGIC,
    EI_NIDENT,
    ELFCLASS32,
    ELFCLASS64,
    ELFDATA2LSB,
    ELFDATA2MSB,
    EV_CURRENT,
    ELFOSABI_SYSV,
    get_abi_name,
)
from .exceptions import (
    ElfViewError,
    FileOpenError,
    TooSmallError,
    BadMagicError,
    UnknownClassError,
    UnknownEndiannessError,
    StructuralParseError,
    InvalidRangeError,
)

__all__ = [
    # Main API
    "parse_file",
    "parse_bytes",
    "read_identity",
    # Models
    "IdentityRecord",
    "InfoRow",
    "ParseResult",
    # Ranges
    "RangeKind",
    "RangeType",
    "RenderDescriptor",
    "Ranges",
    "describe",
    "SPAN_END",
    "IDENTITY",
    "FILE_HEADER",
    "PROGRAM_HEADER_ENTRY",
    # Constants
    "ELF_MAGIC",
    "EI_NIDENT",
    "ELFCLASS32",
    "ELFCLASS64",
    "ELFDATA2LSB",
    "ELFDATA2MSB",
    "EV_CURRENT",
    "ELFOSABI_SYSV",
    "get_abi_name",
    # Exceptions
    "ElfViewError",
    "FileOpenError",
    "TooSmallError",
    "BadMagicError",
    "UnknownClassError",
    "UnknownEndiannessError",
    "StructuralParseError",
    "InvalidRangeError",
    # Version
    "__version__",
]
