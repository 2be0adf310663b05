"""Byte-offset annotation store for ELF structures.

Every byte of the parsed file owns a slot. Registering a range appends its
type to the slot where it starts and a ``SPAN_END`` marker to the slot where
it ends, so a renderer walking the buffer can open spans as it meets them
and close as many as ``lookup_range_ends`` reports.

Closing by count only works when ranges are properly nested or disjoint and
outer ranges are registered before inner ones. The store does not enforce
this on insert; ``Ranges.check_nesting`` verifies it after the fact.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from .exceptions import InvalidRangeError


class RangeKind(Enum):
    """Kind of structural field a byte range represents."""
    SPAN_END = "span_end"
    IDENTITY = "identity"
    FILE_HEADER = "file_header"
    PROGRAM_HEADER_ENTRY = "program_header_entry"
    NAMED_FIELD = "named_field"


# Labels accepted for NAMED_FIELD ranges
IDENTITY_FIELDS = ("magic", "class", "data", "ver", "abi", "abi_ver", "pad")
FILE_HEADER_FIELDS = (
    "e_type",
    "e_machine",
    "e_version",
    "e_entry",
    "e_phoff",
    "e_shoff",
    "e_flags",
    "e_ehsize",
    "e_phentsize",
    "e_phnum",
    "e_shentsize",
    "e_shnum",
    "e_shstrndx",
)
FIELD_LABELS = frozenset(IDENTITY_FIELDS + FILE_HEADER_FIELDS)


@dataclass(frozen=True)
class RangeType:
    """Tag attached to a registered byte range."""
    kind: RangeKind
    label: Optional[str] = None  # Only set for NAMED_FIELD

    def __post_init__(self):
        if self.kind is RangeKind.NAMED_FIELD:
            if self.label not in FIELD_LABELS:
                raise ValueError(f"Unknown field label: {self.label!r}")
        elif self.label is not None:
            raise ValueError(f"{self.kind.value} ranges take no label")

    @classmethod
    def field(cls, label: str) -> "RangeType":
        """Create a NAMED_FIELD range type for a known field label."""
        return cls(RangeKind.NAMED_FIELD, label)

    @property
    def is_end(self) -> bool:
        return self.kind is RangeKind.SPAN_END


SPAN_END = RangeType(RangeKind.SPAN_END)
IDENTITY = RangeType(RangeKind.IDENTITY)
FILE_HEADER = RangeType(RangeKind.FILE_HEADER)
PROGRAM_HEADER_ENTRY = RangeType(RangeKind.PROGRAM_HEADER_ENTRY)


@dataclass(frozen=True)
class RenderDescriptor:
    """How a renderer should present a range."""
    identifier: str
    secondary_class: Optional[str] = None
    highlight_by_default: bool = False

    def css_classes(self) -> str:
        """Space-separated classes, with ``hover`` for default highlights."""
        classes = []
        if self.secondary_class:
            classes.append(self.secondary_class)
        if self.highlight_by_default:
            classes.append("hover")
        return " ".join(classes)


# Static render tables; extend by adding entries
KIND_IDENTIFIERS = {
    RangeKind.SPAN_END: "",
    RangeKind.IDENTITY: "ident",
    RangeKind.FILE_HEADER: "ehdr",
    RangeKind.PROGRAM_HEADER_ENTRY: "phdr",
}

KIND_SECONDARY_CLASSES = {
    RangeKind.PROGRAM_HEADER_ENTRY: "phdr",
}

HIGHLIGHTED_KINDS = frozenset({RangeKind.PROGRAM_HEADER_ENTRY})

HIGHLIGHTED_FIELDS = frozenset({
    "magic",
    "ver",
    "abi_ver",
    "pad",
    "e_version",
    "e_flags",
    "e_ehsize",
    "e_shstrndx",
})


def describe(range_type: RangeType) -> RenderDescriptor:
    """Resolve the render descriptor for a range type."""
    if range_type.kind is RangeKind.NAMED_FIELD:
        return RenderDescriptor(
            identifier=range_type.label,
            highlight_by_default=range_type.label in HIGHLIGHTED_FIELDS,
        )
    return RenderDescriptor(
        identifier=KIND_IDENTIFIERS[range_type.kind],
        secondary_class=KIND_SECONDARY_CLASSES.get(range_type.kind),
        highlight_by_default=range_type.kind in HIGHLIGHTED_KINDS,
    )


Span = Tuple[int, int, RangeType]


class Ranges:
    """Per-offset collection of range begin and end markers."""

    def __init__(self, capacity: int):
        if capacity < 0:
            raise InvalidRangeError(f"Negative capacity: {capacity}")
        self._slots: List[List[RangeType]] = [[] for _ in range(capacity)]
        self._spans: List[Span] = []
        self._frozen = False

    def __len__(self) -> int:
        return len(self._slots)

    def add_range(self, start: int, length: int, range_type: RangeType) -> None:
        """
        Register ``length`` bytes starting at ``start`` as ``range_type``.

        Args:
            start: Offset of the first byte of the range.
            length: Number of bytes covered, at least 1.
            range_type: Tag for the range. SPAN_END is reserved.

        Raises:
            InvalidRangeError: If the range is empty, reaches outside the
                buffer, uses the reserved SPAN_END tag, or the store is frozen.
        """
        if self._frozen:
            raise InvalidRangeError("Ranges are frozen")
        if range_type.is_end:
            raise InvalidRangeError("SPAN_END cannot be registered as a range")
        if length < 1:
            raise InvalidRangeError(f"Range length must be positive: {length}")
        if start < 0 or start + length > len(self._slots):
            raise InvalidRangeError(
                f"Range 0x{start:x}+{length} outside buffer of "
                f"{len(self._slots)} bytes"
            )

        self._slots[start].append(range_type)
        self._slots[start + length - 1].append(SPAN_END)
        self._spans.append((start, length, range_type))

    def freeze(self) -> None:
        """Reject any further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup_range_ends(self, offset: int) -> int:
        """Count the ranges whose last byte is ``offset``."""
        return sum(1 for marker in self.markers(offset) if marker.is_end)

    def markers(self, offset: int) -> Tuple[RangeType, ...]:
        """Markers at ``offset`` in insertion order."""
        if not 0 <= offset < len(self._slots):
            raise InvalidRangeError(
                f"Offset 0x{offset:x} outside buffer of {len(self._slots)} bytes"
            )
        return tuple(self._slots[offset])

    def spans(self) -> Iterator[Span]:
        """Registered ``(start, length, range_type)`` in registration order."""
        return iter(self._spans)

    def __iter__(self) -> Iterator[Span]:
        return self.spans()

    def check_nesting(self) -> None:
        """
        Verify that every pair of ranges is nested or disjoint.

        Raises:
            InvalidRangeError: On the first pair of partially overlapping ranges.
        """
        ordered = sorted(self._spans, key=lambda span: (span[0], -span[1]))
        open_spans: List[Span] = []

        for span in ordered:
            start, length, _ = span
            while open_spans and open_spans[-1][0] + open_spans[-1][1] <= start:
                open_spans.pop()
            if open_spans:
                outer_start, outer_length, outer_type = open_spans[-1]
                if start + length > outer_start + outer_length:
                    raise InvalidRangeError(
                        f"Range 0x{start:x}+{length} ({span[2].kind.value}) "
                        f"partially overlaps 0x{outer_start:x}+{outer_length} "
                        f"({outer_type.kind.value})"
                    )
            open_spans.append(span)
