"""Custom exceptions for elfview."""


class ElfViewError(Exception):
    """Base exception for elfview errors."""
    pass


class FileOpenError(ElfViewError):
    """Failed to open or read file."""
    pass


class TooSmallError(ElfViewError):
    """File is smaller than the ELF identity block."""
    pass


class BadMagicError(ElfViewError):
    """File does not start with the ELF magic bytes."""
    pass


class UnknownClassError(ElfViewError):
    """Identity class byte is neither 32-bit nor 64-bit."""

    def __init__(self, value: int):
        super().__init__(f"Unknown bitness: {value}")
        self.value = value


class UnknownEndiannessError(ElfViewError):
    """Identity data byte is neither little nor big endian."""

    def __init__(self, value: int):
        super().__init__(f"Unknown endianness: {value}")
        self.value = value


class StructuralParseError(ElfViewError):
    """File header or program header table could not be parsed."""
    pass


class InvalidRangeError(ElfViewError):
    """Annotation range falls outside the buffer or is malformed."""
    pass
