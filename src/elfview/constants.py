"""Magic numbers and constants for ELF header parsing."""

# Identity block (e_ident)
ELF_MAGIC = b"\x7fELF"
EI_NIDENT = 16  # Size of the identity block

# Identity block offsets
EI_MAG0 = 0
EI_CLASS = 4
EI_DATA = 5
EI_VERSION = 6
EI_OSABI = 7
EI_ABIVERSION = 8
EI_PAD = 9

# File class
ELFCLASS32 = 1
ELFCLASS64 = 2

# Data encoding
ELFDATA2LSB = 1  # Little endian
ELFDATA2MSB = 2  # Big endian

# Version
EV_CURRENT = 1

# OS/ABI identification
ELFOSABI_SYSV = 0

OSABI_NAMES = {
    0: "UNIX - System V",
    1: "HP-UX",
    2: "NetBSD",
    3: "Linux",
    4: "GNU Hurd",
    6: "Solaris",
    7: "AIX",
    8: "IRIX",
    9: "FreeBSD",
    10: "Tru64",
    11: "Novell Modesto",
    12: "OpenBSD",
    13: "OpenVMS",
    14: "NonStop Kernel",
    15: "AROS",
    16: "FenixOS",
    17: "Nuxi CloudABI",
    18: "Stratus OpenVOS",
    64: "ARM EABI",
    97: "ARM",
    255: "Standalone",
}

# File header sizes
ELF32_EHDR_SIZE = 52
ELF64_EHDR_SIZE = 64

# Program header entry sizes
ELF32_PHDR_SIZE = 32
ELF64_PHDR_SIZE = 56

# Object file types (e_type)
ET_NAMES = {
    0: "NONE (No file type)",
    1: "REL (Relocatable file)",
    2: "EXEC (Executable file)",
    3: "DYN (Shared object file)",
    4: "CORE (Core file)",
}

# Machine types (e_machine)
MACHINE_NAMES = {
    0: "None",
    2: "SPARC",
    3: "Intel 80386",
    8: "MIPS R3000",
    20: "PowerPC",
    21: "PowerPC64",
    22: "IBM S/390",
    40: "ARM",
    42: "SuperH",
    43: "SPARC v9",
    50: "Intel IA-64",
    62: "AMD x86-64",
    183: "AArch64",
    243: "RISC-V",
    247: "Linux BPF",
    258: "LoongArch",
}

# Segment types (p_type)
PT_NAMES = {
    0: "NULL",
    1: "LOAD",
    2: "DYNAMIC",
    3: "INTERP",
    4: "NOTE",
    5: "SHLIB",
    6: "PHDR",
    7: "TLS",
    0x6474E550: "GNU_EH_FRAME",
    0x6474E551: "GNU_STACK",
    0x6474E552: "GNU_RELRO",
    0x6474E553: "GNU_PROPERTY",
}

# Segment flags (p_flags)
PF_X = 0x1
PF_W = 0x2
PF_R = 0x4


def _lookup(table: dict, value: int) -> str:
    return table.get(value, f"Unknown ({value})")


def get_abi_name(abi: int) -> str:
    """Get human-readable OS/ABI name."""
    return _lookup(OSABI_NAMES, abi)


def get_type_name(e_type: int) -> str:
    """Get human-readable object file type."""
    return _lookup(ET_NAMES, e_type)


def get_machine_name(machine: int) -> str:
    """Get human-readable machine name."""
    return _lookup(MACHINE_NAMES, machine)


def get_segment_type_name(p_type: int) -> str:
    """Get human-readable segment type name."""
    if p_type in PT_NAMES:
        return PT_NAMES[p_type]
    return f"0x{p_type:08x}"


def format_segment_flags(p_flags: int) -> str:
    """Render segment flags as a fixed-width RWX string, "-" for unset bits."""
    return "".join(
        char if p_flags & bit else "-"
        for char, bit in (("R", PF_R), ("W", PF_W), ("X", PF_X))
    )
