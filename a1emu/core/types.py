"""
Core enumerations and constants for a1emu.

Status codes are shared by every layer that talks to the core: the bus, the
CPU capability interface, the VM orchestrator and the peripherals.  Their
numeric values are stable so they can be used as process exit diagnostics.
"""

from enum import IntEnum, IntFlag


class Status(IntEnum):
    OK = 1
    LOOP = 2
    JUMP = 3
    ILLEGAL_INSTRUCTION = -10
    ALLOCATION_FAILURE = -100
    OPEN_FAILURE = -101
    PLATFORM_FAILURE = -102
    INVALID_ARGUMENT = -103
    QUIT = -9999


class MemResult(IntEnum):
    """Value returned by an MMIO hook."""

    IGNORED = 0
    USED = 1
    INTERCEPTED = 2


class MmioKind(IntEnum):
    READ = 0
    WRITE = 1


class MapTag(IntEnum):
    """Which bank last supplied the composite view for an address."""

    RAM = 0
    ROM = 1


class Flag(IntFlag):
    """6502 processor status bits."""

    C = 0x01  # Carry
    Z = 0x02  # Zero
    I = 0x04  # Interrupt disable
    D = 0x08  # Decimal
    B = 0x10  # Break
    R = 0x20  # Reserved, always set
    V = 0x40  # Overflow
    N = 0x80  # Negative


class AddrMode(IntEnum):
    IMP = 0   # implied
    ACC = 1   # accumulator
    IMM = 2   # #$xx
    ZPG = 3   # $xx
    ZPX = 4   # $xx,X
    ZPY = 5   # $xx,Y
    ABS = 6   # $xxxx
    ABX = 7   # $xxxx,X
    ABY = 8   # $xxxx,Y
    IND = 9   # ($xxxx)
    IDX = 10  # ($xx,X)
    IDY = 11  # ($xx),Y
    REL = 12  # branch displacement

    @property
    def length(self) -> int:
        """Total instruction length in bytes, opcode included."""
        if self in (AddrMode.IMP, AddrMode.ACC):
            return 1
        if self in (AddrMode.ABS, AddrMode.ABX, AddrMode.ABY, AddrMode.IND):
            return 3
        return 2


# Bus geometry
ADDRESS_SPACE: int = 0x10000
STACK_BASE: int = 0x0100

# Interrupt vectors
NMI_VECTOR: int = 0xFFFA
RESET_VECTOR: int = 0xFFFC
IRQ_VECTOR: int = 0xFFFE
