"""
Emulation core: bus, CPU, VM and the Apple-1 terminal chips.

Nothing in this package touches pygame; the platform layer drives it.
"""

from a1emu.core.bus import Bus
from a1emu.core.cpu_interface import Cpu
from a1emu.core.m6502 import M6502
from a1emu.core.mmio import MmioRegistry
from a1emu.core.peripheral import NullPeripheral, Peripheral
from a1emu.core.types import Flag, MemResult, MmioKind, Status
from a1emu.core.vm import VM

__all__ = [
    "Bus",
    "Cpu",
    "Flag",
    "M6502",
    "MemResult",
    "MmioKind",
    "MmioRegistry",
    "NullPeripheral",
    "Peripheral",
    "Status",
    "VM",
]
