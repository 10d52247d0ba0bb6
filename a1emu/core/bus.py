"""
The 64 KB system bus.

The bus keeps three parallel banks:

* ``rom`` -- images loaded with :meth:`Bus.load_rom`.
* ``ram`` -- everything the CPU has written.
* ``composite`` -- what the CPU actually sees when it reads.

:meth:`Bus.mount_rom` copies a range of ``rom`` into ``composite`` and tags
it ROM; :meth:`Bus.unmount_rom` copies the same range back from ``ram`` and
tags it RAM.  The tag only drives these re-snapshots.  Writes always land in
both ``ram`` and ``composite``, ROM-tagged addresses included, so software
can overwrite a mounted image in place.

Every access is first offered to the MMIO hooks of the owning VM's
:class:`~a1emu.core.mmio.MmioRegistry`.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from a1emu.core.mmio import MmioRegistry
from a1emu.core.types import ADDRESS_SPACE, MapTag, MmioKind, Status

logger = logging.getLogger(__name__)


class Bus:
    """Byte-addressable 64 KB address space with MMIO dispatch.

    Parameters
    ----------
    mmio:
        Hook registry consulted on every read and write.  A private empty
        registry is created when omitted.
    """

    SIZE: int = ADDRESS_SPACE

    def __init__(self, mmio: Optional[MmioRegistry] = None) -> None:
        self.mmio: MmioRegistry = mmio if mmio is not None else MmioRegistry()
        self.rom: bytearray = bytearray(self.SIZE)
        self.ram: bytearray = bytearray(self.SIZE)
        self.composite: bytearray = bytearray(self.SIZE)
        self.map: bytearray = bytearray(self.SIZE)  # MapTag per address

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Zero RAM and the composite view and tag everything RAM.

        The ROM bank is left alone so images loaded before a power cycle
        can be mounted again.
        """
        self.ram[:] = bytes(self.SIZE)
        self.composite[:] = bytes(self.SIZE)
        self.map[:] = bytes([MapTag.RAM]) * self.SIZE

    # ------------------------------------------------------------------
    # Byte and word access
    # ------------------------------------------------------------------

    def read_byte(self, addr: int) -> int:
        addr &= 0xFFFF
        intercepted, value = self.mmio.dispatch_read(addr)
        if intercepted:
            return value
        return self.composite[addr]

    def write_byte(self, addr: int, value: int) -> None:
        addr &= 0xFFFF
        value &= 0xFF
        if self.mmio.dispatch_write(addr, value):
            return
        self.ram[addr] = value
        self.composite[addr] = value

    def read_word(self, addr: int) -> int:
        """Little-endian word; the high byte wraps at 0xFFFF."""
        lo = self.read_byte(addr)
        hi = self.read_byte((addr + 1) & 0xFFFF)
        return lo | (hi << 8)

    def read_word_zp_wrap(self, addr: int) -> int:
        """Little-endian word whose high byte stays in the low byte's page.

        This is the NMOS behaviour of ``JMP ($xxFF)`` and of the zero-page
        indirect modes: the pointer at $12FF takes its high byte from
        $1200, not $1300.
        """
        addr &= 0xFFFF
        hi_addr = (addr & 0xFF00) + ((addr + 1) & 0xFF)
        return self.read_byte(addr) | (self.read_byte(hi_addr) << 8)

    def peek(self, addr: int) -> int:
        """Composite byte at *addr* without running the read hooks."""
        return self.composite[addr & 0xFFFF]

    def __getitem__(self, addr: int) -> int:
        return self.read_byte(addr)

    def __setitem__(self, addr: int, value: int) -> None:
        self.write_byte(addr, value)

    # ------------------------------------------------------------------
    # MMIO
    # ------------------------------------------------------------------

    def register_hook(self, kind: MmioKind, hook: Callable) -> Status:
        return self.mmio.register(kind, hook)

    # ------------------------------------------------------------------
    # ROM handling
    # ------------------------------------------------------------------

    def _clip(self, addr: int, size: int) -> int:
        addr &= 0xFFFF
        return addr + max(0, min(size, self.SIZE - addr))

    def mount_rom(self, addr: int, size: int) -> None:
        """Show the ROM bank in ``[addr, addr + size)``."""
        start = addr & 0xFFFF
        end = self._clip(addr, size)
        self.composite[start:end] = self.rom[start:end]
        self.map[start:end] = bytes([MapTag.ROM]) * (end - start)

    def unmount_rom(self, addr: int, size: int) -> None:
        """Show the RAM bank again in ``[addr, addr + size)``."""
        start = addr & 0xFFFF
        end = self._clip(addr, size)
        self.composite[start:end] = self.ram[start:end]
        self.map[start:end] = bytes([MapTag.RAM]) * (end - start)

    def load_rom(self, addr: int, path: str) -> Status:
        """Copy the raw image at *path* into the ROM bank at *addr*.

        Returns:
            ``Status.OK``, or ``Status.OPEN_FAILURE`` when the file cannot be
            opened or does not fit in the bank from *addr* upwards.
        """
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            logger.warning("Cannot open ROM %s: %s", path, exc)
            return Status.OPEN_FAILURE

        start = addr & 0xFFFF
        if start + len(data) > self.SIZE:
            logger.warning(
                "ROM %s (%d bytes) does not fit at $%04X", path, len(data), start
            )
            return Status.OPEN_FAILURE

        self.rom[start:start + len(data)] = data
        logger.info("Loaded ROM %s: %d bytes at $%04X", path, len(data), start)
        return Status.OK

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def dump(self, ram_path: str = "ram.bin", mem_path: str = "mem.bin") -> Status:
        """Write the RAM bank and the composite view to two files."""
        try:
            with open(ram_path, "wb") as fh:
                fh.write(self.ram)
            with open(mem_path, "wb") as fh:
                fh.write(self.composite)
        except OSError as exc:
            logger.warning("Memory dump failed: %s", exc)
            return Status.OPEN_FAILURE
        return Status.OK

    def __repr__(self) -> str:
        return f"Bus(size={self.SIZE}, hooks={len(self.mmio)})"
