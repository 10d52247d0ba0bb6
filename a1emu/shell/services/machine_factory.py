"""
Machine creation factory.

Builds a ready-to-run :class:`~a1emu.core.vm.VM` from ROM image lists or
a named preset.

Typical usage::

    vm = MachineFactory.create(preset="woz", rom_dir="rom")
    vm = MachineFactory.create(roms=[parse_rom_spec("test.bin@0000")], entry=0x400)
"""

from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from a1emu.core.m6502 import M6502
from a1emu.core.peripheral import Peripheral
from a1emu.core.types import ADDRESS_SPACE, Status
from a1emu.core.vm import VM

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ROM images
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RomSpec:
    """A ROM image to load at *addr*.

    *size* is the range mounted afterwards; ``None`` mounts the file's size.
    """

    path: str
    addr: int
    size: Optional[int] = None


@dataclass(frozen=True)
class Preset:
    roms: Tuple[RomSpec, ...]
    entry: Optional[int] = None


_WOZ = RomSpec("a1boot.bin", 0xFF00, 0x0100)

PRESETS: Dict[str, Preset] = {
    # Woz monitor only
    "woz": Preset((_WOZ,)),
    # "E000R" at the monitor prompt starts BASIC
    "basic": Preset((_WOZ, RomSpec("a1basic.bin", 0xE000, 0x1000))),
    # full 64 KB test image, entered directly
    "test": Preset((RomSpec("test.bin", 0x0000, 0x10000),), entry=0x0400),
}


def parse_address(text: str) -> int:
    """Parse a hexadecimal address such as ``E000``, ``$E000`` or ``0xE000``."""
    text = text.strip()
    if text.startswith("$"):
        text = text[1:]
    try:
        value = int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid address: {text!r}") from None
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"Address out of range: {text!r}")
    return value


def parse_rom_spec(text: str) -> RomSpec:
    """Parse ``PATH@ADDR[:SIZE]`` (hexadecimal numbers).

    Raises:
        ValueError: If the text is malformed.
    """
    path, sep, where = text.rpartition("@")
    if not sep or not path:
        raise ValueError(f"ROM argument must look like PATH@ADDR[:SIZE], got {text!r}")

    addr_text, _, size_text = where.partition(":")
    addr = parse_address(addr_text)
    size: Optional[int] = None
    if size_text:
        try:
            size = int(size_text, 16)
        except ValueError:
            raise ValueError(f"Invalid ROM size: {size_text!r}") from None
        if not 0 < size <= ADDRESS_SPACE:
            raise ValueError(f"ROM size out of range: {size_text!r}")
    return RomSpec(path, addr, size)


def load_and_mount(vm: VM, path: str, base: int, size: Optional[int] = None) -> Status:
    """Load the image at *path* into the ROM bank and mount it.

    When *size* is ``None`` the file's own size is mounted.
    """
    status = vm.bus.load_rom(base, path)
    if status != Status.OK:
        logger.error("Failed to load ROM %s", path)
        return status
    if size is None:
        size = os.path.getsize(path)
    vm.bus.mount_rom(base, size)
    return Status.OK


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class MachineFactory:
    """Factory for fully-wired Apple-1 style machines."""

    @staticmethod
    def create(
        roms: Sequence[RomSpec] = (),
        preset: Optional[str] = None,
        rom_dir: str = "rom",
        entry: Optional[int] = None,
        peripheral: Optional[Peripheral] = None,
        legacy_branch_timing: bool = False,
    ) -> VM:
        """Build a VM, load its ROMs and reset it.

        Parameters
        ----------
        roms:
            ROM images to load, in order.  Loaded after the preset's.
        preset:
            Name of an entry in :data:`PRESETS`; its files are looked up in
            *rom_dir*.
        rom_dir:
            Directory holding the preset ROM files.
        entry:
            Start address.  Overrides the preset's entry; when neither is
            given PC comes from the reset vector.
        peripheral:
            I/O side of the machine.
        legacy_branch_timing:
            Passed through to :class:`M6502`.

        Returns
        -------
        VM
            A machine that has been reset and is ready to step.

        Raises
        ------
        ValueError
            Unknown preset.
        RuntimeError
            The VM could not be created or a ROM failed to load.
        """
        specs = list(roms)
        if preset is not None:
            if preset not in PRESETS:
                raise ValueError(
                    f"Unknown preset {preset!r}; choose from {', '.join(PRESETS)}"
                )
            p = PRESETS[preset]
            specs = [
                RomSpec(os.path.join(rom_dir, s.path), s.addr, s.size) for s in p.roms
            ] + specs
            if entry is None:
                entry = p.entry

        cpu_type = functools.partial(M6502, legacy_branch_timing=legacy_branch_timing)
        vm, status = VM.create(cpu_type, peripheral)
        if vm is None:
            raise RuntimeError(f"Cannot create machine: {status.name}")

        for spec in specs:
            status = load_and_mount(vm, spec.path, spec.addr, spec.size)
            if status != Status.OK:
                vm.teardown()
                raise RuntimeError(f"Cannot load ROM {spec.path}: {status.name}")

        vm.reset()
        if entry is not None:
            vm.cpu.set_pc(entry)

        logger.info("Machine created: %r (PC=$%04X)", vm, vm.cpu.get_pc())
        return vm
