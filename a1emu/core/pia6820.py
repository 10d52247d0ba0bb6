"""
PIA (6820) -- the Apple-1 keyboard/display interface.

Only the behaviour the Woz monitor and Integer BASIC rely on is modelled.
The chip is reached through four memory-mapped registers:

======  ===========  ====================================================
$D010   KBD          last key, bit 7 set while a key is waiting
$D011   KBD CR       bit 7 set when a key is waiting; cleared on KBD read
$D012   DSP          character to print; bit 7 set until the terminal
                     has taken it
$D013   DSP CR       bit 2 enables latching of DSP writes
======  ===========  ====================================================

The PIA hooks the bus through the VM's MMIO registry.  Reads of its
registers are intercepted; writes are recorded and then also land in RAM
(the hooks answer ``MemResult.USED``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from a1emu.core.types import MemResult, MmioKind, Status

if TYPE_CHECKING:
    from a1emu.core.bus import Bus

logger = logging.getLogger(__name__)

KBD_DATA: int = 0xD010
KBD_CR: int = 0xD011
DSP_DATA: int = 0xD012
DSP_CR: int = 0xD013

DSP_READY: int = 0x80
KEY_STROBE: int = 0x80

_KBD_CR_KEY_WAITING: int = 0xA7
_KBD_CR_IDLE: int = 0x27

BACKSPACE: int = 0x08
RUBOUT: int = 0x5F  # the Apple-1 shows '_' for a deleted character

NO_KEY: int = 0xFF

# Shifted keys of the host keyboard layout the terminal was modelled on.
_SHIFTED: Dict[str, str] = {
    "1": "!", "2": '"', "3": "?", "4": "$", "5": "%",
    "6": "&", "7": "/", "8": "(", "9": ")", "0": "=",
    ".": ":", ",": ";", "<": ">",
    "-": "_", "+": "*", "#": "'",
    "q": "@",
}


def shift_key(key: int) -> int:
    """Map an unshifted key code to its shifted character.

    Letters become upper case.  Returns :data:`NO_KEY` when the key has no
    shifted form.
    """
    ch = chr(key & 0xFF)
    if ch in _SHIFTED:
        return ord(_SHIFTED[ch])
    if "a" <= ch <= "z":
        return ord(ch.upper())
    return NO_KEY


class PIA6820:
    """Keyboard and display registers of the Apple-1 PIA."""

    def __init__(self) -> None:
        self.kbd_data: int = KEY_STROBE
        self.kbd_cr: int = 0
        self.dsp_data: int = 0
        self.dsp_cr: int = 0

    def reset(self) -> None:
        self.kbd_data = KEY_STROBE
        self.kbd_cr = 0
        self.dsp_data = 0
        self.dsp_cr = 0

    def attach(self, bus: Bus) -> Status:
        """Register the register hooks on *bus*."""
        status = bus.register_hook(MmioKind.WRITE, self.hook_write)
        if status != Status.OK:
            return status
        return bus.register_hook(MmioKind.READ, self.hook_read)

    # ------------------------------------------------------------------
    # MMIO hooks
    # ------------------------------------------------------------------

    def hook_read(self, addr: int) -> Tuple[MemResult, int]:
        if addr == KBD_DATA:
            self.kbd_cr = _KBD_CR_IDLE
            return MemResult.INTERCEPTED, self.kbd_data
        if addr == KBD_CR:
            return MemResult.INTERCEPTED, self.kbd_cr
        if addr == DSP_DATA:
            return MemResult.INTERCEPTED, self.dsp_data
        if addr == DSP_CR:
            return MemResult.INTERCEPTED, self.dsp_cr
        return MemResult.IGNORED, 0

    def hook_write(self, addr: int, value: int) -> MemResult:
        if addr == KBD_DATA:
            self.kbd_data = value
        elif addr == KBD_CR:
            self.kbd_cr = _KBD_CR_IDLE if self.kbd_cr == 0 else value
        elif addr == DSP_DATA:
            if self.dsp_cr & 0x04:
                self.dsp_data = value | DSP_READY
        elif addr == DSP_CR:
            self.dsp_cr = value
        else:
            return MemResult.IGNORED
        return MemResult.USED

    # ------------------------------------------------------------------
    # Terminal side
    # ------------------------------------------------------------------

    def key_pressed(self, key: int) -> bool:
        """Latch a key code for the CPU.

        Returns ``True`` if the key was latched; codes that do not map to the
        Apple-1's upper-case character set are dropped.
        """
        if key == BACKSPACE:
            key = RUBOUT
        c = key & 0x7F
        if 0x60 < c < 0x7B:
            c &= 0x5F
        if c >= 0x60:
            return False
        self.kbd_data = c | KEY_STROBE
        self.kbd_cr = _KBD_CR_KEY_WAITING
        return True

    def take_output(self) -> Optional[int]:
        """Return the pending display character, or ``None``.

        Clears the ready bit, so each character is handed out once.
        """
        if not self.dsp_data & DSP_READY:
            return None
        self.dsp_data &= 0x7F
        return self.dsp_data

    def __repr__(self) -> str:
        return (
            f"PIA6820(KBD=${self.kbd_data:02X} KBDCR=${self.kbd_cr:02X} "
            f"DSP=${self.dsp_data:02X} DSPCR=${self.dsp_cr:02X})"
        )
