"""
Apple-1 terminal peripherals.

Both variants own a :class:`~a1emu.core.pia6820.PIA6820` and a
:class:`~a1emu.core.screen.Screen`; they differ in where characters end up
and where keys come from.

* :class:`Apple1Terminal` -- pygame window and host keyboard.
* :class:`ConsoleTerminal` -- writes to a text stream; keys can be scripted.

Keyboard (window variant)
-------------------------

==========  ==========================================
Key         Action
==========  ==========================================
Escape      Quit
F1          Reset the PIA, the CPU and the screen
Shift+key   Shifted character (see ``shift_key``)
others      Sent to the PIA as typed
==========  ==========================================
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from typing import TYPE_CHECKING, Deque, Optional, TextIO

import pygame

from a1emu.core.input_queue import (
    Direction,
    HandlerKind,
    InputQueue,
    InputResult,
    KeyInput,
)
from a1emu.core.peripheral import Peripheral
from a1emu.core.pia6820 import PIA6820, shift_key
from a1emu.core.screen import CR, LF, Screen
from a1emu.core.types import Status
from a1emu.platform.input_handler import InputHandler
from a1emu.platform.window import TerminalWindow

if TYPE_CHECKING:
    from a1emu.core.vm import VM

logger = logging.getLogger(__name__)

# Steps between input polls and cursor-blink checks.
POLL_INTERVAL: int = 256


class _Terminal(Peripheral):
    """Shared PIA/screen wiring."""

    def __init__(self) -> None:
        self.pia: PIA6820 = PIA6820()
        self.screen: Screen = Screen()
        self.queue: InputQueue = InputQueue()
        self._vm: Optional[VM] = None

    def init(self, vm: VM) -> Status:
        self._vm = vm
        status = self.queue.register(self.on_key, HandlerKind.KEYBOARD)
        if status != Status.OK:
            return status
        status = self.pia.attach(vm.bus)
        if status != Status.OK:
            return status
        self.pia.reset()
        self.screen.clear()
        return Status.OK

    def reset(self) -> None:
        """Power-cycle the terminal side and reset the CPU."""
        self.pia.reset()
        if self._vm is not None:
            self._vm.reset()
        self.screen.clear()

    def on_key(self, event: KeyInput) -> InputResult:
        if event.type != Direction.DOWN:
            return InputResult.CONSUMED

        if event.key == pygame.K_ESCAPE:
            if self._vm is not None:
                self._vm.quit = True
        elif event.key == pygame.K_F1:
            self.reset()
        elif event.key <= 0xFF:
            key = event.key
            if event.mod & pygame.KMOD_SHIFT:
                key = shift_key(key)
            self.pia.key_pressed(key)
        return InputResult.CONSUMED

    def _output(self) -> Optional[int]:
        ch = self.pia.take_output()
        if ch is not None:
            self.screen.put_char(ch)
        return ch


class Apple1Terminal(_Terminal):
    """Windowed terminal.

    Parameters
    ----------
    charmap_path:
        Path of the 1 KB character ROM.
    scale:
        Window scale factor.
    """

    def __init__(self, charmap_path: str, scale: int = 2) -> None:
        super().__init__()
        self._charmap_path = charmap_path
        self.window: TerminalWindow = TerminalWindow(self.screen, scale)
        self.input: InputHandler = InputHandler(self.queue)
        self._dirty: bool = False
        self._countdown: int = 0

    def init(self, vm: VM) -> Status:
        status = self.window.open(self._charmap_path)
        if status != Status.OK:
            return status
        status = super().init(vm)
        if status != Status.OK:
            self.window.close()
        return status

    def step(self, vm: VM) -> None:
        if self._output() is not None:
            self._dirty = True

        self._countdown -= 1
        if self._countdown > 0:
            return
        self._countdown = POLL_INTERVAL

        self.input.poll()
        if self.input.quit_requested:
            vm.quit = True
        self.queue.dispatch()

        self.window.render(self._dirty)
        self._dirty = False

    def clean(self) -> None:
        self.window.close()


class ConsoleTerminal(_Terminal):
    """Headless terminal that prints to a text stream.

    Parameters
    ----------
    out:
        Stream receiving displayed characters.  ``sys.stdout`` when omitted.
    keys:
        Text typed into the keyboard, one character each time the previous
        one has been read by the CPU.  ``\\n`` is sent as carriage return.
    """

    def __init__(self, out: Optional[TextIO] = None, keys: str = "") -> None:
        super().__init__()
        self._out = out
        self._keys: Deque[str] = deque(keys)

    def type_text(self, text: str) -> None:
        self._keys.extend(text)

    @property
    def pending_keys(self) -> int:
        return len(self._keys)

    def _feed_key(self) -> None:
        # bit 7 of KBD CR stays set until the CPU reads the key
        if not self._keys or self.pia.kbd_cr & 0x80:
            return
        ch = self._keys.popleft()
        self.pia.key_pressed(CR if ch == "\n" else ord(ch))

    def step(self, vm: VM) -> None:
        self.queue.dispatch()
        self._feed_key()

        ch = self._output()
        if ch is None:
            return
        out = self._out if self._out is not None else sys.stdout
        ch &= 0x7F
        if ch in (CR, LF):
            out.write("\n")
        else:
            out.write(chr(ch & 0x5F if ch > 0x5F else ch))
        out.flush()

    def clean(self) -> None:
        self._keys.clear()
