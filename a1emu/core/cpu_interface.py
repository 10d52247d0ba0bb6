"""
CPU capability interface.

The VM orchestrator only ever talks to a CPU through this contract, so any
processor family can be plugged in by subclassing :class:`Cpu` and handing
the subclass to :meth:`a1emu.core.vm.VM.create`.  An instance *is* the
opaque CPU state; the VM owns it from construction until :meth:`Cpu.quit`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional, TextIO, Tuple

from a1emu.core.types import Status

if TYPE_CHECKING:
    from a1emu.core.bus import Bus


class Cpu(ABC):
    """Abstract CPU model bound to a :class:`~a1emu.core.bus.Bus`."""

    def __init__(self, bus: Bus) -> None:
        self.bus = bus

    @abstractmethod
    def quit(self) -> None:
        """Release the CPU state.  The instance must not be used afterwards."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Power-on reset: clear registers, load PC from the reset vector."""
        ...

    @abstractmethod
    def fetch(self) -> None:
        """Read the instruction at PC into the CPU's decode registers."""
        ...

    @abstractmethod
    def exec(self) -> Tuple[Status, int]:
        """Execute the fetched instruction.

        Returns:
            ``(status, cycles)`` where *status* is ``OK``, ``JUMP`` or
            ``ILLEGAL_INSTRUCTION``.
        """
        ...

    @abstractmethod
    def nmi(self) -> Tuple[Status, int]:
        ...

    @abstractmethod
    def irq(self) -> Tuple[Status, int]:
        ...

    @abstractmethod
    def get_pc(self) -> int:
        ...

    @abstractmethod
    def set_pc(self, pc: int) -> None:
        ...

    @abstractmethod
    def print_state(self, step: int, file: Optional[TextIO] = None) -> None:
        """Print a one-line register trace for *step*."""
        ...
