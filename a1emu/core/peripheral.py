"""
Peripheral abstraction.

A peripheral is the machine's I/O side: it registers MMIO hooks on the VM's
bus during :meth:`Peripheral.init`, runs once after every executed
instruction, and releases its resources in :meth:`Peripheral.clean`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from a1emu.core.types import Status

if TYPE_CHECKING:
    from a1emu.core.vm import VM


class Peripheral(ABC):
    """Abstract interface for everything attached to a VM besides the CPU."""

    @abstractmethod
    def init(self, vm: VM) -> Status:
        """Register hooks and handlers with *vm*.

        Returns:
            ``Status.OK`` or the failure that should abort VM creation.
        """
        ...

    @abstractmethod
    def step(self, vm: VM) -> None:
        """Called once per instruction, after execution.  May set ``vm.quit``."""
        ...

    @abstractmethod
    def clean(self) -> None:
        ...


class NullPeripheral(Peripheral):
    """A peripheral that does nothing.

    Each VM created without a peripheral gets its own, so the step loop
    never has to check for ``None``.
    """

    def init(self, vm: VM) -> Status:
        return Status.OK

    def step(self, vm: VM) -> None:
        pass

    def clean(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NullPeripheral()"
