"""
VM -- wires a bus, a CPU and a peripheral into a steppable machine.

The VM owns the MMIO registry, the bus built on top of it, the CPU
instance and the peripheral.  The caller owns the run loop and calls
:meth:`VM.step` until it reports something other than ``Status.OK``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from a1emu.core.bus import Bus
from a1emu.core.cpu_interface import Cpu
from a1emu.core.mmio import MmioRegistry
from a1emu.core.peripheral import NullPeripheral, Peripheral
from a1emu.core.types import Status

logger = logging.getLogger(__name__)

CpuFactory = Callable[[Bus], Cpu]


class VM:
    """A single emulated machine.

    Use :meth:`create` rather than the constructor; it performs the
    initialisation sequence and reports failures as a status.
    """

    def __init__(self, cpu_type: CpuFactory, peripheral: Optional[Peripheral] = None) -> None:
        self.mmio: MmioRegistry = MmioRegistry()
        self.bus: Bus = Bus(self.mmio)
        self.cpu: Cpu = cpu_type(self.bus)
        self.peripheral: Peripheral = peripheral if peripheral is not None else NullPeripheral()

        self.step_count: int = 0
        self.cycle_count: int = 0
        self.quit: bool = False

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def create(
        cpu_type: CpuFactory, peripheral: Optional[Peripheral] = None
    ) -> Tuple[Optional[VM], Status]:
        """Build a VM, zero its bus and initialise the peripheral.

        Parameters
        ----------
        cpu_type:
            Callable taking the bus and returning a :class:`Cpu`; usually
            the CPU class itself.
        peripheral:
            I/O side of the machine.  :class:`NullPeripheral` when omitted.

        Returns
        -------
        tuple
            ``(vm, Status.OK)`` on success, ``(None, status)`` otherwise.
        """
        vm = VM(cpu_type, peripheral)
        vm.bus.clear()

        status = vm.peripheral.init(vm)
        if status != Status.OK:
            logger.error("Peripheral %r failed to initialise: %s", vm.peripheral, status.name)
            vm.cpu.quit()
            return None, status

        logger.debug("Created %r", vm)
        return vm, Status.OK

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step(self) -> Status:
        """Execute one instruction and let the peripheral run.

        Returns ``OK``, ``LOOP`` whenever the instruction left PC where it
        was, or ``QUIT`` once the quit flag is set.  An illegal opcode has
        length 0, so it reports ``LOOP``; ``ILLEGAL_INSTRUCTION`` only comes
        through from a CPU that moves PC past one.
        """
        old_pc = self.cpu.get_pc()

        self.cpu.fetch()
        status, cycles = self.cpu.exec()

        self.peripheral.step(self)

        self.step_count += 1
        self.cycle_count += cycles

        if status in (Status.OK, Status.JUMP):
            status = Status.OK
        if self.cpu.get_pc() == old_pc:
            status = Status.LOOP

        if self.quit:
            status = Status.QUIT

        return status

    def reset(self) -> None:
        self.cpu.reset()

    def teardown(self) -> None:
        self.cpu.quit()
        self.peripheral.clean()

    def __repr__(self) -> str:
        return (
            f"VM(cpu={self.cpu!r}, peripheral={self.peripheral!r}, "
            f"steps={self.step_count}, cycles={self.cycle_count})"
        )
