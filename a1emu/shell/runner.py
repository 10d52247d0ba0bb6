"""
Run loop for a VM.

Steps the machine until it stops making progress, quits, hits an illegal
opcode or reaches a step limit.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from a1emu.core.instructions import INSTRUCTIONS
from a1emu.core.types import Status
from a1emu.core.vm import VM

logger = logging.getLogger(__name__)

_STOP_STATUSES = (Status.LOOP, Status.QUIT, Status.ILLEGAL_INSTRUCTION)


def run(
    vm: VM,
    max_steps: Optional[int] = None,
    trace: bool = False,
    trace_out: Optional[TextIO] = None,
) -> Status:
    """Step *vm* until it stops.

    Parameters
    ----------
    vm:
        A machine that has been reset.
    max_steps:
        Stop with ``Status.OK`` after this many steps.  ``None`` runs until
        another stop condition.
    trace:
        Print the register state after every step.
    trace_out:
        Trace destination; ``sys.stdout`` when omitted.

    Returns
    -------
    Status
        ``LOOP``, ``QUIT``, ``ILLEGAL_INSTRUCTION`` (a loop on an opcode the
        table marks illegal), or ``OK`` when the step limit was reached.
    """
    out = trace_out if trace_out is not None else sys.stdout
    steps = 0
    status = Status.OK

    while max_steps is None or steps < max_steps:
        status = vm.step()
        steps += 1
        if trace:
            vm.cpu.print_state(vm.step_count, file=out)
        if status in _STOP_STATUSES:
            break
    else:
        logger.info("Step limit %d reached", max_steps)

    if status == Status.LOOP and not INSTRUCTIONS[vm.bus.peek(vm.cpu.get_pc())].legal:
        # illegal opcodes have length 0, so the VM sees them as a loop
        status = Status.ILLEGAL_INSTRUCTION

    if status == Status.LOOP:
        logger.info("CPU looping at $%04X after %d steps", vm.cpu.get_pc(), vm.step_count)
    elif status == Status.ILLEGAL_INSTRUCTION:
        logger.warning("Illegal instruction at $%04X", vm.cpu.get_pc())
    elif status == Status.QUIT:
        logger.info("Quit requested after %d steps", vm.step_count)

    return status
