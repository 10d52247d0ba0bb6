"""
MOS 6502 CPU core.

Implements every documented NMOS opcode against the
:class:`~a1emu.core.cpu_interface.Cpu` contract.  Execution is split into
:meth:`M6502.fetch` (opcode into IR, operand into ARG) and
:meth:`M6502.exec` (dispatch through the descriptor table).  PC is *not*
advanced during fetch: handlers see PC pointing at the opcode, and exec
adds the instruction length afterwards unless the handler reported
``Status.JUMP``.

Behaviours kept on purpose:

* ``JMP ($xxFF)`` and the zero-page indirect modes take the pointer's high
  byte from the same page (see :meth:`Bus.read_word_zp_wrap`).
* The stack pointer wraps freely inside page one.
* Decimal-mode ADC/SBC convert packed BCD to integers, set carry on
  overflow/borrow and leave V untouched.
* BRK pushes PC+2 and sets B in the live status register; IRQ and NMI
  push PC as-is and do not force B.
* A taken branch costs one extra cycle.  Pass
  ``legacy_branch_timing=True`` for the older counts, which charge the
  base 2 cycles whether or not the branch is taken.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, TextIO, Tuple, Union

from a1emu.core.cpu_interface import Cpu
from a1emu.core.instructions import INSTRUCTIONS, Instruction
from a1emu.core.types import (
    IRQ_VECTOR,
    NMI_VECTOR,
    RESET_VECTOR,
    STACK_BASE,
    AddrMode,
    Flag,
    Status,
)

if TYPE_CHECKING:
    from a1emu.core.bus import Bus

logger = logging.getLogger(__name__)

Result = Tuple[Status, int]


# ---------------------------------------------------------------------------
# Read-modify-write targets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Accumulator:
    """RMW target: the A register."""


@dataclass(frozen=True)
class BusAddress:
    """RMW target: a byte on the bus."""

    addr: int


Location = Union[Accumulator, BusAddress]

ACCUMULATOR = Accumulator()


# flag tested, value that takes the branch
_BRANCH_CONDITIONS: Dict[str, Tuple[Flag, bool]] = {
    "BPL": (Flag.N, False),
    "BMI": (Flag.N, True),
    "BVC": (Flag.V, False),
    "BVS": (Flag.V, True),
    "BCC": (Flag.C, False),
    "BCS": (Flag.C, True),
    "BNE": (Flag.Z, False),
    "BEQ": (Flag.Z, True),
}

_FLAG_OPS: Dict[str, Tuple[Flag, bool]] = {
    "CLC": (Flag.C, False),
    "SEC": (Flag.C, True),
    "CLI": (Flag.I, False),
    "SEI": (Flag.I, True),
    "CLV": (Flag.V, False),
    "CLD": (Flag.D, False),
    "SED": (Flag.D, True),
}


class M6502(Cpu):
    """NMOS 6502 CPU.

    Parameters
    ----------
    bus:
        The system bus.  All memory and stack traffic goes through it, so
        MMIO hooks see every access.
    legacy_branch_timing:
        When ``True`` a taken branch costs 2 cycles, the same as one not
        taken; otherwise it costs 3.
    """

    def __init__(self, bus: Bus, legacy_branch_timing: bool = False) -> None:
        super().__init__(bus)
        self.legacy_branch_timing: bool = legacy_branch_timing

        # Registers
        self.a: int = 0x00
        self.x: int = 0x00
        self.y: int = 0x00
        self.sp: int = 0xFF
        self.pc: int = 0x0000
        self.p: int = int(Flag.R)

        # Decode registers
        self.ir: int = 0x00
        self.arg: int = 0x0000

        self._dispatch: List[Callable[[Instruction], Result]] = [
            getattr(self, f"_op_{ins.handler}") for ins in INSTRUCTIONS
        ]

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    def get_flag(self, flag: Flag) -> bool:
        return bool(self.p & flag)

    def set_flag(self, flag: Flag, on: bool) -> None:
        mask = int(flag)
        if on:
            self.p |= mask
        else:
            self.p &= ~mask & 0xFF

    @property
    def fC(self) -> bool:
        return self.get_flag(Flag.C)

    @fC.setter
    def fC(self, value: bool) -> None:
        self.set_flag(Flag.C, value)

    @property
    def fZ(self) -> bool:
        return self.get_flag(Flag.Z)

    @fZ.setter
    def fZ(self, value: bool) -> None:
        self.set_flag(Flag.Z, value)

    @property
    def fI(self) -> bool:
        return self.get_flag(Flag.I)

    @fI.setter
    def fI(self, value: bool) -> None:
        self.set_flag(Flag.I, value)

    @property
    def fD(self) -> bool:
        return self.get_flag(Flag.D)

    @fD.setter
    def fD(self, value: bool) -> None:
        self.set_flag(Flag.D, value)

    @property
    def fB(self) -> bool:
        return self.get_flag(Flag.B)

    @fB.setter
    def fB(self, value: bool) -> None:
        self.set_flag(Flag.B, value)

    @property
    def fV(self) -> bool:
        return self.get_flag(Flag.V)

    @fV.setter
    def fV(self, value: bool) -> None:
        self.set_flag(Flag.V, value)

    @property
    def fN(self) -> bool:
        return self.get_flag(Flag.N)

    @fN.setter
    def fN(self, value: bool) -> None:
        self.set_flag(Flag.N, value)

    def flip_flags(self, val: int) -> None:
        """Set N and Z from an 8-bit value."""
        self.fN = bool(val & 0x80)
        self.fZ = (val & 0xFF) == 0

    def cmp_flags(self, reg: int, target: int) -> None:
        self.fN = bool((reg - target) & 0x80)
        self.fC = reg >= target
        self.fZ = reg == target

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------

    def push(self, val: int) -> None:
        self.bus.write_byte(STACK_BASE + self.sp, val & 0xFF)
        self.sp = (self.sp - 1) & 0xFF

    def pull(self) -> int:
        self.sp = (self.sp + 1) & 0xFF
        return self.bus.read_byte(STACK_BASE + self.sp)

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def address(self, mode: AddrMode) -> int:
        """Effective address of the current operand for *mode*."""
        arg = self.arg
        bus = self.bus
        if mode == AddrMode.ZPG:
            return arg & 0xFF
        if mode == AddrMode.ZPX:
            return (arg + self.x) & 0xFF
        if mode == AddrMode.ZPY:
            return (arg + self.y) & 0xFF
        if mode == AddrMode.ABS:
            return arg
        if mode == AddrMode.ABX:
            return (arg + self.x) & 0xFFFF
        if mode == AddrMode.ABY:
            return (arg + self.y) & 0xFFFF
        if mode == AddrMode.IND:
            return bus.read_word_zp_wrap(arg)
        if mode == AddrMode.IDX:
            return bus.read_word_zp_wrap((arg + self.x) & 0xFF)
        if mode == AddrMode.IDY:
            return (bus.read_word_zp_wrap(arg & 0xFF) + self.y) & 0xFFFF
        raise ValueError(f"{mode.name} has no effective address")

    def operand(self, mode: AddrMode) -> int:
        if mode == AddrMode.IMM:
            return self.arg & 0xFF
        return self.bus.read_byte(self.address(mode))

    def resolve(self, mode: AddrMode) -> Location:
        if mode == AddrMode.ACC:
            return ACCUMULATOR
        return BusAddress(self.address(mode))

    def load(self, loc: Location) -> int:
        if isinstance(loc, BusAddress):
            return self.bus.read_byte(loc.addr)
        return self.a

    def store(self, loc: Location, val: int) -> None:
        if isinstance(loc, BusAddress):
            self.bus.write_byte(loc.addr, val & 0xFF)
        else:
            self.a = val & 0xFF

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def adc_binary(self, b: int) -> None:
        s = self.a + b + (1 if self.fC else 0)
        sum8 = s & 0xFF
        self.fV = bool((self.a ^ sum8) & (b ^ sum8) & 0x80)
        self.fC = s > 0xFF
        self.a = sum8

    def sbc_binary(self, b: int) -> None:
        s = self.a - b - (0 if self.fC else 1)
        sum8 = s & 0xFF
        self.fV = bool((self.a ^ sum8) & (~b ^ sum8) & 0x80)
        self.fC = s >= 0
        self.a = sum8

    @staticmethod
    def _bcd_to_int(val: int) -> int:
        return (val >> 4) * 10 + (val & 0x0F)

    @staticmethod
    def _int_to_bcd(val: int) -> int:
        return ((((val % 100) // 10) << 4) | (val % 10)) & 0xFF

    def adc_decimal(self, b: int) -> None:
        r = self._bcd_to_int(self.a) + self._bcd_to_int(b) + (1 if self.fC else 0)
        self.fC = r > 99
        self.a = self._int_to_bcd(r)

    def sbc_decimal(self, b: int) -> None:
        r = self._bcd_to_int(self.a) - self._bcd_to_int(b) - (0 if self.fC else 1)
        if r < 0:
            self.fC = False
            r += 100
        else:
            self.fC = True
        self.a = self._int_to_bcd(r)

    # ------------------------------------------------------------------
    # Interrupts
    # ------------------------------------------------------------------

    def _interrupt(self, vector: int, skip: int = 0) -> Result:
        self.pc = (self.pc + skip) & 0xFFFF
        self.push((self.pc >> 8) & 0xFF)
        self.push(self.pc & 0xFF)
        self.push(self.p)
        self.fI = True
        self.pc = self.bus.read_word(vector)
        return Status.JUMP, 6

    # ------------------------------------------------------------------
    # Opcode handlers -- each returns (status, cycles)
    # ------------------------------------------------------------------

    def _op_lda(self, ins: Instruction) -> Result:
        self.a = self.operand(ins.mode)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_ldx(self, ins: Instruction) -> Result:
        self.x = self.operand(ins.mode)
        self.flip_flags(self.x)
        return Status.OK, ins.cycles

    def _op_ldy(self, ins: Instruction) -> Result:
        self.y = self.operand(ins.mode)
        self.flip_flags(self.y)
        return Status.OK, ins.cycles

    def _op_sta(self, ins: Instruction) -> Result:
        self.bus.write_byte(self.address(ins.mode), self.a)
        return Status.OK, ins.cycles

    def _op_stx(self, ins: Instruction) -> Result:
        self.bus.write_byte(self.address(ins.mode), self.x)
        return Status.OK, ins.cycles

    def _op_sty(self, ins: Instruction) -> Result:
        self.bus.write_byte(self.address(ins.mode), self.y)
        return Status.OK, ins.cycles

    def _op_adc(self, ins: Instruction) -> Result:
        val = self.operand(ins.mode)
        if self.fD:
            self.adc_decimal(val)
        else:
            self.adc_binary(val)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_sbc(self, ins: Instruction) -> Result:
        val = self.operand(ins.mode)
        if self.fD:
            self.sbc_decimal(val)
        else:
            self.sbc_binary(val)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_and(self, ins: Instruction) -> Result:
        self.a &= self.operand(ins.mode)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_ora(self, ins: Instruction) -> Result:
        self.a |= self.operand(ins.mode)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_eor(self, ins: Instruction) -> Result:
        self.a ^= self.operand(ins.mode)
        self.flip_flags(self.a)
        return Status.OK, ins.cycles

    def _op_bit(self, ins: Instruction) -> Result:
        pattern = self.operand(ins.mode)
        self.fN = bool(pattern & 0x80)
        self.fV = bool(pattern & 0x40)
        self.fZ = (pattern & self.a) == 0
        return Status.OK, ins.cycles

    def _op_cmp(self, ins: Instruction) -> Result:
        self.cmp_flags(self.a, self.operand(ins.mode))
        return Status.OK, ins.cycles

    def _op_cpx(self, ins: Instruction) -> Result:
        self.cmp_flags(self.x, self.operand(ins.mode))
        return Status.OK, ins.cycles

    def _op_cpy(self, ins: Instruction) -> Result:
        self.cmp_flags(self.y, self.operand(ins.mode))
        return Status.OK, ins.cycles

    # -- read-modify-write ---------------------------------------------

    def _op_asl(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = self.load(loc)
        self.fC = bool(val & 0x80)
        val = (val << 1) & 0xFF
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    def _op_lsr(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = self.load(loc)
        self.fC = bool(val & 0x01)
        val >>= 1
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    def _op_rol(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = self.load(loc)
        carry_in = 1 if self.fC else 0
        self.fC = bool(val & 0x80)
        val = ((val << 1) | carry_in) & 0xFF
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    def _op_ror(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = self.load(loc)
        carry_in = 0x80 if self.fC else 0
        self.fC = bool(val & 0x01)
        val = (val >> 1) | carry_in
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    def _op_inc(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = (self.load(loc) + 1) & 0xFF
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    def _op_dec(self, ins: Instruction) -> Result:
        loc = self.resolve(ins.mode)
        val = (self.load(loc) - 1) & 0xFF
        self.store(loc, val)
        self.flip_flags(val)
        return Status.OK, ins.cycles

    # -- implied groups -------------------------------------------------

    def _op_reg(self, ins: Instruction) -> Result:
        m = ins.mnemonic
        if m == "TAX":
            self.x = self.a
        elif m == "TXA":
            self.a = self.x
        elif m == "TAY":
            self.y = self.a
        elif m == "TYA":
            self.a = self.y
        elif m == "INX":
            self.x = (self.x + 1) & 0xFF
        elif m == "DEX":
            self.x = (self.x - 1) & 0xFF
        elif m == "INY":
            self.y = (self.y + 1) & 0xFF
        elif m == "DEY":
            self.y = (self.y - 1) & 0xFF
        else:
            return Status.ILLEGAL_INSTRUCTION, 0
        # last letter names the destination register
        self.flip_flags(getattr(self, m[2].lower()))
        return Status.OK, ins.cycles

    def _op_stk(self, ins: Instruction) -> Result:
        m = ins.mnemonic
        if m == "TXS":
            self.sp = self.x
        elif m == "TSX":
            self.x = self.sp
            self.flip_flags(self.x)
        elif m == "PHA":
            self.push(self.a)
        elif m == "PLA":
            self.a = self.pull()
            self.flip_flags(self.a)
        elif m == "PHP":
            self.push(int(self.p | Flag.B))
        elif m == "PLP":
            self.p = int(self.pull() | Flag.R)
        else:
            return Status.ILLEGAL_INSTRUCTION, 0
        return Status.OK, ins.cycles

    def _op_flg(self, ins: Instruction) -> Result:
        flag, on = _FLAG_OPS[ins.mnemonic]
        self.set_flag(flag, on)
        return Status.OK, ins.cycles

    def _op_nop(self, ins: Instruction) -> Result:
        return Status.OK, ins.cycles

    # -- control flow ---------------------------------------------------

    def _op_bra(self, ins: Instruction) -> Result:
        flag, expected = _BRANCH_CONDITIONS[ins.mnemonic]
        if self.get_flag(flag) != expected:
            return Status.OK, ins.cycles
        distance = self.arg & 0xFF
        if distance & 0x80:
            distance -= 0x100
        self.pc = (self.pc + distance + 2) & 0xFFFF
        cycles = ins.cycles if self.legacy_branch_timing else ins.cycles + 1
        return Status.JUMP, cycles

    def _op_jmp(self, ins: Instruction) -> Result:
        if ins.mode == AddrMode.IND:
            self.pc = self.bus.read_word_zp_wrap(self.arg)
        else:
            self.pc = self.arg
        return Status.JUMP, ins.cycles

    def _op_jsr(self, ins: Instruction) -> Result:
        ret = (self.pc + 2) & 0xFFFF
        self.push((ret >> 8) & 0xFF)
        self.push(ret & 0xFF)
        self.pc = self.arg
        return Status.JUMP, ins.cycles

    def _op_rts(self, ins: Instruction) -> Result:
        lo = self.pull()
        hi = self.pull()
        self.pc = ((hi << 8 | lo) + 1) & 0xFFFF
        return Status.JUMP, ins.cycles

    def _op_rti(self, ins: Instruction) -> Result:
        self.p = int(self.pull() | Flag.R)
        lo = self.pull()
        hi = self.pull()
        self.pc = hi << 8 | lo
        return Status.JUMP, ins.cycles

    def _op_brk(self, ins: Instruction) -> Result:
        # B stays set in P afterwards; later pushes and traces show it
        self.fB = True
        return self._interrupt(IRQ_VECTOR, skip=2)

    def _op_illegal(self, ins: Instruction) -> Result:
        logger.debug("Illegal opcode $%02X at $%04X", ins.opcode, self.pc)
        return Status.ILLEGAL_INSTRUCTION, 0

    # ------------------------------------------------------------------
    # Cpu interface
    # ------------------------------------------------------------------

    def quit(self) -> None:
        self._dispatch = []

    def reset(self) -> None:
        self.a = 0
        self.x = 0
        self.y = 0
        self.sp = 0xFF
        self.p = int(Flag.R)
        self.pc = self.bus.read_word(RESET_VECTOR)

    def fetch(self) -> None:
        bus = self.bus
        self.ir = bus.read_byte(self.pc)
        length = INSTRUCTIONS[self.ir].length
        if length == 2:
            self.arg = bus.read_byte((self.pc + 1) & 0xFFFF)
        elif length == 3:
            self.arg = (
                bus.read_byte((self.pc + 1) & 0xFFFF)
                | bus.read_byte((self.pc + 2) & 0xFFFF) << 8
            )
        else:
            self.arg = 0

    def exec(self) -> Result:
        ins = INSTRUCTIONS[self.ir]
        status, cycles = self._dispatch[self.ir](ins)
        if status != Status.JUMP:
            self.pc = (self.pc + ins.length) & 0xFFFF
        return status, cycles

    def nmi(self) -> Result:
        return self._interrupt(NMI_VECTOR)

    def irq(self) -> Result:
        return self._interrupt(IRQ_VECTOR)

    def get_pc(self) -> int:
        return self.pc

    def set_pc(self, pc: int) -> None:
        self.pc = pc & 0xFFFF

    def format_state(self, step: int) -> str:
        flags = "".join(
            sym if self.p & flag else "-"
            for flag, sym in (
                (Flag.N, "N"), (Flag.V, "V"), (Flag.R, "R"), (Flag.B, "B"),
                (Flag.D, "D"), (Flag.I, "I"), (Flag.Z, "Z"), (Flag.C, "C"),
            )
        )
        return (
            f"ST: {step:8d} PC: {self.pc:04x} I: {self.bus.peek(self.pc):02x} "
            f"A: {self.a:02x} X: {self.x:02x} Y: {self.y:02x} "
            f"SP: 01{self.sp:02x} [{flags}]"
        )

    def print_state(self, step: int, file: Optional[TextIO] = None) -> None:
        print(self.format_state(step), file=file if file is not None else sys.stdout)

    def __repr__(self) -> str:
        return (
            f"M6502(PC=${self.pc:04X} A=${self.a:02X} "
            f"X=${self.x:02X} Y=${self.y:02X} "
            f"SP=${self.sp:02X} P=${self.p:02X})"
        )
