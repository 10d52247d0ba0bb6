"""
The 6502 instruction table.

One immutable :class:`Instruction` descriptor per opcode.  Each descriptor
names the handler group that executes it (resolved to a bound method by the
CPU), its addressing mode, base cycle count and total length in bytes.
Opcodes the NMOS 6502 does not document map to the ``ILLEGAL`` descriptor
shape: handler ``"illegal"``, length 0.

Cycle counts are the base counts: no page-crossing penalties are charged.
BRK reports 6 cycles, the cost of the shared interrupt entry sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from a1emu.core.types import AddrMode

M = AddrMode


@dataclass(frozen=True)
class Instruction:
    """Static description of one opcode."""

    opcode: int
    mnemonic: str
    mode: AddrMode
    cycles: int
    handler: str
    length: int

    @property
    def legal(self) -> bool:
        return self.handler != "illegal"

    def __repr__(self) -> str:
        return (
            f"Instruction(${self.opcode:02X} {self.mnemonic} {self.mode.name} "
            f"len={self.length} cyc={self.cycles})"
        )


# opcode -> (mnemonic, mode, cycles, handler group)
# fmt: off
_OPCODES: Dict[int, Tuple[str, AddrMode, int, str]] = {
    # -- load / store ------------------------------------------------------
    0xA9: ("LDA", M.IMM, 2, "lda"), 0xA5: ("LDA", M.ZPG, 3, "lda"),
    0xB5: ("LDA", M.ZPX, 4, "lda"), 0xAD: ("LDA", M.ABS, 4, "lda"),
    0xBD: ("LDA", M.ABX, 4, "lda"), 0xB9: ("LDA", M.ABY, 4, "lda"),
    0xA1: ("LDA", M.IDX, 6, "lda"), 0xB1: ("LDA", M.IDY, 5, "lda"),

    0xA2: ("LDX", M.IMM, 2, "ldx"), 0xA6: ("LDX", M.ZPG, 3, "ldx"),
    0xB6: ("LDX", M.ZPY, 4, "ldx"), 0xAE: ("LDX", M.ABS, 4, "ldx"),
    0xBE: ("LDX", M.ABY, 4, "ldx"),

    0xA0: ("LDY", M.IMM, 2, "ldy"), 0xA4: ("LDY", M.ZPG, 3, "ldy"),
    0xB4: ("LDY", M.ZPX, 4, "ldy"), 0xAC: ("LDY", M.ABS, 4, "ldy"),
    0xBC: ("LDY", M.ABX, 4, "ldy"),

    0x85: ("STA", M.ZPG, 3, "sta"), 0x95: ("STA", M.ZPX, 4, "sta"),
    0x8D: ("STA", M.ABS, 4, "sta"), 0x9D: ("STA", M.ABX, 5, "sta"),
    0x99: ("STA", M.ABY, 5, "sta"), 0x81: ("STA", M.IDX, 6, "sta"),
    0x91: ("STA", M.IDY, 6, "sta"),

    0x86: ("STX", M.ZPG, 3, "stx"), 0x96: ("STX", M.ZPY, 4, "stx"),
    0x8E: ("STX", M.ABS, 4, "stx"),

    0x84: ("STY", M.ZPG, 3, "sty"), 0x94: ("STY", M.ZPX, 4, "sty"),
    0x8C: ("STY", M.ABS, 4, "sty"),

    # -- arithmetic --------------------------------------------------------
    0x69: ("ADC", M.IMM, 2, "adc"), 0x65: ("ADC", M.ZPG, 3, "adc"),
    0x75: ("ADC", M.ZPX, 4, "adc"), 0x6D: ("ADC", M.ABS, 4, "adc"),
    0x7D: ("ADC", M.ABX, 4, "adc"), 0x79: ("ADC", M.ABY, 4, "adc"),
    0x61: ("ADC", M.IDX, 6, "adc"), 0x71: ("ADC", M.IDY, 5, "adc"),

    0xE9: ("SBC", M.IMM, 2, "sbc"), 0xE5: ("SBC", M.ZPG, 3, "sbc"),
    0xF5: ("SBC", M.ZPX, 4, "sbc"), 0xED: ("SBC", M.ABS, 4, "sbc"),
    0xFD: ("SBC", M.ABX, 4, "sbc"), 0xF9: ("SBC", M.ABY, 4, "sbc"),
    0xE1: ("SBC", M.IDX, 6, "sbc"), 0xF1: ("SBC", M.IDY, 5, "sbc"),

    # -- logic -------------------------------------------------------------
    0x29: ("AND", M.IMM, 2, "and"), 0x25: ("AND", M.ZPG, 3, "and"),
    0x35: ("AND", M.ZPX, 4, "and"), 0x2D: ("AND", M.ABS, 4, "and"),
    0x3D: ("AND", M.ABX, 4, "and"), 0x39: ("AND", M.ABY, 4, "and"),
    0x21: ("AND", M.IDX, 6, "and"), 0x31: ("AND", M.IDY, 5, "and"),

    0x09: ("ORA", M.IMM, 2, "ora"), 0x05: ("ORA", M.ZPG, 3, "ora"),
    0x15: ("ORA", M.ZPX, 4, "ora"), 0x0D: ("ORA", M.ABS, 4, "ora"),
    0x1D: ("ORA", M.ABX, 4, "ora"), 0x19: ("ORA", M.ABY, 4, "ora"),
    0x01: ("ORA", M.IDX, 6, "ora"), 0x11: ("ORA", M.IDY, 5, "ora"),

    0x49: ("EOR", M.IMM, 2, "eor"), 0x45: ("EOR", M.ZPG, 3, "eor"),
    0x55: ("EOR", M.ZPX, 4, "eor"), 0x4D: ("EOR", M.ABS, 4, "eor"),
    0x5D: ("EOR", M.ABX, 4, "eor"), 0x59: ("EOR", M.ABY, 4, "eor"),
    0x41: ("EOR", M.IDX, 6, "eor"), 0x51: ("EOR", M.IDY, 5, "eor"),

    0x24: ("BIT", M.ZPG, 3, "bit"), 0x2C: ("BIT", M.ABS, 4, "bit"),

    # -- compare -----------------------------------------------------------
    0xC9: ("CMP", M.IMM, 2, "cmp"), 0xC5: ("CMP", M.ZPG, 3, "cmp"),
    0xD5: ("CMP", M.ZPX, 4, "cmp"), 0xCD: ("CMP", M.ABS, 4, "cmp"),
    0xDD: ("CMP", M.ABX, 4, "cmp"), 0xD9: ("CMP", M.ABY, 4, "cmp"),
    0xC1: ("CMP", M.IDX, 6, "cmp"), 0xD1: ("CMP", M.IDY, 5, "cmp"),

    0xE0: ("CPX", M.IMM, 2, "cpx"), 0xE4: ("CPX", M.ZPG, 3, "cpx"),
    0xEC: ("CPX", M.ABS, 4, "cpx"),

    0xC0: ("CPY", M.IMM, 2, "cpy"), 0xC4: ("CPY", M.ZPG, 3, "cpy"),
    0xCC: ("CPY", M.ABS, 4, "cpy"),

    # -- read-modify-write -------------------------------------------------
    0x0A: ("ASL", M.ACC, 2, "asl"), 0x06: ("ASL", M.ZPG, 5, "asl"),
    0x16: ("ASL", M.ZPX, 6, "asl"), 0x0E: ("ASL", M.ABS, 6, "asl"),
    0x1E: ("ASL", M.ABX, 7, "asl"),

    0x4A: ("LSR", M.ACC, 2, "lsr"), 0x46: ("LSR", M.ZPG, 5, "lsr"),
    0x56: ("LSR", M.ZPX, 6, "lsr"), 0x4E: ("LSR", M.ABS, 6, "lsr"),
    0x5E: ("LSR", M.ABX, 7, "lsr"),

    0x2A: ("ROL", M.ACC, 2, "rol"), 0x26: ("ROL", M.ZPG, 5, "rol"),
    0x36: ("ROL", M.ZPX, 6, "rol"), 0x2E: ("ROL", M.ABS, 6, "rol"),
    0x3E: ("ROL", M.ABX, 7, "rol"),

    0x6A: ("ROR", M.ACC, 2, "ror"), 0x66: ("ROR", M.ZPG, 5, "ror"),
    0x76: ("ROR", M.ZPX, 6, "ror"), 0x6E: ("ROR", M.ABS, 6, "ror"),
    0x7E: ("ROR", M.ABX, 7, "ror"),

    0xE6: ("INC", M.ZPG, 5, "inc"), 0xF6: ("INC", M.ZPX, 6, "inc"),
    0xEE: ("INC", M.ABS, 6, "inc"), 0xFE: ("INC", M.ABX, 7, "inc"),

    0xC6: ("DEC", M.ZPG, 5, "dec"), 0xD6: ("DEC", M.ZPX, 6, "dec"),
    0xCE: ("DEC", M.ABS, 6, "dec"), 0xDE: ("DEC", M.ABX, 7, "dec"),

    # -- register transfer / increment -------------------------------------
    0xAA: ("TAX", M.IMP, 2, "reg"), 0x8A: ("TXA", M.IMP, 2, "reg"),
    0xA8: ("TAY", M.IMP, 2, "reg"), 0x98: ("TYA", M.IMP, 2, "reg"),
    0xE8: ("INX", M.IMP, 2, "reg"), 0xCA: ("DEX", M.IMP, 2, "reg"),
    0xC8: ("INY", M.IMP, 2, "reg"), 0x88: ("DEY", M.IMP, 2, "reg"),

    # -- stack -------------------------------------------------------------
    0x9A: ("TXS", M.IMP, 2, "stk"), 0xBA: ("TSX", M.IMP, 2, "stk"),
    0x48: ("PHA", M.IMP, 3, "stk"), 0x68: ("PLA", M.IMP, 4, "stk"),
    0x08: ("PHP", M.IMP, 3, "stk"), 0x28: ("PLP", M.IMP, 4, "stk"),

    # -- flags -------------------------------------------------------------
    0x18: ("CLC", M.IMP, 2, "flg"), 0x38: ("SEC", M.IMP, 2, "flg"),
    0x58: ("CLI", M.IMP, 2, "flg"), 0x78: ("SEI", M.IMP, 2, "flg"),
    0xB8: ("CLV", M.IMP, 2, "flg"), 0xD8: ("CLD", M.IMP, 2, "flg"),
    0xF8: ("SED", M.IMP, 2, "flg"),

    # -- branches ----------------------------------------------------------
    0x10: ("BPL", M.REL, 2, "bra"), 0x30: ("BMI", M.REL, 2, "bra"),
    0x50: ("BVC", M.REL, 2, "bra"), 0x70: ("BVS", M.REL, 2, "bra"),
    0x90: ("BCC", M.REL, 2, "bra"), 0xB0: ("BCS", M.REL, 2, "bra"),
    0xD0: ("BNE", M.REL, 2, "bra"), 0xF0: ("BEQ", M.REL, 2, "bra"),

    # -- jumps / subroutines / interrupts ----------------------------------
    0x4C: ("JMP", M.ABS, 3, "jmp"), 0x6C: ("JMP", M.IND, 5, "jmp"),
    0x20: ("JSR", M.ABS, 6, "jsr"), 0x60: ("RTS", M.IMP, 6, "rts"),
    0x40: ("RTI", M.IMP, 6, "rti"), 0x00: ("BRK", M.IMP, 6, "brk"),

    0xEA: ("NOP", M.IMP, 2, "nop"),
}
# fmt: on


def _build_table() -> Tuple[Instruction, ...]:
    table: List[Instruction] = []
    for op in range(256):
        entry = _OPCODES.get(op)
        if entry is None:
            table.append(Instruction(op, "???", AddrMode.IMP, 0, "illegal", 0))
        else:
            mnemonic, mode, cycles, handler = entry
            table.append(Instruction(op, mnemonic, mode, cycles, handler, mode.length))
    return tuple(table)


INSTRUCTIONS: Tuple[Instruction, ...] = _build_table()


def validate_table(table: Tuple[Instruction, ...] = INSTRUCTIONS) -> List[str]:
    """Check the length invariants of *table*.

    Every implemented opcode must be 1 to 3 bytes long and every illegal
    opcode must have length 0.  Returns one message per violation; an empty
    list means the table is consistent.
    """
    problems: List[str] = []
    if len(table) != 256:
        problems.append(f"table has {len(table)} entries, expected 256")
    for ins in table:
        if ins.legal and not 1 <= ins.length <= 3:
            problems.append(f"Length(${ins.opcode:02X}) out of range: {ins.length}")
        elif not ins.legal and ins.length != 0:
            problems.append(
                f"Length(${ins.opcode:02X}) for unknown instruction: {ins.length}"
            )
    return problems


def count_instructions(table: Tuple[Instruction, ...] = INSTRUCTIONS) -> int:
    """Number of implemented opcodes in *table*."""
    return sum(1 for ins in table if ins.legal)
