"""Opcode decoding.

``decode`` splits a 16-bit word into its addressing fields. ``identify``
turns those fields into an :class:`Instruction` member, which is what the
executor dispatches on.
"""
from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from .errors import MalformedOpcode


class Opcode(NamedTuple):
    word: int
    op: int   # first nibble
    x: int    # second nibble
    y: int    # third nibble
    n: int    # last nibble
    nn: int   # low byte
    nnn: int  # low 12 bits


def decode(word: int) -> Opcode:
    return Opcode(
        word=word,
        op=(word & 0xF000) >> 12,
        x=(word & 0x0F00) >> 8,
        y=(word & 0x00F0) >> 4,
        n=word & 0x000F,
        nn=word & 0x00FF,
        nnn=word & 0x0FFF,
    )


class Instruction(Enum):
    """Every instruction the executor knows, with its assembler mnemonic."""

    CLS = "CLS"
    RET = "RET"
    SYS = "SYS 0x{nnn:03X}"
    JP = "JP 0x{nnn:03X}"
    CALL = "CALL 0x{nnn:03X}"
    SE_BYTE = "SE V{x:X}, 0x{nn:02X}"
    SNE_BYTE = "SNE V{x:X}, 0x{nn:02X}"
    SE_REG = "SE V{x:X}, V{y:X}"
    LD_BYTE = "LD V{x:X}, 0x{nn:02X}"
    ADD_BYTE = "ADD V{x:X}, 0x{nn:02X}"
    LD_REG = "LD V{x:X}, V{y:X}"
    OR = "OR V{x:X}, V{y:X}"
    AND = "AND V{x:X}, V{y:X}"
    XOR = "XOR V{x:X}, V{y:X}"
    ADD_REG = "ADD V{x:X}, V{y:X}"
    SUB = "SUB V{x:X}, V{y:X}"
    SHR = "SHR V{x:X}"
    SUBN = "SUBN V{x:X}, V{y:X}"
    SHL = "SHL V{x:X}"
    SNE_REG = "SNE V{x:X}, V{y:X}"
    LD_I = "LD I, 0x{nnn:03X}"
    JP_V0 = "JP V0, 0x{nnn:03X}"
    RND = "RND V{x:X}, 0x{nn:02X}"
    DRW = "DRW V{x:X}, V{y:X}, {n}"
    SKP = "SKP V{x:X}"
    SKNP = "SKNP V{x:X}"
    LD_VX_DT = "LD V{x:X}, DT"
    LD_VX_K = "LD V{x:X}, K"
    LD_DT_VX = "LD DT, V{x:X}"
    LD_ST_VX = "LD ST, V{x:X}"
    ADD_I = "ADD I, V{x:X}"
    LD_F = "LD F, V{x:X}"
    LD_B = "LD B, V{x:X}"
    LD_MEM_VX = "LD [I], V{x:X}"
    LD_VX_MEM = "LD V{x:X}, [I]"
    UNKNOWN = "DW 0x{word:04X}"

    def mnemonic(self, opcode: Opcode) -> str:
        return self.value.format(**opcode._asdict())


# single-opcode families keyed on the first nibble
_BY_OP = {
    0x1: Instruction.JP,
    0x2: Instruction.CALL,
    0x3: Instruction.SE_BYTE,
    0x4: Instruction.SNE_BYTE,
    0x6: Instruction.LD_BYTE,
    0x7: Instruction.ADD_BYTE,
    0xA: Instruction.LD_I,
    0xB: Instruction.JP_V0,
    0xC: Instruction.RND,
    0xD: Instruction.DRW,
}

# 8xyN, keyed on the last nibble
_ALU = {
    0x0: Instruction.LD_REG,
    0x1: Instruction.OR,
    0x2: Instruction.AND,
    0x3: Instruction.XOR,
    0x4: Instruction.ADD_REG,
    0x5: Instruction.SUB,
    0x6: Instruction.SHR,
    0x7: Instruction.SUBN,
    0xE: Instruction.SHL,
}

# ExNN and FxNN, keyed on (first nibble, low byte)
_BY_LOW_BYTE = {
    (0xE, 0x9E): Instruction.SKP,
    (0xE, 0xA1): Instruction.SKNP,
    (0xF, 0x07): Instruction.LD_VX_DT,
    (0xF, 0x0A): Instruction.LD_VX_K,
    (0xF, 0x15): Instruction.LD_DT_VX,
    (0xF, 0x18): Instruction.LD_ST_VX,
    (0xF, 0x1E): Instruction.ADD_I,
    (0xF, 0x29): Instruction.LD_F,
    (0xF, 0x33): Instruction.LD_B,
    (0xF, 0x55): Instruction.LD_MEM_VX,
    (0xF, 0x65): Instruction.LD_VX_MEM,
}


def identify(opcode: Opcode, address: int = 0) -> Instruction:
    """Classify a decoded opcode.

    Unrecognized words map to ``Instruction.UNKNOWN``. A 5xy0 word with a
    non-zero trailing nibble raises MalformedOpcode; ``address`` is only used
    for the error message.
    """
    op = opcode.op
    if op == 0x0:
        if opcode.word == 0x00E0:
            return Instruction.CLS
        if opcode.word == 0x00EE:
            return Instruction.RET
        return Instruction.SYS
    if op in _BY_OP:
        return _BY_OP[op]
    if op == 0x5:
        if opcode.n != 0:
            raise MalformedOpcode(opcode.word, address,
                                  "5XY0 trailing nibble must be 0")
        return Instruction.SE_REG
    if op == 0x9:
        return Instruction.SNE_REG if opcode.n == 0 else Instruction.UNKNOWN
    if op == 0x8:
        return _ALU.get(opcode.n, Instruction.UNKNOWN)
    return _BY_LOW_BYTE.get((op, opcode.nn), Instruction.UNKNOWN)


def disassemble(word: int) -> str:
    opcode = decode(word)
    try:
        instruction = identify(opcode)
    except MalformedOpcode:
        instruction = Instruction.UNKNOWN
    return instruction.mnemonic(opcode)
