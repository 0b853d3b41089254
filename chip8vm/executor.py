"""Fetch/decode/execute.

``step`` runs exactly one instruction. Each handler below receives the
machine with ``pc`` already pointing at the next instruction, the decoded
opcode, and the keypad snapshot taken for this step.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet

from .constants import FONT_ADDRESS, GLYPH_SIZE, MEM_SIZE, SCREEN_H, SCREEN_W
from .decoder import Instruction, Opcode, decode, identify
from .errors import Chip8Error, MalformedOpcode, Overrun
from .machine import Chip8

logger = logging.getLogger(__name__)

Handler = Callable[[Chip8, Opcode, FrozenSet[int]], None]


# =============== Flow control ===============
def _cls(m, o, keys):
    m.display = [0] * (SCREEN_W * SCREEN_H)
    m.draw_flag = True


def _ret(m, o, keys):
    m.pc = m.pop_stack()


def _sys(m, o, keys):
    # 0NNN (ignored, RCA 1802 call)
    pass


def _jp(m, o, keys):
    m.pc = o.nnn


def _call(m, o, keys):
    m.push_stack(m.pc)
    m.pc = o.nnn


def _jp_v0(m, o, keys):
    # not masked: a target past the end of memory is reported on the next fetch
    m.pc = o.nnn + m.V[0]


def _skip_if(m, condition):
    if condition:
        m.pc += 2


def _se_byte(m, o, keys):
    _skip_if(m, m.V[o.x] == o.nn)


def _sne_byte(m, o, keys):
    _skip_if(m, m.V[o.x] != o.nn)


def _se_reg(m, o, keys):
    _skip_if(m, m.V[o.x] == m.V[o.y])


def _sne_reg(m, o, keys):
    _skip_if(m, m.V[o.x] != m.V[o.y])


# =============== Registers & ALU ===============
def _ld_byte(m, o, keys):
    m.write_reg(o.x, o.nn)


def _add_byte(m, o, keys):
    # no carry flag for 7XNN
    m.write_reg(o.x, m.V[o.x] + o.nn)


def _ld_reg(m, o, keys):
    m.write_reg(o.x, m.V[o.y])


def _or(m, o, keys):
    m.write_reg(o.x, m.V[o.x] | m.V[o.y])


def _and(m, o, keys):
    m.write_reg(o.x, m.V[o.x] & m.V[o.y])


def _xor(m, o, keys):
    m.write_reg(o.x, m.V[o.x] ^ m.V[o.y])


# The flag is always written after the result, so VF holds the flag when x == F.
def _add_reg(m, o, keys):
    total = m.V[o.x] + m.V[o.y]
    m.write_reg(o.x, total)
    m.write_reg(0xF, 1 if total > 0xFF else 0)


def _sub(m, o, keys):
    vx, vy = m.V[o.x], m.V[o.y]
    m.write_reg(o.x, vx - vy)
    m.write_reg(0xF, 1 if vx >= vy else 0)


def _subn(m, o, keys):
    vx, vy = m.V[o.x], m.V[o.y]
    m.write_reg(o.x, vy - vx)
    m.write_reg(0xF, 1 if vy >= vx else 0)


def _shr(m, o, keys):
    vx = m.V[o.x]
    m.write_reg(o.x, vx >> 1)
    m.write_reg(0xF, vx & 0x1)


def _shl(m, o, keys):
    vx = m.V[o.x]
    m.write_reg(o.x, vx << 1)
    m.write_reg(0xF, (vx >> 7) & 0x1)


def _rnd(m, o, keys):
    m.write_reg(o.x, m.rng.randint(0, 255) & o.nn)


# =============== Index & memory ===============
def _ld_i(m, o, keys):
    m.I = o.nnn


def _add_i(m, o, keys):
    m.I = (m.I + m.V[o.x]) & 0xFFFF


def _ld_f(m, o, keys):
    # Point I to the sprite for digit in Vx, 5 bytes per sprite
    m.I = FONT_ADDRESS + m.V[o.x] * GLYPH_SIZE


def _ld_b(m, o, keys):
    val = m.V[o.x]
    m.write_mem(m.I, val // 100)
    m.write_mem(m.I + 1, (val // 10) % 10)
    m.write_mem(m.I + 2, val % 10)


def _ld_mem_vx(m, o, keys):
    for i in range(o.x + 1):
        m.write_mem(m.I + i, m.V[i])
    if m.legacy_store:
        m.I = (m.I + o.x + 1) & 0xFFFF


def _ld_vx_mem(m, o, keys):
    for i in range(o.x + 1):
        m.write_reg(i, m.read_mem(m.I + i))
    if m.legacy_store:
        m.I = (m.I + o.x + 1) & 0xFFFF


# =============== Display ===============
def _drw(m, o, keys):
    """XOR an n-row sprite from memory[I] at (Vx, Vy); VF = collision."""
    x_pos, y_pos = m.V[o.x], m.V[o.y]
    collision = 0
    for row in range(o.n):
        sprite = m.read_mem(m.I + row)
        py = (y_pos + row) % SCREEN_H
        for col in range(8):
            if (sprite >> (7 - col)) & 1:
                idx = py * SCREEN_W + (x_pos + col) % SCREEN_W
                if m.display[idx] == 1:
                    collision = 1
                m.display[idx] ^= 1
    m.write_reg(0xF, collision)
    m.draw_flag = True


# =============== Timers & keypad ===============
def _ld_vx_dt(m, o, keys):
    m.write_reg(o.x, m.delay_timer)


def _ld_dt_vx(m, o, keys):
    m.delay_timer = m.V[o.x]


def _ld_st_vx(m, o, keys):
    m.sound_timer = m.V[o.x]


def _skp(m, o, keys):
    _skip_if(m, m.V[o.x] in keys)


def _sknp(m, o, keys):
    _skip_if(m, m.V[o.x] not in keys)


def _ld_vx_k(m, o, keys):
    if not keys:
        # stall on this instruction; timers keep running meanwhile
        m.pc -= 2
    else:
        m.write_reg(o.x, min(keys))


def _unknown(m, o, keys):
    logger.debug("Ignoring unknown opcode %04X", o.word)


HANDLERS: Dict[Instruction, Handler] = {
    Instruction.CLS: _cls,
    Instruction.RET: _ret,
    Instruction.SYS: _sys,
    Instruction.JP: _jp,
    Instruction.CALL: _call,
    Instruction.SE_BYTE: _se_byte,
    Instruction.SNE_BYTE: _sne_byte,
    Instruction.SE_REG: _se_reg,
    Instruction.LD_BYTE: _ld_byte,
    Instruction.ADD_BYTE: _add_byte,
    Instruction.LD_REG: _ld_reg,
    Instruction.OR: _or,
    Instruction.AND: _and,
    Instruction.XOR: _xor,
    Instruction.ADD_REG: _add_reg,
    Instruction.SUB: _sub,
    Instruction.SHR: _shr,
    Instruction.SUBN: _subn,
    Instruction.SHL: _shl,
    Instruction.SNE_REG: _sne_reg,
    Instruction.LD_I: _ld_i,
    Instruction.JP_V0: _jp_v0,
    Instruction.RND: _rnd,
    Instruction.DRW: _drw,
    Instruction.SKP: _skp,
    Instruction.SKNP: _sknp,
    Instruction.LD_VX_DT: _ld_vx_dt,
    Instruction.LD_VX_K: _ld_vx_k,
    Instruction.LD_DT_VX: _ld_dt_vx,
    Instruction.LD_ST_VX: _ld_st_vx,
    Instruction.ADD_I: _add_i,
    Instruction.LD_F: _ld_f,
    Instruction.LD_B: _ld_b,
    Instruction.LD_MEM_VX: _ld_mem_vx,
    Instruction.LD_VX_MEM: _ld_vx_mem,
    Instruction.UNKNOWN: _unknown,
}

_missing = set(Instruction) - set(HANDLERS)
if _missing:
    raise RuntimeError(f"No handler for {sorted(i.name for i in _missing)}")


# =============== Core fetch/decode/execute cycle ===============
def step(m: Chip8) -> Instruction:
    """Execute one instruction and return what was executed.

    Raises Overrun if ``pc`` cannot hold a full instruction, StackOverflow or
    StackUnderflow on a bad CALL/RET, and MalformedOpcode in strict mode. The
    machine is left as it was before the step when any of these is raised.
    """
    pc = m.pc
    if not 0 <= pc < MEM_SIZE - 1:
        raise Overrun(pc)
    word = m.fetch_opcode()
    opcode = decode(word)
    keys = m.keypad.snapshot()

    try:
        instruction = identify(opcode, pc)
    except MalformedOpcode as exc:
        if m.strict:
            raise
        m.malformed_count += 1
        logger.warning("%s, treating as no-op", exc)
        m.pc = pc + 2
        return Instruction.UNKNOWN

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("mem_addr: 0x%04x    instruction: %s",
                     pc, instruction.mnemonic(opcode))

    m.pc = pc + 2
    try:
        HANDLERS[instruction](m, opcode, keys)
    except Chip8Error:
        m.pc = pc
        raise
    return instruction
