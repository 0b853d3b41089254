"""Machine state: memory, registers, timers, stack, framebuffer and keypad.

Instruction semantics live in :mod:`chip8vm.executor`; this module only holds
the storage and the primitive operations on it.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .constants import (
    FONT_ADDRESS, FONTSET, MAX_ROM_SIZE, MEM_SIZE, NUM_REGISTERS,
    SCREEN_H, SCREEN_W, STACK_DEPTH, START_ADDRESS,
)
from .errors import RomTooLarge, StackOverflow, StackUnderflow
from .keypad import Keypad

logger = logging.getLogger(__name__)


def wrap_byte(value: int) -> int:
    return value & 0xFF


@dataclass(frozen=True)
class Snapshot:
    """Read-only view handed to renderers."""
    display: Tuple[int, ...]
    delay_timer: int
    sound_timer: int
    paused: bool

    def pixel(self, x: int, y: int) -> int:
        return self.display[y * SCREEN_W + x]

    def rows(self):
        for y in range(SCREEN_H):
            yield self.display[y * SCREEN_W:(y + 1) * SCREEN_W]


@dataclass
class Chip8:
    # if True, FX55/FX65 increment I (COSMAC VIP quirk)
    legacy_store: bool = False
    # if True, malformed opcodes raise instead of being skipped
    strict: bool = False
    memory: bytearray = field(default_factory=lambda: bytearray(MEM_SIZE))
    V: List[int] = field(default_factory=lambda: [0] * NUM_REGISTERS)  # registers V0..VF
    I: int = 0
    pc: int = START_ADDRESS
    stack: List[int] = field(default_factory=list)
    delay_timer: int = 0
    sound_timer: int = 0
    display: List[int] = field(default_factory=lambda: [
                               0] * (SCREEN_W * SCREEN_H))
    keypad: Keypad = field(default_factory=Keypad)
    paused: bool = False
    draw_flag: bool = False
    malformed_count: int = 0
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self):
        self.load_font()

    def reset(self):
        self.memory = bytearray(MEM_SIZE)
        self.load_font()
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = START_ADDRESS
        self.stack = []
        self.delay_timer = 0
        self.sound_timer = 0
        self.display = [0] * (SCREEN_W * SCREEN_H)
        self.keypad.clear()
        self.paused = False
        self.draw_flag = True
        self.malformed_count = 0

    def load_font(self):
        self.memory[FONT_ADDRESS:FONT_ADDRESS + len(FONTSET)] = bytes(FONTSET)

    def load_rom(self, data: bytes):
        """Copy ROM bytes to 0x200. Oversized ROMs are rejected untouched."""
        if len(data) > MAX_ROM_SIZE:
            raise RomTooLarge(len(data), MAX_ROM_SIZE)
        end = START_ADDRESS + len(data)
        self.memory[START_ADDRESS:end] = data
        logger.info("Loaded %d byte ROM at 0x%03X", len(data), START_ADDRESS)

    # =============== Storage primitives ===============
    def read_mem(self, addr: int) -> int:
        return self.memory[addr % MEM_SIZE]

    def write_mem(self, addr: int, value: int):
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Memory value out of byte range: {value}")
        self.memory[addr % MEM_SIZE] = value

    def read_reg(self, idx: int) -> int:
        return self.V[idx]

    def write_reg(self, idx: int, value: int):
        self.V[idx] = wrap_byte(value)

    def fetch_opcode(self) -> int:
        hi = self.memory[self.pc]
        lo = self.memory[self.pc + 1]
        return (hi << 8) | lo

    def push_stack(self, addr: int):
        if len(self.stack) >= STACK_DEPTH:
            raise StackOverflow(self.pc - 2, len(self.stack))
        self.stack.append(addr)

    def pop_stack(self) -> int:
        if not self.stack:
            raise StackUnderflow(self.pc - 2)
        return self.stack.pop()

    def decrement_timers(self):
        self.delay_timer = max(0, self.delay_timer - 1)
        self.sound_timer = max(0, self.sound_timer - 1)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            display=tuple(self.display),
            delay_timer=self.delay_timer,
            sound_timer=self.sound_timer,
            paused=self.paused,
        )

    def __str__(self):
        registers = " ".join(f"V{i:X}={v:02X}" for i, v in enumerate(self.V))
        stack = " ".join(f"{a:03X}" for a in self.stack)
        return (f"PC={self.pc:03X} I={self.I:04X} DT={self.delay_timer} "
                f"ST={self.sound_timer}\n{registers}\nSTACK: [{stack}] "
                f"KEYS: {self.keypad!r}")


def new_machine(rom: Optional[bytes] = None, **options) -> Chip8:
    """Fresh machine with the font loaded and, optionally, a ROM."""
    chip8 = Chip8(**options)
    if rom is not None:
        chip8.load_rom(rom)
    return chip8
