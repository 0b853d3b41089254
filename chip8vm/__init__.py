"""CHIP-8 virtual machine core with a pygame front end."""
from .clock import Driver, run_headless
from .decoder import Instruction, Opcode, decode, disassemble, identify
from .errors import (
    Chip8Error, MalformedOpcode, OutOfBounds, Overrun, RomNotFound,
    RomTooLarge, StackOverflow, StackUnderflow,
)
from .executor import step
from .keypad import Keypad
from .machine import Chip8, Snapshot, new_machine
from .rom import machine_from_file, read_rom

__version__ = "1.0.0"
