"""Exceptions raised by the CHIP-8 core.

Nothing in the core exits the process. Loaders raise before touching memory,
``step`` raises before mutating the machine, and the driver decides whether a
failure halts the session.
"""


class Chip8Error(Exception):
    """Base class for every condition the core reports."""


class RomNotFound(Chip8Error):
    def __init__(self, path):
        super().__init__(f"Could not find ROM at {path}")
        self.path = path


class OutOfBounds(Chip8Error):
    """A write would land outside addressable memory."""


class RomTooLarge(OutOfBounds):
    def __init__(self, size: int, limit: int):
        super().__init__(f"ROM is too large for memory ({size} bytes, max {limit})")
        self.size = size
        self.limit = limit


class MalformedOpcode(Chip8Error):
    def __init__(self, word: int, address: int, reason: str):
        super().__init__(f"Malformed opcode {word:04X} at PC {address:03X}: {reason}")
        self.word = word
        self.address = address
        self.reason = reason


class Overrun(Chip8Error):
    """The program counter ran past the last complete instruction slot."""

    def __init__(self, pc: int):
        super().__init__(f"Program counter overran memory at {pc:04X}")
        self.pc = pc


class StackOverflow(Chip8Error):
    def __init__(self, address: int, depth: int):
        super().__init__(f"Stack overflow on CALL at PC {address:03X} (depth {depth})")
        self.address = address
        self.depth = depth


class StackUnderflow(Chip8Error):
    def __init__(self, address: int):
        super().__init__(f"Stack underflow on RET at PC {address:03X}")
        self.address = address
