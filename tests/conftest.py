import random

import pytest

from chip8vm.machine import new_machine


def assemble(*words):
    return b"".join(w.to_bytes(2, "big") for w in words)


def write_op(machine, addr, op):
    """Write a 16-bit ``op`` big-endian at ``addr``."""
    machine.write_mem(addr, op >> 8)
    machine.write_mem(addr + 1, op & 0xFF)
    return machine


@pytest.fixture
def chip8():
    return new_machine(rng=random.Random(8))


@pytest.fixture
def program():
    """Build a machine whose ROM is the given opcode words."""
    def make(*words, **options):
        options.setdefault("rng", random.Random(8))
        return new_machine(assemble(*words), **options)
    return make
