"""Timing loop around the executor.

The executor has no clock of its own. A :class:`Driver` runs a batch of
instructions per tick and then decrements the timers once, so with the
default 10 cycles at 60 ticks per second the machine runs at roughly 600 Hz
with 60 Hz timers.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .constants import CYCLES_PER_TICK, TIMER_HZ
from .errors import Chip8Error
from .executor import step
from .machine import Chip8, Snapshot, new_machine

logger = logging.getLogger(__name__)


class Driver:
    """Owns one machine and steps it.

    ``press``/``release`` may be called from any thread. ``tick``,
    ``toggle_pause`` and ``switch_rom`` are serialised on an internal lock so
    commands always land between instruction batches.
    """

    def __init__(self, machine: Chip8, cycles_per_tick: int = CYCLES_PER_TICK):
        self.machine = machine
        self.cycles_per_tick = max(1, int(cycles_per_tick))
        self.fault: Optional[Chip8Error] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self.fault is None

    def tick(self) -> bool:
        """Run one batch of instructions plus one timer decrement."""
        with self._lock:
            if self.machine.paused:
                return self.running
            if self._run_steps(self.cycles_per_tick):
                self.machine.decrement_timers()
            return self.running

    def advance(self, count: int) -> bool:
        """Run ``count`` instructions without touching the timers."""
        with self._lock:
            if self.machine.paused:
                return self.running
            return self._run_steps(count)

    def _run_steps(self, count: int) -> bool:
        if self.fault is not None:
            return False
        m = self.machine
        try:
            for _ in range(count):
                step(m)
        except Chip8Error as exc:
            self.fault = exc
            logger.error("Machine halted: %s\n%s", exc, m)
            return False
        return True

    def toggle_pause(self) -> bool:
        with self._lock:
            self.machine.paused = not self.machine.paused
            logger.info("Paused" if self.machine.paused else "Resumed")
            return self.machine.paused

    def switch_rom(self, data: bytes) -> Chip8:
        """Replace the machine with a fresh one running ``data``.

        If the ROM is rejected the current machine is kept and the error
        propagates.
        """
        m = self.machine
        fresh = new_machine(data, legacy_store=m.legacy_store, strict=m.strict)
        with self._lock:
            self.machine = fresh
            self.fault = None
        logger.info("Switched to new ROM (%d bytes)", len(data))
        return fresh

    def press(self, code: int):
        self.machine.keypad.press(code)

    def release(self, code: int):
        self.machine.keypad.release(code)

    def snapshot(self) -> Snapshot:
        return self.machine.snapshot()

    def run(self, stop: threading.Event, hz: int = TIMER_HZ):
        """Tick at ``hz`` until ``stop`` is set or the machine halts."""
        period = 1.0 / hz
        next_tick = time.perf_counter()
        while not stop.is_set():
            if not self.tick():
                break
            next_tick += period
            delay = next_tick - time.perf_counter()
            if delay > 0:
                stop.wait(delay)
            else:
                # fell behind; don't try to catch up with a burst of ticks
                next_tick = time.perf_counter()


def run_headless(machine: Chip8, steps: int,
                 cycles_per_tick: int = CYCLES_PER_TICK) -> Driver:
    """Run exactly ``steps`` instructions without any real-time pacing.

    Whole ticks (with their timer decrement) run first, then the leftover
    instructions.
    """
    driver = Driver(machine, cycles_per_tick)
    ticks, rest = divmod(max(0, steps), driver.cycles_per_tick)
    for _ in range(ticks):
        if not driver.tick():
            return driver
    driver.advance(rest)
    return driver
