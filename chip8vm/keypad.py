"""Thread-safe latch of the CHIP-8 keys currently held down.

The input side (a pygame event loop, a web handler, a test) calls
``press``/``release`` while the driver thread steps the machine. The executor
takes one ``snapshot()`` per instruction so it never sees a half-applied
update.
"""
from __future__ import annotations

import logging
import threading
from typing import FrozenSet, Iterable

from .constants import NUM_KEYS

logger = logging.getLogger(__name__)


class Keypad:
    def __init__(self, pressed: Iterable[int] = ()):
        self._lock = threading.Lock()
        self._pressed: FrozenSet[int] = frozenset(
            k for k in pressed if 0 <= k < NUM_KEYS)

    def press(self, code: int):
        if not 0 <= code < NUM_KEYS:
            return
        with self._lock:
            self._pressed = self._pressed | {code}
        logger.debug("Key %X pressed", code)

    def release(self, code: int):
        if not 0 <= code < NUM_KEYS:
            return
        with self._lock:
            self._pressed = self._pressed - {code}
        logger.debug("Key %X released", code)

    def clear(self):
        with self._lock:
            self._pressed = frozenset()

    def snapshot(self) -> FrozenSet[int]:
        # the set is replaced, never mutated, so handing it out is safe
        with self._lock:
            return self._pressed

    def is_pressed(self, code: int) -> bool:
        return code in self.snapshot()

    def any_pressed(self) -> bool:
        return bool(self.snapshot())

    def __repr__(self):
        keys = ",".join(f"{k:X}" for k in sorted(self.snapshot()))
        return f"Keypad({{{keys}}})"
