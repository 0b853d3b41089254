"""Reading ROM images from disk."""
from __future__ import annotations

import logging
import os
from typing import List

from .errors import RomNotFound
from .machine import Chip8, new_machine

logger = logging.getLogger(__name__)

ROM_SUFFIX = ".ch8"


def read_rom(path) -> bytes:
    """Return the raw bytes of the ROM at ``path``, raise RomNotFound otherwise."""
    try:
        with open(path, 'rb') as f:
            rom = f.read()
    except (FileNotFoundError, IsADirectoryError, PermissionError) as exc:
        raise RomNotFound(path) from exc
    logger.debug("Read %d bytes from %s", len(rom), path)
    return rom


def rom_title(path) -> str:
    name = os.path.basename(os.fspath(path))
    return os.path.splitext(name)[0] or name


def machine_from_file(path, **options) -> Chip8:
    return new_machine(read_rom(path), **options)


def sibling_roms(path) -> List[str]:
    """Every ``.ch8`` file next to ``path``, in name order, starting with ``path``."""
    path = os.path.abspath(os.fspath(path))
    folder = os.path.dirname(path)
    roms = {os.path.join(folder, n) for n in os.listdir(folder)
            if n.lower().endswith(ROM_SUFFIX)}
    roms.add(path)
    roms = sorted(roms)
    i = roms.index(path)
    return roms[i:] + roms[:i]
