"""
Command line entry point.

Run:
  python -m chip8vm path/to/rom [--scale 15] [--clock 600] [--tone 440]
  python -m chip8vm path/to/rom --headless --steps 6000

Keys: the 4x4 block 1234/QWER/ASDF/ZXCV is the CHIP-8 keypad,
P pauses, O switches to the next .ch8 file in the ROM's folder, Escape quits.
"""
from __future__ import annotations

import argparse
import logging
import sys

from .clock import Driver, run_headless
from .constants import TIMER_HZ
from .errors import Chip8Error
from .rom import machine_from_file, rom_title, sibling_roms


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="chip8vm", description="CHIP-8 virtual machine")
    parser.add_argument("rom", help="Path to CHIP-8 ROM")
    parser.add_argument("--scale", type=int, default=15,
                        help="Pixel scale factor (default 15)")
    parser.add_argument("--clock", type=int, default=600,
                        help="CPU clock in Hz (default 600)")
    parser.add_argument("--legacy-store", action="store_true",
                        help="Use COSMAC VIP FX55/FX65 quirk (I increments)")
    parser.add_argument("--strict", action="store_true",
                        help="Halt on malformed opcodes instead of skipping them")
    parser.add_argument("--tone", type=int, default=440,
                        help="Beep tone frequency in Hz")
    parser.add_argument("--headless", action="store_true",
                        help="Run without a window and print the final state")
    parser.add_argument("--steps", type=int, default=6000,
                        help="Instructions to run in headless mode (default 6000)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Trace every instruction")
    return parser.parse_args(argv)


def print_display(snap):
    for row in snap.rows():
        print("".join("#" if lit else "." for lit in row))


def headless(machine, args) -> int:
    print("Starting headless run")
    driver = run_headless(machine, args.steps)
    print_display(driver.snapshot())
    print(driver.machine)
    if machine.malformed_count:
        print(f"Skipped {machine.malformed_count} malformed opcode(s)")
    if driver.fault is not None:
        print(f"Halted: {driver.fault}", file=sys.stderr)
        return 1
    return 0


def windowed(machine, args) -> int:
    import pygame

    from .frontend import Frontend

    pygame.init()
    pygame.display.set_allow_screensaver(True)

    driver = Driver(machine, cycles_per_tick=args.clock // TIMER_HZ)
    frontend = Frontend(driver, scale=args.scale, tone_hz=args.tone,
                        title=rom_title(args.rom), roms=sibling_roms(args.rom))
    try:
        while not frontend.quit_requested:
            frontend.handle_events()
            driver.tick()
            snap = driver.snapshot()
            frontend.update_sound(snap)
            if driver.machine.draw_flag or snap.paused or not driver.running:
                frontend.render(snap)
                driver.machine.draw_flag = False
            frontend.tick(TIMER_HZ)
    finally:
        pygame.quit()
    if driver.fault is not None:
        print(f"Halted: {driver.fault}", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s]:  %(message)s", stream=sys.stdout)

    try:
        machine = machine_from_file(args.rom, legacy_store=args.legacy_store,
                                    strict=args.strict)
    except Chip8Error as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.headless:
        return headless(machine, args)
    return windowed(machine, args)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
