"""Machine geometry, the built-in font and the keyboard layout."""

# ==============================
# Constants
# ==============================
MEM_SIZE = 4096
START_ADDRESS = 0x200
MAX_ROM_SIZE = MEM_SIZE - START_ADDRESS
FONT_ADDRESS = 0x000
GLYPH_SIZE = 5
SCREEN_W, SCREEN_H = 64, 32
NUM_REGISTERS = 16
NUM_KEYS = 16
STACK_DEPTH = 16
CYCLES_PER_TICK = 10
TIMER_HZ = 60

# Classic CHIP-8 4x5 font (each char 5 bytes)
FONTSET = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80   # F
]

# Keyboard layout: physical key -> CHIP-8 key index
#
#   CHIP-8  =>  Keyboard
#   1 2 3 C =>  1 2 3 4
#   4 5 6 D =>  Q W E R
#   7 8 9 E =>  A S D F
#   A 0 B F =>  Z X C V
KEY_LAYOUT = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "q": 0x4, "w": 0x5, "e": 0x6, "r": 0xD,
    "a": 0x7, "s": 0x8, "d": 0x9, "f": 0xE,
    "z": 0xA, "x": 0x0, "c": 0xB, "v": 0xF,
}
