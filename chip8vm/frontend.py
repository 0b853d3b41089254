"""pygame window, keyboard binding and beeper for a :class:`Driver`."""
from __future__ import annotations

import logging

import numpy as np
import pygame

from .clock import Driver
from .constants import KEY_LAYOUT, SCREEN_H, SCREEN_W
from .errors import Chip8Error
from .machine import Snapshot
from .rom import read_rom, rom_title

logger = logging.getLogger(__name__)

# Keyboard mapping: pygame key -> CHIP-8 key index
KEYMAP = {getattr(pygame, f"K_{name}"): code for name, code in KEY_LAYOUT.items()}

FOREGROUND = (255, 255, 255)
BACKGROUND = (0, 0, 0)
PAUSED_COLOR = (255, 0, 0)
HALTED_COLOR = (255, 0, 0)


def square_wave(tone_hz: int, sample_rate: int = 44100,
                duration: float = 0.1, volume: float = 1.0) -> np.ndarray:
    """Mono 16-bit square wave buffer."""
    t = np.arange(int(sample_rate * duration))
    wave = ((t * tone_hz * 2 / sample_rate) % 2 >= 1).astype('float32') * 2 - 1
    return (wave * volume * 32767).astype('int16')


class Frontend:
    def __init__(self, driver: Driver, scale: int = 10, tone_hz: int = 440,
                 title: str = "chip8vm", roms=()):
        self.driver = driver
        # ROMs the O key cycles through; roms[0] is the one running
        self.roms = list(roms)
        self.rom_index = 0
        self.scale = max(1, int(scale))
        self.surface = pygame.display.set_mode(
            (SCREEN_W * self.scale, SCREEN_H * self.scale))
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)
        self.quit_requested = False

        # Audio setup (simple square tone)
        self.tone_hz = tone_hz
        self.sound = None
        self.beeping = False
        self._init_audio()

    def _init_audio(self):
        try:
            pygame.mixer.pre_init(44100, -16, 1, 256)
            pygame.mixer.init()
        except pygame.error as exc:
            logger.warning("Audio disabled: %s", exc)
            return
        self.sound = pygame.mixer.Sound(square_wave(self.tone_hz))
        self.sound.set_volume(0.2)

    def handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.quit_requested = True
            elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
                is_down = event.type == pygame.KEYDOWN
                if event.key == pygame.K_ESCAPE:
                    self.quit_requested = True
                elif event.key == pygame.K_p and is_down:
                    self.driver.toggle_pause()
                elif event.key == pygame.K_o and is_down:
                    self.next_rom()
                elif event.key in KEYMAP:
                    if is_down:
                        self.driver.press(KEYMAP[event.key])
                    else:
                        self.driver.release(KEYMAP[event.key])

    def next_rom(self):
        """Switch the driver to the next ROM in the list, wrapping around."""
        if not self.roms:
            return
        index = (self.rom_index + 1) % len(self.roms)
        path = self.roms[index]
        try:
            self.driver.switch_rom(read_rom(path))
        except Chip8Error as exc:
            logger.warning("Keeping current ROM: %s", exc)
            return
        self.rom_index = index
        pygame.display.set_caption(rom_title(path))
        self.driver.machine.draw_flag = True

    def render(self, snap: Snapshot):
        # Draw pixels (monochrome)
        surf = self.surface
        surf.fill(BACKGROUND)
        pixel_size = self.scale
        for y, row in enumerate(snap.rows()):
            for x, lit in enumerate(row):
                if lit:
                    rect = pygame.Rect(x * pixel_size, y *
                                       pixel_size, pixel_size, pixel_size)
                    pygame.draw.rect(surf, FOREGROUND, rect)
        if not self.driver.running:
            surf.blit(self.font.render("HALTED", True, HALTED_COLOR), (10, 10))
        elif snap.paused:
            surf.blit(self.font.render("PAUSED", True, PAUSED_COLOR), (10, 10))
        pygame.display.flip()

    def update_sound(self, snap: Snapshot):
        """Hold the tone while the sound timer is running."""
        if self.sound is None:
            return
        if snap.sound_timer > 0 and not self.beeping:
            self.sound.play(loops=-1)
            self.beeping = True
        elif snap.sound_timer == 0 and self.beeping:
            self.sound.stop()
            self.beeping = False

    def tick(self, fps: int):
        self.clock.tick(fps)
