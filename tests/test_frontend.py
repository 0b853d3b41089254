import numpy as np
import pygame
import pytest

from chip8vm.clock import Driver
from chip8vm.frontend import HALTED_COLOR, KEYMAP, Frontend, square_wave
from chip8vm.machine import Snapshot, new_machine
from chip8vm.rom import sibling_roms

from conftest import assemble


class FakeSound:
    def __init__(self):
        self.calls = []

    def play(self, loops=0):
        self.calls.append(("play", loops))

    def stop(self):
        self.calls.append(("stop",))


def snapshot(sound_timer=0, paused=False):
    return Snapshot(display=(0,) * 2048, delay_timer=0,
                    sound_timer=sound_timer, paused=paused)


def post_key(event_type, key):
    pygame.event.post(pygame.event.Event(event_type, key=key))


@pytest.fixture
def frontend(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    pygame.init()
    driver = Driver(new_machine(assemble(0x1200)))
    fe = Frontend(driver, scale=2)
    fe.sound = FakeSound()
    pygame.event.clear()
    yield fe
    pygame.quit()


def test_keymap_layout():
    assert KEYMAP[pygame.K_1] == 0x1
    assert KEYMAP[pygame.K_4] == 0xC
    assert KEYMAP[pygame.K_q] == 0x4
    assert KEYMAP[pygame.K_x] == 0x0
    assert KEYMAP[pygame.K_v] == 0xF
    assert sorted(KEYMAP.values()) == list(range(16))


def test_square_wave():
    wave = square_wave(440, sample_rate=44100, duration=0.1)
    assert wave.dtype == np.int16
    assert len(wave) == 4410
    assert set(np.unique(wave)) == {-32767, 32767}


class TestSound:
    def test_tone_held_while_timer_runs(self, frontend):
        for value in (30, 29, 4, 1):
            frontend.update_sound(snapshot(sound_timer=value))
        assert frontend.sound.calls == [("play", -1)]
        assert frontend.beeping

    def test_tone_stops_at_zero_and_restarts(self, frontend):
        for value in (2, 1, 0, 0, 3):
            frontend.update_sound(snapshot(sound_timer=value))
        assert frontend.sound.calls == [("play", -1), ("stop",), ("play", -1)]

    def test_silent_timer_never_plays(self, frontend):
        frontend.update_sound(snapshot(sound_timer=0))
        assert frontend.sound.calls == []

    def test_no_audio_device(self, frontend):
        frontend.sound = None
        frontend.update_sound(snapshot(sound_timer=10))
        assert not frontend.beeping


class TestEvents:
    def test_key_press_and_release(self, frontend):
        keypad = frontend.driver.machine.keypad
        post_key(pygame.KEYDOWN, pygame.K_q)
        post_key(pygame.KEYDOWN, pygame.K_v)
        frontend.handle_events()
        assert keypad.snapshot() == {0x4, 0xF}
        post_key(pygame.KEYUP, pygame.K_q)
        frontend.handle_events()
        assert keypad.snapshot() == {0xF}

    def test_unmapped_key_ignored(self, frontend):
        post_key(pygame.KEYDOWN, pygame.K_m)
        frontend.handle_events()
        assert not frontend.driver.machine.keypad.any_pressed()
        assert not frontend.quit_requested

    def test_p_toggles_pause(self, frontend):
        post_key(pygame.KEYDOWN, pygame.K_p)
        post_key(pygame.KEYUP, pygame.K_p)
        frontend.handle_events()
        assert frontend.driver.machine.paused
        post_key(pygame.KEYDOWN, pygame.K_p)
        frontend.handle_events()
        assert not frontend.driver.machine.paused

    def test_escape_and_close_quit(self, frontend):
        post_key(pygame.KEYDOWN, pygame.K_ESCAPE)
        frontend.handle_events()
        assert frontend.quit_requested
        frontend.quit_requested = False
        pygame.event.post(pygame.event.Event(pygame.QUIT))
        frontend.handle_events()
        assert frontend.quit_requested


class TestRomSwitch:
    def write(self, tmp_path, name, data):
        path = tmp_path / name
        path.write_bytes(data)
        return path

    def test_o_cycles_sibling_roms(self, frontend, tmp_path):
        first = self.write(tmp_path, "a.ch8", assemble(0x6101, 0x1202))
        self.write(tmp_path, "b.ch8", assemble(0x6142, 0x1202))
        frontend.roms = sibling_roms(first)
        original = frontend.driver.machine

        post_key(pygame.KEYDOWN, pygame.K_o)
        frontend.handle_events()
        assert frontend.driver.machine is not original
        assert frontend.rom_index == 1
        frontend.driver.tick()
        assert frontend.driver.machine.V[1] == 0x42

        post_key(pygame.KEYDOWN, pygame.K_o)
        frontend.handle_events()
        assert frontend.rom_index == 0
        frontend.driver.tick()
        assert frontend.driver.machine.V[1] == 0x01

    def test_bad_rom_keeps_current_machine(self, frontend, tmp_path):
        first = self.write(tmp_path, "a.ch8", assemble(0x1200))
        self.write(tmp_path, "b.ch8", bytes(4000))
        frontend.roms = sibling_roms(first)
        current = frontend.driver.machine
        frontend.next_rom()
        assert frontend.driver.machine is current
        assert frontend.rom_index == 0

    def test_without_roms_does_nothing(self, frontend):
        current = frontend.driver.machine
        frontend.next_rom()
        assert frontend.driver.machine is current


class TestRender:
    def overlay_pixels(self, frontend):
        surf = frontend.surface
        width, height = surf.get_size()
        return [surf.get_at((x, y)) for x in range(width) for y in range(height)
                if surf.get_at((x, y)).r > 0]

    def test_halted_overlay(self, frontend):
        frontend.driver.switch_rom(assemble(0x00EE))
        frontend.driver.tick()
        assert not frontend.driver.running
        frontend.render(frontend.driver.snapshot())
        reds = self.overlay_pixels(frontend)
        assert reds
        assert all(c.g == 0 and c.b == 0 for c in reds)
        assert max(c.r for c in reds) == HALTED_COLOR[0]

    def test_running_blank_screen_has_no_overlay(self, frontend):
        frontend.render(frontend.driver.snapshot())
        assert self.overlay_pixels(frontend) == []

    def test_lit_pixels_drawn(self, frontend):
        frontend.driver.switch_rom(assemble(0xA000, 0xD011, 0x1204))
        frontend.driver.tick()
        frontend.render(frontend.driver.snapshot())
        assert frontend.surface.get_at((0, 0))[:3] == (255, 255, 255)
        assert frontend.surface.get_at((9, 0))[:3] == (0, 0, 0)
