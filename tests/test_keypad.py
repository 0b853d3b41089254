import threading

from chip8vm.keypad import Keypad


class TestKeypad:
    def test_press_and_release(self):
        keypad = Keypad()
        keypad.press(0xA)
        assert keypad.is_pressed(0xA)
        assert keypad.snapshot() == {0xA}
        keypad.release(0xA)
        assert not keypad.any_pressed()

    def test_out_of_range_codes_ignored(self):
        keypad = Keypad()
        keypad.press(16)
        keypad.press(-1)
        keypad.release(42)
        assert keypad.snapshot() == frozenset()

    def test_snapshot_is_immutable_copy(self):
        keypad = Keypad([1, 2])
        snap = keypad.snapshot()
        keypad.release(1)
        assert snap == {1, 2}
        assert keypad.snapshot() == {2}

    def test_repeated_press_is_idempotent(self):
        keypad = Keypad()
        keypad.press(3)
        keypad.press(3)
        keypad.release(3)
        assert not keypad.is_pressed(3)

    def test_concurrent_writers(self):
        keypad = Keypad()

        def hammer(code):
            for _ in range(500):
                keypad.press(code)
                keypad.release(code)
            keypad.press(code)

        threads = [threading.Thread(target=hammer, args=(c,)) for c in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert keypad.snapshot() == frozenset(range(16))

    def test_repr(self):
        assert repr(Keypad([0xF, 0x1])) == "Keypad({1,F})"
