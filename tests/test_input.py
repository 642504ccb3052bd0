"""Tests for key and gesture mapping."""

import pytest

from photo_sorter.core.engine import Direction
from photo_sorter.ui.input import KeyMap, SwipeRecognizer
from photo_sorter.utils.config import Config


class TestKeyMap:
    """Test KeyMap class."""

    def test_default_bindings(self):
        keymap = KeyMap()

        assert keymap.resolve("\x1b[C") is Direction.FORWARD
        assert keymap.resolve("d") is Direction.FORWARD
        assert keymap.resolve("D") is Direction.FORWARD
        assert keymap.resolve("\x1b[D") is Direction.BACKWARD
        assert keymap.resolve("a") is Direction.BACKWARD
        assert keymap.resolve("A") is Direction.BACKWARD

    def test_windows_arrow_codes(self):
        keymap = KeyMap()
        assert keymap.resolve("\xe0M") is Direction.FORWARD
        assert keymap.resolve("\xe0K") is Direction.BACKWARD

    def test_unbound_keys(self):
        keymap = KeyMap()
        assert keymap.resolve("x") is None
        assert keymap.resolve("\x1b[A") is None
        assert keymap.is_quit("x") is False

    def test_quit(self):
        keymap = KeyMap()
        assert keymap.is_quit("q") is True
        assert keymap.is_quit("Q") is True
        assert keymap.resolve("q") is None

    def test_clashing_bindings_rejected(self):
        with pytest.raises(ValueError):
            KeyMap(forward=["right", "x"], backward=["x"])

    def test_from_config(self, tmp_path):
        config = Config(tmp_path / "config.json")
        config.set("keys.forward", ["space", "l"])
        config.set("keys.backward", ["h"])

        keymap = KeyMap.from_config(config)

        assert keymap.resolve(" ") is Direction.FORWARD
        assert keymap.resolve("l") is Direction.FORWARD
        assert keymap.resolve("h") is Direction.BACKWARD
        assert keymap.resolve("d") is None
        assert keymap.is_quit("q") is True


class TestSwipeRecognizer:
    """Test SwipeRecognizer class."""

    def test_horizontal_swipes(self):
        swipe = SwipeRecognizer(threshold=50)
        assert swipe.recognize(120, 10) is Direction.FORWARD
        assert swipe.recognize(-80, -5) is Direction.BACKWARD

    def test_short_or_vertical_drags_ignored(self):
        swipe = SwipeRecognizer(threshold=50)
        assert swipe.recognize(20, 0) is None
        assert swipe.recognize(60, 90) is None
        assert swipe.recognize(0, 0) is None

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            SwipeRecognizer(threshold=0)
