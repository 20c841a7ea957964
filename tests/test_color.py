"""Tests for color -- preset names, hex parsing and HSB conversion."""

import pytest

from b1ctl.color import (
    PRESET_COLORS,
    RAINBOW_COLORS,
    color_by_name,
    color_names,
    hex_to_rgb,
    hsb_to_rgb,
    name_by_color,
    name_or_hex,
    parse_color,
    rgb_to_hex,
)


class TestPresets:

    def test_lookup_ignores_case_and_space(self):
        assert color_by_name("  Red ") == (0xFF, 0x00, 0x00)

    def test_unknown(self):
        assert color_by_name("octarine") is None

    def test_lime_is_dark_green(self):
        assert color_by_name("lime") == (0x00, 0x80, 0x00)

    def test_aliases_share_values(self):
        assert color_by_name("aqua") == color_by_name("cyan")
        assert color_by_name("grey") == color_by_name("gray")
        assert color_by_name("fuchsia") == color_by_name("magenta")

    def test_names_sorted(self):
        names = color_names()
        assert names == sorted(names)
        assert len(names) == len(PRESET_COLORS)

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            PRESET_COLORS["red"] = (0, 0, 0)  # type: ignore[index]

    def test_rainbow(self):
        assert len(RAINBOW_COLORS) == 7
        assert RAINBOW_COLORS[0] == (0xFF, 0, 0)


class TestReverseLookup:

    def test_known(self):
        assert name_by_color(0xFF, 0xA5, 0x00) == ("orange", True)

    def test_alias_not_reported(self):
        assert name_by_color(0x00, 0xFF, 0xFF) == ("cyan", True)

    def test_unknown_gives_hex(self):
        assert name_by_color(1, 2, 3) == ("#010203", False)
        assert name_or_hex(1, 2, 3) == "#010203"


class TestHex:

    def test_rgb_to_hex(self):
        assert rgb_to_hex(255, 10, 0) == "#FF0A00"

    @pytest.mark.parametrize("text,expected", [
        ("#FF8000", (255, 128, 0)),
        ("ff8000", (255, 128, 0)),
        ("#f80", (0xFF, 0x88, 0x00)),
        ("abc", (0xAA, 0xBB, 0xCC)),
    ])
    def test_hex_to_rgb(self, text, expected):
        assert hex_to_rgb(text) == expected

    @pytest.mark.parametrize("text", ["", "#12345", "#GGGGGG", "red"])
    def test_hex_to_rgb_invalid(self, text):
        with pytest.raises(ValueError):
            hex_to_rgb(text)

    def test_parse_color_prefers_names(self):
        assert parse_color("teal") == (0x00, 0x80, 0x80)
        assert parse_color("#000080") == (0, 0, 0x80)

    def test_parse_color_invalid(self):
        with pytest.raises(ValueError):
            parse_color("not a color")


class TestHsb:

    @pytest.mark.parametrize("hsb,expected", [
        ((0, 100, 100), (255, 0, 0)),
        ((120, 100, 100), (0, 255, 0)),
        ((240, 100, 100), (0, 0, 255)),
        ((60, 100, 100), (255, 255, 0)),
        ((0, 0, 100), (255, 255, 255)),
        ((0, 0, 0), (0, 0, 0)),
        ((0, 0, 50), (128, 128, 128)),
    ])
    def test_known(self, hsb, expected):
        assert hsb_to_rgb(*hsb) == expected

    def test_hue_wraps(self):
        assert hsb_to_rgb(360, 100, 100) == hsb_to_rgb(0, 100, 100)
        assert hsb_to_rgb(480, 100, 100) == hsb_to_rgb(120, 100, 100)

    def test_negative_hue_wraps(self):
        assert hsb_to_rgb(-120, 100, 100) == hsb_to_rgb(240, 100, 100) == (0, 0, 255)

    def test_clamps_saturation_and_brightness(self):
        assert hsb_to_rgb(0, 150, 200) == (255, 0, 0)
        assert hsb_to_rgb(0, -10, -10) == (0, 0, 0)
