"""Palette extraction: sampling, quantization, ranking and the default palette."""

import io
import unittest

import numpy as np
from PIL import Image

from app.services.color.palette import (
    DEFAULT_PALETTE,
    MAX_COLORS,
    color_name,
    extract_palette,
    hex_to_rgb,
    palette_from_pixels,
    quantize,
    rgb_to_hex,
    rgb_to_hsl,
)
from conftest import make_image_base64, make_image_bytes

RED = (200, 40, 40, 255)
BLUE = (30, 60, 220, 255)


class ConversionTests(unittest.TestCase):
    def test_hex_round_trip_is_uppercase(self):
        self.assertEqual(rgb_to_hex(192, 32, 255), "#C020FF")
        self.assertEqual(hex_to_rgb("#c020ff"), (192, 32, 255))

    def test_short_hex(self):
        self.assertEqual(hex_to_rgb("#fff"), (255, 255, 255))

    def test_invalid_hex_raises(self):
        with self.assertRaises(ValueError):
            hex_to_rgb("#12345")

    def test_rgb_to_hsl_primaries(self):
        self.assertEqual(rgb_to_hsl(255, 0, 0), (0, 100, 50))
        self.assertEqual(rgb_to_hsl(0, 255, 0), (120, 100, 50))
        self.assertEqual(rgb_to_hsl(0, 0, 255), (240, 100, 50))

    def test_rgb_to_hsl_secondaries(self):
        self.assertEqual(rgb_to_hsl(128, 0, 128), (300, 100, 25))
        self.assertEqual(rgb_to_hsl(0, 255, 255), (180, 100, 50))

    def test_rgb_to_hsl_gray_has_no_saturation(self):
        h, s, l = rgb_to_hsl(128, 128, 128)
        self.assertEqual((h, s), (0, 0))
        self.assertEqual(l, 50)

    def test_quantize_rounds_half_up_and_clamps(self):
        values = quantize(np.array([[0, 15, 16], [200, 240, 255]]))
        self.assertEqual(values.tolist(), [[0, 0, 32], [192, 255, 255]])


class ColorNameTests(unittest.TestCase):
    def test_extremes(self):
        self.assertEqual(color_name(0, 0, 5), "Black")
        self.assertEqual(color_name(0, 0, 98), "White")

    def test_achromatic_by_lightness(self):
        self.assertEqual(color_name(200, 5, 50), "Gray")
        self.assertEqual(color_name(200, 5, 70), "Light Gray")
        self.assertEqual(color_name(200, 5, 30), "Dark Gray")

    def test_hue_bands(self):
        self.assertEqual(color_name(0, 80, 50), "Red")
        self.assertEqual(color_name(30, 80, 50), "Orange")
        self.assertEqual(color_name(60, 80, 50), "Yellow")
        self.assertEqual(color_name(120, 80, 50), "Green")
        self.assertEqual(color_name(230, 80, 50), "Blue")
        self.assertEqual(color_name(350, 80, 50), "Red")
        self.assertEqual(color_name(300, 100, 25), "Dark Purple")
        self.assertEqual(color_name(330, 80, 50), "Pink")

    def test_light_and_dark_prefixes(self):
        self.assertEqual(color_name(230, 80, 80), "Light Blue")
        self.assertEqual(color_name(120, 80, 20), "Dark Green")


class PaletteFromPixelsTests(unittest.TestCase):
    def test_transparent_pixels_are_ignored(self):
        pixels = np.array([[255, 0, 0, 0]] * 50 + [[0, 0, 255, 255]] * 50, dtype=np.uint8)
        palette = palette_from_pixels(pixels, stride=1)
        self.assertEqual(len(palette), 1)
        self.assertEqual(palette[0].hex, "#0000FF")
        self.assertEqual(palette[0].percentage, 100.0)

    def test_fully_transparent_returns_default(self):
        pixels = np.zeros((100, 4), dtype=np.uint8)
        self.assertEqual(palette_from_pixels(pixels), DEFAULT_PALETTE)

    def test_minor_colors_are_dropped(self):
        # 1% is not "more than 1%".
        pixels = np.array([[0, 0, 0, 255]] * 99 + [[255, 255, 255, 255]], dtype=np.uint8)
        palette = palette_from_pixels(pixels, stride=1)
        self.assertEqual([s.hex for s in palette], ["#000000"])

    def test_at_most_six_colors(self):
        colors = [[i * 32, 0, 0, 255] for i in range(8)]
        pixels = np.array([c for c in colors for _ in range(10)], dtype=np.uint8)
        palette = palette_from_pixels(pixels, stride=1)
        self.assertEqual(len(palette), MAX_COLORS)


def test_extract_palette_two_stripes():
    content = make_image_bytes(color=RED, stripes=[(BLUE, 10)])
    palette = extract_palette(content)

    assert [s.hex for s in palette] == ["#C02020", "#2040E0"]
    assert [s.percentage for s in palette] == [75.0, 25.0]
    assert [s.name for s in palette] == ["Red", "Blue"]


def test_extract_palette_properties_hold():
    content = make_image_bytes(
        color=RED,
        size=(80, 40),
        stripes=[(BLUE, 10), ((20, 180, 60, 255), 10), ((240, 200, 40, 255), 20)],
    )
    palette = extract_palette(content)

    assert 1 <= len(palette) <= MAX_COLORS
    percentages = [s.percentage for s in palette]
    assert percentages == sorted(percentages, reverse=True)
    assert all(p > 1.0 for p in percentages)
    for sample in palette:
        assert 0 <= sample.hsl.h <= 359
        assert 0 <= sample.hsl.s <= 100
        assert 0 <= sample.hsl.l <= 100


def test_extract_palette_accepts_data_url():
    data_url = "data:image/png;base64," + make_image_base64(color=BLUE)
    palette = extract_palette(data_url)
    assert palette[0].hex == "#2040E0"
    assert palette[0].percentage == 100.0


def test_undecodable_input_returns_default_palette():
    assert extract_palette(b"definitely not an image") == DEFAULT_PALETTE
    assert extract_palette("not base64 at all!") == DEFAULT_PALETTE
    assert extract_palette(b"") == DEFAULT_PALETTE


def test_default_palette_literal():
    assert [(s.hex, s.percentage) for s in DEFAULT_PALETTE] == [
        ("#87CEEB", 30.0),
        ("#90EE90", 20.0),
        ("#FFB6C1", 15.0),
        ("#F5DEB3", 15.0),
        ("#708090", 10.0),
        ("#2F4F4F", 10.0),
    ]


def test_large_images_are_sampled_at_full_resolution():
    yy, xx = np.indices((2048, 2048))
    checker = ((yy + xx) % 2).astype(bool)
    pixels = np.zeros((2048, 2048, 3), dtype=np.uint8)
    pixels[~checker] = (255, 0, 0)
    pixels[checker] = (0, 0, 255)
    buf = io.BytesIO()
    Image.fromarray(pixels, "RGB").save(buf, format="PNG")

    palette = extract_palette(buf.getvalue())

    assert {s.hex for s in palette} == {"#FF0000", "#0000FF"}
    assert {s.name for s in palette} == {"Red", "Blue"}


def test_purple_is_named_purple():
    content = make_image_bytes(color=(128, 0, 128, 255))
    assert [(s.hex, s.name) for s in extract_palette(content)] == [("#800080", "Dark Purple")]
