"""Palette extraction: sample, quantize and rank the colors of an image."""

from __future__ import annotations

import colorsys
import logging

import numpy as np

from app.core.image_processing import ImageInput, load_rgba, to_image_bytes
from app.services.ai.common.errors import InvalidImage

from .contracts import HSL, RGB, ColorSample

logger = logging.getLogger(__name__)

SAMPLE_STRIDE = 10
ALPHA_THRESHOLD = 128
QUANTIZE_STEP = 32
MIN_PERCENTAGE = 1.0
MAX_COLORS = 6

# Below this saturation a color is named by lightness only.
ACHROMATIC_SATURATION = 15

_HUE_BANDS = (
    (15, "Red"),
    (45, "Orange"),
    (70, "Yellow"),
    (160, "Green"),
    (200, "Cyan"),
    (260, "Blue"),
    (320, "Purple"),
    (345, "Pink"),
    (360, "Red"),
)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    v = value.strip().lstrip("#")
    if len(v) == 3:
        v = "".join(ch * 2 for ch in v)
    if len(v) != 6:
        raise ValueError(f"Not a hex color: {value!r}")
    return int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16)


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[int, int, int]:
    """Standard RGB -> HSL; hue in degrees 0-359, s/l in percent."""
    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return int(round(hue * 360)) % 360, int(round(saturation * 100)), int(round(lightness * 100))


def color_name(h: int, s: int, l: int) -> str:  # noqa: E741
    """Coarse human-readable name from hue bands and s/l thresholds."""
    if l <= 8:
        return "Black"
    if l >= 96:
        return "White"
    if s < ACHROMATIC_SATURATION:
        if l >= 85:
            return "White"
        if l <= 20:
            return "Black"
        return "Light Gray" if l >= 65 else "Dark Gray" if l <= 35 else "Gray"

    base = "Red"
    for upper, band in _HUE_BANDS:
        if h < upper:
            base = band
            break
    if l >= 75:
        return f"Light {base}"
    if l <= 25:
        return f"Dark {base}"
    return base


def make_sample(r: int, g: int, b: int, percentage: float) -> ColorSample:
    h, s, l = rgb_to_hsl(r, g, b)  # noqa: E741
    return ColorSample(
        hex=rgb_to_hex(r, g, b),
        rgb=RGB(r=r, g=g, b=b),
        hsl=HSL(h=h, s=s, l=l),
        percentage=percentage,
        name=color_name(h, s, l),
    )


def _from_hex(value: str, percentage: float) -> ColorSample:
    return make_sample(*hex_to_rgb(value), percentage)


DEFAULT_PALETTE: list[ColorSample] = [
    _from_hex("#87CEEB", 30.0),
    _from_hex("#90EE90", 20.0),
    _from_hex("#FFB6C1", 15.0),
    _from_hex("#F5DEB3", 15.0),
    _from_hex("#708090", 10.0),
    _from_hex("#2F4F4F", 10.0),
]


def quantize(rgb: np.ndarray, step: int = QUANTIZE_STEP) -> np.ndarray:
    """Round each channel to the nearest multiple of *step* (half up), clamped to 255."""
    q = np.floor(rgb.astype(np.float64) / step + 0.5) * step
    return np.clip(q, 0, 255).astype(np.int64)


def palette_from_pixels(pixels: np.ndarray, *, stride: int = SAMPLE_STRIDE) -> list[ColorSample]:
    """Rank quantized colors of an ``(N, 4)`` RGBA array.

    Percentages are relative to the sampled opaque pixels, not the whole
    image. Returns ``DEFAULT_PALETTE`` when nothing survives the filters.
    """
    sampled = pixels[:: max(1, stride)]
    opaque = sampled[sampled[:, 3] >= ALPHA_THRESHOLD][:, :3]
    if len(opaque) == 0:
        return list(DEFAULT_PALETTE)

    buckets, counts = np.unique(quantize(opaque), axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")
    total = float(len(opaque))

    samples: list[ColorSample] = []
    for idx in order:
        percentage = round(float(counts[idx]) * 100.0 / total, 2)
        if percentage <= MIN_PERCENTAGE:
            break
        r, g, b = (int(c) for c in buckets[idx])
        samples.append(make_sample(r, g, b, percentage))
        if len(samples) == MAX_COLORS:
            break

    return samples or list(DEFAULT_PALETTE)


def extract_palette(image: ImageInput) -> list[ColorSample]:
    """Return up to six dominant colors of *image*, never raising.

    *image* may be raw bytes, base64 or a data URL.
    """
    try:
        img = load_rgba(to_image_bytes(image))
    except InvalidImage as exc:
        logger.info("Palette extraction using default palette: %s", exc)
        return list(DEFAULT_PALETTE)
    except Exception:
        logger.warning("Palette extraction failed, using default palette", exc_info=True)
        return list(DEFAULT_PALETTE)

    pixels = np.asarray(img, dtype=np.uint8).reshape(-1, 4)
    return palette_from_pixels(pixels)
