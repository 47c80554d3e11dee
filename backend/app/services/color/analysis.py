"""Pure color analyses derived from a palette."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .contracts import ColorAnalysis, ColorSample
from .palette import ACHROMATIC_SATURATION, hex_to_rgb, make_sample

MONOCHROMATIC_MAX_RANGE = 30
ANALOGOUS_MAX_RANGE = 90
TRIADIC_MAX_RANGE = 120
COMPLEMENTARY_MAX_RANGE = 180

HIGH_SATURATION = 60
LOW_SATURATION = 25
DARK_LIGHTNESS = 35
LIGHT_LIGHTNESS = 65
VALUE_CONTRAST_SPREAD = 50
DOMINANT_PERCENTAGE = 40

_RGB_RE = re.compile(r"rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})")
_HEX_RE = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Names reported by Microsoft Computer Vision ``color.dominantColors``.
NAMED_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (0, 0, 0),
    "blue": (0, 0, 255),
    "brown": (139, 69, 19),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "green": (0, 128, 0),
    "orange": (255, 165, 0),
    "pink": (255, 192, 203),
    "purple": (128, 0, 128),
    "red": (255, 0, 0),
    "teal": (0, 128, 128),
    "white": (255, 255, 255),
    "yellow": (255, 255, 0),
}

HARMONY_INSIGHTS = {
    "monochromatic": "A monochromatic palette keeps attention on value and texture rather than hue contrast.",
    "analogous": "Neighbouring hues form an analogous harmony that feels unified and calm.",
    "complementary": "Hues from opposite sides of the color wheel create complementary tension and vibrancy.",
    "triadic": "Widely spaced hues create a triadic balance with lively variety.",
}

TEMPERATURE_INSIGHTS = {
    "warm": "Warm reds, oranges and yellows advance toward the viewer and add energy.",
    "cool": "Cool blues and greens recede and lend the scene a sense of calm distance.",
    "balanced": "Warm and cool hues are balanced, so neither temperature dominates.",
}


def hue_range(hues: Iterable[float]) -> float:
    values = [float(h) for h in hues]
    if not values:
        return 0.0
    return max(values) - min(values)


def classify_harmony(hues: Iterable[float]) -> str:
    """Classify harmony by the spread between the lowest and highest hue."""
    spread = hue_range(hues)
    if spread < MONOCHROMATIC_MAX_RANGE:
        return "monochromatic"
    if spread <= ANALOGOUS_MAX_RANGE:
        return "analogous"
    if spread <= TRIADIC_MAX_RANGE:
        return "triadic"
    if spread < COMPLEMENTARY_MAX_RANGE:
        return "complementary"
    return "triadic"


def chromatic(samples: Iterable[ColorSample]) -> list[ColorSample]:
    return [s for s in samples if s.hsl.s >= ACHROMATIC_SATURATION]


def is_warm_hue(h: float) -> bool:
    return h < 90 or h >= 330


def is_cool_hue(h: float) -> bool:
    return 150 <= h < 270


def classify_temperature(samples: Sequence[ColorSample]) -> str:
    hues = [s.hsl.h for s in chromatic(samples)]
    warm = sum(1 for h in hues if is_warm_hue(h))
    cool = sum(1 for h in hues if is_cool_hue(h))
    if warm > cool:
        return "warm"
    if cool > warm:
        return "cool"
    return "balanced"


def _averages(samples: Sequence[ColorSample]) -> tuple[float, float]:
    if not samples:
        return 0.0, 0.0
    avg_s = sum(s.hsl.s for s in samples) / len(samples)
    avg_l = sum(s.hsl.l for s in samples) / len(samples)
    return avg_s, avg_l


def classify_mood(samples: Sequence[ColorSample]) -> str:
    if not samples:
        return "balanced"
    avg_s, avg_l = _averages(samples)
    if avg_l < DARK_LIGHTNESS:
        return "dramatic"
    if avg_s > HIGH_SATURATION:
        return "energetic"
    if avg_s < LOW_SATURATION:
        return "muted"
    if avg_l > LIGHT_LIGHTNESS:
        return "airy"
    return "balanced"


def color_insights(samples: Sequence[ColorSample]) -> list[str]:
    """Threshold-triggered observations about a palette."""
    if not samples:
        return []
    insights: list[str] = []
    avg_s, _ = _averages(samples)
    if avg_s > HIGH_SATURATION:
        insights.append("High saturation gives the palette intensity and pulls the eye across the surface.")
    elif avg_s < LOW_SATURATION:
        insights.append("Low saturation creates a subdued, restrained atmosphere.")

    lightness = [s.hsl.l for s in samples]
    if max(lightness) - min(lightness) > VALUE_CONTRAST_SPREAD:
        insights.append("Strong contrast between light and dark values creates depth and drama.")

    top = samples[0]
    if top.percentage > DOMINANT_PERCENTAGE:
        insights.append(
            f"{top.name} dominates the palette, covering about {top.percentage:.0f}% of the sampled surface."
        )

    harmony = classify_harmony(s.hsl.h for s in chromatic(samples))
    insights.append(HARMONY_INSIGHTS[harmony])
    insights.append(TEMPERATURE_INSIGHTS[classify_temperature(samples)])
    return insights


def parse_color_descriptor(value: str) -> tuple[int, int, int] | None:
    """Parse ``rgb(r, g, b)``, ``#rrggbb`` or a basic color name."""
    if not value:
        return None
    text = value.strip()
    m = _RGB_RE.search(text)
    if m:
        channels = tuple(int(c) for c in m.groups())
        if all(0 <= c <= 255 for c in channels):
            return channels  # type: ignore[return-value]
        return None
    if _HEX_RE.match(text):
        return hex_to_rgb(text)
    return NAMED_COLORS.get(text.lower())


def samples_from_descriptors(descriptors: Iterable[str]) -> list[ColorSample]:
    """Turn vision-reported color descriptors into an equal-share palette."""
    seen: dict[tuple[int, int, int], None] = {}
    for descriptor in descriptors:
        rgb = parse_color_descriptor(descriptor)
        if rgb is not None:
            seen.setdefault(rgb, None)
    colors = list(seen)[:6]
    if not colors:
        return []
    share = round(100.0 / len(colors), 2)
    return [make_sample(r, g, b, share) for r, g, b in colors]


def analyze_colors(samples: Sequence[ColorSample]) -> ColorAnalysis:
    hues = [s.hsl.h for s in chromatic(samples)]
    return ColorAnalysis(
        palette=list(samples),
        harmony=classify_harmony(hues),
        hue_range=hue_range(hues),
        temperature=classify_temperature(samples),
        mood=classify_mood(samples),
        insights=color_insights(samples),
    )
