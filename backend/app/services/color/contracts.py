"""Color records shared by the extractor, recall and synthesis stages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RGB(BaseModel):
    model_config = ConfigDict(frozen=True)

    r: int = Field(..., ge=0, le=255)
    g: int = Field(..., ge=0, le=255)
    b: int = Field(..., ge=0, le=255)


class HSL(BaseModel):
    model_config = ConfigDict(frozen=True)

    h: int = Field(..., ge=0, le=359)
    s: int = Field(..., ge=0, le=100)
    l: int = Field(..., ge=0, le=100)  # noqa: E741


class ColorSample(BaseModel):
    """One quantized palette entry."""

    model_config = ConfigDict(frozen=True)

    hex: str
    rgb: RGB
    hsl: HSL
    percentage: float = Field(..., gt=0, le=100)
    name: str


class ColorAnalysis(BaseModel):
    """Pure derivations over a palette."""

    model_config = ConfigDict(frozen=True)

    palette: list[ColorSample] = Field(default_factory=list)
    harmony: str = "monochromatic"
    hue_range: float = 0.0
    temperature: str = "balanced"
    mood: str = "balanced"
    insights: list[str] = Field(default_factory=list)
