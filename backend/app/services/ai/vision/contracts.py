"""Vision scope contracts."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ordered_unique(items: Iterable[str]) -> list[str]:
    """De-duplicate strings keeping the first occurrence; blanks dropped."""
    cleaned = (str(item).strip() for item in items if item is not None)
    return list(dict.fromkeys(item for item in cleaned if item))


class ProviderObservation(BaseModel):
    """One provider's normalized contribution."""

    provider: str
    labels: list[str] = Field(default_factory=list)
    objects: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    text: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    face_count: int | None = None


class VisionObservation(BaseModel):
    """Merged vocabulary from every vision provider that answered."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    labels: list[str] = Field(default_factory=list)
    objects: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    text: list[str] = Field(default_factory=list)
    face_count: int = Field(default=0, ge=0)
    categories: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.labels or self.objects or self.colors or self.text)
