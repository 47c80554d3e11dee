"""Label heuristics used when no generated analysis is available.

Each rule is a case-insensitive substring check over vision labels,
objects or colors.
"""

from __future__ import annotations

from collections.abc import Iterable

from .contracts import VisionObservation

ART_KEYWORDS = (
    "painting",
    "art",
    "artwork",
    "canvas",
    "oil painting",
    "watercolor",
    "drawing",
    "sketch",
    "portrait",
    "landscape",
    "still life",
    "artistic",
    "masterpiece",
    "gallery",
    "museum",
    "brush",
    "paint",
    "artist",
    "painter",
    "fine art",
    "visual art",
)

ARTISTIC_SUBJECTS = (
    "skeleton",
    "skull",
    "bone",
    "figure",
    "person",
    "face",
    "body",
    "anatomy",
    "flower",
    "fruit",
    "bowl",
    "vase",
    "nature",
    "tree",
    "mountain",
    "river",
    "building",
    "architecture",
    "church",
    "castle",
    "bridge",
    "city",
    "street",
    "horse",
    "dog",
    "cat",
    "animal",
    "bird",
    "fish",
)

# Minimum labels for subject-only evidence to count as an artwork.
MIN_SUBJECT_LABELS = 3

PHOTO_TITLE = "Image Analysis"
PHOTO_NOTE = (
    "This image appears to be a photograph rather than an artwork. Try uploading a painting, "
    "drawing, or other artistic work for detailed analysis."
)


def any_contains(values: Iterable[str], *keywords: str) -> bool:
    lowered = [v.lower() for v in values if v]
    return any(k in v for v in lowered for k in keywords)


def is_anatomical_study(obs: VisionObservation) -> bool:
    return any_contains(obs.labels, "skeleton", "skull", "bone")


def is_bridge_scene(obs: VisionObservation) -> bool:
    return any_contains(obs.labels + obs.objects, "bridge")


def is_portrait(obs: VisionObservation) -> bool:
    return any_contains(obs.labels, "portrait", "face")


def is_landscape(obs: VisionObservation) -> bool:
    return any_contains(obs.labels, "landscape", "nature")


def is_flower_study(obs: VisionObservation) -> bool:
    return any_contains(obs.labels, "flower", "bouquet")


def is_still_life(obs: VisionObservation) -> bool:
    return any_contains(obs.labels, "still life", "bowl", "fruit")


def has_cool_colors(obs: VisionObservation) -> bool:
    return any_contains(obs.colors, "blue", "green", "grey", "gray")


def has_earth_colors(obs: VisionObservation) -> bool:
    return any_contains(obs.colors, "brown", "yellow")


def is_likely_artwork(labels: list[str]) -> bool:
    """True for art keywords, or for several labels naming classic art subjects."""
    if any_contains(labels, *ART_KEYWORDS):
        return True
    return any_contains(labels, *ARTISTIC_SUBJECTS) and len(labels) >= MIN_SUBJECT_LABELS


def reads_as_photo(obs: VisionObservation) -> bool:
    """Labels exist but none of them point at an artwork."""
    return bool(obs.labels) and not is_likely_artwork(obs.labels)


def suggest_title(obs: VisionObservation) -> str:
    if is_anatomical_study(obs):
        return "Skeleton Study"
    if is_bridge_scene(obs):
        return "Bridge Scene"
    if is_portrait(obs):
        return "Portrait Study"
    if is_landscape(obs):
        return "Landscape"
    if is_flower_study(obs):
        return "Flower Study"
    if is_still_life(obs):
        return "Still Life"
    if obs.labels:
        first = obs.labels[0]
        return first[:1].upper() + first[1:]
    return "Untitled Artwork"


def title_for(obs: VisionObservation) -> str:
    return PHOTO_TITLE if reads_as_photo(obs) else suggest_title(obs)


def identify_style(obs: VisionObservation) -> str:
    if any_contains(obs.labels, "abstract"):
        return "Abstract Expression"
    if any_contains(obs.labels, "realistic"):
        return "Realistic Representation"
    if any_contains(obs.labels, "impressionis"):
        return "Impressionistic Technique"
    if is_bridge_scene(obs) and has_cool_colors(obs):
        return "Atmospheric Painting"
    if is_anatomical_study(obs) and has_earth_colors(obs):
        return "Expressive Academic Study"
    if is_portrait(obs):
        return "Portrait Study"
    if is_landscape(obs):
        return "Landscape Study"
    if any_contains(obs.labels, "flower", "still life"):
        return "Still Life Study"
    return "Mixed Artistic Approach"


def estimate_period(obs: VisionObservation) -> str:
    if any_contains(obs.labels, "modern"):
        return "Contemporary Art Style"
    if any_contains(obs.labels, "classical"):
        return "Classical Art Style"
    if is_anatomical_study(obs) and has_earth_colors(obs):
        return "Academic Study Style (19th-20th Century)"
    if is_bridge_scene(obs) and (has_cool_colors(obs) or any_contains(obs.labels, "paint")):
        return "Atmospheric Landscape Style"
    if any_contains(obs.colors, "blue", "green") and any_contains(obs.labels, "nature", "tree"):
        return "Naturalistic Color Study"
    if any_contains(obs.labels, "portrait") and any_contains(obs.labels, "figure"):
        return "Figurative Art Style"
    return "Artistic Study"


def identify_techniques(obs: VisionObservation) -> list[str]:
    techniques: list[str] = []
    if any_contains(obs.labels, "oil"):
        techniques.append("Oil painting technique with smooth color transitions and rich impasto")
    if any_contains(obs.labels, "watercolor"):
        techniques.append("Watercolor layering with controlled transparency and luminosity")
    if any_contains(obs.labels, "brush"):
        techniques.append("Varied brushwork creating textural interest and directional movement")
    if any_contains(obs.labels, "texture"):
        techniques.append("Textural variety enhancing visual and tactile interest")
    if len(obs.colors) > 2:
        techniques.append("Deliberate color harmony across several distinct hues")
    if any_contains(obs.labels, "portrait"):
        techniques.append("Attention to facial proportion and anatomical structure")
    if any_contains(obs.labels, "landscape"):
        techniques.append("Atmospheric perspective creating convincing spatial depth")
    if is_anatomical_study(obs):
        techniques.append("Precise anatomical knowledge and structural understanding")
    return techniques or ["Technical proficiency evident in the handling of the medium"]


def identify_elements(obs: VisionObservation) -> list[str]:
    elements: list[str] = []
    if obs.colors:
        elements.append(f"Color palette featuring {', '.join(obs.colors[:3])} that establishes mood and hierarchy")
    if any_contains(obs.labels, "line"):
        elements.append("Controlled line work that defines form and creates directional movement")
    if any_contains(obs.labels, "shape"):
        elements.append("Interplay between geometric and organic shapes creating visual rhythm")
    if any_contains(obs.labels, "texture"):
        elements.append("Varied textural elements that enhance visual and tactile interest")
    if obs.objects:
        elements.append(f"Placement of {' and '.join(obs.objects[:2])} creates balance and compositional flow")
    elements.append("Light and shadow model form and create three-dimensionality")
    elements.append("Compositional balance guides the viewer's eye through the work")
    return elements
