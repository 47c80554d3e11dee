"""Deterministic provider replies for offline demos and tests."""

from __future__ import annotations

import json
import time

from .base import BaseProvider, ProviderResult

MOCK_INTERPRETATION = {
    "styleInsights": [
        "Loose, broken brushwork suggests an Impressionist approach",
        "Emphasis on light and atmosphere over precise contour",
    ],
    "techniqueInsights": [
        "Visible brush strokes build texture across the surface",
        "Colors are placed side by side rather than blended",
    ],
    "themeInsights": [
        "Everyday scenery treated as a subject worth close looking",
    ],
    "mediumInsights": [
        "Likely oil paint on canvas",
    ],
    "reflectionQuestions": [
        "Where does your eye travel first, and why?",
        "How does the artist suggest light without outlining it?",
    ],
    "learningObjectives": [
        "Identify broken color and visible brushwork",
        "Describe how color temperature creates atmosphere",
    ],
}

MOCK_SYNTHESIS = {
    "styleAnalysis": {
        "primaryStyle": "Impressionism",
        "styleCharacteristics": ["Broken color", "Visible brushwork", "Natural light"],
        "movementContext": "Late nineteenth-century French painting",
        "stylisticInfluences": ["Plein air practice", "Japanese prints"],
        "visualLanguage": "Short strokes of unmixed color",
        "educationalInsights": ["Stand back to let the strokes blend optically"],
    },
    "techniqueAnalysis": {
        "primaryTechniques": ["Broken color", "Wet-on-wet"],
        "materialProperties": ["Opaque oil paint"],
        "applicationMethods": ["Short directional strokes"],
        "technicalInnovations": ["Painting outdoors to capture changing light"],
        "skillLevel": "intermediate",
        "educationalValue": "Shows how texture records the speed of painting",
    },
    "themeAnalysis": {
        "primaryThemes": ["Light", "Leisure", "Landscape"],
        "symbolicElements": ["Water as a mirror of changing light"],
        "emotionalTone": "Calm and contemplative",
        "culturalContext": "Modern life in a changing city",
        "narrativeElements": ["A passing moment rather than a story"],
        "interpretiveApproaches": ["Formal analysis", "Social history"],
    },
    "mediumAnalysis": {
        "primaryMedium": "Oil on canvas",
        "materialCharacteristics": ["Slow drying", "Rich saturation"],
        "historicalUsage": "Portable tube paints made outdoor painting practical",
        "technicalAdvantages": ["Can be worked wet into wet"],
        "conservationNotes": "Sensitive to light and humidity",
        "educationalSignificance": "Material choice shapes the look of the surface",
    },
    "colorAnalysis": {
        "colorPalette": [],
        "colorHarmony": "Analogous blues and greens with warm accents",
        "emotionalImpact": "Fresh and luminous",
        "symbolicMeaning": "Color stands for light rather than local color",
        "colorTheory": "Complementary accents intensify neighbouring hues",
        "educationalInsights": ["Shadows are painted with color, not black"],
    },
    "compositionAnalysis": {
        "compositionalPrinciples": ["Asymmetrical balance"],
        "visualFlow": "Diagonal movement into depth",
        "focalPoints": ["The brightest area of light"],
        "spatialRelationships": "Atmospheric perspective softens the distance",
        "balanceAndRhythm": "Repeated strokes create an even rhythm",
        "educationalApplications": ["Sketch the main directions of movement"],
    },
    "reflectionQuestions": [
        {
            "category": "observation",
            "question": "What colors do you see in the shadows?",
            "followUp": "Why might the artist avoid black?",
            "educationalGoal": "Close looking at color",
        }
    ],
    "learningObjectives": [
        {
            "skill": "Visual analysis",
            "description": "Describe brushwork using precise vocabulary",
            "assessmentMethod": "Short written description",
            "difficulty": "beginner",
        }
    ],
    "discussionPrompts": [
        {
            "topic": "Light",
            "question": "How does the painting capture a particular time of day?",
            "context": "Impressionists often painted the same motif at different hours",
            "suggestedResponses": ["Color temperature", "Length of shadows"],
        }
    ],
    "artisticMovements": [
        {
            "name": "Impressionism",
            "timePeriod": "1860s-1880s",
            "characteristics": ["Broken color", "Everyday subjects"],
            "keyArtists": ["Claude Monet", "Berthe Morisot"],
            "culturalContext": "Industrial modernity and leisure",
            "educationalRelevance": "Marks a shift toward perception as subject",
        }
    ],
    "visualElements": [],
    "comparativeExamples": [],
    "historicalContext": {
        "timePeriod": "Late nineteenth century",
        "culturalBackground": "Rapid urban change in France",
        "artisticClimate": "Independent exhibitions outside the official Salon",
        "socialInfluences": ["Railways", "Leisure culture"],
        "educationalSignificance": "Shows how artists responded to modern life",
    },
    "learningResources": {
        "keyConcepts": ["Broken color", "Plein air"],
        "discussionPrompts": ["What makes a moment worth painting?"],
        "learningActivities": ["Paint one scene at two times of day"],
        "vocabulary": ["Impasto", "Plein air", "Optical mixing"],
    },
}


class MockProvider(BaseProvider):
    name = "mock"
    label = "Mock"

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str = "",
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        t0 = time.monotonic()
        payload = MOCK_SYNTHESIS if '"styleAnalysis"' in prompt else MOCK_INTERPRETATION
        text = json.dumps(payload)
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
