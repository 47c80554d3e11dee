"""Synthesis stage: tolerant parsing, confidence, sources and the fallback analysis."""

import asyncio
import json
import unittest

import httpx

from app.services.ai.common.errors import SynthesisUnavailable
from app.services.ai.interpretation.contracts import InterpretationInsight
from app.services.ai.synthesis.contracts import EducationalAnalysis
from app.services.ai.synthesis.service import (
    build_fallback_analysis,
    build_synthesis_prompt,
    collect_sources,
    compute_confidence,
    parse_synthesis,
    synthesize,
)
from app.services.ai.vision.contracts import VisionObservation
from app.services.color.palette import DEFAULT_PALETTE
from app.services.recall.contracts import HistoricalContextNote, RecallBundle, WikipediaSummary
from conftest import make_settings

OBSERVATION = VisionObservation(
    labels=["painting", "flower"],
    objects=["pond"],
    colors=["rgb(40, 90, 200)"],
    sources=["Google Vision"],
)
INSIGHT = InterpretationInsight(style_insights=["Impressionist brushwork"], reflection_questions=["What do you see?"])
RECALL = RecallBundle(
    wikipedia_data=WikipediaSummary(title="Water Lilies", extract="A series of paintings."),
    historical_context=HistoricalContextNote(summary="A series of paintings.", sources=["Wikipedia"]),
)


class ConfidenceTests(unittest.TestCase):
    def test_labels_and_objects_only(self):
        obs = VisionObservation(labels=["a"], objects=["b"])
        self.assertEqual(compute_confidence(obs, None, None), 0.7)

    def test_nothing(self):
        self.assertEqual(compute_confidence(VisionObservation(), None, None), 0.5)

    def test_every_signal_caps_at_one(self):
        self.assertEqual(compute_confidence(OBSERVATION, INSIGHT, RECALL), 1.0)

    def test_sources_in_order_without_duplicates(self):
        sources = collect_sources(OBSERVATION, RECALL, ["OpenAI", "OpenAI"])
        self.assertEqual(sources, ["Google Vision", "OpenAI", "Wikipedia"])


class ParseTests(unittest.TestCase):
    def test_malformed_sections_fall_back_to_defaults(self):
        raw = "Analysis follows:\n" + json.dumps(
            {
                "styleAnalysis": "Impressionism",
                "themeAnalysis": {"primaryThemes": "Light", "emotionalTone": ["calm"]},
                "reflectionQuestions": ["What do you see?", {"question": "Why?", "category": "WEIRD"}, 42],
                "learningObjectives": [{"description": "Describe brushwork", "difficulty": "Expert"}],
                "colorAnalysis": {"colorPalette": [{"hex": "#fff", "percentage": "30%"}]},
                "confidence": 0.99,
                "sources": ["Made Up"],
            }
        )
        analysis = parse_synthesis(raw)

        self.assertEqual(analysis.style_analysis.primary_style, "")
        self.assertEqual(analysis.theme_analysis.primary_themes, ["Light"])
        self.assertEqual(analysis.theme_analysis.emotional_tone, "")
        self.assertEqual([q.question for q in analysis.reflection_questions], ["What do you see?", "Why?"])
        self.assertEqual([q.category for q in analysis.reflection_questions], ["observation", "observation"])
        self.assertEqual(analysis.learning_objectives[0].difficulty, "beginner")
        self.assertEqual(analysis.color_analysis.color_palette[0].percentage, 30.0)
        self.assertEqual(analysis.confidence, 0.5)
        self.assertEqual(analysis.sources, [])

    def test_no_object_raises(self):
        with self.assertRaises(SynthesisUnavailable):
            parse_synthesis("Sorry, I cannot help with that.")

    def test_camel_case_serialization(self):
        data = EducationalAnalysis(title="T").model_dump(by_alias=True)
        self.assertIn("styleAnalysis", data)
        self.assertIn("analysisStages", data)


class PromptTests(unittest.TestCase):
    def test_prompt_contains_context_and_template(self):
        prompt = build_synthesis_prompt(OBSERVATION, INSIGHT, RECALL)
        self.assertTrue(prompt.startswith("Create a comprehensive educational analysis"))
        self.assertIn("\"flower\"", prompt)
        self.assertIn("Impressionist brushwork", prompt)
        self.assertIn('"styleAnalysis"', prompt)
        self.assertNotIn("Google Vision", prompt)


class SynthesizeTests(unittest.TestCase):
    def test_mock_synthesis_sets_local_fields(self):
        settings = make_settings(ai_synthesis_provider="mock")
        analysis = asyncio.run(
            synthesize(
                OBSERVATION,
                INSIGHT,
                RECALL,
                palette=DEFAULT_PALETTE,
                upstream_sources=["Mock"],
                settings=settings,
            )
        )

        self.assertEqual(analysis.style_analysis.primary_style, "Impressionism")
        self.assertEqual(analysis.confidence, 1.0)
        self.assertEqual(analysis.sources, ["Google Vision", "Mock", "Wikipedia"])
        self.assertEqual(analysis.title, "Flower Study")
        self.assertEqual(analysis.palette, DEFAULT_PALETTE)
        self.assertEqual(len(analysis.color_analysis.color_palette), len(DEFAULT_PALETTE))
        self.assertFalse(analysis.fallback)

    def test_openai_request_parameters(self):
        seen = {}

        def handler(request):
            seen.update(json.loads(request.content))
            reply = {"choices": [{"message": {"content": '{"title": "Nymphs", "styleAnalysis": {}}'}}]}
            return httpx.Response(200, json=reply)

        settings = make_settings(openai_api_key="sk-test")
        analysis = asyncio.run(
            synthesize(OBSERVATION, None, None, settings=settings, transport=httpx.MockTransport(handler))
        )

        self.assertEqual(seen["temperature"], 0.4)
        self.assertEqual(seen["max_tokens"], 2000)
        self.assertEqual(analysis.title, "Nymphs")
        self.assertIn("OpenAI", analysis.sources)

    def test_missing_credential(self):
        with self.assertRaises(SynthesisUnavailable):
            asyncio.run(synthesize(OBSERVATION, None, None, settings=make_settings()))

    def test_unparseable_reply(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "plain prose"}}]})
        )
        with self.assertRaises(SynthesisUnavailable):
            asyncio.run(
                synthesize(OBSERVATION, None, None, settings=make_settings(openai_api_key="k"), transport=transport)
            )

    def test_malformed_reply_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": [{"message": ["x"]}]}))
        with self.assertRaises(SynthesisUnavailable):
            asyncio.run(
                synthesize(OBSERVATION, None, None, settings=make_settings(openai_api_key="k"), transport=transport)
            )

    def test_server_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        with self.assertRaises(SynthesisUnavailable):
            asyncio.run(
                synthesize(OBSERVATION, None, None, settings=make_settings(openai_api_key="k"), transport=transport)
            )


class FallbackTests(unittest.TestCase):
    def test_fallback_from_upstream_data(self):
        analysis = build_fallback_analysis(OBSERVATION, INSIGHT, RECALL, palette=DEFAULT_PALETTE)

        self.assertTrue(analysis.fallback)
        self.assertEqual(analysis.title, "Flower Study")
        self.assertEqual(analysis.confidence, 1.0)
        self.assertEqual(analysis.sources, ["Google Vision", "Wikipedia"])
        self.assertEqual(analysis.style_analysis.style_characteristics, ["Impressionist brushwork"])
        self.assertEqual([q.question for q in analysis.reflection_questions], ["What do you see?"])
        self.assertEqual(len(analysis.color_analysis.color_palette), 6)
        self.assertEqual(analysis.historical_context.educational_significance, "A series of paintings.")

    def test_fallback_with_nothing(self):
        analysis = build_fallback_analysis(VisionObservation(), None, None)
        self.assertEqual(analysis.title, "Untitled Artwork")
        self.assertEqual(analysis.confidence, 0.5)
        self.assertEqual(analysis.sources, [])
        self.assertEqual(len(analysis.reflection_questions), 2)

    def test_fallback_for_photo_labels(self):
        photo = VisionObservation(labels=["car", "wheel", "road"], sources=["Clarifai"])
        analysis = build_fallback_analysis(photo, None, None)

        self.assertEqual(analysis.title, "Image Analysis")
        self.assertEqual(analysis.technique_analysis.primary_techniques, ["Photography"])
        self.assertTrue(analysis.style_analysis.movement_context.startswith("This image appears to be a photograph"))
