"""Vision aggregation across Clarifai, Google Vision and Microsoft Computer Vision."""

import asyncio
import json
import unittest

import httpx
import pytest

from app.services.ai.common.errors import ProviderUnavailable
from app.services.ai.vision.contracts import ProviderObservation, ordered_unique
from app.services.ai.vision.providers import (
    ClarifaiProvider,
    GoogleVisionProvider,
    MicrosoftVisionProvider,
    build_providers,
)
from app.services.ai.vision.service import aggregate_vision, merge_observations
from conftest import make_settings

IMAGE = b"\x89PNG fake image bytes"

ALL_KEYS = {
    "clarifai_api_key": "clarifai-key",
    "google_vision_api_key": "google-key",
    "microsoft_vision_api_key": "ms-key",
    "microsoft_vision_endpoint": "https://ms.example.com",
}


def clarifai_reply(*names):
    return {"outputs": [{"data": {"concepts": [{"name": n, "value": 0.9} for n in names]}}]}


def google_reply(labels=(), objects=(), faces=0, colors=()):
    return {
        "responses": [
            {
                "labelAnnotations": [{"description": d, "score": 0.9} for d in labels],
                "localizedObjectAnnotations": [{"name": n} for n in objects],
                "faceAnnotations": [{} for _ in range(faces)],
                "imagePropertiesAnnotation": {
                    "dominantColors": {"colors": [{"color": c, "score": 0.5} for c in colors]}
                },
            }
        ]
    }


def microsoft_reply(tags=(), colors=(), objects=()):
    return {
        "description": {"tags": list(tags), "captions": [{"text": "a painting of a river", "confidence": 0.8}]},
        "color": {"dominantColors": list(colors)},
        "objects": [{"object": o} for o in objects],
        "categories": [{"name": "outdoor_"}],
    }


def routing_transport(routes, calls=None):
    """MockTransport answering by host; unknown hosts get a 500."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        reply = routes.get(request.url.host)
        if reply is None:
            return httpx.Response(500, json={"error": "boom"})
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    return httpx.MockTransport(handler)


class MergeTests(unittest.TestCase):
    def test_ordered_unique_keeps_first_occurrence(self):
        self.assertEqual(ordered_unique(["a", "b", "a", " ", "c", "b"]), ["a", "b", "c"])

    def test_merge_deduplicates_in_provider_order(self):
        merged = merge_observations(
            [
                ProviderObservation(provider="Clarifai", labels=["red", "blue"]),
                ProviderObservation(provider="Google Vision", labels=["blue", "green"]),
            ]
        )
        self.assertEqual(merged.labels, ["red", "blue", "green"])
        self.assertEqual(merged.sources, ["Clarifai", "Google Vision"])

    def test_face_counts_sum_over_reporting_providers(self):
        merged = merge_observations(
            [
                ProviderObservation(provider="Google Vision", face_count=2),
                ProviderObservation(provider="Microsoft Computer Vision", face_count=None),
                ProviderObservation(provider="Other", face_count=1),
            ]
        )
        self.assertEqual(merged.face_count, 3)

    def test_merge_of_nothing_is_empty(self):
        merged = merge_observations([])
        self.assertTrue(merged.is_empty)
        self.assertEqual(merged.face_count, 0)
        self.assertEqual(merged.sources, [])


class ProviderParsingTests(unittest.TestCase):
    def setUp(self):
        self.settings = make_settings(**ALL_KEYS)

    def test_google_parse(self):
        provider = GoogleVisionProvider(self.settings)
        obs = provider.parse(
            google_reply(
                labels=["Painting", "Bridge"],
                objects=["Boat"],
                faces=2,
                colors=[{"red": 100, "green": 150, "blue": 200}, {"blue": 40}],
            )
        )
        self.assertEqual(obs.labels, ["Painting", "Bridge"])
        self.assertEqual(obs.objects, ["Boat"])
        self.assertEqual(obs.face_count, 2)
        self.assertEqual(obs.colors, ["rgb(100, 150, 200)", "rgb(0, 0, 40)"])

    def test_google_error_entry_raises(self):
        provider = GoogleVisionProvider(self.settings)
        with self.assertRaises(ProviderUnavailable):
            provider.parse({"responses": [{"error": {"message": "quota exceeded"}}]})

    def test_clarifai_malformed_raises(self):
        provider = ClarifaiProvider(self.settings)
        with self.assertRaises(ProviderUnavailable):
            provider.parse({"status": {"code": 10000}})

    def test_microsoft_parse(self):
        provider = MicrosoftVisionProvider(self.settings)
        obs = provider.parse(microsoft_reply(tags=["water", "outdoor"], colors=["Blue", "White"], objects=["boat"]))
        self.assertEqual(obs.labels, ["water", "outdoor"])
        self.assertEqual(obs.colors, ["Blue", "White"])
        self.assertEqual(obs.objects, ["boat"])
        self.assertEqual(obs.text, ["a painting of a river"])
        self.assertIsNone(obs.face_count)

    def test_microsoft_needs_key_and_endpoint(self):
        settings = make_settings(microsoft_vision_api_key="ms-key")
        self.assertFalse(MicrosoftVisionProvider(settings).configured)

    def test_provider_order(self):
        names = [p.name for p in build_providers(self.settings)]
        self.assertEqual(names, ["clarifai", "google", "microsoft"])


class AggregateVisionTests(unittest.TestCase):
    def test_every_provider_failing_yields_empty_observation(self):
        settings = make_settings(**ALL_KEYS)
        transport = routing_transport({})

        obs = asyncio.run(aggregate_vision(IMAGE, settings=settings, transport=transport))

        self.assertEqual(obs.labels, [])
        self.assertEqual(obs.objects, [])
        self.assertEqual(obs.colors, [])
        self.assertEqual(obs.text, [])
        self.assertEqual(obs.face_count, 0)
        self.assertEqual(obs.sources, [])

    def test_labels_merged_across_providers(self):
        settings = make_settings(**ALL_KEYS)
        transport = routing_transport(
            {
                "api.clarifai.com": clarifai_reply("red", "blue"),
                "vision.googleapis.com": google_reply(labels=["blue", "green"], faces=1),
            }
        )

        obs = asyncio.run(aggregate_vision(IMAGE, settings=settings, transport=transport))

        self.assertEqual(obs.labels, ["red", "blue", "green"])
        self.assertEqual(obs.face_count, 1)
        self.assertEqual(obs.sources, ["Clarifai", "Google Vision"])
        self.assertNotIn("Microsoft Computer Vision", obs.sources)

    def test_unconfigured_providers_are_not_called(self):
        settings = make_settings(google_vision_api_key="google-key")
        calls = []
        transport = routing_transport({"vision.googleapis.com": google_reply(labels=["portrait"])}, calls)

        obs = asyncio.run(aggregate_vision(IMAGE, settings=settings, transport=transport))

        self.assertEqual(obs.labels, ["portrait"])
        self.assertEqual({r.url.host for r in calls}, {"vision.googleapis.com"})

    def test_no_credentials_makes_no_calls(self):
        calls = []
        obs = asyncio.run(
            aggregate_vision(IMAGE, settings=make_settings(), transport=routing_transport({}, calls))
        )
        self.assertTrue(obs.is_empty)
        self.assertEqual(calls, [])

    def test_non_json_reply_is_skipped(self):
        settings = make_settings(**ALL_KEYS)
        transport = routing_transport(
            {
                "api.clarifai.com": httpx.Response(200, text="<html>maintenance</html>"),
                "ms.example.com": microsoft_reply(tags=["river"]),
            }
        )

        obs = asyncio.run(aggregate_vision(IMAGE, settings=settings, transport=transport))

        self.assertEqual(obs.labels, ["river"])
        self.assertEqual(obs.sources, ["Microsoft Computer Vision"])


@pytest.mark.asyncio
async def test_provider_requests_carry_credentials():
    settings = make_settings(**ALL_KEYS)
    calls = []
    transport = routing_transport(
        {
            "api.clarifai.com": clarifai_reply("art"),
            "vision.googleapis.com": google_reply(labels=["art"]),
            "ms.example.com": microsoft_reply(tags=["art"]),
        },
        calls,
    )

    await aggregate_vision(IMAGE, settings=settings, transport=transport)

    by_host = {r.url.host: r for r in calls}
    assert by_host["api.clarifai.com"].headers["authorization"] == "Key clarifai-key"
    assert by_host["vision.googleapis.com"].url.params["key"] == "google-key"
    google_body = json.loads(by_host["vision.googleapis.com"].content)
    assert google_body["requests"][0]["image"]["content"]
    ms = by_host["ms.example.com"]
    assert ms.url.path == "/vision/v3.2/analyze"
    assert ms.headers["ocp-apim-subscription-key"] == "ms-key"
    assert ms.headers["content-type"] == "application/octet-stream"
    assert ms.content == IMAGE
