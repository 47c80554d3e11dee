"""Vision/labeling providers.

Each provider posts the image to a third-party endpoint and normalizes the
reply into a ``ProviderObservation``. Missing credentials, non-2xx replies
and malformed payloads raise ``ProviderUnavailable``.
"""

from __future__ import annotations

import abc
import logging
from typing import Any

import httpx

from app.core.config import Settings
from app.core.image_processing import to_base64
from app.services.ai.common.errors import ProviderUnavailable

from .contracts import ProviderObservation

logger = logging.getLogger(__name__)

CLARIFAI_URL = "https://api.clarifai.com/v2/models/general-image-recognition/outputs"
GOOGLE_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
MICROSOFT_ANALYZE_PATH = "vision/v3.2/analyze"
MICROSOFT_VISUAL_FEATURES = "Categories,Description,Objects,Color,Adult,Tags"

GOOGLE_FEATURES = [
    {"type": "LABEL_DETECTION", "maxResults": 15},
    {"type": "OBJECT_LOCALIZATION", "maxResults": 10},
    {"type": "TEXT_DETECTION", "maxResults": 5},
    {"type": "IMAGE_PROPERTIES", "maxResults": 1},
    {"type": "FACE_DETECTION", "maxResults": 5},
]


def _names(items: Any, key: str) -> list[str]:
    if not isinstance(items, list):
        return []
    out: list[str] = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get(key), str):
            out.append(item[key])
    return out


def _strings(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, str)]


class VisionProvider(abc.ABC):
    """Contract for every vision provider."""

    name: str = "base"
    label: str = "Base"

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    @abc.abstractmethod
    def configured(self) -> bool:
        """True when the provider's credential is present."""

    @abc.abstractmethod
    async def observe(self, image_bytes: bytes) -> ProviderObservation:
        """Return this provider's normalized view of *image_bytes*."""

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.vision_timeout_seconds,
            transport=self._transport,
        )

    def _require_configured(self) -> None:
        if not self.configured:
            raise ProviderUnavailable(self.name, "API key not configured")

    async def _send(self, client: httpx.AsyncClient, request: httpx.Request) -> dict[str, Any]:
        resp = await client.send(request)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailable(self.name, f"HTTP {resp.status_code}") from exc
        try:
            data = resp.json()
        except ValueError as exc:
            raise ProviderUnavailable(self.name, "reply is not JSON") from exc
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "malformed payload")
        return data


class ClarifaiProvider(VisionProvider):
    name = "clarifai"
    label = "Clarifai"

    @property
    def configured(self) -> bool:
        return bool(self._settings.clarifai_api_key)

    async def observe(self, image_bytes: bytes) -> ProviderObservation:
        self._require_configured()
        async with self._client() as client:
            request = client.build_request(
                "POST",
                CLARIFAI_URL,
                headers={
                    "Authorization": f"Key {self._settings.clarifai_api_key}",
                    "Content-Type": "application/json",
                },
                json={"inputs": [{"data": {"image": {"base64": to_base64(image_bytes)}}}]},
            )
            data = await self._send(client, request)
        return self.parse(data)

    def parse(self, data: dict[str, Any]) -> ProviderObservation:
        outputs = data.get("outputs")
        if not isinstance(outputs, list) or not outputs or not isinstance(outputs[0], dict):
            raise ProviderUnavailable(self.name, "malformed payload")
        concepts = (outputs[0].get("data") or {}).get("concepts")
        return ProviderObservation(provider=self.name, labels=_names(concepts, "name"))


class GoogleVisionProvider(VisionProvider):
    name = "google"
    label = "Google Vision"

    @property
    def configured(self) -> bool:
        return bool(self._settings.google_vision_api_key)

    async def observe(self, image_bytes: bytes) -> ProviderObservation:
        self._require_configured()
        async with self._client() as client:
            request = client.build_request(
                "POST",
                GOOGLE_VISION_URL,
                params={"key": self._settings.google_vision_api_key},
                json={
                    "requests": [
                        {
                            "image": {"content": to_base64(image_bytes)},
                            "features": GOOGLE_FEATURES,
                        }
                    ]
                },
            )
            data = await self._send(client, request)
        return self.parse(data)

    def parse(self, data: dict[str, Any]) -> ProviderObservation:
        responses = data.get("responses")
        if not isinstance(responses, list) or not responses or not isinstance(responses[0], dict):
            raise ProviderUnavailable(self.name, "malformed payload")
        result = responses[0]
        if "error" in result:
            message = (result.get("error") or {}).get("message", "error")
            raise ProviderUnavailable(self.name, str(message))

        colors: list[str] = []
        dominant = ((result.get("imagePropertiesAnnotation") or {}).get("dominantColors") or {}).get("colors")
        for entry in dominant if isinstance(dominant, list) else []:
            color = entry.get("color") if isinstance(entry, dict) else None
            if isinstance(color, dict):
                # Google omits zero-valued channels.
                r, g, b = (int(color.get(c, 0)) for c in ("red", "green", "blue"))
                colors.append(f"rgb({r}, {g}, {b})")

        faces = result.get("faceAnnotations")
        return ProviderObservation(
            provider=self.name,
            labels=_names(result.get("labelAnnotations"), "description"),
            objects=_names(result.get("localizedObjectAnnotations"), "name"),
            text=_names(result.get("textAnnotations"), "description"),
            colors=colors,
            face_count=len(faces) if isinstance(faces, list) else 0,
        )


class MicrosoftVisionProvider(VisionProvider):
    name = "microsoft"
    label = "Microsoft Computer Vision"

    @property
    def configured(self) -> bool:
        return bool(self._settings.microsoft_vision_api_key and self._settings.microsoft_vision_endpoint)

    async def observe(self, image_bytes: bytes) -> ProviderObservation:
        self._require_configured()
        async with self._client() as client:
            request = client.build_request(
                "POST",
                f"{self._settings.microsoft_vision_base_url}{MICROSOFT_ANALYZE_PATH}",
                params={"visualFeatures": MICROSOFT_VISUAL_FEATURES},
                headers={
                    "Ocp-Apim-Subscription-Key": self._settings.microsoft_vision_api_key,
                    "Content-Type": "application/octet-stream",
                },
                content=image_bytes,
            )
            data = await self._send(client, request)
        return self.parse(data)

    def parse(self, data: dict[str, Any]) -> ProviderObservation:
        description = data.get("description") or {}
        color = data.get("color") or {}
        if not isinstance(description, dict) or not isinstance(color, dict):
            raise ProviderUnavailable(self.name, "malformed payload")
        return ProviderObservation(
            provider=self.name,
            labels=_strings(description.get("tags")),
            objects=_names(data.get("objects"), "object"),
            text=_names(description.get("captions"), "text"),
            colors=_strings(color.get("dominantColors")),
            categories=_names(data.get("categories"), "name"),
        )


# Merge precedence: earlier providers' items win ties.
PROVIDER_CLASSES: tuple[type[VisionProvider], ...] = (
    ClarifaiProvider,
    GoogleVisionProvider,
    MicrosoftVisionProvider,
)


def build_providers(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[VisionProvider]:
    return [cls(settings, transport=transport) for cls in PROVIDER_CLASSES]
