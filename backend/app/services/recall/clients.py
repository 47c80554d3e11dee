"""Museum and reference API clients.

Every client raises ``ProviderUnavailable`` on a missing credential or a
non-2xx reply, and ``ReferenceNotFound`` when a lookup finds nothing.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.core.config import Settings
from app.services.ai.common.concurrency import settle_all
from app.services.ai.common.errors import ProviderUnavailable
from app.services.ai.common.json_tools import as_str, as_str_list

from .contracts import MuseumArtwork, MuseumResult, WikipediaSummary

logger = logging.getLogger(__name__)

WIKIPEDIA_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
MET_BASE_URL = "https://collectionapi.metmuseum.org/public/collection/v1"
HARVARD_OBJECT_URL = "https://api.harvardartmuseums.org/object"
ARTIC_SEARCH_URL = "https://api.artic.edu/api/v1/artworks/search"
ARTIC_FIELDS = (
    "id,title,artist_display,date_display,style_titles,medium_display,"
    "description,image_id,is_public_domain,thumbnail"
)
ARTIC_IIIF_URL = "https://www.artic.edu/iiif/2"
ARTSEARCH_URL = "https://api.artsearch.io/artworks"

SEARCH_LIMIT = 5
MET_OBJECT_LIMIT = 3


class ReferenceNotFound(ProviderUnavailable):
    """Lookup succeeded but returned nothing usable."""


class ReferenceClient:
    """Shared HTTP plumbing for reference providers."""

    name: str = "base"
    label: str = "Base"
    requires_key: bool = False

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def api_key(self) -> str:
        return ""

    @property
    def configured(self) -> bool:
        return not self.requires_key or bool(self.api_key)

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not self.configured:
            raise ProviderUnavailable(self.name, "API key not configured")
        merged = {"User-Agent": self._settings.recall_user_agent, "Accept": "application/json"}
        merged.update(headers or {})
        async with httpx.AsyncClient(
            timeout=self._settings.recall_timeout_seconds,
            transport=self._transport,
        ) as client:
            resp = await client.get(url, params=params, headers=merged)
        if resp.status_code == 404:
            raise ReferenceNotFound(self.name, "not found")
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

    def _result(self, query: str, artworks: list[MuseumArtwork], total: Any = None) -> MuseumResult:
        if not artworks:
            raise ReferenceNotFound(self.name, f"no results for {query!r}")
        try:
            total_count = int(total) if total is not None else len(artworks)
        except (TypeError, ValueError):
            total_count = len(artworks)
        return MuseumResult(source=self.label, query=query, total=total_count, artworks=artworks)


class WikipediaClient(ReferenceClient):
    name = "wikipedia"
    label = "Wikipedia"

    async def summary(self, term: str) -> WikipediaSummary:
        title = term.strip().replace(" ", "_")
        data = await self._get_json(WIKIPEDIA_SUMMARY_URL + quote(title, safe=""))
        if data.get("type") == "disambiguation" or not as_str(data.get("extract")):
            raise ReferenceNotFound(self.name, f"no article for {term!r}")
        page_url = ((data.get("content_urls") or {}).get("desktop") or {}).get("page", "")
        return WikipediaSummary(
            title=as_str(data.get("title"), term),
            extract=as_str(data.get("extract")),
            description=as_str(data.get("description")),
            url=as_str(page_url),
            query=term,
        )


class MetMuseumClient(ReferenceClient):
    name = "met"
    label = "Metropolitan Museum of Art"

    async def search(self, term: str, *, limit: int = MET_OBJECT_LIMIT) -> MuseumResult:
        data = await self._get_json(f"{MET_BASE_URL}/search", params={"q": term, "hasImages": "true"})
        object_ids = [oid for oid in (data.get("objectIDs") or []) if isinstance(oid, int)][:limit]
        if not object_ids:
            raise ReferenceNotFound(self.name, f"no results for {term!r}")

        settled = await settle_all({str(oid): self._object(oid) for oid in object_ids})
        artworks = [s.value for s in settled.values() if s.ok and s.value is not None]
        return self._result(term, artworks, data.get("total"))

    async def _object(self, object_id: int) -> MuseumArtwork | None:
        data = await self._get_json(f"{MET_BASE_URL}/objects/{object_id}")
        title = as_str(data.get("title"))
        if not title:
            return None
        return MuseumArtwork(
            title=title,
            artist=as_str(data.get("artistDisplayName")),
            date=as_str(data.get("objectDate")),
            medium=as_str(data.get("medium")),
            culture=as_str(data.get("culture")),
            period=as_str(data.get("period")),
            url=as_str(data.get("objectURL")),
            image_url=as_str(data.get("primaryImageSmall")),
            source=self.label,
        )


class HarvardClient(ReferenceClient):
    name = "harvard"
    label = "Harvard Art Museums"
    requires_key = True

    @property
    def api_key(self) -> str:
        return self._settings.harvard_api_key

    async def search(self, term: str) -> MuseumResult:
        data = await self._get_json(
            HARVARD_OBJECT_URL,
            params={"apikey": self.api_key, "keyword": term, "size": SEARCH_LIMIT, "hasimage": 1},
        )
        artworks: list[MuseumArtwork] = []
        for record in data.get("records") or []:
            if not isinstance(record, dict) or not as_str(record.get("title")):
                continue
            people = record.get("people") or []
            artist = as_str(people[0].get("name")) if people and isinstance(people[0], dict) else ""
            artworks.append(
                MuseumArtwork(
                    title=as_str(record.get("title")),
                    artist=artist,
                    date=as_str(record.get("dated")),
                    medium=as_str(record.get("medium")),
                    culture=as_str(record.get("culture")),
                    period=as_str(record.get("period")),
                    styles=as_str_list(record.get("style")),
                    url=as_str(record.get("url")),
                    image_url=as_str(record.get("primaryimageurl")),
                    source=self.label,
                )
            )
        total = (data.get("info") or {}).get("totalrecords")
        return self._result(term, artworks, total)


class ArtInstituteClient(ReferenceClient):
    name = "artic"
    label = "Art Institute of Chicago"

    async def search(self, term: str) -> MuseumResult:
        data = await self._get_json(
            ARTIC_SEARCH_URL,
            params={"q": term, "limit": SEARCH_LIMIT, "fields": ARTIC_FIELDS},
        )
        iiif = as_str((data.get("config") or {}).get("iiif_url"), ARTIC_IIIF_URL)
        artworks: list[MuseumArtwork] = []
        for item in data.get("data") or []:
            if not isinstance(item, dict) or not as_str(item.get("title")):
                continue
            image_id = as_str(item.get("image_id"))
            artworks.append(
                MuseumArtwork(
                    title=as_str(item.get("title")),
                    # artist_display carries nationality and dates on a second line.
                    artist=as_str(item.get("artist_display")).split("\n", 1)[0],
                    date=as_str(item.get("date_display")),
                    medium=as_str(item.get("medium_display")),
                    styles=as_str_list(item.get("style_titles")),
                    url=f"https://www.artic.edu/artworks/{item['id']}" if item.get("id") else "",
                    image_url=f"{iiif}/{image_id}/full/843,/0/default.jpg" if image_id else "",
                    source=self.label,
                )
            )
        total = (data.get("pagination") or {}).get("total")
        return self._result(term, artworks, total)


class ArtSearchClient(ReferenceClient):
    name = "artsearch"
    label = "ArtSearch"
    requires_key = True

    @property
    def api_key(self) -> str:
        return self._settings.artsearch_api_key

    async def search(self, term: str) -> MuseumResult:
        data = await self._get_json(
            ARTSEARCH_URL,
            params={"query": term, "number": SEARCH_LIMIT},
            headers={"x-api-key": self.api_key},
        )
        artworks = [
            MuseumArtwork(
                title=as_str(item.get("title")),
                image_url=as_str(item.get("image")),
                source=self.label,
            )
            for item in data.get("artworks") or []
            if isinstance(item, dict) and as_str(item.get("title"))
        ]
        return self._result(term, artworks, data.get("available"))
