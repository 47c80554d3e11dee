from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_list_value(value: str) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="forbid",
        validate_by_name=True,
        populate_by_name=True,
    )

    # --- Vision providers ---
    google_vision_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GOOGLE_VISION_API_KEY", "GOOGLE_CLOUD_VISION_API_KEY"),
    )
    microsoft_vision_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("MICROSOFT_VISION_API_KEY", "AZURE_VISION_KEY"),
    )
    microsoft_vision_endpoint: str = Field(
        default="",
        validation_alias=AliasChoices("MICROSOFT_VISION_ENDPOINT", "AZURE_VISION_ENDPOINT"),
    )
    clarifai_api_key: str = ""
    vision_timeout_seconds: float = 15.0

    # --- Text generation ---
    openai_api_key: str = ""
    ai_allowed_providers_raw: str = Field(
        default="openai,mock",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS"),
    )
    ai_interpretation_provider: str = "openai"
    ai_interpretation_model: str = "gpt-4"
    ai_interpretation_temperature: float = 0.3
    ai_interpretation_max_tokens: int = 1500
    ai_synthesis_provider: str = "openai"
    ai_synthesis_model: str = "gpt-4"
    ai_synthesis_temperature: float = 0.4
    ai_synthesis_max_tokens: int = 2000
    ai_timeout_seconds: float = 45.0
    ai_debug_store_raw: bool = False

    # --- Museum / reference providers ---
    harvard_api_key: str = ""
    artsearch_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("ARTSEARCH_API_KEY", "ART_SEARCH_API_KEY"),
    )
    recall_timeout_seconds: float = 10.0
    recall_user_agent: str = "ArtLens/0.3 (educational artwork analysis)"

    # --- Service ---
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    max_image_bytes: int = 10 * 1024 * 1024
    log_level: str = "INFO"
    expose_error_details: bool = False
    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    security_headers_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("SECURITY_HEADERS_ENABLED", "SECURE_HEADERS_ENABLED"),
    )

    rate_limit_api_enabled: bool = False
    rate_limit_api_per_min: int = 30
    rate_limit_analyze_per_min: int = 6

    trusted_proxy_cidrs: Annotated[list[str], NoDecode] = Field(default_factory=list)

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "GET",
        "POST",
        "OPTIONS",
    ])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
    ])

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "trusted_proxy_cidrs",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def ai_allowed_providers(self) -> list[str]:
        return [p.lower() for p in _parse_list_value(self.ai_allowed_providers_raw)]

    @property
    def microsoft_vision_base_url(self) -> str:
        endpoint = self.microsoft_vision_endpoint.strip()
        if endpoint and not endpoint.endswith("/"):
            endpoint += "/"
        return endpoint

@lru_cache
def get_settings() -> Settings:
    return Settings()
