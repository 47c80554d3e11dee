"""Settings parsing from the environment."""

import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from app.core.config import Settings, get_settings


class SettingsTests(unittest.TestCase):
    @patch.dict(
        os.environ,
        {
            "CORS_ALLOW_ORIGINS": "https://a.example, https://b.example",
            "TRUSTED_PROXY_CIDRS": "10.0.0.0/8",
            "AI_ALLOWED_PROVIDERS": "OpenAI, Mock",
        },
        clear=False,
    )
    def test_csv_lists(self):
        get_settings.cache_clear()
        settings = get_settings()
        self.assertEqual(settings.cors_allow_origins, ["https://a.example", "https://b.example"])
        self.assertEqual(settings.trusted_proxy_cidrs, ["10.0.0.0/8"])
        self.assertEqual(settings.ai_allowed_providers, ["openai", "mock"])

    @patch.dict(os.environ, {"AI_ALLOWED_PROVIDERS": '["openai"]'}, clear=False)
    def test_json_allowlist(self):
        self.assertEqual(Settings().ai_allowed_providers, ["openai"])

    @patch.dict(os.environ, {"GOOGLE_CLOUD_VISION_API_KEY": "legacy-key"}, clear=True)
    def test_credential_alias(self):
        self.assertEqual(Settings().google_vision_api_key, "legacy-key")

    def test_generation_defaults(self):
        settings = Settings(openai_api_key="")
        self.assertEqual(settings.ai_interpretation_temperature, 0.3)
        self.assertEqual(settings.ai_interpretation_max_tokens, 1500)
        self.assertEqual(settings.ai_synthesis_temperature, 0.4)
        self.assertEqual(settings.ai_synthesis_max_tokens, 2000)

    def test_microsoft_base_url_has_trailing_slash(self):
        settings = Settings(microsoft_vision_endpoint="https://ms.example.com")
        self.assertEqual(settings.microsoft_vision_base_url, "https://ms.example.com/")

    def test_unknown_fields_rejected(self):
        with self.assertRaises(ValidationError):
            Settings(not_a_setting=True)
