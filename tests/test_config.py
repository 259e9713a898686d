from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from competitor_agent.config import Settings


class SettingsTests(unittest.TestCase):
    def test_from_env(self):
        env = {
            "LLM_PROVIDER": "Gemini",
            "LLM_BASE_URL": "https://llm.example/v1/",
            "PAGESPEED_API_KEY": "psi-key",
            "USE_MOCK_PERFORMANCE": "no",
            "COMPETITOR_CORS_ORIGINS": "https://app.example, https://admin.example ,",
            "PLAYWRIGHT_CONCURRENCY": "0",
        }
        with patch.dict(os.environ, env):
            s = Settings.from_env()

        self.assertEqual(s.llm_provider, "gemini")
        self.assertEqual(s.llm_base_url, "https://llm.example/v1")
        self.assertEqual(s.cors_origins, ("https://app.example", "https://admin.example"))
        self.assertEqual(s.playwright_concurrency, 1)
        self.assertTrue(s.performance_live)

    def test_screenshot_viewport_and_settle(self):
        with patch.dict(os.environ, {"SCREENSHOT_VIEWPORT": "1024X640", "SCREENSHOT_SETTLE_MS": "-5"}):
            s = Settings.from_env()
        self.assertEqual(s.screenshot_viewport, (1024, 640))
        self.assertEqual(s.screenshot_settle_ms, 0)

    def test_missing_credential_forces_mock(self):
        with patch.dict(os.environ, {"PAGESPEED_API_KEY": "", "USE_MOCK_PERFORMANCE": "false"}):
            self.assertFalse(Settings.from_env().performance_live)

    def test_mock_flag_forces_mock(self):
        with patch.dict(os.environ, {"PAGESPEED_API_KEY": "psi-key", "USE_MOCK_PERFORMANCE": "TRUE"}):
            self.assertFalse(Settings.from_env().performance_live)


if __name__ == "__main__":
    unittest.main()
