from __future__ import annotations

import unittest

from competitor_agent.screenshot import PROVIDER_CHAIN, screenshot_url


class ScreenshotUrlTests(unittest.TestCase):
    def test_each_provider_builds_its_own_link(self):
        self.assertTrue(screenshot_url("https://a.com", "microlink").startswith("https://api.microlink.io/?url=https%3A%2F%2Fa.com"))
        self.assertEqual(
            screenshot_url("https://a.com", "thumio"),
            "https://image.thum.io/get/width/1200/crop/800/noanimate/https://a.com",
        )
        self.assertEqual(
            screenshot_url("https://a.com", "local", "http://agent:8000/"),
            "http://agent:8000/screenshot?url=https%3A%2F%2Fa.com",
        )

    def test_unknown_provider_starts_at_head_of_chain(self):
        self.assertEqual(PROVIDER_CHAIN[0], "microlink")
        self.assertEqual(screenshot_url("https://a.com", "nonsense"), screenshot_url("https://a.com", "microlink"))

    def test_local_without_base_url_wraps_to_head(self):
        self.assertEqual(screenshot_url("https://a.com", "local", ""), screenshot_url("https://a.com", "microlink"))


if __name__ == "__main__":
    unittest.main()
