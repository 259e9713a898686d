from __future__ import annotations

import unittest

import httpx

from competitor_agent.config import Settings
from competitor_agent.mock_metrics import (
    KNOWN_DOMAIN_SCORES,
    base_performance_score,
    derive_core_metrics,
    mock_performance,
    url_hash,
)
from competitor_agent.performance import PerformanceClient, parse_lighthouse


def _lighthouse_payload(perf=0.87, a11y=0.91, bp=1.0, seo=0.5):
    return {
        "lighthouseResult": {
            "categories": {
                "performance": {"score": perf},
                "accessibility": {"score": a11y},
                "best-practices": {"score": bp},
                "seo": {"score": seo},
            },
            "audits": {
                "first-contentful-paint": {"numericValue": 1200.5},
                "largest-contentful-paint": {"numericValue": 2400.0},
                "speed-index": {"numericValue": 3100.0},
                "total-blocking-time": {"numericValue": 150.0},
                "cumulative-layout-shift": {"numericValue": 0.04},
            },
        }
    }


class MockMetricsTests(unittest.TestCase):
    def test_rolling_hash(self):
        self.assertEqual(url_hash(""), 0)
        self.assertEqual(url_hash("a"), 97)
        self.assertEqual(url_hash("ab"), 97 * 31 + 98)
        self.assertLess(url_hash("https://example.com/" + "x" * 500), 2**32)

    def test_deterministic(self):
        url = "https://acme-widgets.io/pricing"
        self.assertEqual(mock_performance(url), mock_performance(url))
        self.assertEqual(mock_performance(url).source, "mock")

    def test_score_band_for_unknown_domains(self):
        for url in ("https://a-shop.com", "https://b-shop.net", "https://tiny.dev/x", "http://foo.bar.baz"):
            score = base_performance_score(url)
            self.assertGreaterEqual(score, 45)
            self.assertLessEqual(score, 94)

    def test_known_domain_table_overrides_band(self):
        self.assertEqual(base_performance_score("https://www.google.com/"), KNOWN_DOMAIN_SCORES["google.com"])
        self.assertEqual(mock_performance("https://amazon.com").performance.score, KNOWN_DOMAIN_SCORES["amazon.com"])

    def test_metric_ordering_and_cls_range(self):
        for url in ("https://a.com", "https://b.com", "https://cnn.com", "https://google.com", "https://zzz.org"):
            m = mock_performance(url).performance.metrics
            self.assertLess(m.first_contentful_paint, m.largest_contentful_paint)
            self.assertLess(m.largest_contentful_paint, m.speed_index)
            self.assertGreaterEqual(m.cumulative_layout_shift, 0.0)
            self.assertLessEqual(m.cumulative_layout_shift, 1.0)

    def test_lower_score_is_never_better(self):
        prev = derive_core_metrics(100)
        for score in range(99, -1, -1):
            cur = derive_core_metrics(score)
            self.assertGreater(cur.first_contentful_paint, prev.first_contentful_paint)
            self.assertGreater(cur.largest_contentful_paint, prev.largest_contentful_paint)
            self.assertGreater(cur.speed_index, prev.speed_index)
            self.assertGreater(cur.total_blocking_time, prev.total_blocking_time)
            self.assertGreaterEqual(cur.cumulative_layout_shift, prev.cumulative_layout_shift)
            prev = cur

    def test_secondary_scores_in_range(self):
        sig = mock_performance("https://example.org")
        for score in (sig.accessibility.score, sig.best_practices.score, sig.seo.score):
            self.assertGreaterEqual(score, 70)
            self.assertLessEqual(score, 99)


class ParseLighthouseTests(unittest.TestCase):
    def test_maps_scores_and_audits(self):
        sig = parse_lighthouse("https://example.com", _lighthouse_payload())
        self.assertEqual(sig.source, "live")
        self.assertEqual(sig.performance.score, 87)
        self.assertEqual(sig.accessibility.score, 91)
        self.assertEqual(sig.best_practices.score, 100)
        self.assertEqual(sig.seo.score, 50)
        self.assertEqual(sig.performance.metrics.largest_contentful_paint, 2400.0)
        self.assertEqual(sig.performance.metrics.cumulative_layout_shift, 0.04)

    def test_missing_audits_default_to_zero(self):
        payload = _lighthouse_payload()
        payload["lighthouseResult"]["audits"] = {}
        sig = parse_lighthouse("https://example.com", payload)
        self.assertEqual(sig.performance.metrics.first_contentful_paint, 0.0)

    def test_missing_result_raises(self):
        with self.assertRaises(KeyError):
            parse_lighthouse("https://example.com", {"error": {"code": 500}})


class PerformanceClientTests(unittest.TestCase):
    def _client(self, handler, **overrides):
        settings = Settings(pagespeed_api_key="key-123", **overrides)
        return PerformanceClient(settings, transport=httpx.MockTransport(handler))

    def test_without_credential_always_falls_back(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_lighthouse_payload())

        client = PerformanceClient(Settings(), transport=httpx.MockTransport(handler))
        for url in ("https://a.com", "https://b.com", "https://google.com"):
            sig = client.measure(url)
            self.assertEqual(sig, mock_performance(url))
        self.assertEqual(calls, [])

    def test_mock_flag_wins_over_credential(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_lighthouse_payload())

        client = self._client(handler, use_mock_performance=True)
        self.assertEqual(client.measure("https://a.com").source, "mock")
        self.assertEqual(calls, [])

    def test_live_call(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=_lighthouse_payload())

        sig = self._client(handler).measure("https://example.com")
        self.assertEqual(sig.source, "live")
        self.assertEqual(sig.url, "https://example.com")
        params = seen[0].url.params
        self.assertEqual(params["url"], "https://example.com")
        self.assertEqual(params["key"], "key-123")
        self.assertEqual(params["strategy"], "mobile")
        self.assertEqual(params.get_list("category"), ["PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO"])

    def test_rate_limited_falls_back(self):
        sig = self._client(lambda r: httpx.Response(429)).measure("https://example.com")
        self.assertEqual(sig, mock_performance("https://example.com"))

    def test_server_error_falls_back(self):
        sig = self._client(lambda r: httpx.Response(500)).measure("https://example.com")
        self.assertEqual(sig.source, "mock")

    def test_malformed_payload_falls_back(self):
        sig = self._client(lambda r: httpx.Response(200, json={"unexpected": True})).measure("https://example.com")
        self.assertEqual(sig.source, "mock")

    def test_network_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        sig = self._client(handler).measure("https://example.com")
        self.assertEqual(sig.source, "mock")


if __name__ == "__main__":
    unittest.main()
