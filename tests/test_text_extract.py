from __future__ import annotations

import unittest

from competitor_agent.text_extract import MAX_TEXT_CHARS, domain_label, extract_text


class ExtractTextTests(unittest.TestCase):
    def test_strips_scripts_styles_and_tags(self):
        html = """
        <html><head>
          <style>.price { color: red; }</style>
          <script type="text/javascript">var price = "$999";</script>
        </head>
        <body><h1>Fast   proxies</h1>
          <p>Starts at <b>$4/GB</b></p>
        </body></html>
        """
        self.assertEqual(extract_text(html), "Fast proxies Starts at $4/GB")

    def test_script_contents_spanning_lines_are_removed(self):
        html = "<p>keep</p><SCRIPT>\nconsole.log('<p>drop</p>')\n</SCRIPT><p>me</p>"
        self.assertEqual(extract_text(html), "keep me")

    def test_empty_input(self):
        self.assertEqual(extract_text(""), "")
        self.assertEqual(extract_text(None), "")

    def test_idempotent_on_plain_text(self):
        once = extract_text("Plans   from\n\n $9/month \t and a free trial")
        self.assertEqual(once, "Plans from $9/month and a free trial")
        self.assertEqual(extract_text(once), once)

    def test_output_is_length_bounded(self):
        html = "<div>" + ("word " * 10_000) + "</div>"
        out = extract_text(html)
        self.assertLessEqual(len(out), MAX_TEXT_CHARS)
        self.assertTrue(out.startswith("word word"))

    def test_custom_limit(self):
        self.assertEqual(extract_text("<p>abcdef</p>", limit=3), "abc")


class DomainLabelTests(unittest.TestCase):
    def test_strips_www(self):
        self.assertEqual(domain_label("https://www.example.com/pricing"), "example.com")

    def test_keeps_other_subdomains(self):
        self.assertEqual(domain_label("https://app.example.io"), "app.example.io")

    def test_unparseable_falls_back_to_input(self):
        self.assertEqual(domain_label("not a url"), "not a url")


if __name__ == "__main__":
    unittest.main()
