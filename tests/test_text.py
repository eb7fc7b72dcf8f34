"""Tests for HTML-to-text conversion.

``trafilatura.extract`` is patched in the fallback test to simulate the case
where it returns nothing.
"""

from __future__ import annotations

from unittest.mock import patch

from medscrape.firecrawl.text import html_to_text

_ARTICLE_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Magnesium</title><script>var tracking = 1;</script></head>
<body>
  <nav>Home | About | Contact</nav>
  <main>
    <p>Magnesium is involved in more than three hundred enzyme systems in the body.</p>
    <p>Dietary sources include leafy greens, nuts, seeds and whole grains.</p>
  </main>
  <footer>Copyright Clinic</footer>
</body>
</html>
"""


class TestHtmlToText:
    def test_empty(self):
        assert html_to_text("") == ""
        assert html_to_text("   ") == ""

    def test_plain_text_passes_through(self):
        assert html_to_text("  just text  ") == "just text"

    def test_extracts_main_content(self):
        text = html_to_text(_ARTICLE_HTML)
        assert "Magnesium is involved" in text
        assert "tracking" not in text

    def test_falls_back_to_bs4(self):
        with patch("medscrape.firecrawl.text.trafilatura.extract", return_value=None):
            text = html_to_text(_ARTICLE_HTML)
        assert "leafy greens" in text
        assert "Home | About" not in text
        assert "Copyright" not in text

    def test_fragment(self):
        assert html_to_text("<p>Short <b>summary</b></p>") == "Short summary"
