"""Tests for the Firecrawl orchestrator.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer; routes inspect the JSON
  body when one endpoint has to answer differently per URL.
- The content cache runs on an in-memory SQLite database.
- The rate limiter uses its real defaults, which a test run never reaches.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import httpx
import pytest
import respx
from pydantic import ValidationError

from medscrape.db.connection import get_connection
from medscrape.db.migrations import init_db
from medscrape.firecrawl.cache import ContentCache
from medscrape.firecrawl.models import (
    CrawlRequest,
    ExtractionRequest,
    MedicalParseRequest,
    RSSFeedRequest,
    ScrapeRequest,
    SearchRequest,
    WebAction,
)
from medscrape.firecrawl.rate_limiter import RateLimiter
from medscrape.firecrawl.service import (
    FirecrawlService,
    assess_extraction_confidence,
    build_scrape_body,
)
from medscrape.firecrawl.templates import EXTRACTION_TEMPLATES

BASE = "https://firecrawl.test/v1"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn():
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def service(conn) -> FirecrawlService:
    return FirecrawlService(
        conn,
        api_key="fc-test",
        base_url=BASE,
        limiter=RateLimiter(),
        cache=ContentCache(conn, ttl_seconds=3600),
    )


def _page(markdown="# Page", **extra) -> httpx.Response:
    data = {"markdown": markdown, **extra}
    return httpx.Response(200, json={"success": True, "data": data})


def _body(call) -> dict:
    return json.loads(call.request.content)


def _rss(items: list[tuple[str, str, str]]) -> str:
    entries = "".join(
        f"<item><title>{title}</title><link>{link}</link>"
        f"<description>{title}</description><pubDate>{date}</pubDate></item>"
        for title, link, date in items
    )
    return (
        '<?xml version="1.0"?><rss version="2.0"><channel>'
        f"<title>Clinic Feed</title>{entries}</channel></rss>"
    )


# ---------------------------------------------------------------------------
# Confidence scoring
# ---------------------------------------------------------------------------

class TestConfidence:
    def test_half_filled_is_medium(self):
        assert assess_extraction_confidence({"a": "x", "b": "", "c": None, "d": "y"}) == "medium"

    def test_all_filled_is_high(self):
        assert assess_extraction_confidence({"a": "x", "b": [1], "c": {"k": 1}}) == "high"

    def test_less_than_half_is_low(self):
        assert assess_extraction_confidence({"a": "x", "b": [], "c": {}, "d": None}) == "low"

    def test_exactly_eighty_percent_is_medium(self):
        data = {"a": 1, "b": 2, "c": 3, "d": 4, "e": None}
        assert assess_extraction_confidence(data) == "medium"

    def test_zero_and_false_count_as_filled(self):
        assert assess_extraction_confidence({"n": 0, "flag": False}) == "high"

    @pytest.mark.parametrize("data", [None, {}, [], "text", 3])
    def test_non_object_is_low(self, data):
        assert assess_extraction_confidence(data) == "low"


# ---------------------------------------------------------------------------
# scrape_url
# ---------------------------------------------------------------------------

class TestBuildScrapeBody:
    def test_defaults(self):
        body = build_scrape_body(ScrapeRequest(url="https://a.test"))
        assert body == {"url": "https://a.test", "formats": ["markdown", "html", "links"]}

    def test_metadata_format_is_not_sent(self):
        body = build_scrape_body(ScrapeRequest(url="https://a.test", formats=["markdown", "metadata"]))
        assert body["formats"] == ["markdown"]

    def test_full_page_screenshot(self):
        body = build_scrape_body(
            ScrapeRequest(url="https://a.test", formats=["markdown", "screenshot"], full_page=True)
        )
        assert body["formats"] == ["markdown", "screenshot@fullPage"]

    def test_options(self):
        body = build_scrape_body(
            ScrapeRequest(
                url="https://a.test",
                wait_for=2000,
                actions=[WebAction(type="click", selector="#more"), WebAction(type="wait", delay=500)],
                headers={"Accept-Language": "en"},
                exclude_selectors=["nav"],
                include_selectors=["article"],
            )
        )
        assert body["waitFor"] == 2000
        assert body["actions"] == [
            {"type": "click", "selector": "#more"},
            {"type": "wait", "milliseconds": 500},
        ]
        assert body["headers"] == {"Accept-Language": "en"}
        assert body["excludeTags"] == ["nav"]
        assert body["includeTags"] == ["article"]


class TestScrapeUrl:
    @respx.mock
    def test_normalises_response(self, service):
        respx.post(f"{BASE}/scrape").mock(
            return_value=_page(
                markdown="# Magnesium",
                html="<h1>Magnesium</h1>",
                links=["https://a.test/1"],
                metadata={
                    "title": "Magnesium guide",
                    "description": "All about magnesium",
                    "keywords": "magnesium, minerals , ",
                    "author": "Dr. Lee",
                    "language": "en",
                },
            )
        )
        result = service.scrape_url(ScrapeRequest(url="https://a.test"))

        assert result.success is True
        assert result.title == "Magnesium guide"
        assert result.markdown == "# Magnesium"
        assert result.links == ["https://a.test/1"]
        assert result.metadata.keywords == ["magnesium", "minerals"]
        assert result.metadata.author == "Dr. Lee"

    @respx.mock
    def test_second_call_is_served_from_cache(self, service):
        route = respx.post(f"{BASE}/scrape").mock(return_value=_page())
        first = service.scrape_url(ScrapeRequest(url="https://a.test"))
        second = service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert route.call_count == 1
        assert second.model_dump() == first.model_dump()

    @respx.mock
    def test_cached_page_missing_a_format_is_refetched(self, service):
        route = respx.post(f"{BASE}/scrape")
        route.side_effect = [_page(None, links=["https://a.test/1"]), _page("# Full text")]
        service.scrape_url(ScrapeRequest(url="https://a.test", formats=["links"]))

        result = service.scrape_url(ScrapeRequest(url="https://a.test", formats=["markdown"]))

        assert route.call_count == 2
        assert result.markdown == "# Full text"
        assert _body(route.calls.last)["formats"] == ["markdown"]

    @respx.mock
    def test_cached_superset_of_formats_is_reused(self, service):
        route = respx.post(f"{BASE}/scrape").mock(return_value=_page())
        service.scrape_url(ScrapeRequest(url="https://a.test"))
        service.scrape_url(ScrapeRequest(url="https://a.test", formats=["markdown", "metadata"]))
        assert route.call_count == 1

    @respx.mock
    def test_transport_failure_returns_failed_result(self, service):
        respx.post(f"{BASE}/scrape").mock(side_effect=httpx.ConnectError("connection refused"))
        result = service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert result.success is False
        assert "connection refused" in result.error
        assert result.url == "https://a.test"

    @respx.mock
    def test_http_error_returns_failed_result(self, service):
        respx.post(f"{BASE}/scrape").mock(return_value=httpx.Response(500, text="upstream down"))
        result = service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert result.success is False
        assert result.error == "Firecrawl API error: 500 - upstream down"

    @respx.mock
    def test_unsuccessful_body(self, service):
        respx.post(f"{BASE}/scrape").mock(
            return_value=httpx.Response(200, json={"success": False, "error": "blocked"})
        )
        result = service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert result.success is False
        assert result.error == "blocked"

    @respx.mock
    def test_failures_are_not_cached(self, service):
        route = respx.post(f"{BASE}/scrape")
        route.side_effect = [httpx.Response(503, text="busy"), _page("# Back")]
        assert service.scrape_url(ScrapeRequest(url="https://a.test")).success is False
        assert service.scrape_url(ScrapeRequest(url="https://a.test")).markdown == "# Back"

    def test_missing_api_key(self, conn):
        service = FirecrawlService(conn, api_key="", base_url=BASE)
        result = service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert result.success is False
        assert "not configured" in result.error

    def test_invalid_url_rejected_on_construction(self):
        with pytest.raises(ValidationError):
            ScrapeRequest(url="ftp://a.test")


# ---------------------------------------------------------------------------
# crawl
# ---------------------------------------------------------------------------

class TestCrawl:
    @respx.mock
    def test_start_returns_pending_job(self, service):
        route = respx.post(f"{BASE}/crawl").mock(
            return_value=httpx.Response(200, json={"success": True, "id": "job-42"})
        )
        job = service.crawl_website(
            CrawlRequest(url="https://a.test", max_depth=3, include_patterns=["/blog/.*"])
        )
        assert job.job_id == "job-42"
        assert job.status == "pending"
        body = _body(route.calls.last)
        assert body["maxDepth"] == 3
        assert body["limit"] == 100
        assert body["includePaths"] == ["/blog/.*"]
        assert body["scrapeOptions"]["formats"] == ["markdown", "html", "links"]

    @respx.mock
    def test_start_failure(self, service):
        respx.post(f"{BASE}/crawl").mock(return_value=httpx.Response(401, text="bad key"))
        job = service.crawl_website(CrawlRequest(url="https://a.test"))
        assert job.status == "failed"
        assert job.job_id == ""
        assert job.success is False
        assert "401" in job.error

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_depth": 0}, {"max_depth": 11}, {"max_pages": 0}, {"max_pages": 10001}, {"exclude_patterns": ["("]}],
    )
    def test_invalid_requests_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            CrawlRequest(url="https://a.test", **kwargs)

    @pytest.mark.parametrize(
        "provider_status, expected",
        [
            ("scraping", "processing"),
            ("processing", "processing"),
            ("pending", "pending"),
            ("queued", "pending"),
        ],
    )
    @respx.mock
    def test_status_mapping(self, service, provider_status, expected):
        respx.get(f"{BASE}/crawl/job-1").mock(
            return_value=httpx.Response(200, json={"status": provider_status, "total": 4, "completed": 2})
        )
        job = service.check_crawl_status("job-1")
        assert job.status == expected
        assert job.total_pages == 4
        assert job.completed_pages == 2
        assert job.pages is None

    @respx.mock
    def test_completed_maps_pages(self, service):
        respx.get(f"{BASE}/crawl/job-1").mock(
            return_value=httpx.Response(
                200,
                json={
                    "status": "completed",
                    "total": 2,
                    "completed": 2,
                    "data": [
                        {"markdown": "# One", "metadata": {"title": "One", "sourceURL": "https://a.test/1"}},
                        {"markdown": "# Two", "url": "https://a.test/2"},
                    ],
                },
            )
        )
        job = service.check_crawl_status("job-1")
        assert job.status == "completed"
        assert job.completed_at is not None
        assert [p.url for p in job.pages] == ["https://a.test/1", "https://a.test/2"]
        assert job.pages[0].title == "One"

    @pytest.mark.parametrize("provider_status", ["failed", "cancelled"])
    @respx.mock
    def test_failed_and_cancelled(self, service, provider_status):
        respx.get(f"{BASE}/crawl/job-1").mock(
            return_value=httpx.Response(200, json={"status": provider_status})
        )
        job = service.check_crawl_status("job-1")
        assert job.status == "failed"
        assert job.success is False

    @respx.mock
    def test_status_transport_failure(self, service):
        respx.get(f"{BASE}/crawl/job-1").mock(side_effect=httpx.ReadTimeout("slow"))
        job = service.check_crawl_status("job-1")
        assert job.status == "failed"
        assert job.job_id == "job-1"
        assert job.error

    @respx.mock
    def test_job_id_is_escaped_into_one_path_segment(self, service):
        route = respx.get(url__startswith=f"{BASE}/crawl/").mock(
            return_value=httpx.Response(404, text="no such job")
        )
        job = service.check_crawl_status("../scrape?x=1")
        assert job.status == "failed"
        assert route.calls.last.request.url.raw_path == b"/v1/crawl/..%2Fscrape%3Fx%3D1"

    @respx.mock
    def test_control_character_in_job_id_is_a_failed_job(self, service):
        respx.get(url__startswith=f"{BASE}/crawl/").mock(
            return_value=httpx.Response(404, text="no such job")
        )
        job = service.check_crawl_status("abc\x01def")
        assert job.status == "failed"
        assert job.success is False
        assert job.job_id == "abc\x01def"

    def test_blank_job_id(self, service):
        job = service.check_crawl_status("  ")
        assert job.status == "failed"
        assert job.error == "job id is required"


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------

class TestSearch:
    @respx.mock
    def test_hits_and_body(self, service):
        route = respx.post(f"{BASE}/search").mock(
            return_value=httpx.Response(
                200,
                json={
                    "success": True,
                    "data": [
                        {"title": "Vitamin D", "url": "https://a.test/d", "description": "D"},
                        {"url": "https://a.test/k"},
                    ],
                },
            )
        )
        result = service.search_web(
            SearchRequest(query="vitamin", time_range="week", language="en", scrape_results=True)
        )
        assert result.success is True
        assert result.total_results == 2
        assert result.results[1].title == ""
        body = _body(route.calls.last)
        assert body == {
            "query": "vitamin",
            "limit": 10,
            "lang": "en",
            "tbs": "qdr:w",
            "scrapeOptions": {"formats": ["markdown"]},
        }

    @pytest.mark.parametrize(
        "time_range, tbs",
        [("day", "qdr:d"), ("month", "qdr:m"), ("year", "qdr:y"), ("all", None)],
    )
    @respx.mock
    def test_time_ranges(self, service, time_range, tbs):
        route = respx.post(f"{BASE}/search").mock(
            return_value=httpx.Response(200, json={"success": True, "data": []})
        )
        service.search_web(SearchRequest(query="q", time_range=time_range))
        assert _body(route.calls.last).get("tbs") == tbs

    @respx.mock
    def test_failure(self, service):
        respx.post(f"{BASE}/search").mock(return_value=httpx.Response(429, text="slow down"))
        result = service.search_web(SearchRequest(query="q"))
        assert result.success is False
        assert result.results == []
        assert "429" in result.error


# ---------------------------------------------------------------------------
# extract_content
# ---------------------------------------------------------------------------

class TestExtract:
    @respx.mock
    def test_uses_detected_template(self, service):
        route = respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"title": "T", "phase": "phase-2"}})
        )
        [result] = service.extract_content(ExtractionRequest(url="https://clinicaltrials.gov/study/NCT1"))

        body = _body(route.calls.last)
        template = EXTRACTION_TEMPLATES["clinicalTrial"]
        assert body["urls"] == ["https://clinicaltrials.gov/study/NCT1"]
        assert body["schema"] == template.schema
        assert body["prompt"] == template.prompt
        assert result.confidence == "high"
        assert result.extracted_data == {"title": "T", "phase": "phase-2"}

    @respx.mock
    def test_caller_overrides_template(self, service):
        route = respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"price": ""}})
        )
        schema = {"type": "object", "properties": {"price": {"type": "string"}}}
        [result] = service.extract_content(
            ExtractionRequest(url="https://shop.test/x", schema=schema, prompt="Get the price")
        )
        body = _body(route.calls.last)
        assert body["schema"] == schema
        assert body["prompt"] == "Get the price"
        assert body["systemPrompt"] == EXTRACTION_TEMPLATES["generic"].system_prompt
        assert result.confidence == "low"

    @respx.mock
    def test_partial_failure_keeps_every_url(self, service):
        def handler(request):
            url = json.loads(request.content)["urls"][0]
            if url.endswith("/2"):
                raise httpx.ConnectError("reset by peer")
            return httpx.Response(200, json={"success": True, "data": {"title": url}})

        respx.post(f"{BASE}/extract").mock(side_effect=handler)
        urls = ["https://a.test/1", "https://a.test/2", "https://a.test/3"]

        results = service.extract_content(ExtractionRequest(url=urls))

        assert [r.url for r in results] == urls
        assert results[1].extracted_data is None
        assert results[1].confidence == "low"
        assert results[1].error
        assert results[0].extracted_data == {"title": "https://a.test/1"}
        assert results[2].extracted_data == {"title": "https://a.test/3"}

    @respx.mock
    def test_unsuccessful_response_is_low_null_entry(self, service):
        respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": False, "error": "no content"})
        )
        [result] = service.extract_content(ExtractionRequest(url="https://a.test"))
        assert result.extracted_data is None
        assert result.confidence == "low"
        assert result.error == "no content"

    def test_empty_url_list_rejected(self):
        with pytest.raises(ValidationError):
            ExtractionRequest(url=[])


# ---------------------------------------------------------------------------
# monitor_rss_feed
# ---------------------------------------------------------------------------

FEED_URL = "https://news.test/feed.xml"

_FIVE_ITEMS = _rss(
    [
        ("Vitamin D trial", "https://news.test/1", "Thu, 02 Jan 2025 10:00:00 GMT"),
        ("Vitamin C review", "https://news.test/2", "Sun, 05 Jan 2025 10:00:00 GMT"),
        ("Vitamin K note", "https://news.test/3", "Mon, 20 Jan 2025 10:00:00 GMT"),
        ("Sleep study", "https://news.test/4", "Fri, 03 Jan 2025 10:00:00 GMT"),
        ("Exercise basics", "https://news.test/5", "Sat, 04 Jan 2025 10:00:00 GMT"),
    ]
)


class TestMonitorRssFeed:
    @respx.mock
    def test_keyword_and_date_range(self, service):
        route = respx.post(f"{BASE}/scrape").mock(
            return_value=_page(markdown="ignored", rawHtml=_FIVE_ITEMS)
        )
        result = service.monitor_rss_feed(
            RSSFeedRequest(
                feed_url=FEED_URL,
                filters={
                    "keywords": ["vitamin"],
                    "date_range": {"start": "2025-01-01T00:00:00Z", "end": "2025-01-10T00:00:00Z"},
                },
            )
        )
        assert result.success is True
        assert result.title == "Clinic Feed"
        assert [i.title for i in result.items] == ["Vitamin D trial", "Vitamin C review"]
        assert _body(route.calls.last)["formats"] == ["rawHtml", "markdown"]

    @respx.mock
    def test_next_check_uses_recheck_interval(self, service, monkeypatch):
        monkeypatch.setattr("medscrape.firecrawl.service.settings.rss_recheck_interval", 600)
        respx.post(f"{BASE}/scrape").mock(return_value=_page(rawHtml=_FIVE_ITEMS))
        result = service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))
        assert len(result.items) == 5
        gap = result.next_check - result.last_updated
        assert timedelta(seconds=599) < gap < timedelta(seconds=601)

    @respx.mock
    def test_last_checked(self, service):
        respx.post(f"{BASE}/scrape").mock(return_value=_page(rawHtml=_FIVE_ITEMS))
        result = service.monitor_rss_feed(
            RSSFeedRequest(feed_url=FEED_URL, last_checked=datetime(2025, 1, 4, 12, 0))
        )
        assert [i.title for i in result.items] == ["Vitamin C review", "Vitamin K note"]

    @respx.mock
    def test_markdown_fallback(self, service):
        markdown = (
            "## Omega-3 roundup\n"
            "Link: [Omega-3](https://news.test/omega) Published: 2025-01-09T08:00:00Z\n"
            "Fish oil and heart health.\n"
        )
        respx.post(f"{BASE}/scrape").mock(return_value=_page(markdown=markdown))
        result = service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))
        assert [i.link for i in result.items] == ["https://news.test/omega"]
        assert result.title == "RSS Feed"

    @respx.mock
    def test_full_content_scrapes_each_item(self, service):
        feed = _rss(
            [
                ("One", "https://news.test/1", "Thu, 02 Jan 2025 10:00:00 GMT"),
                ("Two", "https://news.test/2", "Fri, 03 Jan 2025 10:00:00 GMT"),
            ]
        )

        def handler(request):
            url = json.loads(request.content)["url"]
            if url == FEED_URL:
                return _page(rawHtml=feed)
            return _page(markdown=f"# Full text of {url}")

        respx.post(f"{BASE}/scrape").mock(side_effect=handler)
        result = service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL, extract_full_content=True))
        assert [i.markdown for i in result.items] == [
            "# Full text of https://news.test/1",
            "# Full text of https://news.test/2",
        ]

    @respx.mock
    def test_feed_failure(self, service):
        respx.post(f"{BASE}/scrape").mock(side_effect=httpx.ConnectError("dns"))
        result = service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))
        assert result.success is False
        assert result.items == []
        assert result.error

    @respx.mock
    def test_feed_cached_separately_from_page(self, service):
        route = respx.post(f"{BASE}/scrape").mock(return_value=_page(rawHtml=_FIVE_ITEMS))
        service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))
        service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))
        assert route.call_count == 1
        service.scrape_url(ScrapeRequest(url=FEED_URL))
        assert route.call_count == 2


# ---------------------------------------------------------------------------
# parse_medical_website
# ---------------------------------------------------------------------------

class TestParseMedicalWebsite:
    @respx.mock
    def test_flags_content_for_review(self, service):
        respx.post(f"{BASE}/scrape").mock(
            return_value=_page(
                markdown=(
                    "# Trial of magnesium\nA randomized controlled trial. "
                    "This breakthrough supplement cures diabetes."
                ),
                metadata={"title": "Magnesium trial"},
            )
        )
        extract = respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"title": "Magnesium trial"}})
        )
        result = service.parse_medical_website(
            MedicalParseRequest(url="https://clinicaltrials.gov/study/NCT9", include_references=True)
        )

        assert result.success is True
        assert result.title == "Magnesium trial"
        assert result.extraction_type == "clinicalTrial"
        assert result.medical_content == {"title": "Magnesium trial"}
        assert result.review_required is True
        assert any("breakthrough" in w for w in result.content_warnings)
        assert any("cures?" in w for w in result.content_warnings)
        assert result.source_quality == "high"

        body = _body(extract.calls.last)
        assert body["schema"] == EXTRACTION_TEMPLATES["clinicalTrial"].schema
        assert "references" in body["prompt"]

    @respx.mock
    def test_earlier_links_only_scrape_does_not_hide_text(self, service):
        url = "https://www.healthline.com/nutrition/x"
        scrape = respx.post(f"{BASE}/scrape")
        scrape.side_effect = [
            _page(None, links=["https://a.test"]),
            _page("A miracle cure. No side effects."),
        ]
        respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"title": "X"}})
        )
        service.scrape_url(ScrapeRequest(url=url, formats=["links"]))

        result = service.parse_medical_website(MedicalParseRequest(url=url))

        assert scrape.call_count == 2
        assert result.markdown == "A miracle cure. No side effects."
        assert result.review_required is True

    @respx.mock
    def test_explicit_type_wins(self, service):
        respx.post(f"{BASE}/scrape").mock(return_value=_page(markdown="Plain page"))
        extract = respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {}})
        )
        result = service.parse_medical_website(
            MedicalParseRequest(url="https://example.com/p", extraction_type="supplementProduct")
        )
        assert result.extraction_type == "supplementProduct"
        assert _body(extract.calls.last)["schema"] == EXTRACTION_TEMPLATES["supplementProduct"].schema
        assert result.review_required is False
        assert result.source_quality == "unknown"

    @respx.mock
    def test_html_only_page_is_still_reviewed(self, service):
        respx.post(f"{BASE}/scrape").mock(
            return_value=httpx.Response(
                200,
                json={"success": True, "data": {"html": "<p>A miracle cure with no side effects</p>"}},
            )
        )
        respx.post(f"{BASE}/extract").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {}})
        )
        result = service.parse_medical_website(MedicalParseRequest(url="https://example.com/p"))
        assert result.review_required is True

    @respx.mock(assert_all_called=False)
    def test_scrape_failure(self, service, respx_mock):
        respx_mock.post(f"{BASE}/scrape").mock(return_value=httpx.Response(500, text="nope"))
        extract = respx_mock.post(f"{BASE}/extract")
        result = service.parse_medical_website(MedicalParseRequest(url="https://example.com/p"))
        assert result.success is False
        assert result.medical_content is None
        assert not extract.called

    @respx.mock
    def test_extraction_failure_keeps_page(self, service):
        respx.post(f"{BASE}/scrape").mock(return_value=_page(markdown="Observational study"))
        respx.post(f"{BASE}/extract").mock(return_value=httpx.Response(502, text="bad gateway"))
        result = service.parse_medical_website(MedicalParseRequest(url="https://example.com/p"))
        assert result.success is True
        assert result.medical_content is None
        assert result.source_quality == "medium"


# ---------------------------------------------------------------------------
# configure / clear_cache / health
# ---------------------------------------------------------------------------

class TestAdministration:
    @respx.mock
    def test_disable_cache(self, service):
        route = respx.post(f"{BASE}/scrape").mock(return_value=_page())
        service.configure(cache_enabled=False)
        service.scrape_url(ScrapeRequest(url="https://a.test"))
        service.scrape_url(ScrapeRequest(url="https://a.test"))
        assert route.call_count == 2

    def test_configure_rate_limits_and_ttl(self, service):
        service.configure(cache_ttl_seconds=60, rate_limits={"max_requests_per_minute": 5})
        assert service.cache.ttl_seconds == 60
        assert service.limiter.config.max_requests_per_minute == 5
        assert service.limiter.config.burst_limit == 10

    def test_configure_rejects_zero_ceiling(self, service):
        with pytest.raises(ValueError):
            service.configure(rate_limits={"max_requests_per_day": 0, "burst_limit": 0})
        assert service.limiter.config.max_requests_per_day == 5000

    @respx.mock
    def test_clear_cache_for_url(self, service):
        route = respx.post(f"{BASE}/scrape").mock(return_value=_page(rawHtml=_FIVE_ITEMS))
        service.scrape_url(ScrapeRequest(url=FEED_URL))
        service.monitor_rss_feed(RSSFeedRequest(feed_url=FEED_URL))

        assert service.clear_cache(FEED_URL) == 2
        service.scrape_url(ScrapeRequest(url=FEED_URL))
        assert route.call_count == 3

    def test_clear_cache_purges_expired(self, service, conn):
        service.cache.set("scrape", "https://old.test", {"x": 1})
        conn.execute("UPDATE content_cache SET expires_at = 0")
        conn.commit()
        service.cache.set("scrape", "https://new.test", {"x": 2})
        assert service.clear_cache() == 1

    def test_health(self, service):
        status = service.get_health_status()
        assert status.api_key_configured is True
        assert status.cache_available is True
        assert status.cache_enabled is True
        assert status.rate_limit_status == "operational"
        assert status.rate_limit_usage["last_minute"] == 0

    def test_health_without_key_or_db(self):
        status = FirecrawlService(None, api_key="", base_url=BASE).get_health_status()
        assert status.api_key_configured is False
        assert status.cache_available is False

    def test_health_reports_throttling(self, service):
        service.configure(rate_limits={"max_requests_per_minute": 1, "burst_limit": 0})
        service.limiter.check_limit()
        assert service.get_health_status().rate_limit_status == "throttled"
