"""Plain-text renderers for CLI output."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List

from medscrape.db.models import ActivityEntry
from medscrape.firecrawl.models import (
    CrawlJob,
    ExtractionResult,
    HealthStatus,
    MedicalParseResult,
    RSSFeedResult,
    ScrapeResult,
    SearchResult,
)

_PREVIEW_CHARS = 2000


def _preview(text: str | None) -> str:
    if not text:
        return ""
    if len(text) <= _PREVIEW_CHARS:
        return text
    return text[:_PREVIEW_CHARS] + f"\n… ({len(text) - _PREVIEW_CHARS} more characters)"


def _when(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def render_scrape(result: ScrapeResult) -> str:
    if not result.success:
        return f"[scrape] Failed: {result.error}"
    lines = [
        f"[scrape] URL    : {result.url}",
        f"[scrape] Title  : {result.title or '(none)'}",
        f"[scrape] Links  : {len(result.links or [])}",
    ]
    if result.screenshot:
        lines.append(f"[scrape] Shot   : {result.screenshot}")
    lines.append("")
    lines.append(_preview(result.markdown or result.html))
    return "\n".join(lines)


def render_search(result: SearchResult) -> str:
    if not result.success:
        return f"[search] Failed: {result.error}"
    if not result.results:
        return "[search] No results."
    lines = [f"[search] {result.total_results} result(s)"]
    for i, hit in enumerate(result.results, 1):
        lines.append(f"  {i}. {hit.title or '(untitled)'}")
        lines.append(f"     {hit.url}")
        if hit.description:
            lines.append(f"     {hit.description}")
    return "\n".join(lines)


def render_extractions(results: List[ExtractionResult]) -> str:
    lines = []
    for r in results:
        if r.error:
            lines.append(f"[extract] {r.url}  FAILED: {r.error}")
            continue
        lines.append(f"[extract] {r.url}  confidence={r.confidence}")
        lines.append(json.dumps(r.extracted_data, indent=2, ensure_ascii=False))
    return "\n".join(lines)


def render_medical(result: MedicalParseResult) -> str:
    if not result.success:
        return f"[medical] Failed: {result.error}"
    lines = [
        f"[medical] URL      : {result.url}",
        f"[medical] Title    : {result.title or '(none)'}",
        f"[medical] Template : {result.extraction_type}",
        f"[medical] Quality  : {result.source_quality or 'unknown'}",
        f"[medical] Review   : {'REQUIRED' if result.review_required else 'not required'}",
    ]
    for warning in result.content_warnings:
        lines.append(f"  ! {warning}")
    if result.medical_content:
        lines.append("")
        lines.append(json.dumps(result.medical_content, indent=2, ensure_ascii=False))
    return "\n".join(lines)


def render_crawl_job(job: CrawlJob) -> str:
    if not job.success:
        return f"[crawl] Failed: {job.error}"
    lines = [f"[crawl] Job {job.job_id}  status={job.status}"]
    if job.total_pages is not None:
        lines.append(f"[crawl] Progress : {job.completed_pages or 0}/{job.total_pages}")
    lines.append(f"[crawl] Started  : {_when(job.started_at)}")
    if job.completed_at:
        lines.append(f"[crawl] Finished : {_when(job.completed_at)}")
    for page in job.pages or []:
        lines.append(f"  - {page.title or '(untitled)'}  {page.url}")
    return "\n".join(lines)


def render_feed(result: RSSFeedResult) -> str:
    if not result.success:
        return f"[rss] Failed: {result.error}"
    lines = [f"[rss] {result.title}  ({len(result.items)} item(s))"]
    for item in result.items:
        lines.append(f"  - {_when(item.pub_date)}  {item.title}")
        lines.append(f"    {item.link}")
    lines.append(f"[rss] Next check: {_when(result.next_check)}")
    return "\n".join(lines)


def render_health(status: HealthStatus) -> str:
    usage = ", ".join(f"{k}={v}" for k, v in status.rate_limit_usage.items())
    return "\n".join(
        [
            f"API key     : {'configured' if status.api_key_configured else 'MISSING'}",
            f"Cache       : {'available' if status.cache_available else 'unavailable'}"
            f" ({'enabled' if status.cache_enabled else 'disabled'})",
            f"Rate limit  : {status.rate_limit_status}",
            f"Usage       : {usage or '-'}",
        ]
    )


def render_activity(entries: List[ActivityEntry]) -> str:
    if not entries:
        return "No activity recorded."
    lines = []
    for e in entries:
        when = datetime.fromtimestamp(e.created_at).strftime("%Y-%m-%d %H:%M:%S")
        outcome = "ok" if e.success else f"FAILED ({e.error_message})"
        who = e.actor_email or "-"
        lines.append(f"  {when}  {e.action_type:<14} {who:<24} {e.target or '-'}  {outcome}")
    return "\n".join(lines)


def activity_as_json(entries: List[ActivityEntry]) -> str:
    rows: list[dict[str, Any]] = [vars(e) for e in entries]
    return json.dumps(rows, indent=2)
