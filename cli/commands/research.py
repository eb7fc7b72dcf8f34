"""Single-shot research commands: scrape, search, extract, medical."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from cli.context import build_request, emit, exit_on_failure, open_service
from cli.rendering import render_extractions, render_medical, render_scrape, render_search
from medscrape.firecrawl.models import (
    ExtractionRequest,
    MedicalParseRequest,
    ScrapeRequest,
    SearchRequest,
)


def scrape(
    url: str = typer.Argument(..., help="URL to scrape."),
    formats: Optional[List[str]] = typer.Option(
        None, "--format", "-f", help="Output format (repeatable): markdown, html, rawHtml, links, screenshot."
    ),
    wait_for: Optional[int] = typer.Option(None, "--wait-for", help="Milliseconds to wait for dynamic content."),
    screenshot: bool = typer.Option(False, "--screenshot", help="Capture a viewport screenshot."),
    full_page: bool = typer.Option(False, "--full-page", help="Capture a full-page screenshot."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """Scrape one page through Firecrawl (cached)."""
    request = build_request(
        ScrapeRequest,
        "scrape",
        url=url,
        formats=formats or None,
        wait_for=wait_for,
        screenshot=screenshot,
        full_page=full_page,
    )
    with open_service() as (_, service):
        result = service.scrape_url(request)
    emit(result, json_output, render_scrape)
    exit_on_failure(result.success)


def search(
    query: str = typer.Argument(..., help="Search query."),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum number of results."),
    language: Optional[str] = typer.Option(None, "--lang", help="Result language, e.g. en."),
    country: Optional[str] = typer.Option(None, "--country", help="Result country, e.g. us."),
    time_range: Optional[str] = typer.Option(
        None, "--time-range", help="day | week | month | year | all"
    ),
    scrape_results: bool = typer.Option(False, "--scrape", help="Also scrape each hit into markdown."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """Search the web through Firecrawl."""
    request = build_request(
        SearchRequest,
        "search",
        query=query,
        limit=limit,
        language=language,
        country=country,
        time_range=time_range,
        scrape_results=scrape_results,
    )
    with open_service() as (_, service):
        result = service.search_web(request)
    emit(result, json_output, render_search)
    exit_on_failure(result.success)


def extract(
    urls: List[str] = typer.Argument(..., help="One or more URLs."),
    schema_file: Optional[Path] = typer.Option(
        None, "--schema", exists=True, dir_okay=False, help="JSON schema file overriding the template."
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Extraction prompt override."),
    system_prompt: Optional[str] = typer.Option(None, "--system-prompt", help="System prompt override."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw results as JSON."),
) -> None:
    """Extract structured data from each URL using the matching template."""
    schema = None
    if schema_file is not None:
        try:
            schema = json.loads(schema_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            typer.echo(f"[extract] {schema_file} is not valid JSON: {exc}", err=True)
            raise typer.Exit(code=2)

    request = build_request(
        ExtractionRequest,
        "extract",
        url=urls if len(urls) > 1 else urls[0],
        extraction_schema=schema,
        prompt=prompt,
        system_prompt=system_prompt,
    )
    with open_service() as (_, service):
        results = service.extract_content(request)
    emit(results, json_output, render_extractions)
    exit_on_failure(all(r.error is None for r in results))


def medical(
    url: str = typer.Argument(..., help="Medical page to parse."),
    extraction_type: Optional[str] = typer.Option(
        None, "--type", help="Template: pubmed, clinicalTrial, medicalJournal, healthNews, "
        "conferenceAbstract, supplementProduct, generic. Detected from the URL if omitted."
    ),
    references: bool = typer.Option(False, "--references", help="Include the reference list."),
    figures: bool = typer.Option(False, "--figures", help="Describe figures and tables."),
    supplementary: bool = typer.Option(False, "--supplementary", help="Summarise supplementary material."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """Scrape and parse a medical page, flagging content that needs review."""
    request = build_request(
        MedicalParseRequest,
        "medical",
        url=url,
        extraction_type=extraction_type,
        include_references=references,
        include_figures=figures,
        include_supplementary=supplementary,
    )
    with open_service() as (_, service):
        result = service.parse_medical_website(request)
    emit(result, json_output, render_medical)
    exit_on_failure(result.success)
