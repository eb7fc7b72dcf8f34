"""Tests for the medical content review helpers."""

from __future__ import annotations

from medscrape.firecrawl.sanitize import (
    REMOVED_CLAIM,
    assess_source_quality,
    sanitize_medical_content,
)


class TestSanitizeMedicalContent:
    def test_clean_text_needs_no_review(self):
        report = sanitize_medical_content(
            "Vitamin D status was measured in 120 adults over two winters."
        )
        assert report.warnings == []
        assert report.review_required is False
        assert report.sanitized.startswith("Vitamin D status")

    def test_marketing_language_is_flagged_not_removed(self):
        text = "A revolutionary, guaranteed approach to joint health."
        report = sanitize_medical_content(text)
        assert report.review_required is True
        assert any("revolutionary" in w for w in report.warnings)
        assert any("guaranteed" in w for w in report.warnings)
        assert report.sanitized == text

    def test_unsubstantiated_claims_are_replaced(self):
        report = sanitize_medical_content("This tea cures cancer and has no side effects.")
        assert report.sanitized.count(REMOVED_CLAIM) == 2
        assert "cures cancer" not in report.sanitized
        assert len(report.warnings) == 2

    def test_claim_without_evidence_is_flagged(self):
        report = sanitize_medical_content("Daily walking reduces risk of falls.")
        assert report.warnings == ['Claim "reduces risk" lacks supporting evidence']

    def test_claim_with_evidence_is_not_flagged(self):
        report = sanitize_medical_content(
            "A peer-reviewed meta-analysis found daily walking reduces risk of falls."
        )
        assert report.warnings == []

    def test_empty_text(self):
        report = sanitize_medical_content("")
        assert report.sanitized == ""
        assert report.review_required is False


class TestAssessSourceQuality:
    def test_high(self):
        assert assess_source_quality("Randomized Controlled Trial, PMID: 123") == "high"

    def test_medium(self):
        assert assess_source_quality("An observational study of 40 patients") == "medium"

    def test_low(self):
        assert assess_source_quality("Read this testimonial from a happy customer") == "low"

    def test_best_tier_wins(self):
        assert assess_source_quality("A blog post summarising a systematic review") == "high"

    def test_unknown(self):
        assert assess_source_quality("Opening hours and parking information") == "unknown"
