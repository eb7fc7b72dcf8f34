"""Extraction templates for medical and health websites.

Each template pairs a JSON schema with the prompt / system prompt sent to the
``/extract`` endpoint.  :func:`detect_extraction_type` picks one from the URL
using ordered pattern lists; the first category that matches wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExtractionTemplate:
    schema: dict[str, Any]
    prompt: str
    system_prompt: str


def _str(description: str | None = None) -> dict[str, Any]:
    field: dict[str, Any] = {"type": "string"}
    if description:
        field["description"] = description
    return field


def _enum(*values: str) -> dict[str, Any]:
    return {"type": "string", "enum": list(values)}


def _list(items: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"type": "array", "items": items or {"type": "string"}}


def _obj(**properties: dict[str, Any]) -> dict[str, Any]:
    return {"type": "object", "properties": properties}


_NUMBER = {"type": "number"}


EXTRACTION_TEMPLATES: dict[str, ExtractionTemplate] = {
    "pubmed": ExtractionTemplate(
        schema=_obj(
            title=_str("Article title"),
            abstract=_str("Article abstract"),
            authors=_list(_obj(name=_str(), affiliation=_str())),
            publicationInfo=_obj(
                journal=_str(),
                year=_NUMBER,
                volume=_str(),
                issue=_str(),
                pages=_str(),
                doi=_str(),
                pmid=_str(),
                pmcid=_str(),
            ),
            keywords=_list(),
            meshTerms=_list(),
            conclusions=_str(),
            clinicalRelevance=_str(),
        ),
        prompt=(
            "Extract structured information from this PubMed article. Focus on key "
            "findings, clinical relevance, and practical applications for functional "
            "medicine practice."
        ),
        system_prompt=(
            "You are a medical research assistant specializing in extracting and "
            "summarizing scientific literature for functional medicine practitioners."
        ),
    ),
    "clinicalTrial": ExtractionTemplate(
        schema=_obj(
            trialId=_str("NCT number or trial identifier"),
            title=_str(),
            status=_enum("recruiting", "active", "completed", "terminated", "withdrawn"),
            phase=_enum("early-phase-1", "phase-1", "phase-2", "phase-3", "phase-4", "na"),
            studyType=_enum("interventional", "observational", "registry"),
            conditions=_list(),
            interventions=_list(_obj(type=_str(), name=_str(), description=_str())),
            primaryOutcomes=_list(),
            secondaryOutcomes=_list(),
            enrollment=_NUMBER,
            startDate=_str(),
            completionDate=_str(),
            locations=_list(
                _obj(facility=_str(), city=_str(), state=_str(), country=_str())
            ),
            principalInvestigator=_str(),
            sponsor=_str(),
            results=_obj(
                summary=_str(), primaryOutcomeResults=_str(), adverseEvents=_str()
            ),
        ),
        prompt=(
            "Extract comprehensive clinical trial information. Focus on study design, "
            "interventions, outcomes, and any available results."
        ),
        system_prompt=(
            "You are a clinical research analyst extracting trial data for medical "
            "professionals."
        ),
    ),
    "medicalJournal": ExtractionTemplate(
        schema=_obj(
            title=_str(),
            authors=_list(),
            journal=_obj(
                name=_str(), impactFactor=_NUMBER, volume=_str(), issue=_str(), pages=_str()
            ),
            publicationDate=_str(),
            doi=_str(),
            articleType=_enum(
                "research", "review", "meta-analysis", "case-report", "editorial", "letter"
            ),
            abstract=_obj(
                background=_str(), methods=_str(), results=_str(), conclusions=_str()
            ),
            keyFindings=_list(),
            methodology=_obj(
                studyDesign=_str(),
                sampleSize=_NUMBER,
                duration=_str(),
                statisticalAnalysis=_str(),
            ),
            clinicalImplications=_str(),
            limitations=_list(),
            conflictsOfInterest=_str(),
            funding=_str(),
        ),
        prompt=(
            "Extract detailed information from this medical journal article. Emphasize "
            "clinical applicability and evidence quality."
        ),
        system_prompt=(
            "You are a medical literature analyst focusing on evidence-based medicine "
            "and clinical applications."
        ),
    ),
    "healthNews": ExtractionTemplate(
        schema=_obj(
            headline=_str(),
            subheadline=_str(),
            author=_str(),
            publicationDate=_str(),
            source=_str(),
            topic=_str(),
            keyPoints=_list(),
            medicalClaims=_list(
                _obj(
                    claim=_str(),
                    evidence=_str(),
                    credibility=_enum("high", "moderate", "low", "unsubstantiated"),
                )
            ),
            expertQuotes=_list(_obj(expert=_str(), credentials=_str(), quote=_str())),
            studiesReferenced=_list(
                _obj(title=_str(), journal=_str(), year=_NUMBER, findings=_str())
            ),
            practicalTakeaways=_list(),
            accuracyAssessment=_obj(
                overallAccuracy=_enum("accurate", "mostly-accurate", "mixed", "misleading"),
                concerns=_list(),
                corrections=_list(),
            ),
        ),
        prompt=(
            "Extract and fact-check health news content. Identify medical claims, "
            "assess their credibility, and summarize practical implications."
        ),
        system_prompt=(
            "You are a medical fact-checker and health journalist analyst, evaluating "
            "health news for accuracy and clinical relevance."
        ),
    ),
    "conferenceAbstract": ExtractionTemplate(
        schema=_obj(
            title=_str(),
            presenters=_list(),
            conference=_obj(name=_str(), year=_NUMBER, location=_str()),
            abstractNumber=_str(),
            category=_str(),
            background=_str(),
            objectives=_str(),
            methods=_str(),
            results=_str(),
            conclusions=_str(),
            clinicalRelevance=_str(),
            keywords=_list(),
        ),
        prompt=(
            "Extract conference abstract information, focusing on novel findings and "
            "clinical applications."
        ),
        system_prompt=(
            "You are analyzing medical conference abstracts for cutting-edge research "
            "and clinical innovations."
        ),
    ),
    "supplementProduct": ExtractionTemplate(
        schema=_obj(
            productName=_str(),
            manufacturer=_str(),
            category=_str(),
            ingredients=_list(
                _obj(name=_str(), amount=_str(), unit=_str(), standardization=_str())
            ),
            claimedBenefits=_list(),
            suggestedUse=_str(),
            warnings=_list(),
            drugInteractions=_list(),
            clinicalEvidence=_list(
                _obj(study=_str(), outcome=_str(), quality=_enum("high", "moderate", "low"))
            ),
            certifications=_list(),
            price=_str(),
            functionalMedicineAssessment=_obj(
                qualityRating=_enum("excellent", "good", "fair", "poor"),
                bioavailability=_str(),
                recommendedFor=_list(),
                concerns=_list(),
            ),
        ),
        prompt=(
            "Extract supplement product information with a focus on ingredients, "
            "evidence, and functional medicine applications."
        ),
        system_prompt=(
            "You are a functional medicine practitioner evaluating nutritional "
            "supplements for clinical use."
        ),
    ),
    "generic": ExtractionTemplate(
        schema=_obj(
            title=_str(),
            contentType=_str(),
            mainTopic=_str(),
            keyInformation=_list(),
            medicalConcepts=_list(
                _obj(concept=_str(), definition=_str(), relevance=_str())
            ),
            practicalApplications=_list(),
            relatedConditions=_list(),
            references=_list(),
            summary=_str(),
        ),
        prompt=(
            "Extract relevant medical information from this content. Identify key "
            "concepts, practical applications, and clinical relevance."
        ),
        system_prompt=(
            "You are a medical content analyst extracting useful information for "
            "healthcare practitioners."
        ),
    ),
}


# Ordered: the first category with a matching pattern wins.
SITE_PATTERNS: list[tuple[str, list[re.Pattern[str]]]] = [
    ("pubmed", [
        re.compile(r"pubmed\.ncbi\.nlm\.nih\.gov", re.IGNORECASE),
        re.compile(r"ncbi\.nlm\.nih\.gov/pubmed", re.IGNORECASE),
        re.compile(r"ncbi\.nlm\.nih\.gov/pmc", re.IGNORECASE),
    ]),
    ("clinicalTrial", [
        re.compile(r"clinicaltrials\.gov", re.IGNORECASE),
        re.compile(r"clinical-trials", re.IGNORECASE),
    ]),
    ("medicalJournal", [
        re.compile(r"nejm\.org", re.IGNORECASE),
        re.compile(r"jamanetwork\.com", re.IGNORECASE),
        re.compile(r"thelancet\.com", re.IGNORECASE),
        re.compile(r"bmj\.com", re.IGNORECASE),
        re.compile(r"nature\.com/articles", re.IGNORECASE),
        re.compile(r"sciencedirect\.com", re.IGNORECASE),
        re.compile(r"springer\.com", re.IGNORECASE),
        re.compile(r"wiley\.com", re.IGNORECASE),
    ]),
    ("healthNews", [
        re.compile(r"healthline\.com", re.IGNORECASE),
        re.compile(r"webmd\.com", re.IGNORECASE),
        re.compile(r"medicalnewstoday\.com", re.IGNORECASE),
        re.compile(r"health\.com", re.IGNORECASE),
        re.compile(r"everydayhealth\.com", re.IGNORECASE),
    ]),
    ("supplementProduct", [
        re.compile(r"iherb\.com", re.IGNORECASE),
        re.compile(r"vitacost\.com", re.IGNORECASE),
        re.compile(r"pureencapsulations\.com", re.IGNORECASE),
        re.compile(r"designsforhealth\.com", re.IGNORECASE),
        re.compile(r"orthomolecular\.com", re.IGNORECASE),
    ]),
]


def detect_extraction_type(url: str) -> str:
    """Return the template name for *url*, ``"generic"`` when nothing matches."""
    for extraction_type, patterns in SITE_PATTERNS:
        if any(p.search(url) for p in patterns):
            return extraction_type
    return "generic"


def get_extraction_template(extraction_type: str) -> ExtractionTemplate:
    return EXTRACTION_TEMPLATES.get(extraction_type, EXTRACTION_TEMPLATES["generic"])
