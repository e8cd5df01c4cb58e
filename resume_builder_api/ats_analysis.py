"""ATS analysis: score a resume against its best-fit job profile.

The generator is asked for a JSON object but is not trusted to return one.
The reply is parsed as JSON when possible and scraped with regexes when not,
then clamped into the AtsAnalysis shape.
"""

import json
import re
from dataclasses import dataclass

import structlog

from resume_builder_api.job_matcher import match_job
from resume_builder_api.models import AtsAnalysis, Job
from resume_builder_api.observability import ParseDiagnostics
from resume_builder_api.openrouter_client import OpenRouterClient
from resume_builder_api.prompts import ANALYZE_SYSTEM_PROMPT, build_analyze_prompt
from resume_builder_api.section_parser import parse_resume_text

logger = structlog.get_logger()

DEFAULT_ATS_SCORE = 50
MIN_SUGGESTIONS = 3
MAX_SUGGESTIONS = 5

DEFAULT_SUGGESTIONS = [
    "Include more technical keywords from the job description.",
    "Add specific project details to highlight relevant experience.",
    "Use action verbs and quantify achievements where possible.",
]

_JSON_FENCE = re.compile(r"```(?:json)?\s*\n?|\n?```")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_SCORE_FIELD = re.compile(r"atsScore[\"']?\s*:\s*(\d+)", re.IGNORECASE)
_KEYWORDS_FIELD = re.compile(r"missingKeywords[\"']?\s*:\s*\[([^\]]*)\]", re.IGNORECASE)
_SUGGESTIONS_FIELD = re.compile(r"suggestions[\"']?\s*:\s*\[([^\]]*)\]", re.IGNORECASE)


def _split_list(fragment: str | None) -> list[str]:
    if not fragment:
        return []
    items = [item.strip().strip("\"'").strip() for item in fragment.split(",")]
    return [item for item in items if item]


def _scrape_fields(text: str) -> dict:
    """Regex fallback for replies that are not valid JSON."""
    score = _SCORE_FIELD.search(text)
    keywords = _KEYWORDS_FIELD.search(text)
    suggestions = _SUGGESTIONS_FIELD.search(text)
    return {
        "atsScore": int(score.group(1)) if score else DEFAULT_ATS_SCORE,
        "missingKeywords": _split_list(keywords.group(1) if keywords else None),
        "suggestions": _split_list(suggestions.group(1) if suggestions else None),
    }


def _load_reply(text: str) -> dict:
    cleaned = _JSON_FENCE.sub("", text).strip()
    match = _JSON_OBJECT.search(cleaned)
    candidate = match.group(0) if match else cleaned
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Analysis reply is not valid JSON, scraping fields", error=str(e))
        return _scrape_fields(text)
    if not isinstance(data, dict):
        logger.warning("Analysis reply is not a JSON object, scraping fields")
        return _scrape_fields(text)
    return data


def _coerce_score(value: object) -> int:
    try:
        score = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_ATS_SCORE
    # A zero score is treated as missing
    return max(0, min(100, score or DEFAULT_ATS_SCORE))


def parse_analysis_reply(text: str) -> AtsAnalysis:
    """Interpret the generator's analysis reply.

    Score is clamped to 0-100 (default 50); non-list keywords become [];
    fewer than three suggestions are replaced by defaults, more than five
    are truncated.
    """
    data = _load_reply(text)

    keywords = data.get("missingKeywords")
    if not isinstance(keywords, list):
        keywords = []

    suggestions = data.get("suggestions")
    if isinstance(suggestions, list) and len(suggestions) >= MIN_SUGGESTIONS:
        suggestions = [str(s) for s in suggestions[:MAX_SUGGESTIONS]]
    else:
        suggestions = list(DEFAULT_SUGGESTIONS)

    return AtsAnalysis(
        ats_score=_coerce_score(data.get("atsScore")),
        missing_keywords=[str(k) for k in keywords],
        suggestions=suggestions,
    )


@dataclass
class AnalysisResult:
    """Outcome of one analysis request."""

    analysis: AtsAnalysis
    job: Job
    tokens_used: int


async def analyze_resume(
    resume_text: str,
    jobs: list[Job],
    client: OpenRouterClient,
    experience_level: str = "mid-level",
    industry: str = "technology",
) -> AnalysisResult:
    """Match the resume to a job and ask the generator for an ATS analysis.

    Raises:
        OpenRouterError: If the generator call fails (single attempt).
    """
    parsed = parse_resume_text(resume_text, ParseDiagnostics())
    job = match_job(parsed.sections, jobs)

    prompt = build_analyze_prompt(job, experience_level, industry, resume_text)
    response = await client.generate(prompt, system_prompt=ANALYZE_SYSTEM_PROMPT, operation="analyze")

    analysis = parse_analysis_reply(response.content)
    logger.info(
        "ATS analysis completed",
        profile=job.profile,
        ats_score=analysis.ats_score,
        missing_keywords=len(analysis.missing_keywords),
    )
    return AnalysisResult(analysis=analysis, job=job, tokens_used=response.tokens_used)
