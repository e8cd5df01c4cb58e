"""Resume enhancement flow.

original text -> parse -> generator -> clean -> parse -> reconcile -> validate
"""

from dataclasses import dataclass

import structlog

from resume_builder_api.formatter import render_sections
from resume_builder_api.guardrails import clean_generated_text
from resume_builder_api.models import ResumeSections
from resume_builder_api.observability import ParseDiagnostics
from resume_builder_api.openrouter_client import OpenRouterClient
from resume_builder_api.prompts import ENHANCE_SYSTEM_PROMPT, build_enhance_prompt
from resume_builder_api.reconcile import reconcile_sections
from resume_builder_api.section_parser import parse_resume_text
from resume_builder_api.tokenizer import build_section_table, split_blocks
from resume_builder_api.validation import validate_sections

logger = structlog.get_logger()


@dataclass
class EnhancementResult:
    """Merged resume plus what the generator actually returned."""

    sections: ResumeSections
    raw_text: str
    diagnostics: ParseDiagnostics
    tokens_used: int = 0


async def _enhance(
    original: ResumeSections,
    original_table: dict[str, list[str]],
    resume_text: str,
    client: OpenRouterClient,
    diagnostics: ParseDiagnostics,
) -> EnhancementResult:
    prompt = build_enhance_prompt(resume_text)
    response = await client.generate(prompt, system_prompt=ENHANCE_SYSTEM_PROMPT, operation="enhance")
    raw_text = response.content

    cleaned = clean_generated_text(raw_text)
    enhanced = parse_resume_text(cleaned.text, diagnostics)
    merged = reconcile_sections(original, enhanced)

    validate_sections(
        merged,
        raw_text=raw_text,
        original_sections=original_table,
        diagnostics=diagnostics,
    )

    logger.info(
        "Resume enhanced",
        sections_regenerated=sorted(kind.value for kind in enhanced.present),
        diagnostics=len(diagnostics),
        tokens_used=response.tokens_used,
    )
    return EnhancementResult(
        sections=merged,
        raw_text=raw_text,
        diagnostics=diagnostics,
        tokens_used=response.tokens_used,
    )


async def enhance_resume_text(resume_text: str, client: OpenRouterClient) -> EnhancementResult:
    """Enhance a resume given as section text.

    The same text, parsed, is the original record the regenerated text is
    reconciled against.

    Raises:
        OpenRouterError: If the generator call fails.
        EmptyResumeError: If the merged result has no identifiable content.
    """
    diagnostics = ParseDiagnostics()
    original = parse_resume_text(resume_text, diagnostics)
    return await _enhance(original.sections, original.section_table, resume_text, client, diagnostics)


async def enhance_stored_resume(sections: ResumeSections, client: OpenRouterClient) -> EnhancementResult:
    """Enhance a stored structured resume.

    The stored record is rendered to section text for the generator and is
    itself the trusted original.
    """
    diagnostics = ParseDiagnostics()
    resume_text = render_sections(sections)
    original_table = build_section_table(split_blocks(resume_text))
    return await _enhance(sections, original_table, resume_text, client, diagnostics)
