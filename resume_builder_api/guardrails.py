"""Input and output guardrails around the text generator.

This module provides:
- Input screening for prompt injection embedded in resume text
- Cleanup of generated text before it reaches the section parser

The generator is treated as an untrusted, schema-free text producer: it is
asked for plain text but regularly wraps it in code fences or markdown.
"""

import re
from dataclasses import dataclass

import structlog

from resume_builder_api.observability import get_trace_id

logger = structlog.get_logger()

# =============================================================================
# Input Guardrails - Detect Prompt Injection in Resume Text
# =============================================================================

# Case-insensitive, with bounded gaps: a whole resume is matched as one line
INJECTION_PATTERNS = [
    # Direct instruction override attempts
    r"\b(?:ignore|disregard|forget)\b.{0,30}\b(?:previous|above|all|prior|earlier)\b.{0,20}\b(?:instructions?|directives?|prompts?|rules?)\b",
    # System prompt extraction attempts
    r"\b(?:reveal|show|display|print|repeat)\b.{0,20}\b(?:system|original)\s+(?:prompt|instructions?)\b",
    # Role/identity manipulation
    r"\byou are now\b",
    r"\bpretend (?:you are|to be)\b",
    # Delimiter breaking attempts
    r"</?(?:system|admin|root|sudo)>",
]

_compiled_injection_patterns = [
    re.compile(pattern, re.IGNORECASE) for pattern in INJECTION_PATTERNS
]


@dataclass
class InjectionDetectionResult:
    """Result of injection detection check."""

    is_injection: bool
    matched_pattern: str | None = None
    confidence: str = "low"  # low, medium, high


def detect_injection(text: str) -> InjectionDetectionResult:
    """Check if resume text contains prompt injection patterns.

    Args:
        text: Resume text to check.

    Returns:
        InjectionDetectionResult with detection status and matched pattern.
    """
    text_normalized = " ".join(text.lower().split())

    for pattern in _compiled_injection_patterns:
        match = pattern.search(text_normalized)
        if match:
            logger.warning(
                "injection_detected",
                trace_id=get_trace_id(),
                pattern=pattern.pattern[:50],
                matched_text=match.group()[:100],
                input_preview=text[:100],
            )
            return InjectionDetectionResult(
                is_injection=True,
                matched_pattern=pattern.pattern,
                confidence="high" if "ignore" in match.group().lower() else "medium",
            )

    return InjectionDetectionResult(is_injection=False)


# =============================================================================
# Output Guardrails - Clean Generated Text
# =============================================================================

_CODE_FENCE = re.compile(r"^\s*```[\w-]*\s*$", re.MULTILINE)
_MARKDOWN_HEADING = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)
_MARKDOWN_BOLD = re.compile(r"\*\*(.+?)\*\*")
_MARKDOWN_BULLET = re.compile(r"^([ \t]*)[•●▪][ \t]*", re.MULTILINE)


@dataclass
class OutputCleanResult:
    """Result of generated text cleanup."""

    text: str
    was_modified: bool


def clean_generated_text(raw: str) -> OutputCleanResult:
    """Strip markdown the generator was asked not to produce.

    Removes code fences, heading markers and bold markers, turns unicode
    bullets into '*-' bullets and normalizes line endings. '*-' bullets and
    '|' separators are left alone.
    """
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    text = _CODE_FENCE.sub("", text)
    text = _MARKDOWN_HEADING.sub("", text)
    text = _MARKDOWN_BOLD.sub(r"\1", text)
    text = _MARKDOWN_BULLET.sub(r"\1*- ", text)
    text = text.strip()

    was_modified = text != raw.strip()
    if was_modified:
        logger.info(
            "generated_text_cleaned",
            trace_id=get_trace_id(),
            chars_before=len(raw),
            chars_after=len(text),
        )

    return OutputCleanResult(text=text, was_modified=was_modified)


def check_input(text: str) -> tuple[bool, str]:
    """Check resume text and return (is_safe, reason_if_blocked)."""
    result = detect_injection(text)
    if result.is_injection:
        return False, "Resume text contains instructions aimed at the AI assistant"
    return True, ""
