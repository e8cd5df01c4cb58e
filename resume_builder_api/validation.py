"""Empty-result gate for merged resumes."""

import structlog

from resume_builder_api.models import ResumeSections
from resume_builder_api.observability import ParseDiagnostics, resume_rejections_total

logger = structlog.get_logger()


class EmptyResumeError(Exception):
    """Raised when a merged resume has no identifiable content.

    Carries what an operator needs to see why: the regenerated text, the
    original header-to-lines table and the parser's diagnostics.
    """

    def __init__(
        self,
        message: str,
        raw_text: str,
        original_sections: dict[str, list[str]],
        diagnostics: ParseDiagnostics | None = None,
    ):
        super().__init__(message)
        self.raw_text = raw_text
        self.original_sections = original_sections
        self.diagnostics = diagnostics if diagnostics is not None else ParseDiagnostics()

    def to_detail(self) -> dict:
        return {
            "message": str(self),
            "rawText": self.raw_text,
            "originalSections": self.original_sections,
            "diagnostics": self.diagnostics.as_dicts(),
        }


def is_empty_resume(sections: ResumeSections) -> bool:
    """True when name, summary, experience, education and tech skills are all empty."""
    return not (
        sections.personal_info.name.strip()
        or sections.summary.strip()
        or sections.experience
        or sections.education
        or sections.tech_skills
    )


def validate_sections(
    sections: ResumeSections,
    raw_text: str,
    original_sections: dict[str, list[str]],
    diagnostics: ParseDiagnostics | None = None,
) -> ResumeSections:
    """Return `sections` unchanged, or raise EmptyResumeError if it is empty."""
    if is_empty_resume(sections):
        resume_rejections_total.inc()
        logger.error(
            "Merged resume has no identifiable content",
            raw_text_preview=raw_text[:200],
            original_headers=list(original_sections),
            diagnostics=len(diagnostics) if diagnostics is not None else 0,
        )
        raise EmptyResumeError(
            "Failed to parse enhanced resume: no identifiable content",
            raw_text=raw_text,
            original_sections=original_sections,
            diagnostics=diagnostics,
        )
    return sections
