"""Merge regenerated resume text back into the original structured record.

Experience and project records carry the facts a resume must not lose
(role, company, duration, project name, link). For those, only the
description is taken from the regenerated version, and only when a
regenerated record can be matched to the original one. Every other section
has no factual anchor and is replaced wholesale by the regenerated parse
whenever the regenerated text contains it.
"""

import structlog

from resume_builder_api.models import ExperienceEntry, ProjectEntry, ResumeSections
from resume_builder_api.section_parser import ParsedResume, SectionKind

logger = structlog.get_logger()

# Characters of the original identifying field used for matching
MATCH_PREFIX_LENGTH = 10


def match_by_truncated_prefix(
    original: str,
    candidate: str,
    prefix_length: int = MATCH_PREFIX_LENGTH,
) -> bool:
    """Check whether the start of `original` appears inside `candidate`.

    The first `prefix_length` characters of `original` are lower-cased and
    searched for as a substring of the lower-cased `candidate`. An empty
    original never matches.
    """
    prefix = original.strip()[:prefix_length].lower()
    if not prefix:
        return False
    return prefix in candidate.lower()


def _secondary_matches(original: str, candidate: str) -> bool:
    return not original or original == candidate


def _experience_matches(original: ExperienceEntry, candidate: ExperienceEntry) -> bool:
    identity = match_by_truncated_prefix(original.role, candidate.role) or match_by_truncated_prefix(
        original.company, candidate.company
    )
    return identity and _secondary_matches(original.duration, candidate.duration)


def _project_matches(original: ProjectEntry, candidate: ProjectEntry) -> bool:
    return match_by_truncated_prefix(original.name, candidate.name) and _secondary_matches(
        original.link, candidate.link
    )


def reconcile_experience(
    originals: list[ExperienceEntry], candidates: list[ExperienceEntry]
) -> list[ExperienceEntry]:
    """Copy matched candidates' descriptions onto the original entries.

    Each candidate is used at most once. Unmatched originals pass through.
    """
    remaining = list(candidates)
    merged = []
    for original in originals:
        match = next((c for c in remaining if _experience_matches(original, c)), None)
        if match is None:
            logger.debug("No regenerated match for experience", role=original.role)
            merged.append(original)
            continue
        remaining.remove(match)
        merged.append(original.model_copy(update={"description": list(match.description)}))
    return merged


def reconcile_projects(
    originals: list[ProjectEntry], candidates: list[ProjectEntry]
) -> list[ProjectEntry]:
    """Copy matched candidates' descriptions onto the original projects."""
    remaining = list(candidates)
    merged = []
    for original in originals:
        match = next((c for c in remaining if _project_matches(original, c)), None)
        if match is None:
            logger.debug("No regenerated match for project", name=original.name)
            merged.append(original)
            continue
        remaining.remove(match)
        merged.append(original.model_copy(update={"description": match.description}))
    return merged


# Sections replaced wholesale when the regenerated text contains them
OVERWRITTEN_SECTIONS = (
    SectionKind.PERSONAL_INFO,
    SectionKind.SUMMARY,
    SectionKind.TECH_SKILLS,
    SectionKind.EDUCATION,
    SectionKind.CERTIFICATIONS,
    SectionKind.SOFT_SKILLS,
    SectionKind.LANGUAGES,
    SectionKind.HOBBIES,
    SectionKind.ROLE_TITLE,
    SectionKind.ADDITIONAL_FIELDS,
)


def reconcile_sections(original: ResumeSections, enhanced: ParsedResume) -> ResumeSections:
    """Merge a regenerated parse into the original record.

    Args:
        original: The trusted original sections.
        enhanced: Parse of the regenerated text.

    Returns:
        A new ResumeSections; `original` is not modified.
    """
    updates = {}
    for kind in OVERWRITTEN_SECTIONS:
        if kind in enhanced.present:
            updates[kind.value] = getattr(enhanced.sections, kind.value)

    updates["experience"] = reconcile_experience(original.experience, enhanced.sections.experience)
    updates["projects"] = reconcile_projects(original.projects, enhanced.sections.projects)

    logger.info(
        "Resume sections reconciled",
        overwritten=[k.value for k in OVERWRITTEN_SECTIONS if k in enhanced.present],
        experience=len(updates["experience"]),
        projects=len(updates["projects"]),
    )
    return original.model_copy(update=updates)
