"""Section classification and per-section field parsing for resume text.

The same parser reads the user's original resume text and the regenerated
text that comes back from the generator. Text layout:

    Experience
    Software Developer|Tech Corp|01/2022 - Present
    *- Developed scalable web applications

Blocks are separated by a blank line, the first line of a block names the
section, tabular lines use '|' between positional fields, and bullet lines
start with '*-' (a bare '-' or '*' is accepted too).

Parsing never raises on malformed input. Lines that do not fit a section's
layout are dropped or defaulted and recorded in ParseDiagnostics; an
exception inside one section parser leaves that section out of the result
without affecting the others.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

import structlog

from resume_builder_api.models import (
    DEFAULT_TECH_SKILL_PROFICIENCY,
    AdditionalField,
    AdditionalFieldItem,
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    PersonalInfo,
    ProjectEntry,
    ResumeSections,
    TechSkill,
)
from resume_builder_api.observability import ParseDiagnostics, resume_sections_parsed_total
from resume_builder_api.tokenizer import build_section_table, normalize_header, split_blocks

logger = structlog.get_logger()

T = TypeVar("T")

BULLET_MARKERS = ("*", "-")
FIELD_SEPARATOR = "|"

_BULLET_PREFIX = re.compile(r"^[*\-]+\s*")
_LEADING_INT = re.compile(r"^\s*(\d+)")


class SectionKind(str, Enum):
    """Logical resume sections. Values are ResumeSections attribute names."""

    PERSONAL_INFO = "personal_info"
    SUMMARY = "summary"
    TECH_SKILLS = "tech_skills"
    EXPERIENCE = "experience"
    EDUCATION = "education"
    CERTIFICATIONS = "certifications"
    PROJECTS = "projects"
    SOFT_SKILLS = "soft_skills"
    LANGUAGES = "languages"
    HOBBIES = "hobbies"
    ROLE_TITLE = "role_title"
    ADDITIONAL_FIELDS = "additional_fields"


# Priority order matters: a header is routed to the first kind with a matching alias.
SECTION_ALIASES: list[tuple[SectionKind, tuple[str, ...]]] = [
    (SectionKind.PERSONAL_INFO, ("personal info", "personal information", "contact info")),
    (SectionKind.SUMMARY, ("professional summary", "summary")),
    (SectionKind.TECH_SKILLS, ("technical skills", "skills")),
    (SectionKind.EXPERIENCE, ("work experience", "experience")),
    (SectionKind.EDUCATION, ("education",)),
    (SectionKind.CERTIFICATIONS, ("certifications", "certification")),
    (SectionKind.PROJECTS, ("projects", "project")),
    (SectionKind.SOFT_SKILLS, ("soft skills",)),
    (SectionKind.LANGUAGES, ("languages", "language")),
    (SectionKind.HOBBIES, ("hobbies", "interests")),
    (SectionKind.ROLE_TITLE, ("role title",)),
    (SectionKind.ADDITIONAL_FIELDS, ("additional fields", "additional")),
]

# Checked in this order; "name" last so "GitHub Username" is not read as the name.
PERSONAL_INFO_KEYS = ("email", "phone", "linkedin", "github", "portfolio", "address", "name")


# =============================================================================
# Line helpers
# =============================================================================


def is_bullet(line: str) -> bool:
    return line.startswith(BULLET_MARKERS)


def strip_bullet(line: str) -> str:
    """Remove a leading '*-', '-' or '*' marker."""
    return _BULLET_PREFIX.sub("", line).strip()


def split_fields(line: str, count: int) -> list[str]:
    """Split a tabular line on '|' into exactly `count` trimmed fields.

    Missing fields are empty strings; extra fields are ignored.
    """
    parts = [part.strip() for part in line.split(FIELD_SEPARATOR)]
    parts.extend([""] * (count - len(parts)))
    return parts[:count]


def parse_level(value: str) -> int:
    """Leading integer of a field, 0 when there is none."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else 0


def fold_entries(
    lines: list[str],
    start: Callable[[str], T],
    attach: Callable[[T, str], T],
    section: str,
    diagnostics: ParseDiagnostics,
) -> list[T]:
    """Group a heading line with the bullet lines that follow it.

    A non-bullet line starts a new pending entry via `start`; each bullet
    line is folded into the pending entry via `attach`. The pending entry
    moves to `completed` when the next heading arrives and at the end.
    """
    completed: list[T] = []
    pending: T | None = None

    for line in lines:
        if not is_bullet(line):
            if pending is not None:
                completed.append(pending)
            pending = start(line)
        elif pending is None:
            diagnostics.record("dropped_orphan_bullet", section, line)
        else:
            pending = attach(pending, line)

    if pending is not None:
        completed.append(pending)
    return completed


def _keep_complete(entries: list[T], section: str, diagnostics: ParseDiagnostics) -> list[T]:
    kept = []
    for entry in entries:
        if entry.is_complete:
            kept.append(entry)
        else:
            diagnostics.record("dropped_incomplete_entry", section, repr(entry))
    return kept


# =============================================================================
# Section parsers
# =============================================================================


def parse_personal_info(lines: list[str], diagnostics: ParseDiagnostics) -> PersonalInfo:
    """Read 'Key: value' lines, splitting on the first colon."""
    values: dict[str, str] = {}
    for line in lines:
        line = strip_bullet(line)
        if ":" not in line:
            diagnostics.record("dropped_malformed_line", "personal_info", line)
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        target = next((k for k in PERSONAL_INFO_KEYS if k in key), None)
        if target is None:
            diagnostics.record("ignored_personal_info_key", "personal_info", key)
            continue
        values[target] = value.strip()
    return PersonalInfo(**values)


def parse_paragraph(lines: list[str], diagnostics: ParseDiagnostics) -> str:
    return " ".join(lines).strip()


def parse_bullet_list(lines: list[str], diagnostics: ParseDiagnostics) -> list[str]:
    items = []
    for line in lines:
        if not is_bullet(line):
            diagnostics.record("dropped_non_bullet_line", detail=line)
            continue
        item = strip_bullet(line)
        if item:
            items.append(item)
    return items


def parse_tech_skills(lines: list[str], diagnostics: ParseDiagnostics) -> list[TechSkill]:
    return [
        TechSkill(name=name, proficiency=DEFAULT_TECH_SKILL_PROFICIENCY)
        for name in parse_bullet_list(lines, diagnostics)
    ]


def parse_experience(lines: list[str], diagnostics: ParseDiagnostics) -> list[ExperienceEntry]:
    """Read 'role|company|duration' headings, each followed by bullet lines."""

    def start(line: str) -> ExperienceEntry:
        role, company, duration = split_fields(line, 3)
        return ExperienceEntry(role=role, company=company, duration=duration)

    def attach(entry: ExperienceEntry, line: str) -> ExperienceEntry:
        text = strip_bullet(line)
        if not text:
            return entry
        return entry.model_copy(update={"description": [*entry.description, text]})

    entries = fold_entries(lines, start, attach, "experience", diagnostics)
    return _keep_complete(entries, "experience", diagnostics)


def parse_education(lines: list[str], diagnostics: ParseDiagnostics) -> list[EducationEntry]:
    entries = []
    for line in lines:
        degree, institution, year = split_fields(strip_bullet(line), 3)
        entries.append(EducationEntry(degree=degree, institution=institution, year=year))
    return _keep_complete(entries, "education", diagnostics)


def parse_certifications(
    lines: list[str], diagnostics: ParseDiagnostics
) -> list[CertificationEntry]:
    entries = []
    for line in lines:
        name, issuer, year = split_fields(strip_bullet(line), 3)
        entries.append(CertificationEntry(name=name, issuer=issuer, year=year))
    return _keep_complete(entries, "certifications", diagnostics)


def parse_projects(lines: list[str], diagnostics: ParseDiagnostics) -> list[ProjectEntry]:
    """Read 'name|description|link' lines; bullet lines extend the description."""

    def start(line: str) -> ProjectEntry:
        name, description, link = split_fields(line, 3)
        return ProjectEntry(name=name, description=description, link=link)

    def attach(entry: ProjectEntry, line: str) -> ProjectEntry:
        text = strip_bullet(line)
        if not text:
            return entry
        description = f"{entry.description} {text}".strip()
        return entry.model_copy(update={"description": description})

    entries = fold_entries(lines, start, attach, "projects", diagnostics)
    return _keep_complete(entries, "projects", diagnostics)


def parse_languages(lines: list[str], diagnostics: ParseDiagnostics) -> list[LanguageEntry]:
    entries = []
    for line in lines:
        language, proficiency, level = split_fields(strip_bullet(line), 3)
        entries.append(
            LanguageEntry(
                language=language,
                proficiency=proficiency,
                proficiency_level=parse_level(level),
            )
        )
    return _keep_complete(entries, "languages", diagnostics)


def parse_additional_fields(
    lines: list[str], diagnostics: ParseDiagnostics
) -> list[AdditionalField]:
    """Read a title line followed by 'name|year' bullet lines, repeated."""

    def start(line: str) -> AdditionalField:
        return AdditionalField(title=line.strip())

    def attach(entry: AdditionalField, line: str) -> AdditionalField:
        name, year = split_fields(strip_bullet(line), 2)
        if not name:
            diagnostics.record("dropped_malformed_line", "additional_fields", line)
            return entry
        item = AdditionalFieldItem(name=name, year=year)
        return entry.model_copy(update={"content": [*entry.content, item]})

    entries = fold_entries(lines, start, attach, "additional_fields", diagnostics)
    return _keep_complete(entries, "additional_fields", diagnostics)


SECTION_PARSERS: dict[SectionKind, Callable[[list[str], ParseDiagnostics], Any]] = {
    SectionKind.PERSONAL_INFO: parse_personal_info,
    SectionKind.SUMMARY: parse_paragraph,
    SectionKind.TECH_SKILLS: parse_tech_skills,
    SectionKind.EXPERIENCE: parse_experience,
    SectionKind.EDUCATION: parse_education,
    SectionKind.CERTIFICATIONS: parse_certifications,
    SectionKind.PROJECTS: parse_projects,
    SectionKind.SOFT_SKILLS: parse_bullet_list,
    SectionKind.LANGUAGES: parse_languages,
    SectionKind.HOBBIES: parse_bullet_list,
    SectionKind.ROLE_TITLE: parse_paragraph,
    SectionKind.ADDITIONAL_FIELDS: parse_additional_fields,
}


# =============================================================================
# Classification and the full parse
# =============================================================================


def classify_header(line: str | None) -> SectionKind | None:
    """Route a block's first line to a section kind.

    A trailing colon is ignored. An exact alias match wins; otherwise the
    first kind (in SECTION_ALIASES order) with an alias contained in the
    header. Tabular and bullet lines are never headers.
    """
    header = normalize_header(line).rstrip(":").rstrip()
    if not header or FIELD_SEPARATOR in header or is_bullet(header):
        return None

    for kind, aliases in SECTION_ALIASES:
        if header in aliases:
            return kind
    for kind, aliases in SECTION_ALIASES:
        if any(alias in header for alias in aliases):
            return kind
    return None


@dataclass
class ParsedResume:
    """Result of parsing one resume text."""

    sections: ResumeSections
    present: set[SectionKind] = field(default_factory=set)
    section_table: dict[str, list[str]] = field(default_factory=dict)


def parse_resume_text(text: str, diagnostics: ParseDiagnostics | None = None) -> ParsedResume:
    """Parse resume text into ResumeSections.

    Args:
        text: Resume in section text format.
        diagnostics: Collector shared across a request; a fresh one is used if omitted.

    Returns:
        ParsedResume with the typed sections, the kinds that were present,
        and the normalized-header to body-lines table.
    """
    if diagnostics is None:
        diagnostics = ParseDiagnostics()

    blocks = split_blocks(text, diagnostics)
    values: dict[SectionKind, Any] = {}

    for lines in blocks:
        header, body = lines[0], lines[1:]
        kind = classify_header(header)
        if kind is None:
            diagnostics.record("dropped_unrecognized_section", detail=header)
            continue
        if kind in values:
            diagnostics.record("dropped_duplicate_section", kind.value, header)
            continue

        try:
            values[kind] = SECTION_PARSERS[kind](body, diagnostics)
        except Exception as e:
            logger.warning("Section parse failed", section=kind.value, error=str(e))
            diagnostics.record("section_parse_failed", kind.value, str(e))
            continue

        resume_sections_parsed_total.labels(section=kind.value).inc()

    sections = ResumeSections(**{kind.value: value for kind, value in values.items()})

    logger.info(
        "Resume text parsed",
        sections=[kind.value for kind in values],
        blocks=len(blocks),
        diagnostics=len(diagnostics),
    )

    return ParsedResume(
        sections=sections,
        present=set(values),
        section_table=build_section_table(blocks),
    )
