"""Render ResumeSections into the section text format the parser reads.

Used to build the enhancement instruction for a stored resume, whose
structured record is the trusted original.
"""

from resume_builder_api.models import PersonalInfo, ResumeSections

BULLET = "*- "
SECTION_SEPARATOR = "\n\n"

PERSONAL_INFO_LABELS = {
    "name": "Name",
    "email": "Email",
    "phone": "Phone",
    "linkedin": "LinkedIn",
    "portfolio": "Portfolio",
    "address": "Address",
    "github": "GitHub",
}


def _one_line(text: str) -> str:
    return " ".join(text.split())


def _row(*fields: str) -> str:
    # "|" inside a field would shift the positional fields after it
    return "|".join(_one_line(f).replace("|", "/") for f in fields)


def render_bullets(items: list[str]) -> list[str]:
    return [f"{BULLET}{_one_line(item)}" for item in items if item.strip()]


def _personal_info_lines(info: PersonalInfo) -> list[str]:
    values = info.model_dump()
    return [
        f"{label}: {_one_line(values[key])}"
        for key, label in PERSONAL_INFO_LABELS.items()
        if values[key].strip()
    ]


def render_sections(sections: ResumeSections) -> str:
    """Render every non-empty section as a header line plus body lines."""
    blocks: list[tuple[str, list[str]]] = [
        ("Personal Info", _personal_info_lines(sections.personal_info)),
        ("Professional Summary", [_one_line(sections.summary)] if sections.summary.strip() else []),
        ("Technical Skills", render_bullets([s.name for s in sections.tech_skills])),
    ]

    experience_lines = []
    for job in sections.experience:
        experience_lines.append(_row(job.role, job.company, job.duration))
        experience_lines.extend(render_bullets(job.description))
    blocks.append(("Experience", experience_lines))

    blocks.append((
        "Education",
        [_row(e.degree, e.institution, e.year) for e in sections.education],
    ))
    blocks.append((
        "Certifications",
        [_row(c.name, c.issuer, c.year) for c in sections.certifications],
    ))
    blocks.append((
        "Projects",
        [_row(p.name, p.description, p.link) for p in sections.projects],
    ))
    blocks.append(("Soft Skills", render_bullets(sections.soft_skills)))
    blocks.append((
        "Languages",
        [_row(lang.language, lang.proficiency, str(lang.proficiency_level)) for lang in sections.languages],
    ))
    blocks.append(("Hobbies", render_bullets(sections.hobbies)))
    blocks.append(("Role Title", [_one_line(sections.role_title)] if sections.role_title.strip() else []))

    additional_lines = []
    for extra in sections.additional_fields:
        additional_lines.append(_one_line(extra.title))
        additional_lines.extend(
            f"{BULLET}{_row(item.name, item.year)}" for item in extra.content if item.name.strip()
        )
    blocks.append(("Additional Fields", additional_lines))

    return SECTION_SEPARATOR.join(
        "\n".join([header, *lines]) for header, lines in blocks if lines
    )
