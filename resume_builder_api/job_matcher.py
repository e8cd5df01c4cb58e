"""Pick the best-fit job profile for a resume.

Jobs come from a JSON catalogue (a list of {"profile", "skills"} objects).
The score is keyword overlap between the job's skills and the resume's
skills, plus a bonus when the job profile shows up in the resume's roles.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from resume_builder_api.models import Job, ResumeSections

logger = structlog.get_logger(__name__)


class JobCatalogueError(Exception):
    """Raised when the job catalogue file cannot be read."""

    pass


# Used when the catalogue is empty or unreadable
DEFAULT_JOB = Job(
    profile="MERN Stack Developer",
    skills=[
        "React", "Node.js", "Express", "MongoDB", "JavaScript", "TypeScript",
        "REST API", "GraphQL", "Redux", "HTML", "CSS", "Git", "AWS", "Docker",
        "CI/CD", "Agile",
    ],
)

# Weight of a job profile appearing in the candidate's role titles
ROLE_MATCH_BONUS = 2


def load_jobs(path: str | Path) -> list[Job]:
    """Load the job catalogue.

    Raises:
        JobCatalogueError: If the file is missing or not a valid catalogue.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise JobCatalogueError(f"Job catalogue must be a JSON list: {path}")
        return [Job.model_validate(item) for item in data]
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("Failed to load job catalogue", path=str(path), error=str(e))
        raise JobCatalogueError(f"Failed to load job catalogue: {path}") from e


def resume_keywords(sections: ResumeSections) -> set[str]:
    """Lower-cased skill names from the technical and soft skill lists."""
    names = [skill.name for skill in sections.tech_skills] + sections.soft_skills
    return {name.strip().lower() for name in names if name.strip()}


def resume_roles(sections: ResumeSections) -> list[str]:
    roles = [job.role.lower() for job in sections.experience if job.role]
    if sections.role_title:
        roles.append(sections.role_title.lower())
    return roles


def score_job(job: Job, keywords: set[str], roles: list[str]) -> int:
    score = sum(1 for skill in job.skills if skill.strip().lower() in keywords)
    profile = job.profile.lower()
    if profile and any(profile in role or role in profile for role in roles):
        score += ROLE_MATCH_BONUS
    return score


def match_job(sections: ResumeSections, jobs: list[Job]) -> Job:
    """Return the highest scoring job; the first one wins ties.

    Falls back to DEFAULT_JOB when the catalogue is empty.
    """
    if not jobs:
        logger.info("job_match", profile=DEFAULT_JOB.profile, score=0, fallback=True)
        return DEFAULT_JOB

    keywords = resume_keywords(sections)
    roles = resume_roles(sections)

    best_job = jobs[0]
    best_score = score_job(best_job, keywords, roles)
    for job in jobs[1:]:
        score = score_job(job, keywords, roles)
        if score > best_score:
            best_job, best_score = job, score

    logger.info("job_match", profile=best_job.profile, score=best_score, candidates=len(jobs))
    return best_job
