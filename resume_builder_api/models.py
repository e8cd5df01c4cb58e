"""Pydantic models for resume records, API requests and responses."""

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Shortest resume text accepted by the enhancement and analysis flows.
MIN_RESUME_TEXT_CHARS = 50

# Proficiency assigned to technical skills parsed from text (no signal in the text).
DEFAULT_TECH_SKILL_PROFICIENCY = 90

ResumeTemplate = Literal["chronological", "functional", "combination", "pillar"]


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Resume Section Models
# =============================================================================


class PersonalInfo(CamelModel):
    """Contact details block."""

    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    portfolio: str = ""
    address: str = ""
    github: str = ""


class TechSkill(CamelModel):
    """A technical skill with a 0-100 proficiency."""

    name: str = Field(..., description="Skill name")
    proficiency: int = Field(default=DEFAULT_TECH_SKILL_PROFICIENCY, ge=0, le=100)


class ExperienceEntry(CamelModel):
    """A single work experience entry."""

    role: str = Field(default="", description="Role/title")
    company: str = Field(default="", description="Company name")
    duration: str = Field(default="", description="Time period")
    description: list[str] = Field(default_factory=list, description="Bullet lines")

    @property
    def is_complete(self) -> bool:
        return bool(self.role and self.company)


class EducationEntry(CamelModel):
    """A degree earned at an institution."""

    degree: str = ""
    institution: str = ""
    year: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.degree and self.institution)


class CertificationEntry(CamelModel):
    """A certification and its issuer."""

    name: str = ""
    issuer: str = ""
    year: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.name)


class ProjectEntry(CamelModel):
    """A project with a free-text description."""

    name: str = ""
    description: str = ""
    link: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.name)


class LanguageEntry(CamelModel):
    """A spoken language with a label and a numeric level."""

    language: str = ""
    proficiency: str = ""
    proficiency_level: int = 0

    @property
    def is_complete(self) -> bool:
        return bool(self.language)


class AdditionalFieldItem(CamelModel):
    """One named item (award, publication, ...) inside an additional field."""

    name: str = ""
    year: str = ""


class AdditionalField(CamelModel):
    """A free-form titled list such as "Awards"."""

    title: str = ""
    content: list[AdditionalFieldItem] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return bool(self.title)


class ResumeSections(CamelModel):
    """The canonical structured resume record."""

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    tech_skills: list[TechSkill] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    languages: list[LanguageEntry] = Field(default_factory=list)
    hobbies: list[str] = Field(default_factory=list)
    role_title: str = ""
    additional_fields: list[AdditionalField] = Field(default_factory=list)


# =============================================================================
# Enhancement API Models
# =============================================================================


def _require_resume_text(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_RESUME_TEXT_CHARS:
        raise ValueError(f"Resume text must be at least {MIN_RESUME_TEXT_CHARS} characters")
    return value


class EnhanceRequest(CamelModel):
    """Request body for the enhancement endpoint."""

    resume_text: str = Field(..., description="Resume in section text format")

    @field_validator("resume_text")
    @classmethod
    def _check_resume_text(cls, value: str) -> str:
        return _require_resume_text(value)


class EnhanceResponse(CamelModel):
    """Merged resume plus the generator's raw output."""

    enhanced_resume: ResumeSections
    raw_text: str = Field(..., description="Regenerated text as returned by the generator")


# =============================================================================
# ATS Analysis API Models
# =============================================================================


class Job(BaseModel):
    """A job profile from the catalogue."""

    model_config = ConfigDict(extra="allow")

    profile: str = Field(..., description="Job profile/title")
    skills: list[str] = Field(default_factory=list, description="Key skills the job requires")


class AnalyzeRequest(CamelModel):
    """Request body for the ATS analysis endpoint."""

    resume_text: str
    experience_level: str = "mid-level"
    industry: str = "technology"

    @field_validator("resume_text")
    @classmethod
    def _check_resume_text(cls, value: str) -> str:
        return _require_resume_text(value)


class AtsAnalysis(CamelModel):
    """Interpreted analysis reply."""

    ats_score: int = Field(..., ge=0, le=100)
    missing_keywords: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class AnalyzeResponse(AtsAnalysis):
    """Analysis result together with the job it was scored against."""

    matched_job: Job


# =============================================================================
# Document Store Models
# =============================================================================


class SaveResumeRequest(ResumeSections):
    """Create (no resume_id) or update (resume_id) a stored resume."""

    resume_id: str | None = None
    template: ResumeTemplate

    @model_validator(mode="after")
    def _require_name_and_summary(self) -> "SaveResumeRequest":
        if not self.summary or not self.personal_info.name:
            raise ValueError("Name and summary are required")
        return self

    def to_sections(self) -> ResumeSections:
        """Drop the request-only fields."""
        return ResumeSections.model_validate(
            self.model_dump(exclude={"resume_id", "template"})
        )


class StoredResume(ResumeSections):
    """A resume as persisted in the document store."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    template: ResumeTemplate
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sections(self) -> ResumeSections:
        return ResumeSections.model_validate(
            self.model_dump(exclude={"id", "user_id", "template", "updated_at"})
        )


class DeleteResponse(BaseModel):
    """Confirmation for a deleted record."""

    message: str


# =============================================================================
# Health API Models
# =============================================================================


class HealthResponse(CamelModel):
    """Response for health check endpoint."""

    status: Literal["healthy", "degraded", "unhealthy"] = Field(..., description="Service status")
    llm_configured: bool = Field(..., description="Whether the text generator is usable")
    stored_resumes: int = Field(..., description="Number of records in the document store")
    version: str = Field(..., description="API version")
