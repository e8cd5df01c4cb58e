"""Tests for the empty-result validation gate."""

import pytest

from resume_builder_api.models import (
    EducationEntry,
    ExperienceEntry,
    PersonalInfo,
    ResumeSections,
    TechSkill,
)
from resume_builder_api.observability import ParseDiagnostics
from resume_builder_api.validation import EmptyResumeError, is_empty_resume, validate_sections


class TestIsEmptyResume:
    """Tests for is_empty_resume."""

    def test_default_record_is_empty(self):
        """Test that a default record is empty."""
        assert is_empty_resume(ResumeSections())

    def test_other_sections_do_not_count(self):
        """Test that hobbies and languages alone do not make a resume non-empty."""
        assert is_empty_resume(ResumeSections(hobbies=["Chess"], role_title="Dev"))

    def test_whitespace_name_is_empty(self):
        """Test that a whitespace-only name counts as empty."""
        assert is_empty_resume(ResumeSections(personal_info=PersonalInfo(name="  ")))

    @pytest.mark.parametrize(
        "sections",
        [
            ResumeSections(personal_info=PersonalInfo(name="Jane")),
            ResumeSections(summary="Summary text"),
            ResumeSections(experience=[ExperienceEntry(role="Dev", company="Acme")]),
            ResumeSections(education=[EducationEntry(degree="BS", institution="State")]),
            ResumeSections(tech_skills=[TechSkill(name="Python")]),
        ],
        ids=["name", "summary", "experience", "education", "tech_skills"],
    )
    def test_any_core_field_is_enough(self, sections):
        """Test that each core field alone avoids rejection."""
        assert not is_empty_resume(sections)


class TestValidateSections:
    """Tests for validate_sections."""

    def test_returns_non_empty_unchanged(self):
        """Test that a non-empty record passes through."""
        sections = ResumeSections(summary="ok")
        assert validate_sections(sections, "raw", {}) is sections

    def test_raises_with_payload(self):
        """Test that an empty record raises with the diagnostic payload."""
        diagnostics = ParseDiagnostics()
        diagnostics.record("dropped_unrecognized_section", detail="Nonsense")

        with pytest.raises(EmptyResumeError) as exc_info:
            validate_sections(
                ResumeSections(),
                raw_text="garbage output",
                original_sections={"summary": ["Hi"]},
                diagnostics=diagnostics,
            )

        error = exc_info.value
        assert error.raw_text == "garbage output"
        assert error.original_sections == {"summary": ["Hi"]}
        assert error.diagnostics is diagnostics

    def test_to_detail(self):
        """Test the serialized error payload."""
        diagnostics = ParseDiagnostics()
        diagnostics.record("dropped_empty_block")
        error = EmptyResumeError("failed", "raw", {"summary": ["Hi"]}, diagnostics)

        assert error.to_detail() == {
            "message": "failed",
            "rawText": "raw",
            "originalSections": {"summary": ["Hi"]},
            "diagnostics": [{"event": "dropped_empty_block", "section": None, "detail": ""}],
        }

    def test_empty_diagnostics_kept(self):
        """Test that an empty collector passed in is kept, not replaced."""
        diagnostics = ParseDiagnostics()
        error = EmptyResumeError("failed", "raw", {}, diagnostics)
        assert error.diagnostics is diagnostics

    def test_missing_diagnostics_defaults(self):
        """Test that a missing collector becomes an empty one."""
        error = EmptyResumeError("failed", "raw", {})
        assert error.to_detail()["diagnostics"] == []
