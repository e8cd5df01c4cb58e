"""Tests for the job catalogue and best-fit job matching."""

import json
from pathlib import Path

import pytest

from resume_builder_api.job_matcher import (
    DEFAULT_JOB,
    ROLE_MATCH_BONUS,
    JobCatalogueError,
    load_jobs,
    match_job,
    resume_keywords,
    score_job,
)
from resume_builder_api.models import ExperienceEntry, Job, ResumeSections, TechSkill


def _sections(*skills: str, role_title: str = "", roles: tuple[str, ...] = ()) -> ResumeSections:
    return ResumeSections(
        tech_skills=[TechSkill(name=s) for s in skills],
        role_title=role_title,
        experience=[ExperienceEntry(role=r, company="Acme") for r in roles],
    )


class TestLoadJobs:
    """Tests for load_jobs."""

    def test_loads_catalogue(self, tmp_path):
        """Test loading a valid catalogue."""
        path = tmp_path / "jobs.json"
        path.write_text(json.dumps([{"profile": "Data Analyst", "skills": ["SQL"], "level": "mid"}]))

        jobs = load_jobs(path)

        assert jobs == [Job(profile="Data Analyst", skills=["SQL"], level="mid")]

    def test_bundled_catalogue(self):
        """Test that the bundled catalogue loads."""
        jobs = load_jobs(Path(__file__).parent.parent / "data" / "jobs.json")
        assert len(jobs) == 5
        assert all(job.skills for job in jobs)

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises JobCatalogueError."""
        with pytest.raises(JobCatalogueError):
            load_jobs(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", ["not json", '{"profile": "x"}', '[{"skills": []}]'])
    def test_invalid_catalogue(self, tmp_path, content):
        """Test that malformed catalogues raise JobCatalogueError."""
        path = tmp_path / "jobs.json"
        path.write_text(content)

        with pytest.raises(JobCatalogueError):
            load_jobs(path)


class TestScoring:
    """Tests for keyword and role scoring."""

    def test_keywords_case_insensitive(self):
        """Test that skill names are lower-cased."""
        sections = _sections("Python", " Docker ")
        sections.soft_skills.append("Teamwork")
        assert resume_keywords(sections) == {"python", "docker", "teamwork"}

    def test_score_counts_overlap(self):
        """Test that the score counts shared skills."""
        job = Job(profile="Backend Developer", skills=["Python", "Go", "docker"])
        assert score_job(job, {"python", "docker"}, []) == 2

    def test_role_bonus(self):
        """Test the bonus for a matching role title."""
        job = Job(profile="Data Analyst", skills=[])
        assert score_job(job, set(), ["senior data analyst"]) == ROLE_MATCH_BONUS


class TestMatchJob:
    """Tests for match_job."""

    def test_best_overlap_wins(self):
        """Test that the job with the most shared skills is picked."""
        jobs = [
            Job(profile="Frontend Developer", skills=["React", "CSS"]),
            Job(profile="DevOps Engineer", skills=["Docker", "Kubernetes", "Terraform"]),
        ]
        assert match_job(_sections("Docker", "Kubernetes"), jobs).profile == "DevOps Engineer"

    def test_tie_keeps_first(self):
        """Test that the first job wins a tie."""
        jobs = [Job(profile="A", skills=["Python"]), Job(profile="B", skills=["Python"])]
        assert match_job(_sections("Python"), jobs).profile == "A"

    def test_role_title_breaks_overlap(self):
        """Test that a matching role can outweigh a single shared skill."""
        jobs = [
            Job(profile="Frontend Developer", skills=["JavaScript"]),
            Job(profile="Data Analyst", skills=["SQL"]),
        ]
        sections = _sections("JavaScript", roles=("Data Analyst",))
        assert match_job(sections, jobs).profile == "Data Analyst"

    def test_empty_catalogue(self):
        """Test the default job for an empty catalogue."""
        assert match_job(_sections("Python"), []) == DEFAULT_JOB
