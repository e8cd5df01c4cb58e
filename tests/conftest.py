"""Pytest configuration and fixtures."""

import os
import textwrap
from collections.abc import Callable, Iterator

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("OPENROUTER_API_KEY", "")
os.environ.setdefault("ENVIRONMENT", "development")
# Increase rate limit for testing
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")
# Serve generator calls locally in tests
os.environ.setdefault("MOCK_OPENROUTER", "true")

from resume_builder_api.config import Settings  # noqa: E402


SAMPLE_RESUME_TEXT = textwrap.dedent("""
    Personal Info
    Name: Jane Doe
    Email: jane.doe@example.com
    Phone: 555-123-4567
    LinkedIn: linkedin.com/in/janedoe

    Professional Summary
    Backend developer with five years of experience building APIs.

    Technical Skills
    *- Python
    *- Docker
    *- PostgreSQL

    Experience
    Software Developer|Acme Corporation|2020-2023
    *- Built internal tools
    *- Maintained the billing service
    Intern|Globex|2019
    *- Wrote tests

    Education
    B.S. Computer Science|State University|2019

    Certifications
    AWS Certified Developer|Amazon|2022

    Projects
    Budget Tracker|Personal finance app|github.com/janedoe/budget

    Soft Skills
    *- Communication

    Languages
    Spanish|Fluent|90

    Hobbies
    *- Hiking

    Role Title
    Backend Developer

    Additional Fields
    Awards
    *- Employee of the Year|2022
""").strip()


@pytest.fixture
def sample_resume_text() -> str:
    """A resume in section text format covering every section."""
    return SAMPLE_RESUME_TEXT


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    """Reset cached settings, stores and clients before each test."""
    from resume_builder_api.config import get_settings
    from resume_builder_api.openrouter_client import reset_openrouter_client
    from resume_builder_api.resume_store import reset_resume_store

    get_settings.cache_clear()
    reset_resume_store()
    reset_openrouter_client()

    # Reset rate limiter storage
    try:
        from resume_builder_api.main import limiter

        if hasattr(limiter, "_storage") and limiter._storage:
            limiter._storage.reset()
    except (ImportError, AttributeError):
        pass

    yield
    get_settings.cache_clear()
    reset_resume_store()
    reset_openrouter_client()


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Fixture to set test settings."""

    def _mock_settings(**kwargs: str) -> Settings:
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        from resume_builder_api.config import get_settings

        get_settings.cache_clear()
        return get_settings()

    return _mock_settings
