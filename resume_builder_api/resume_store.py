"""In-memory resume document store keyed by owner and record id."""

import threading
from datetime import datetime, timezone
from typing import cast

from cachetools import LRUCache

from resume_builder_api.config import get_settings
from resume_builder_api.models import SaveResumeRequest, StoredResume


class ResumeNotFoundError(Exception):
    """Raised when an update targets a record the owner does not have."""

    pass


class ResumeStore:
    """Thread-safe in-memory resume store.

    Bounded to `max_resumes` records; the least recently used record is
    evicted first.
    """

    def __init__(self, max_resumes: int | None = None):
        """Initialize the resume store.

        Args:
            max_resumes: Maximum number of records to keep. Defaults to config value.
        """
        settings = get_settings()
        self._max_resumes = max_resumes or settings.max_stored_resumes
        self._cache: LRUCache[str, StoredResume] = LRUCache(maxsize=self._max_resumes)
        self._lock = threading.Lock()

    def get(self, user_id: str, resume_id: str) -> StoredResume | None:
        """Get a record by id, returning None if missing or owned by someone else."""
        with self._lock:
            result = self._cache.get(resume_id)
            resume = cast(StoredResume, result) if result is not None else None
            if resume is None or resume.user_id != user_id:
                return None
            return resume

    def list_for_owner(self, user_id: str) -> list[StoredResume]:
        """All records of one owner, most recently updated first."""
        with self._lock:
            owned = [r for r in self._cache.values() if r.user_id == user_id]
        return sorted(owned, key=lambda r: r.updated_at, reverse=True)

    def save(self, user_id: str, request: SaveResumeRequest) -> tuple[StoredResume, bool]:
        """Create a record, or replace the content of an existing one.

        Returns:
            The stored record and whether it was newly created.

        Raises:
            ResumeNotFoundError: If request.resume_id is set but not found for this owner.
        """
        fields = request.to_sections().model_dump()
        with self._lock:
            if request.resume_id:
                existing = self._cache.get(request.resume_id)
                if existing is None or existing.user_id != user_id:
                    raise ResumeNotFoundError(request.resume_id)
                resume = StoredResume(
                    id=existing.id,
                    user_id=user_id,
                    template=request.template,
                    updated_at=datetime.now(timezone.utc),
                    **fields,
                )
                created = False
            else:
                resume = StoredResume(user_id=user_id, template=request.template, **fields)
                created = True
            self._cache[resume.id] = resume
        return resume, created

    def delete(self, user_id: str, resume_id: str) -> bool:
        """Delete a record.

        Returns:
            True if the record was deleted, False if not found for this owner.
        """
        with self._lock:
            existing = self._cache.get(resume_id)
            if existing is None or existing.user_id != user_id:
                return False
            del self._cache[resume_id]
            return True

    def count(self) -> int:
        """Get the number of stored records."""
        with self._lock:
            return len(self._cache)

    def clear(self) -> None:
        """Remove all records."""
        with self._lock:
            self._cache.clear()


# Global store instance
_resume_store: ResumeStore | None = None


def get_resume_store() -> ResumeStore:
    """Get the global resume store instance."""
    global _resume_store
    if _resume_store is None:
        _resume_store = ResumeStore()
    return _resume_store


def reset_resume_store() -> None:
    """Reset the global resume store (useful for testing)."""
    global _resume_store
    _resume_store = None
