"""Exception taxonomy for the engagement core."""

from __future__ import annotations

from typing import Any


class PulseError(Exception):
    """Base exception for all party-pulse errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(PulseError):
    """Raised for malformed input: out-of-range levels, empty required fields."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            message=message,
            details=f"Invalid value for '{field}'" if field else None,
        )
        self.field = field


class InvalidStateError(PulseError):
    """Raised when voting on a subject that no longer accepts votes."""

    def __init__(self, subject_id: str, status: str) -> None:
        super().__init__(
            message=f"Subject {subject_id} is {status} and does not accept votes",
            details="Closed, played and rejected subjects are frozen",
        )
        self.subject_id = subject_id
        self.status = status


class ConflictError(PulseError):
    """Raised when a write collides with existing state or keeps losing races."""

    def __init__(self, message: str, attempts: int | None = None) -> None:
        super().__init__(
            message=message,
            details="The caller may retry with backoff",
        )
        self.attempts = attempts


class NotFoundError(PulseError):
    """Raised when a subject, status, party or poll is unknown."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            message=f"{entity} not found: {entity_id}",
            details=f"The requested {entity.lower()} does not exist",
        )
        self.entity = entity
        self.entity_id = entity_id


class PartialLoadError(PulseError):
    """Raised when one or more sections of a fan-out load failed.

    The sections that did load are still available on ``snapshot``.
    """

    def __init__(self, failed_sections: dict[str, str], snapshot: Any = None) -> None:
        names = ", ".join(sorted(failed_sections))
        super().__init__(
            message=f"Party load incomplete; failed sections: {names}",
            details="Sections that loaded are returned on the snapshot",
        )
        self.failed_sections = failed_sections
        self.snapshot = snapshot
