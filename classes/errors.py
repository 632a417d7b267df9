"""
Error taxonomy for the learning engine.

Every error carries a machine-readable ``reason`` so callers can present
distinct guidance (e.g. "already passed" vs. "no attempts remaining").
"""


class LearningError(Exception):
    """Base class for all engine errors."""

    status_code = 400

    def __init__(self, message, reason=None, details=None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.details = details or {}

    def to_dict(self):
        return {
            "error": self.message,
            "reason": self.reason,
            "details": self.details,
        }


class NotFound(LearningError):
    """A referenced course, section, exam, assignment or session is absent."""
    status_code = 404


class AccessDenied(LearningError):
    """Gating or ownership violation; the caller can act differently."""
    status_code = 403


class Ineligible(LearningError):
    """The exam cannot be taken: quota exhausted, already passed, or no assignment."""
    status_code = 403

    def __init__(self, message, eligibility):
        super().__init__(message, reason=eligibility.get("reason"), details=eligibility)
        self.eligibility = eligibility


class DuplicateSubmission(LearningError):
    """A second submit on an already closed exam session."""
    status_code = 409


class DuplicateAssignment(LearningError):
    status_code = 409


class StorageFailure(LearningError):
    """The record store is unavailable; safe to retry with backoff."""
    status_code = 503
