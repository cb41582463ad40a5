"""
Error taxonomy for the discovery feed.

Every failure that crosses a component boundary is one of these, so callers
can tell a dropped connection from a rejected identity from a server-side
refusal without inspecting ``requests`` exceptions.
"""

from typing import Optional


class FeedError(Exception):
    """Base class for all discovery feed errors."""
    pass


class NetworkError(FeedError):
    """Transport failure: no HTTP response was received."""
    pass


class AuthError(FeedError):
    """The backend rejected the caller identity (401/403)."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class ServerError(FeedError):
    """Any other non-2xx response, carrying the server's message."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ConflictError(FeedError):
    """A swipe for this candidate is already in flight."""

    def __init__(self, candidate_id: str):
        super().__init__(f"Swipe already pending for candidate {candidate_id}")
        self.candidate_id = candidate_id


class UnknownCandidateError(FeedError, KeyError):
    """The candidate identifier is not in the current feed."""

    def __init__(self, candidate_id: str):
        super().__init__(f"Candidate not in feed: {candidate_id}")
        self.candidate_id = candidate_id

    def __str__(self) -> str:
        return self.args[0]
