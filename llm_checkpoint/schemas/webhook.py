"""Repository notification schemas."""

from pydantic import BaseModel
from typing import Optional


class GitNotification(BaseModel):
    """Repository state changed (sent by a git hook or an editor).

    An empty repo_path addresses every watched repository.
    """
    repo_path: Optional[str] = None


class RoundResponse(BaseModel):
    """Outcome of one correlation round."""
    repo_path: str
    outcome: str
    commit_hash: Optional[str] = None
    processed_files: int = 0


class WebhookResponse(BaseModel):
    """Response after receiving a notification."""
    status: str
    message: str
    rounds: list[RoundResponse] = []
