"""Repository notification endpoint.

Lets a git hook (``post-commit``, ``post-checkout``) or an editor with its
own VCS integration push a state-change notification instead of waiting for
the polling watcher.

Example hook::

    #!/bin/sh
    curl -s -X POST http://127.0.0.1:8765/api/webhooks/git \\
        -H 'Content-Type: application/json' \\
        -d "{\\"repo_path\\": \\"$(git rev-parse --show-toplevel)\\"}" >/dev/null &
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends

from ..schemas.webhook import GitNotification, RoundResponse, WebhookResponse
from ..services.commit_correlation import CommitCorrelationEngine
from .deps import get_correlation_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/git", response_model=WebhookResponse)
def git_notification(
    notification: GitNotification,
    engine: Optional[CommitCorrelationEngine] = Depends(get_correlation_engine),
):
    """Run a correlation round for the notified repository (or all watched ones)."""
    if engine is None or not engine.watched_repositories:
        return WebhookResponse(status="ignored", message="No repository is being watched")

    if notification.repo_path:
        repo_key = str(Path(notification.repo_path).resolve())
        if repo_key not in engine.watched_repositories:
            logger.warning(f"Notification for unwatched repository {repo_key}")
            return WebhookResponse(status="ignored", message=f"Repository not watched: {repo_key}")
        targets = [repo_key]
    else:
        targets = engine.watched_repositories

    rounds = []
    for repo_key in targets:
        result = engine.handle_state_change(repo_key)
        rounds.append(RoundResponse(
            repo_path=repo_key,
            outcome=result.outcome.value,
            commit_hash=result.commit_hash,
            processed_files=result.processed_files,
        ))

    return WebhookResponse(
        status="processed",
        message=f"Handled notification for {len(rounds)} repositor{'y' if len(rounds) == 1 else 'ies'}",
        rounds=rounds,
    )
