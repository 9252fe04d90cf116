"""Commit-correlation engine.

Reconciles repository state-change notifications with the version store.
When a notification reveals a new HEAD commit, every tracked file that was
staged just before the commit gets an annotated version: the previous
snapshot with a ``/* Git commit: <message> */`` line prepended. With
``auto_cleanup_after_commit`` enabled the older versions of those files are
then deleted, collapsing their history to the commit checkpoint.

Per repository, a round runs:

  1. guard held              -> ignored (another round is in flight)
  2. no HEAD commit          -> ignored
  3. snapshot staged paths   (every round, before the hash comparison)
  4. HEAD unchanged          -> done, snapshot kept for the next round
  5. HEAD changed            -> record hash, fetch commit message
  6. message missing         -> done, nothing written, snapshot kept
  7. annotate staged files   -> snapshot cleared, one refresh signal

Errors are logged and contained; versions written before an error stay.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.signals import RefreshNotifier
from ..exceptions import VCSQueryError
from .content_utils import annotate_with_commit, normalize_path, to_workspace_relative
from .vcs import Unsubscribe, VCSRepository
from .version_store import VersionStore

logger = logging.getLogger(__name__)


class RoundOutcome(str, Enum):
    """How a notification round ended."""
    NOT_WATCHED = "not_watched"
    BUSY = "busy"
    NO_COMMIT = "no_commit"
    UNCHANGED = "unchanged"
    NO_MESSAGE = "no_message"
    NOTHING_STAGED = "nothing_staged"
    PROCESSED = "processed"
    FAILED = "failed"


@dataclass
class RoundResult:
    """Result of handling one state-change notification."""
    outcome: RoundOutcome
    commit_hash: Optional[str] = None
    processed_files: int = 0


@dataclass
class RepositoryState:
    """Correlation state owned by one watched repository."""
    repo_key: str
    last_observed_commit_hash: Optional[str] = None
    pending_staged_files: Set[str] = field(default_factory=set)
    guard: threading.Lock = field(default_factory=threading.Lock)
    unsubscribe: Optional[Unsubscribe] = None

    @property
    def is_processing_commit(self) -> bool:
        return self.guard.locked()


class CommitCorrelationEngine:
    """Watches repositories and annotates committed files' history."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: Settings,
        notifier: Optional[RefreshNotifier] = None,
        workspace_root: Optional[Path] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.notifier = notifier
        self.workspace_root = Path(workspace_root or settings.workspace_root).resolve()
        self._watched: Dict[str, Tuple[VCSRepository, RepositoryState]] = {}
        self._watched_lock = threading.Lock()

    # -- watch lifecycle -------------------------------------------------

    def watch(self, repository: VCSRepository, prime: bool = True) -> Unsubscribe:
        """Start correlating commits of *repository*.

        With *prime* the current HEAD is recorded first, so the first
        notification does not mistake an old commit for a new one.
        Returns a handle that stops watching.
        """
        repo_key = str(repository.root_path)
        with self._watched_lock:
            if repo_key in self._watched:
                logger.debug(f"[CommitCorrelation] Already watching {repo_key}")
                return lambda: self.unwatch(repo_key)
            state = RepositoryState(repo_key=repo_key)
            self._watched[repo_key] = (repository, state)

        if prime:
            try:
                state.last_observed_commit_hash = repository.head_commit_hash()
            except VCSQueryError as e:
                logger.warning(f"[CommitCorrelation] Could not read HEAD of {repo_key}: {e}")

        state.unsubscribe = repository.subscribe(lambda: self.handle_state_change(repo_key))
        logger.info(f"[CommitCorrelation] Watching {repo_key}")
        return lambda: self.unwatch(repo_key)

    def unwatch(self, repo_key: str) -> None:
        with self._watched_lock:
            entry = self._watched.pop(repo_key, None)
        if entry is None:
            return
        _, state = entry
        if state.unsubscribe is not None:
            state.unsubscribe()
        logger.info(f"[CommitCorrelation] Stopped watching {repo_key}")

    def close(self) -> None:
        with self._watched_lock:
            keys = list(self._watched)
        for repo_key in keys:
            self.unwatch(repo_key)

    def state_for(self, repo_key: str) -> Optional[RepositoryState]:
        with self._watched_lock:
            entry = self._watched.get(repo_key)
        return entry[1] if entry else None

    @property
    def watched_repositories(self) -> list[str]:
        with self._watched_lock:
            return list(self._watched)

    # -- notification handling -------------------------------------------

    def handle_state_change(self, repo_key: str) -> RoundResult:
        """Run one correlation round for a repository. Never raises."""
        with self._watched_lock:
            entry = self._watched.get(repo_key)
        if entry is None:
            return RoundResult(RoundOutcome.NOT_WATCHED)
        repository, state = entry

        # Skip-if-busy, no queueing.
        if not state.guard.acquire(blocking=False):
            logger.debug(f"[CommitCorrelation] Round already running for {repo_key}, skipping")
            return RoundResult(RoundOutcome.BUSY)

        result = RoundResult(RoundOutcome.FAILED)
        try:
            self._run_round(repository, state, result)
        except Exception:
            logger.exception(f"[CommitCorrelation] Error handling state change of {repo_key}")
            result.outcome = RoundOutcome.FAILED
        finally:
            state.guard.release()
            if result.processed_files > 0 and self.notifier is not None:
                self.notifier.emit(None)
        return result

    def _run_round(self, repository: VCSRepository, state: RepositoryState, result: RoundResult) -> None:
        """Body of a round. Fills *result* in place so partial progress survives errors."""
        try:
            head = repository.head_commit_hash()
        except VCSQueryError as e:
            logger.warning(f"[CommitCorrelation] {e}")
            return
        if not head:
            result.outcome = RoundOutcome.NO_COMMIT
            return

        # Refreshed on every round, committed or not.
        try:
            staged = repository.staged_file_paths()
        except VCSQueryError as e:
            logger.warning(f"[CommitCorrelation] {e}")
            return
        state.pending_staged_files = {
            to_workspace_relative(path, str(self.workspace_root)) for path in staged
        }

        result.commit_hash = head
        if head == state.last_observed_commit_hash:
            result.outcome = RoundOutcome.UNCHANGED
            return

        state.last_observed_commit_hash = head
        logger.info(f"[CommitCorrelation] New commit {head[:8]} in {state.repo_key}")

        try:
            message = repository.latest_commit_message().strip()
        except VCSQueryError as e:
            logger.warning(f"[CommitCorrelation] No commit message for {head[:8]}: {e}")
            message = ""
        if not message:
            logger.info(f"[CommitCorrelation] No usable commit message for {head[:8]}, skipping")
            result.outcome = RoundOutcome.NO_MESSAGE
            return

        if not state.pending_staged_files:
            result.outcome = RoundOutcome.NOTHING_STAGED
            return

        try:
            self._annotate_commit(state.pending_staged_files, message, result)
        finally:
            state.pending_staged_files = set()

        result.outcome = RoundOutcome.PROCESSED
        if result.processed_files > 0:
            action = (
                "Cleaned up versions after git commit" if self.settings.auto_cleanup_after_commit
                else "Updated versions with git commit information"
            )
            logger.info(f"[CommitCorrelation] {action} ({result.processed_files} file(s) at {head[:8]})")

    def _annotate_commit(self, staged: Set[str], message: str, result: RoundResult) -> None:
        """Write one annotated version per committed file with history.

        Counts each file on ``result`` as soon as it is written.
        """
        auto_cleanup = self.settings.auto_cleanup_after_commit
        db = self.session_factory()
        try:
            store = VersionStore(db)
            for db_file in store.get_all_files():
                if normalize_path(db_file.file_path) not in staged:
                    continue

                previous = store.get_file_versions(db_file.id)
                if not previous:
                    continue
                previous_ids = [v.id for v in previous]

                store.create_version(db_file.id, annotate_with_commit(previous[0].content, message))
                result.processed_files += 1

                if auto_cleanup:
                    for version_id in previous_ids:
                        store.delete_version(version_id, missing_ok=True)
        finally:
            db.close()
