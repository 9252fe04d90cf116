"""Version control capability consumed by the commit-correlation engine.

The engine depends only on this protocol; ``GitRepository`` is the
implementation used in production and tests substitute in-memory fakes.
"""

from pathlib import Path
from typing import Callable, List, Optional, Protocol

Unsubscribe = Callable[[], None]


class VCSRepository(Protocol):
    """A watched repository.

    Query methods raise VCSQueryError when the underlying tool fails.
    """

    root_path: Path

    def head_commit_hash(self) -> Optional[str]:
        """Hash of the HEAD commit, None before the first commit."""
        ...

    def staged_file_paths(self) -> List[str]:
        """Paths currently in the index, absolute or workspace-relative."""
        ...

    def latest_commit_message(self) -> str:
        """Full message of the HEAD commit, empty if unavailable."""
        ...

    def subscribe(self, on_change: Callable[[], None]) -> Unsubscribe:
        """Call *on_change* on every repository state change until unsubscribed."""
        ...
