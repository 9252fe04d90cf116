"""Git implementation of the version control capability.

Queries shell out to the ``git`` CLI. Repository state changes are detected
by polling the files git rewrites on every commit and stage operation
(HEAD, the checked-out ref, packed-refs and the index).
"""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional

from ..exceptions import VCSQueryError
from .vcs import Unsubscribe

logger = logging.getLogger(__name__)


def _run_git(repo_path: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args],
        cwd=repo_path,
        capture_output=True,
        text=True,
    )


class GitStateWatcher:
    """Background poller firing a callback when git state files change."""

    def __init__(self, git_dir: Path, on_change: Callable[[], None], poll_interval: float = 1.0):
        self.git_dir = git_dir
        self.on_change = on_change
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last: tuple = ()

    def _state_files(self) -> List[Path]:
        head = self.git_dir / "HEAD"
        paths = [head, self.git_dir / "index", self.git_dir / "packed-refs"]
        try:
            ref = head.read_text().strip()
        except OSError:
            return paths
        if ref.startswith("ref: "):
            paths.append(self.git_dir / ref[len("ref: "):])
        return paths

    def fingerprint(self) -> tuple:
        """(path, mtime_ns, size) of every state file; missing files count too."""
        stamps = []
        for path in self._state_files():
            try:
                st = path.stat()
                stamps.append((str(path), st.st_mtime_ns, st.st_size))
            except OSError:
                stamps.append((str(path), None, None))
        return tuple(stamps)

    def poll(self) -> bool:
        """Check once. Returns True (after calling on_change) if state moved."""
        current = self.fingerprint()
        if current == self._last:
            return False
        self._last = current
        try:
            self.on_change()
        except Exception:
            logger.exception(f"[GitWatcher] State change handler failed for {self.git_dir}")
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.poll_interval):
            self.poll()

    def start(self) -> None:
        self._last = self.fingerprint()
        self._thread = threading.Thread(
            target=self._run,
            name=f"git-watcher-{self.git_dir.parent.name}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"[GitWatcher] Watching {self.git_dir} every {self.poll_interval}s")

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self.poll_interval * 2)
        self._thread = None


class GitRepository:
    """A git work tree, queried through the git CLI.

    Remembers the HEAD it last reported. When HEAD has moved since, the
    staged set is computed against that earlier commit, so the round that
    sees a new commit still gets the paths the commit took out of the index.
    """

    def __init__(self, root_path: Path, poll_interval: float = 1.0):
        self.root_path = Path(root_path).resolve()
        self.poll_interval = poll_interval
        self._head_observed = False
        self._previous_head: Optional[str] = None
        self._reported_head: Optional[str] = None

    @classmethod
    def discover(cls, path: Path, poll_interval: float = 1.0) -> Optional["GitRepository"]:
        """Return the repository enclosing *path*, or None outside a work tree."""
        try:
            result = _run_git(Path(path), "rev-parse", "--show-toplevel")
        except (FileNotFoundError, NotADirectoryError) as e:
            logger.warning(f"[GitRepository] git unavailable for {path}: {e}")
            return None
        if result.returncode != 0:
            return None
        return cls(Path(result.stdout.strip()), poll_interval=poll_interval)

    def _git(self, *args: str) -> str:
        command = " ".join(["git", *args])
        try:
            result = _run_git(self.root_path, *args)
        except OSError as e:
            raise VCSQueryError(command, f"Could not run git ({e})") from e
        if result.returncode != 0:
            logger.warning(f"[GitRepository] {command} failed: {result.stderr.strip()}")
            raise VCSQueryError(command)
        return result.stdout

    def git_dir(self) -> Path:
        return Path(self._git("rev-parse", "--absolute-git-dir").strip())

    def head_commit_hash(self) -> Optional[str]:
        try:
            result = _run_git(self.root_path, "rev-parse", "--verify", "--quiet", "HEAD")
        except OSError as e:
            raise VCSQueryError("git rev-parse HEAD", f"Could not run git ({e})") from e
        # Unborn branch: no commit yet.
        head = (result.stdout.strip() or None) if result.returncode == 0 else None

        self._previous_head = self._reported_head if self._head_observed else head
        self._reported_head = head
        self._head_observed = True
        return head

    def staged_file_paths(self) -> List[str]:
        """Staged paths, or the paths of the commit that just emptied the index."""
        head = self._reported_head
        previous = self._previous_head
        if head is not None and previous != head:
            if previous is None:
                # First commit on the branch: the index holds exactly its tree.
                output = self._git("ls-files", "-z")
            else:
                output = self._git("diff", "--cached", "--name-only", "-z", previous)
        else:
            output = self._git("diff", "--cached", "--name-only", "-z")
        return [str(self.root_path / name) for name in output.split("\0") if name]

    def latest_commit_message(self) -> str:
        return self._git("log", "-1", "--pretty=%B").strip()

    def subscribe(self, on_change: Callable[[], None]) -> Unsubscribe:
        watcher = GitStateWatcher(self.git_dir(), on_change, self.poll_interval)
        watcher.start()
        return watcher.stop
