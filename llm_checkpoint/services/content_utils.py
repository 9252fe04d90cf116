"""Content and path helpers shared by the save path and commit correlation."""

import os
import posixpath

COMMIT_MARKER_TEMPLATE = "/* Git commit: {message} */"
"""
First line of an annotated version.

Clients recognise commit checkpoints by this prefix, so changing it
breaks the display of every annotated version already stored.
"""


def normalize_path(path: str) -> str:
    """
    Canonical form of a workspace-relative path.

    Backslashes become forward slashes and ``.``/``..`` segments are
    collapsed, so paths reported by the editor and by git compare equal.
    """
    return posixpath.normpath(path.replace("\\", "/"))


def to_workspace_relative(path: str, workspace_root: str) -> str:
    """Normalize *path* relative to *workspace_root*.

    Relative paths are taken as already workspace-relative.
    """
    if os.path.isabs(path):
        path = os.path.relpath(path, workspace_root)
    return normalize_path(path)


def annotate_with_commit(content: str, commit_message: str) -> str:
    """Prepend the commit marker line to a snapshot."""
    return COMMIT_MARKER_TEMPLATE.format(message=commit_message) + "\n" + content
