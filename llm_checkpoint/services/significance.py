"""Change-significance filter.

Decides whether a save is worth a new version. Single-line files, exact
duplicates and edits touching at most two diff lines are treated as noise
unless ``save_all_changes`` is on; duplicates are always skipped.
"""

import difflib
from typing import Optional

# Edits with this many added/removed diff lines or fewer are noise.
# A one-line replacement yields exactly two (one "-", one "+").
NOISE_THRESHOLD = 2


def count_changed_lines(previous_content: str, candidate_content: str) -> int:
    """Number of added plus removed lines in a unified diff of the two texts."""
    diff_lines = list(difflib.unified_diff(
        previous_content.split("\n"),
        candidate_content.split("\n"),
        fromfile="previous",
        tofile="candidate",
        lineterm="",
    ))
    # Skip the "---"/"+++" file header.
    body = diff_lines[2:]
    return sum(1 for line in body if line.startswith("+") or line.startswith("-"))


def should_persist(
    previous_content: Optional[str],
    candidate_content: str,
    save_all_changes: bool = False,
) -> bool:
    """Return True when *candidate_content* should become a new version.

    Args:
        previous_content: Content of the file's newest version, None if it has none
        candidate_content: Content being saved
        save_all_changes: Persist every non-duplicate save
    """
    if previous_content is None:
        if save_all_changes:
            return True
        return len(candidate_content.split("\n")) > 1

    if candidate_content == previous_content:
        return False

    if save_all_changes:
        return True

    return count_changed_lines(previous_content, candidate_content) > NOISE_THRESHOLD
