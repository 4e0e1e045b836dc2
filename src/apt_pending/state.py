"""
State Store

Persists computed counts as `key value` lines and reads back the lines
belonging to a set of releases.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from .apt_utils import UpgradeSummary, clean_fieldname
from .errors import StateFileMissingError, StateWriteError, SymlinkStateError

logger = logging.getLogger(__name__)


def _refuse_symlink(path: Path) -> None:
    if path.is_symlink():
        raise SymlinkStateError(f"State file {path} is a symbolic link, refusing to use it")


def render_state_lines(results: Mapping[str, UpgradeSummary]) -> list[str]:
    """
    Render state file lines for each release.

    Args:
        results: Dict mapping release name to UpgradeSummary

    Returns:
        Lines without trailing newlines
    """
    lines = []
    for release, summary in results.items():
        field = clean_fieldname(release)
        lines.append(f"pending_{field}.value {summary.pending_count}")
        if summary.pending:
            lines.append(f"pending_{field}.extinfo {summary.extinfo}")
        lines.append(f"hold_{field}.value {summary.hold}")
    return lines


def write_state(path: str | Path, results: Mapping[str, UpgradeSummary]) -> None:
    """
    Truncate and rewrite the state file.

    Args:
        path: State file path
        results: Dict mapping release name to UpgradeSummary

    Raises:
        SymlinkStateError: path is a symbolic link
        StateWriteError: the file could not be written
    """
    path = Path(path)
    _refuse_symlink(path)

    try:
        with open(path, "w") as f:
            for line in render_state_lines(results):
                f.write(line + "\n")
    except OSError as e:
        raise StateWriteError(f"Cannot write state file {path}: {e}") from e

    logger.debug(f"Wrote state for {len(results)} release(s) to {path}")


def _release_pattern(releases: Iterable[str]) -> re.Pattern:
    fields = "|".join(re.escape(clean_fieldname(r)) for r in releases)
    return re.compile(rf"^(hold|pending)_({fields})\.(value|extinfo)(\s|$)")


def read_state(path: str | Path, releases: Iterable[str]) -> list[str]:
    """
    Read the state file lines belonging to the given releases.

    Args:
        path: State file path
        releases: Release names to keep

    Returns:
        Matching lines without trailing newlines

    Raises:
        SymlinkStateError: path is a symbolic link
        StateFileMissingError: path does not exist
    """
    path = Path(path)
    _refuse_symlink(path)

    releases = list(releases)
    if not releases:
        return []

    pattern = _release_pattern(releases)

    try:
        with open(path) as f:
            return [line.rstrip("\n") for line in f if pattern.match(line)]
    except FileNotFoundError as e:
        raise StateFileMissingError(f"State file {path} is missing") from e
