"""
APT Utilities

Parsing helpers for apt-get's human-readable output and Munin field naming.
Output is expected in the C locale.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

_DISTS_PATTERN = re.compile(r"/dists/([^/]+)/")

_SUMMARY_PATTERN = re.compile(
    r"^(\d+) upgraded, (\d+) newly installed, (\d+) to remove and (\d+) not upgraded"
)

_FIELDNAME_ILLEGAL = re.compile(r"[^A-Za-z0-9_]")


class ParserState(Enum):
    """Section of dist-upgrade output currently being read."""

    SCANNING = "scanning"
    IN_REMOVE_BLOCK = "remove"
    IN_INSTALL_BLOCK = "install"
    IN_UPGRADE_BLOCK = "upgrade"


_SECTION_HEADERS = {
    "The following packages will be REMOVED:": ParserState.IN_REMOVE_BLOCK,
    "The following NEW packages will be installed:": ParserState.IN_INSTALL_BLOCK,
    "The following packages will be upgraded:": ParserState.IN_UPGRADE_BLOCK,
}


def clean_fieldname(name: str) -> str:
    """
    Make a release name safe for use inside a Munin field name.

    Every character outside [A-Za-z0-9_] is replaced by an underscore.

    Examples:
        "stable" -> "stable"
        "bookworm-security" -> "bookworm_security"
        "22.04" -> "22_04"
    """
    return _FIELDNAME_ILLEGAL.sub("_", name)


def parse_release_uris(lines: Iterable[str]) -> list[str]:
    """
    Extract release names from `apt-get update --print-uris` output.

    Args:
        lines: Output lines

    Returns:
        Distinct release names in first-seen order
    """
    releases: list[str] = []
    for line in lines:
        match = _DISTS_PATTERN.search(line)
        if match and match.group(1) not in releases:
            releases.append(match.group(1))
    return releases


def parse_summary_line(line: str) -> Optional[dict]:
    """
    Parse the dist-upgrade summary line.

    Expected format:
        N upgraded, N newly installed, N to remove and N not upgraded.

    Returns:
        Dict with upgraded, installed, removed and held counts, or None
    """
    match = _SUMMARY_PATTERN.match(line)
    if not match:
        return None

    upgraded, installed, removed, held = (int(g) for g in match.groups())
    return {
        "upgraded": upgraded,
        "installed": installed,
        "removed": removed,
        "held": held,
    }


@dataclass
class UpgradeSummary:
    """Packages a dist-upgrade of one release would touch."""

    upgrade: list[str] = field(default_factory=list)
    install: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)
    hold: int = 0

    @property
    def pending(self) -> list[str]:
        """Upgrades, then installs (+name), then removals (-name)."""
        return (
            self.upgrade
            + [f"+{name}" for name in self.install]
            + [f"-{name}" for name in self.remove]
        )

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def extinfo(self) -> str:
        return " ".join(self.pending)


class UpgradeParser:
    """
    Line-classification state machine for dist-upgrade output.

    A header line switches into its block; indented lines within a block
    contribute package names; the first non-indented line ends the block
    and is classified again from SCANNING.
    """

    def __init__(self) -> None:
        self.state = ParserState.SCANNING
        self.summary = UpgradeSummary()

    def feed(self, line: str) -> None:
        """Consume a single output line."""
        line = line.rstrip("\n")

        if self.state is not ParserState.SCANNING:
            if line[:1].isspace():
                self._target().extend(line.split())
                return
            self.state = ParserState.SCANNING

        header_state = _SECTION_HEADERS.get(line.strip())
        if header_state is not None:
            self.state = header_state
            return

        counts = parse_summary_line(line)
        if counts is not None:
            self.summary.hold = counts["held"]

    def _target(self) -> list[str]:
        if self.state is ParserState.IN_REMOVE_BLOCK:
            return self.summary.remove
        if self.state is ParserState.IN_INSTALL_BLOCK:
            return self.summary.install
        return self.summary.upgrade


def parse_upgrade_output(lines: Iterable[str]) -> UpgradeSummary:
    """
    Parse `apt-get -u dist-upgrade --print-uris` output.

    Sections that are missing or phrased differently simply yield empty
    lists and a zero hold count.

    Args:
        lines: Output lines

    Returns:
        UpgradeSummary for the release
    """
    parser = UpgradeParser()
    for line in lines:
        parser.feed(line)
    return parser.summary
