"""
Pending Calculator

Determines which releases to report on, whether the cached state is out of
date, and runs apt-get's dist-upgrade simulation for each release.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from .apt_utils import UpgradeSummary, parse_release_uris, parse_upgrade_output
from .config import PluginConfig
from .errors import (
    CacheTimestampError,
    OptionsError,
    ReleaseDetectionError,
    SimulatorLaunchError,
)

logger = logging.getLogger(__name__)


class PendingCalculator:
    """
    Computes pending and held package counts per release.

    All apt-get invocations go through this class so tests can replace
    `_run` with canned output.
    """

    def __init__(self, config: PluginConfig):
        """
        Initialize the calculator.

        Args:
            config: Plugin configuration
        """
        self.config = config
        self._releases: list[str] | None = None

    def _run(self, args: list[str]) -> tuple[list[str], int]:
        """
        Run apt-get and collect its output.

        Raises:
            OSError: apt-get could not be started
        """
        command = [self.config.apt_get, *args]
        logger.debug(f"Running: {shlex.join(command)}")

        lines = []
        with subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            env=self.config.subprocess_env(),
            text=True,
            errors="replace",
        ) as proc:
            for line in proc.stdout:
                lines.append(line)

        if proc.returncode != 0:
            logger.warning(f"{shlex.join(command)} exited with status {proc.returncode}")

        return lines, proc.returncode

    def resolve_releases(self) -> list[str]:
        """
        Determine the releases to report on.

        The deprecated `releases` variable wins over `apt_releases`; with
        neither set, releases are detected from apt's source URIs.

        Returns:
            Non-empty list of release names
        """
        if self._releases is not None:
            return self._releases

        if self.config.legacy_releases:
            logger.warning("env.releases is deprecated, use env.apt_releases")
            releases = [
                r.strip() for r in self.config.legacy_releases.split(",") if r.strip()
            ]
        elif self.config.releases:
            releases = self.config.releases.split()
        else:
            releases = self.detect_releases()

        if not releases:
            raise ReleaseDetectionError("Release override lists no releases")

        self._releases = releases
        return releases

    def detect_releases(self) -> list[str]:
        """
        Detect releases from `apt-get update --print-uris`.

        Raises:
            ReleaseDetectionError: apt-get could not be run or listed no releases
        """
        try:
            lines, _ = self._run(["update", "--print-uris"])
        except OSError as e:
            raise ReleaseDetectionError(
                f"Could not run {self.config.apt_get} update --print-uris: {e}"
            ) from e

        releases = parse_release_uris(lines)
        if not releases:
            raise ReleaseDetectionError("No releases found in apt sources")

        logger.debug(f"Detected releases: {' '.join(releases)}")
        return releases

    def source_timestamp(self) -> float:
        """
        Return the newest mtime of apt's binary caches and the dpkg status file.

        Raises:
            CacheTimestampError: Neither source yields a timestamp
        """
        newest = 0.0

        try:
            with os.scandir(self.config.cache_dir) as entries:
                for entry in entries:
                    if entry.name.endswith(".bin") and entry.is_file():
                        newest = max(newest, entry.stat().st_mtime)
        except OSError as e:
            logger.warning(f"Cannot read {self.config.cache_dir}: {e}")

        if self.config.dpkg_status.exists():
            newest = max(newest, self.config.dpkg_status.stat().st_mtime)

        if newest == 0:
            raise CacheTimestampError(
                f"Cannot determine apt cache age from {self.config.cache_dir} "
                f"or {self.config.dpkg_status}, try running apt-get update as root"
            )

        return newest

    def is_stale(self, state_path: str | Path) -> bool:
        """
        Check whether the state file needs regenerating.

        Args:
            state_path: Path to the state file

        Returns:
            True if absent or not newer than apt's caches
        """
        source_time = self.source_timestamp()
        state_path = Path(state_path)

        if not state_path.exists():
            logger.debug(f"State file {state_path} does not exist")
            return True

        stale = source_time >= state_path.stat().st_mtime
        logger.debug(f"State file {state_path} stale: {stale}")
        return stale

    def simulate_upgrade(self, release: str) -> UpgradeSummary:
        """
        Run the dist-upgrade simulation restricted to one release.

        Args:
            release: Release name (e.g., "stable")

        Returns:
            UpgradeSummary parsed from apt-get output

        Raises:
            OptionsError: the extra options are not valid shell words
            SimulatorLaunchError: apt-get could not be started
        """
        args = ["-u", "dist-upgrade", "--print-uris", "--yes", "-t", release]
        try:
            args.extend(shlex.split(self.config.options))
        except ValueError as e:
            raise OptionsError(f"Cannot parse env.options {self.config.options!r}: {e}") from e

        try:
            lines, _ = self._run(args)
        except OSError as e:
            raise SimulatorLaunchError(
                f"Could not run {self.config.apt_get} for release {release}: {e}"
            ) from e

        return parse_upgrade_output(lines)

    def compute_all(self) -> dict[str, UpgradeSummary]:
        """
        Simulate the upgrade for every resolved release.

        Returns:
            Dict mapping release name to UpgradeSummary, in resolver order
        """
        return {
            release: self.simulate_upgrade(release)
            for release in self.resolve_releases()
        }
