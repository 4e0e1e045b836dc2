"""
Plugin Configuration

Collects every environment-driven setting once at startup so the other
components never read os.environ directly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_APT_GET = "/usr/bin/apt-get"
DEFAULT_CACHE_DIR = "/var/cache/apt"
DEFAULT_DPKG_STATUS = "/var/lib/dpkg/status"
DEFAULT_PLUGSTATE = "/var/lib/munin-node/plugin-state/nobody"
STATE_FILENAME = "plugin-apt.state"

# apt-get output is parsed textually, so the locale must be fixed
SUBPROCESS_LOCALE = {"LANG": "C", "LC_ALL": "C"}


@dataclass(frozen=True)
class PluginConfig:
    """
    Settings for a single plugin run.

    Attributes:
        state_dir: Directory holding the plugin state file
        legacy_releases: Deprecated comma-separated release override
        releases: Whitespace-separated release override
        options: Extra apt-get flags, shell-quoted
        apt_get: Path to the apt-get binary
        cache_dir: apt binary cache directory
        dpkg_status: dpkg installed-package database
        debug: Enable debug logging
    """

    state_dir: Path = Path(DEFAULT_PLUGSTATE)
    legacy_releases: str | None = None
    releases: str | None = None
    options: str = ""
    apt_get: str = DEFAULT_APT_GET
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    dpkg_status: Path = Path(DEFAULT_DPKG_STATUS)
    debug: bool = False

    @property
    def state_file(self) -> Path:
        """Return the state file path."""
        return self.state_dir / STATE_FILENAME

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> PluginConfig:
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            PluginConfig instance
        """
        if environ is None:
            environ = os.environ

        return cls(
            state_dir=Path(environ.get("MUNIN_PLUGSTATE") or DEFAULT_PLUGSTATE),
            legacy_releases=environ.get("releases") or None,
            releases=environ.get("apt_releases") or None,
            options=environ.get("options", ""),
            apt_get=environ.get("apt_get") or DEFAULT_APT_GET,
            cache_dir=Path(environ.get("apt_cache_dir") or DEFAULT_CACHE_DIR),
            dpkg_status=Path(environ.get("dpkg_status") or DEFAULT_DPKG_STATUS),
            debug=environ.get("MUNIN_DEBUG", "") not in ("", "0"),
        )

    def subprocess_env(self) -> dict[str, str]:
        """Return the environment for apt-get child processes."""
        env = dict(os.environ)
        env.update(SUBPROCESS_LOCALE)
        return env
