"""
apt_pending plugin front-end.

Usage:
    apt_pending [autoconf|config|update <maxinterval> <probability>]

With no argument the pending and held package counts for every release are
printed, regenerating the state file first when apt's caches have changed.
"""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys

from .apt_utils import clean_fieldname
from .calculator import PendingCalculator
from .config import PluginConfig
from .errors import PluginError
from .state import read_state, write_state

logger = logging.getLogger(__name__)

GRAPH_HEADER = [
    "graph_title Pending packages",
    "graph_vlabel Total packages",
    "graph_category security",
]


def autoconf(config: PluginConfig) -> str:
    """Report whether apt-get can be run on this host."""
    try:
        returncode = subprocess.call(
            [config.apt_get, "-v"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=config.subprocess_env(),
        )
    except OSError:
        return "no (apt-get not found)"

    if returncode != 0:
        return f"no (apt-get -v exited with status {returncode})"
    return "yes"


def graph_config(calculator: PendingCalculator) -> list[str]:
    """Return the graph and field declarations for every release."""
    lines = list(GRAPH_HEADER)
    for release in calculator.resolve_releases():
        field = clean_fieldname(release)
        lines.append(f"pending_{field}.label pending ({release})")
        lines.append(f"pending_{field}.warning 0:0")
        lines.append(f"hold_{field}.label hold ({release})")
    return lines


def fetch(calculator: PendingCalculator) -> list[str]:
    """
    Return the current values, regenerating the state file when stale.

    Args:
        calculator: PendingCalculator for this run

    Returns:
        State lines for the resolved releases
    """
    state_file = calculator.config.state_file
    releases = calculator.resolve_releases()

    if calculator.is_stale(state_file):
        logger.debug(f"Regenerating {state_file}")
        write_state(state_file, calculator.compute_all())

    return read_state(state_file, releases)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apt_pending",
        description="Report pending and held apt packages per release",
    )
    parser.add_argument(
        "mode", nargs="?", default=None,
        help="autoconf, config, or omit to print values",
    )
    # update <maxinterval> <probability> is accepted but runs like fetch
    parser.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Run the plugin.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    config = PluginConfig.from_environ()

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if args.mode == "autoconf":
        print(autoconf(config))
        return 0

    calculator = PendingCalculator(config)

    try:
        if args.mode == "config":
            lines = graph_config(calculator)
        else:
            if args.mode is not None:
                logger.debug(f"Mode {args.mode!r} not implemented, printing values")
            lines = fetch(calculator)
    except PluginError as e:
        logger.error(str(e))
        return e.exit_code

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
