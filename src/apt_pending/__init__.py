"""
apt_pending

Munin plugin reporting pending and held apt packages per distribution
release, cached in a state file between apt cache updates.
"""

from .apt_utils import UpgradeSummary, clean_fieldname, parse_upgrade_output
from .calculator import PendingCalculator
from .config import PluginConfig
from .errors import PluginError

__all__ = [
    "PendingCalculator",
    "PluginConfig",
    "PluginError",
    "UpgradeSummary",
    "clean_fieldname",
    "parse_upgrade_output",
]

__version__ = "1.0.0"
