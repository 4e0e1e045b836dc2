"""
Plugin Errors

Exceptions raised by the plugin components. Each carries the process exit
code that the front-end returns when it reaches the top level.
"""


class PluginError(Exception):
    """Base class for fatal plugin errors."""

    exit_code = 1


class ReleaseDetectionError(PluginError):
    """Releases could not be determined from apt's sources."""


class CacheTimestampError(PluginError):
    """No apt cache or dpkg status timestamp is available."""


class SymlinkStateError(PluginError):
    """The state file path is a symbolic link."""


class StateFileMissingError(PluginError):
    """The state file is absent after regeneration."""


class StateWriteError(PluginError):
    """The state file could not be written."""


class SimulatorLaunchError(PluginError):
    """apt-get could not be started for the upgrade simulation."""

    exit_code = 22


class OptionsError(PluginError):
    """The extra apt-get options cannot be split into arguments."""
