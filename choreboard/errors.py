"""Exceptions raised inside the chore board."""


class ChoreBoardError(Exception):
    """Base class for chore board errors."""


class ConfigError(ChoreBoardError):
    """Invalid configuration detected at start-up."""


class SnapshotError(ChoreBoardError):
    """A JSON snapshot could not be read or written."""
