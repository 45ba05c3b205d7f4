"""Exception hierarchy.

Only DiscoveryError and LaunchError are meant to reach the CLI; the
transcript-level errors are always absorbed by session discovery.
"""


class PickerError(Exception):
    """Base class for all claude-picker errors."""


class DiscoveryError(PickerError):
    """The projects root directory could not be listed."""


class TranscriptError(PickerError):
    """A transcript file could not be read."""


class LineTooLongError(TranscriptError):
    """A single transcript line exceeded MAX_LINE_BYTES."""

    def __init__(self, path, line_num: int, limit: int):
        super().__init__(f"{path}: line {line_num} exceeds {limit} bytes")
        self.path = path
        self.line_num = line_num
        self.limit = limit


class LaunchError(PickerError):
    """The assistant process could not be spawned or exited non-zero."""


class SelectorError(PickerError):
    """The interactive list terminated abnormally."""
