class ApertureError(Exception):
    """Base class for recommender errors."""


class InvalidConfigError(ApertureError, ValueError):
    """Pipeline weights or counts are out of range."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class ConfigLoadError(ApertureError):
    """The configuration source could not be read."""


class SelectionError(ApertureError, ValueError):
    """Selector called with arguments it cannot honour."""
