# catalog/errors.py


class ImportSyncError(Exception):
    """Base class for import sync errors."""


class ConfigError(ImportSyncError):
    """Invalid configuration value or header map file."""


class ParseError(ImportSyncError):
    """The export could not be read or tokenized into rows at all."""


class RowValidationError(ImportSyncError):
    """A single row is a placeholder or carries an unusable identifier/value."""

    def __init__(self, reason: str, item_identifier: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.item_identifier = item_identifier


class PersistenceError(ImportSyncError):
    """A uniqueness or referential constraint failed on insert/update."""


class CacheIOError(ImportSyncError):
    """The extraction cache could not be read or written."""
