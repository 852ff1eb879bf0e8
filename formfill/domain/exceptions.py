"""Domain-specific exceptions.

Core matching, validation and fill operations report failures as values
(ValidationResult, FillResult, BatchResult). These exceptions are raised by
the collaborators around the core: configuration, file loading and storage.
"""


class FormFillerError(Exception):
    """Base exception for form filler operations."""
    pass


class ConfigurationError(FormFillerError):
    """Raised when configuration is invalid."""
    pass


class TabularSourceError(FormFillerError):
    """Raised when a data file cannot be read into rows."""
    pass


class ProfileStoreError(FormFillerError):
    """Raised when the profile store cannot be read or written."""
    pass
