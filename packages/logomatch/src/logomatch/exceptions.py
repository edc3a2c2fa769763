"""Custom exceptions for logomatch."""


class LogomatchError(Exception):
    """Base exception for logomatch."""


class CatalogLoadError(LogomatchError):
    """Raised when the reference catalog cannot be read."""


class SourceListingError(LogomatchError):
    """Raised when the source asset directory cannot be listed."""


class SelectionPersistError(LogomatchError):
    """Raised when the selection snapshot cannot be written to disk."""


class ConfirmationRequired(LogomatchError):
    """Raised when a destructive output reset was not confirmed."""
