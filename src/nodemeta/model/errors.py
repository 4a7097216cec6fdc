"""Exceptions raised by the metadata model."""


class MetadataError(Exception):
    """Base class for metadata model errors."""


class MetadataPathError(MetadataError, ValueError):
    """Raised when a path cannot be created or written in a metadata tree."""


class MetadataTypeError(MetadataError, ValueError):
    """Raised when a serialized value has an unknown or malformed type."""


class FormError(MetadataError):
    """Raised when a submitted form cannot be turned into definitions.

    Args:
        message: Human readable reason.
        field: Form field the problem was found in, if known.
    """

    def __init__(self, message: str, field: str = "") -> None:
        super().__init__(message)
        self.field = field
