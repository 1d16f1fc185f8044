"""
Content Package Errors

Exceptions that cross the boundary from the package store to its callers.
Validation problems are never raised; they are logged and reported instead.
"""

from typing import Optional


class ContentPackageError(Exception):
    """Base class for all content package failures."""

    def __init__(self, message: str, content_id: Optional[str] = None):
        super().__init__(message)
        self.content_id = content_id


class InvalidPathError(ContentPackageError):
    """
    Raised when a content ID or member path would escape the content root.

    Covers empty IDs, path separators, parent-directory references and
    absolute paths.
    """
    pass


class UnpackError(ContentPackageError):
    """
    Raised when an archive cannot be opened or extracted.

    The uploaded archive stays on disk; the package has no extracted
    directory until it is uploaded again.
    """
    pass


class NotFoundError(ContentPackageError):
    """Raised when an operation targets a content package that does not exist."""
    pass


class DeletionError(ContentPackageError):
    """
    Raised when the extracted directory cannot be removed.

    The archive has already been deleted at this point, so the package is
    left with a directory but no archive.
    """
    pass
