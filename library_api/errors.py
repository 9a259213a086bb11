"""
Error kinds raised by the inventory and lending services.

Each class carries the HTTP status it maps to. The exception handlers in
``library_api.endpoints`` turn them into the standard response envelope;
anything that is not a ``LibraryError`` is reported as a 500.
"""

from typing import Dict, List, Optional

from fastapi import status


class LibraryError(Exception):
    """Base class for expected, request-level failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "Unknown"

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(LibraryError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"


class ValidationFailedError(LibraryError):
    """Field-level constraint violations; ``errors`` holds field/message pairs."""

    kind = "ValidationFailed"


class DuplicateKeyError(LibraryError):
    kind = "DuplicateKey"


class InvalidQuantityError(LibraryError):
    kind = "InvalidQuantity"


class InvalidDueDateError(LibraryError):
    kind = "InvalidDueDate"


class AlreadyReturnedError(LibraryError):
    kind = "AlreadyReturned"
