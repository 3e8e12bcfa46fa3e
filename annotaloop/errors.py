"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/errors.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Exception hierarchy of the archive engine. Structural errors
                (format, decryption, schema) abort an operation; blob errors
                are recovered locally by the builder and importer.
------------------------------------------------------------------------------
"""

from typing import Any, Dict, List, Optional


class ArchiveError(Exception):
    """
    Base exception for all archive engine errors.

    Attributes:
        message: Human readable error message.
        code: Stable error code for programmatic handling.
        details: Additional context for logging and debugging.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "ARCHIVE_ERROR"
        self.details = details or {}


class FormatError(ArchiveError):
    """The input is not a readable archive container."""

    def __init__(self, message: str, kind: Optional[str] = None) -> None:
        super().__init__(message, code="FORMAT_ERROR", details={"kind": kind})
        self.kind = kind


class DecryptionError(ArchiveError):
    """
    The sealed archive could not be opened.

    Raised for a wrong password as well as for a damaged envelope. Callers
    should ask for the password again instead of reporting corrupt data.
    """

    def __init__(self, message: str = "Incorrect password or corrupted file") -> None:
        super().__init__(message, code="DECRYPTION_ERROR")


class PasswordRequired(DecryptionError):
    """The archive is sealed and no password was supplied."""

    def __init__(self, message: str = "This file is encrypted. Please provide the password.") -> None:
        super().__init__(message)
        self.code = "PASSWORD_REQUIRED"


class SchemaError(ArchiveError):
    """
    The container was parsed but does not match the expected archive kind.

    Raised when required entries are missing or a metadata record fails
    validation.
    """

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        missing: Optional[List[str]] = None,
        errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="SCHEMA_ERROR",
            details={"kind": kind, "missing": missing or [], "errors": errors or []},
        )
        self.kind = kind
        self.missing = missing or []
        self.errors = errors or []


class StorageError(ArchiveError):
    """A storage backend failed to read or write a blob."""

    def __init__(self, message: str, storage_id: Optional[str] = None) -> None:
        super().__init__(message, code="STORAGE_ERROR", details={"storage_id": storage_id})
        self.storage_id = storage_id


class BlobNotFound(StorageError):
    """A single original or annotated payload is not stored."""

    def __init__(self, storage_id: str, ext: str, variant: str) -> None:
        super().__init__(f"No {variant} blob stored for {storage_id}{ext}", storage_id=storage_id)
        self.code = "BLOB_NOT_FOUND"
        self.ext = ext
        self.variant = variant
        self.details.update({"ext": ext, "variant": variant})


class IdentifierExhaustion(ArchiveError):
    """The identifier allocator was configured with an unusable counter."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="IDENTIFIER_EXHAUSTION")


class UserCancelled(ArchiveError):
    """
    The user aborted the operation.

    Not a failure: callers treat it as a normal early return.
    """

    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message, code="USER_CANCELLED")
