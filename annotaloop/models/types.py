"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/models/types.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Centralized enumeration and type definitions.
------------------------------------------------------------------------------
"""

from enum import Enum


class DocumentStatus(str, Enum):
    """Lifecycle states of an annotated document."""
    READY = "Ready"
    IN_PROGRESS = "In Progress"
    PROCESSED = "Processed"
    REVIEW = "Review"
    ANNOTATED = "Annotated"
    ERROR = "Error"


# States in which an annotated copy of the document is expected to exist
PROCESSED_STATES = frozenset({DocumentStatus.PROCESSED, DocumentStatus.REVIEW, DocumentStatus.ANNOTATED})


class BlobVariant(str, Enum):
    """Which of the two stored payloads of a document is addressed."""
    ORIGINAL = "original"
    ANNOTATED = "annotated"


class ArchiveKind(str, Enum):
    """Kinds of portable archive files."""
    PROJECT = "project"
    BATCH = "batch"
    DOCUMENT = "document"
    LABELS = "labels"
    RULES = "rules"

    @property
    def file_extension(self) -> str:
        return ARCHIVE_FILE_EXTENSIONS[self]

    @property
    def is_container(self) -> bool:
        """Labels and rules are plain JSON arrays, the rest are ZIP containers."""
        return self not in (ArchiveKind.LABELS, ArchiveKind.RULES)


ARCHIVE_FILE_EXTENSIONS = {
    ArchiveKind.PROJECT: ".alproj",
    ArchiveKind.BATCH: ".alproj",
    ArchiveKind.DOCUMENT: ".aldoc",
    ArchiveKind.LABELS: ".allabels",
    ArchiveKind.RULES: ".alrules",
}
