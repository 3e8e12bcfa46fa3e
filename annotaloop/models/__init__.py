"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/models/__init__.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Package initializer for data models. Exports Project, Document,
                Label, Rule and the archive result types for easy access.
------------------------------------------------------------------------------
"""

from .types import ArchiveKind, BlobVariant, DocumentStatus, PROCESSED_STATES
from .project import ArchiveRecord, Label, Project, Rule
from .document import Document
from .archive import DocumentImportResult, ExportResult, ProjectImportResult
