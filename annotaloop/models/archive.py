"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/models/archive.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Layout of archive containers (entry names per archive kind)
                and the result objects handed back by export and import.
------------------------------------------------------------------------------
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from annotaloop.models.document import Document
from annotaloop.models.project import Label, Project, Rule
from annotaloop.models.types import ArchiveKind, BlobVariant

# Entry names inside containers
PROJECT_ENTRY = "project.json"
DOCUMENTS_ENTRY = "documents.json"
DOCUMENT_ENTRY = "document.json"
LABELS_ENTRY = "labels.json"
RULES_ENTRY = "rules.json"
FILES_PREFIX = "files/"

REQUIRED_ENTRIES: Dict[ArchiveKind, Tuple[str, ...]] = {
    ArchiveKind.PROJECT: (PROJECT_ENTRY, DOCUMENTS_ENTRY),
    ArchiveKind.BATCH: (PROJECT_ENTRY, DOCUMENTS_ENTRY),
    ArchiveKind.DOCUMENT: (DOCUMENT_ENTRY,),
}

BATCH_DESCRIPTION = "Batch exported documents"
BATCH_PROJECT_ID = 0


def project_blob_path(storage_id: str, variant: BlobVariant, ext: str) -> str:
    """Path of a stored file inside a project archive, e.g. 'files/<sid>_original.pdf'."""
    return f"{FILES_PREFIX}{storage_id}_{BlobVariant(variant).value}{ext}"


def document_blob_path(variant: BlobVariant, ext: str) -> str:
    """Path of a stored file inside a single-document archive, e.g. 'annotated.pdf'."""
    return f"{BlobVariant(variant).value}{ext}"


@dataclass
class ExportResult:
    """Finished archive bytes plus what the caller needs to persist them."""
    kind: ArchiveKind
    data: bytes
    suggested_name: str
    encrypted: bool = False
    missing_blobs: List[str] = field(default_factory=list)
    # Set once a sink has written the archive
    path: Optional[str] = None

    @property
    def file_extension(self) -> str:
        return self.kind.file_extension


@dataclass
class ProjectImportResult:
    """Remapped records of an imported project archive, ready to be merged."""
    project: Project
    documents: List[Document] = field(default_factory=list)
    missing_blobs: List[str] = field(default_factory=list)


@dataclass
class DocumentImportResult:
    """Remapped document plus the labels and rules shipped alongside it."""
    document: Document
    labels: List[Label] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)
    missing_blobs: List[str] = field(default_factory=list)
