"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/builder.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Export service for bundling projects, documents, labels and
                rules into portable archives. Stored files are fetched one
                document at a time; a missing file is logged and skipped
                without failing the export.
------------------------------------------------------------------------------
"""

import json
from typing import Any, Callable, Dict, List, Optional, Sequence

from annotaloop.codec import DEFAULT_COMPRESSION_LEVEL, ArchiveCodec
from annotaloop.envelope import PasswordEnvelope
from annotaloop.errors import BlobNotFound, StorageError, UserCancelled
from annotaloop.logger import get_logger, log_archive_entries
from annotaloop.models.archive import (
    BATCH_DESCRIPTION,
    BATCH_PROJECT_ID,
    DOCUMENT_ENTRY,
    DOCUMENTS_ENTRY,
    LABELS_ENTRY,
    PROJECT_ENTRY,
    RULES_ENTRY,
    ExportResult,
    document_blob_path,
    project_blob_path,
)
from annotaloop.models.document import Document
from annotaloop.models.project import Label, Project, Rule
from annotaloop.models.types import ArchiveKind, BlobVariant
from annotaloop.naming import split_name
from annotaloop.storage import StorageAdapter

logger = get_logger("archive.builder")


def dump_json(data: Any) -> bytes:
    """Canonical metadata encoding: UTF-8, two-space indent."""
    return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")


class ArchiveBuilder:
    """
    Produces archive bytes for the five export shapes: project, batch,
    single document, labels and rules. The builder never touches the
    filesystem; persisting the result is up to the caller.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        """
        Args:
            storage: Source of the documents' stored files.
            compression_level: Deflate level for the container.
            progress_callback: Optional callable(int) for percentage progress.
            cancel_check: Optional callable returning True to abort between documents.
        """
        self.storage = storage
        self.compression_level = compression_level
        self.progress_callback = progress_callback
        self.cancel_check = cancel_check

    # --- Export shapes ---

    def build_project(self, project: Project, documents: Sequence[Document], password: Optional[str] = None) -> ExportResult:
        """
        Exports a project with all of its documents and their files.

        Args:
            project: The project to export.
            documents: Candidate documents; only those belonging to the project are written.
            password: Optional password; seals the archive when given.

        Returns:
            The finished archive.
        """
        project_docs = [d for d in documents if d.project_id == project.id]
        skipped = len(documents) - len(project_docs)
        if skipped:
            logger.debug(f"Ignoring {skipped} documents of other projects")

        entries: Dict[str, bytes] = {
            PROJECT_ENTRY: dump_json(project.to_json_dict()),
            DOCUMENTS_ENTRY: dump_json([d.to_json_dict() for d in project_docs]),
        }
        missing = self._collect_project_files(project_docs, entries)
        return self._finish(ArchiveKind.PROJECT, entries, password, f"{project.name}{ArchiveKind.PROJECT.file_extension}", missing)

    def build_batch(self, documents: Sequence[Document], project_name: str, password: Optional[str] = None) -> ExportResult:
        """
        Exports an ad-hoc selection of documents as a minimal project.
        The copies are attached to a synthetic project so the archive imports like any project.
        """
        project = Project(
            id=BATCH_PROJECT_ID,
            name=project_name,
            desc=BATCH_DESCRIPTION,
            doc_count=len(documents),
        )
        batch_docs = [d.model_copy(update={"project_id": BATCH_PROJECT_ID}) for d in documents]

        entries: Dict[str, bytes] = {
            PROJECT_ENTRY: dump_json(project.to_json_dict()),
            DOCUMENTS_ENTRY: dump_json([d.to_json_dict() for d in batch_docs]),
        }
        missing = self._collect_project_files(batch_docs, entries)
        return self._finish(ArchiveKind.BATCH, entries, password, f"{project_name}{ArchiveKind.BATCH.file_extension}", missing)

    def build_document(
        self,
        document: Document,
        labels: Sequence[Label] = (),
        rules: Sequence[Rule] = (),
        password: Optional[str] = None,
    ) -> ExportResult:
        """
        Exports a single document together with the labels and rules it is annotated with.
        """
        entries: Dict[str, bytes] = {
            DOCUMENT_ENTRY: dump_json(document.to_json_dict()),
            LABELS_ENTRY: dump_json([l.to_json_dict() for l in labels]),
            RULES_ENTRY: dump_json([r.to_json_dict() for r in rules]),
        }
        missing: List[str] = []

        if document.storage_id:
            ext = document.file_extension
            variants = [BlobVariant.ORIGINAL]
            if document.is_processed:
                variants.append(BlobVariant.ANNOTATED)
            for variant in variants:
                path = document_blob_path(variant, ext)
                data = self._fetch(document, variant, ext)
                if data is None:
                    missing.append(path)
                else:
                    entries[path] = data

        stem, _ = split_name(document.name)
        return self._finish(ArchiveKind.DOCUMENT, entries, password, f"{stem}{ArchiveKind.DOCUMENT.file_extension}", missing)

    def build_labels(self, labels: Sequence[Label], filename: str, password: Optional[str] = None) -> ExportResult:
        """Exports labels as a plain JSON array. Label files are never encrypted."""
        if password:
            raise ValueError("Label exports cannot be encrypted")
        data = dump_json([l.to_json_dict() for l in labels])
        return ExportResult(ArchiveKind.LABELS, data, f"{filename}{ArchiveKind.LABELS.file_extension}")

    def build_rules(self, rules: Sequence[Rule], filename: str, password: Optional[str] = None) -> ExportResult:
        """Exports rules as a plain JSON array. Rule files are never encrypted."""
        if password:
            raise ValueError("Rule exports cannot be encrypted")
        data = dump_json([r.to_json_dict() for r in rules])
        return ExportResult(ArchiveKind.RULES, data, f"{filename}{ArchiveKind.RULES.file_extension}")

    # --- Internals ---

    def _collect_project_files(self, documents: Sequence[Document], entries: Dict[str, bytes]) -> List[str]:
        """
        Adds the original (and, for processed documents, annotated) file of every
        document under files/. Returns the paths that could not be filled.
        """
        missing: List[str] = []
        total = len(documents)

        for i, doc in enumerate(documents):
            self._check_cancelled()

            if doc.storage_id:
                ext = doc.file_extension
                variants = [BlobVariant.ORIGINAL]
                if doc.is_processed:
                    variants.append(BlobVariant.ANNOTATED)

                for variant in variants:
                    path = project_blob_path(doc.storage_id, variant, ext)
                    if path in entries:
                        # Two records sharing one stored file
                        continue
                    data = self._fetch(doc, variant, ext)
                    if data is None:
                        missing.append(path)
                    else:
                        entries[path] = data

            if self.progress_callback:
                self.progress_callback(int(((i + 1) / total) * 90))

        return missing

    def _fetch(self, doc: Document, variant: BlobVariant, ext: str) -> Optional[bytes]:
        """Reads one stored file. Failures are logged and yield None."""
        try:
            data = self.storage.get(doc.storage_id, ext, variant)
            logger.debug(f"Added {variant.value} file of '{doc.name}' ({len(data)} bytes)")
            return data
        except BlobNotFound:
            if variant == BlobVariant.ORIGINAL:
                logger.warning(f"File not found in storage: '{doc.name}' ({doc.storage_id}{ext})")
            else:
                logger.warning(f"No annotated file for processed document '{doc.name}'")
        except (StorageError, OSError) as e:
            logger.error(f"Failed to load {variant.value} file for document '{doc.name}': {e}")
        return None

    def _check_cancelled(self) -> None:
        if self.cancel_check and self.cancel_check():
            logger.info("Export cancelled")
            raise UserCancelled()

    def _finish(
        self,
        kind: ArchiveKind,
        entries: Dict[str, bytes],
        password: Optional[str],
        suggested_name: str,
        missing: List[str],
    ) -> ExportResult:
        """Packs the entries and seals them if a password was supplied."""
        try:
            data = ArchiveCodec.build(entries, compression_level=self.compression_level)
            if password:
                data = PasswordEnvelope.seal(data, password)
        except (ValueError, TypeError) as e:
            logger.error(f"Failed to build {kind.value} archive: {e}")
            raise

        log_archive_entries(kind.value, entries.keys())
        if missing:
            logger.warning(f"{kind.value.capitalize()} exported without {len(missing)} file(s)")
        else:
            logger.info(f"{kind.value.capitalize()} exported successfully ({len(entries)} entries)")

        if self.progress_callback:
            self.progress_callback(100)

        return ExportResult(kind, data, suggested_name, encrypted=bool(password), missing_blobs=missing)
