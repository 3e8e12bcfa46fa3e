"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/service.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Orchestrates exports and imports against the local store.
                Takes a fresh snapshot of used names and identifiers for
                every operation, runs the builder or importer, hands export
                bytes to a sink and persists imported records.
------------------------------------------------------------------------------
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from annotaloop.allocator import SequentialAllocator
from annotaloop.builder import ArchiveBuilder
from annotaloop.codec import DEFAULT_COMPRESSION_LEVEL
from annotaloop.database import DatabaseManager
from annotaloop.errors import StorageError, UserCancelled
from annotaloop.importer import ArchiveImporter
from annotaloop.logger import get_logger
from annotaloop.models.archive import DocumentImportResult, ExportResult, ProjectImportResult
from annotaloop.models.document import Document
from annotaloop.models.project import Label, Project, Rule
from annotaloop.repositories import BlobRepository, DocumentRepository, ProjectRepository
from annotaloop.sink import DestinationSink
from annotaloop.storage import MirroredStorage, StorageAdapter
from annotaloop.vault import DocumentVault

logger = get_logger("archive.service")

ItemT = TypeVar("ItemT", Label, Rule)


def merge_items(existing: Sequence[ItemT], incoming: Iterable[ItemT]) -> Tuple[List[ItemT], List[ItemT]]:
    """
    Appends incoming labels or rules that are not already present.
    Duplicates are detected by content, the identifier is ignored.

    Returns:
        (merged list, items actually added)
    """
    seen = {item.content_key() for item in existing}
    added: List[ItemT] = []
    for item in incoming:
        key = item.content_key()
        if key in seen:
            continue
        seen.add(key)
        added.append(item)
    return list(existing) + added, added


def merge_labels(existing: Sequence[Label], incoming: Iterable[Label]) -> Tuple[List[Label], List[Label]]:
    return merge_items(existing, incoming)


def merge_rules(existing: Sequence[Rule], incoming: Iterable[Rule]) -> Tuple[List[Rule], List[Rule]]:
    return merge_items(existing, incoming)


def open_storage(vault_path: Union[str, Path], db: DatabaseManager) -> MirroredStorage:
    """File vault as primary storage, mirrored into the database."""
    return MirroredStorage(DocumentVault(vault_path), BlobRepository(db))


def read_file(path: Union[str, Path]) -> bytes:
    """Reads an archive file from disk."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        logger.error(f"Cannot read {path}: {e}")
        raise StorageError(f"Cannot read {path}: {e}") from e


class ArchiveService:
    """
    Caller-side glue between the local store and the archive engine.
    Export methods return None when the sink declines or the user cancels.
    """

    def __init__(
        self,
        db: DatabaseManager,
        storage: StorageAdapter,
        sink: Optional[DestinationSink] = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        storage_id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.sink = sink
        self.compression_level = compression_level
        self.storage_id_factory = storage_id_factory
        self.clock = clock
        self.project_repo = ProjectRepository(db)
        self.document_repo = DocumentRepository(db)

    # --- Store access ---

    def get_project(self, project_id: int) -> Project:
        project = self.project_repo.get(project_id)
        if project is None:
            raise ValueError(f"Project {project_id} not found")
        return project

    def get_document(self, document_id: int) -> Document:
        document = self.document_repo.get(document_id)
        if document is None:
            raise ValueError(f"Document {document_id} not found")
        return document

    def _allocator(self) -> SequentialAllocator:
        return SequentialAllocator.from_existing(self.project_repo.get_ids(), self.document_repo.get_ids())

    def _builder(self, progress_callback=None, cancel_check=None) -> ArchiveBuilder:
        return ArchiveBuilder(
            self.storage,
            compression_level=self.compression_level,
            progress_callback=progress_callback,
            cancel_check=cancel_check,
        )

    def _importer(self, progress_callback=None, cancel_check=None) -> ArchiveImporter:
        return ArchiveImporter(
            self.storage,
            storage_id_factory=self.storage_id_factory,
            clock=self.clock,
            progress_callback=progress_callback,
            cancel_check=cancel_check,
        )

    # --- Exports ---

    def export_project(
        self,
        project_id: int,
        password: Optional[str] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Optional[ExportResult]:
        project = self.get_project(project_id)
        documents = self.document_repo.list_by_project(project_id)
        builder = self._builder(progress_callback, cancel_check)
        try:
            result = builder.build_project(project, documents, password)
        except UserCancelled:
            return None
        return self._deliver(result)

    def export_document(self, document_id: int, password: Optional[str] = None) -> Optional[ExportResult]:
        """Exports a document with the labels and rules of its project."""
        document = self.get_document(document_id)
        project = self.get_project(document.project_id)
        result = self._builder().build_document(document, project.labels, project.rules, password)
        return self._deliver(result)

    def export_batch(
        self,
        document_ids: Sequence[int],
        password: Optional[str] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Optional[ExportResult]:
        """
        Exports a selection of documents as a stand-alone project named
        after the project of the first document.
        """
        documents = self.document_repo.get_many(document_ids)
        if not documents:
            raise ValueError("No documents selected for batch export")
        project = self.get_project(documents[0].project_id)

        builder = self._builder(progress_callback, cancel_check)
        try:
            result = builder.build_batch(documents, f"{project.name}_batch", password)
        except UserCancelled:
            return None
        return self._deliver(result)

    def export_labels(self, project_id: int) -> Optional[ExportResult]:
        project = self.get_project(project_id)
        return self._deliver(self._builder().build_labels(project.labels, f"{project.name}_labels"))

    def export_rules(self, project_id: int) -> Optional[ExportResult]:
        project = self.get_project(project_id)
        return self._deliver(self._builder().build_rules(project.rules, f"{project.name}_rules"))

    def _deliver(self, result: ExportResult) -> Optional[ExportResult]:
        if self.sink is None:
            raise ValueError("No export destination configured")
        path = self.sink.choose_path(result.suggested_name, result.file_extension)
        if path is None:
            logger.info(f"{result.kind.value.capitalize()} export cancelled at destination selection")
            return None
        self.sink.write_bytes(path, result.data)
        result.path = path
        return result

    # --- Imports ---

    def import_project(
        self,
        data: bytes,
        password: Optional[str] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Optional[ProjectImportResult]:
        """
        Imports a project or batch archive as a new project.
        Document names only have to be unique inside the new project.
        """
        importer = self._importer(progress_callback, cancel_check)
        try:
            result = importer.import_project(
                data,
                self._allocator(),
                existing_project_names=self.project_repo.get_names(),
                existing_document_names=(),
                password=password,
            )
        except UserCancelled:
            return None

        self.project_repo.save(result.project)
        self.document_repo.save_many(result.documents)
        return result

    def import_document(self, data: bytes, project_id: int, password: Optional[str] = None) -> DocumentImportResult:
        """
        Imports a single document into an existing project.
        The labels and rules shipped with it are merged into the new document's own configuration.
        """
        project = self.get_project(project_id)
        result = self._importer().import_document(
            data,
            self._allocator(),
            target_project_id=project_id,
            existing_names=self.document_repo.get_names(project_id),
            password=password,
        )

        document = result.document
        labels, _ = merge_labels(document.labels or [], result.labels)
        rules, _ = merge_rules(document.rules or [], result.rules)
        document = document.model_copy(update={"labels": labels or None, "rules": rules or None})
        result.document = document

        self.document_repo.save(document)
        self.project_repo.save(project.model_copy(update={"doc_count": self.document_repo.count_by_project(project_id)}))
        return result

    def import_labels(self, data: bytes, project_id: int) -> List[Label]:
        """Merges a labels file into a project. Returns the labels that were added."""
        project = self.get_project(project_id)
        merged, added = merge_labels(project.labels, self._importer().import_labels(data))
        self.project_repo.save(project.model_copy(update={"labels": merged}))
        logger.info(f"{len(added)} labels added to project '{project.name}'")
        return added

    def import_rules(self, data: bytes, project_id: int) -> List[Rule]:
        """Merges a rules file into a project. Returns the rules that were added."""
        project = self.get_project(project_id)
        merged, added = merge_rules(project.rules, self._importer().import_rules(data))
        self.project_repo.save(project.model_copy(update={"rules": merged}))
        logger.info(f"{len(added)} rules added to project '{project.name}'")
        return added
