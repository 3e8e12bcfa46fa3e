"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/importer.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Import service for archives. Opens (and if needed decrypts)
                an archive, validates its metadata, then re-materializes the
                contents as new records: fresh ids, fresh storage ids and
                collision-free names. Stored files are restored one document
                at a time; a missing file never aborts the import.
------------------------------------------------------------------------------
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Collection, List, Optional, Type, TypeVar

from pydantic import ValidationError

from annotaloop.allocator import IdentifierAllocator
from annotaloop.codec import ArchiveCodec, ArchiveContents, is_container
from annotaloop.envelope import PasswordEnvelope, looks_sealed
from annotaloop.errors import FormatError, PasswordRequired, SchemaError, StorageError, UserCancelled
from annotaloop.logger import get_logger, log_archive_entries
from annotaloop.models.archive import (
    DOCUMENT_ENTRY,
    DOCUMENTS_ENTRY,
    FILES_PREFIX,
    LABELS_ENTRY,
    PROJECT_ENTRY,
    REQUIRED_ENTRIES,
    RULES_ENTRY,
    DocumentImportResult,
    ProjectImportResult,
    document_blob_path,
    project_blob_path,
)
from annotaloop.models.document import Document
from annotaloop.models.project import ArchiveRecord, Label, Project, Rule
from annotaloop.models.types import ArchiveKind, BlobVariant
from annotaloop.naming import get_file_extension, unique_name
from annotaloop.storage import StorageAdapter

logger = get_logger("archive.importer")

RecordT = TypeVar("RecordT", bound=ArchiveRecord)


def iso_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. '2024-05-01T09:30:00.000Z'."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _describe_kind(contents: ArchiveContents) -> Optional[str]:
    """Guesses which kind of archive was actually supplied."""
    if PROJECT_ENTRY in contents:
        return ArchiveKind.PROJECT.value
    if DOCUMENT_ENTRY in contents:
        return ArchiveKind.DOCUMENT.value
    return None


class ArchiveImporter:
    """
    Turns archive bytes into new, collision-free records.

    All validation happens before the first identifier is allocated or the
    first file written, so a rejected archive (wrong password, wrong kind)
    leaves no trace. Merging the returned records into the live store is up
    to the caller.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        storage_id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        """
        Args:
            storage: Target for restored files.
            storage_id_factory: Creates new storage ids. Defaults to random UUIDs.
            clock: Returns the import time. Defaults to the current UTC time.
            progress_callback: Optional callable(int) for percentage progress.
            cancel_check: Optional callable returning True to abort between documents.
        """
        self.storage = storage
        self.storage_id_factory = storage_id_factory or (lambda: str(uuid.uuid4()))
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.progress_callback = progress_callback
        self.cancel_check = cancel_check

    # --- Opening and validation ---

    def open_container(self, data: bytes, password: Optional[str], kind: ArchiveKind) -> ArchiveContents:
        """
        Sniffs, decrypts if necessary, and parses an archive.

        Raises:
            PasswordRequired: The archive is sealed and no password was given.
            DecryptionError: Wrong password or damaged envelope.
            FormatError: Not an archive at all.
        """
        if is_container(data):
            return ArchiveCodec.parse(data)

        if not looks_sealed(data):
            logger.error(f"Input is neither a {kind.value} archive nor an encrypted archive")
            raise FormatError(f"Not a valid {kind.value} file", kind=kind.value)

        if not password:
            raise PasswordRequired()

        plain = PasswordEnvelope.open(data, password)
        return ArchiveCodec.parse(plain)

    def _require_entries(self, contents: ArchiveContents, kind: ArchiveKind) -> None:
        missing = [path for path in REQUIRED_ENTRIES[kind] if path not in contents]
        if not missing:
            return
        actual = _describe_kind(contents)
        message = f"Invalid {kind.value} file format"
        if actual and actual != kind.value:
            message += f" (the file is a {actual} archive)"
        logger.error(f"{message}: missing {', '.join(missing)}")
        raise SchemaError(message, kind=kind.value, missing=missing)

    def _load_json(self, contents: ArchiveContents, path: str, kind: ArchiveKind) -> Any:
        text = contents.read_text(path)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaError(f"'{path}' is not valid JSON: {e}", kind=kind.value) from e

    @staticmethod
    def _validate(model: Type[RecordT], payload: Any, source: str, kind: ArchiveKind) -> RecordT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            logger.error(f"Invalid record in {source}: {errors}")
            raise SchemaError(f"Invalid {model.__name__.lower()} record in {source}", kind=kind.value, errors=errors) from e

    def _validate_list(self, model: Type[RecordT], payload: Any, source: str, kind: ArchiveKind) -> List[RecordT]:
        if not isinstance(payload, list):
            raise SchemaError(f"'{source}' must contain a JSON array", kind=kind.value)
        return [self._validate(model, item, f"{source}[{i}]", kind) for i, item in enumerate(payload)]

    # --- Project import ---

    def import_project(
        self,
        data: bytes,
        allocator: IdentifierAllocator,
        existing_project_names: Collection[str] = (),
        existing_document_names: Collection[str] = (),
        password: Optional[str] = None,
    ) -> ProjectImportResult:
        """
        Imports a project (or batch) archive as a new project.

        Args:
            data: The archive bytes.
            allocator: Source of the new project and document ids.
            existing_project_names: Project names already in the store.
            existing_document_names: Document names the imported documents must not collide with.
            password: Password for sealed archives.

        Returns:
            The remapped project and documents.
        """
        with self.open_container(data, password, ArchiveKind.PROJECT) as contents:
            return self._import_project(contents, allocator, existing_project_names, existing_document_names)

    def _import_project(
        self,
        contents: ArchiveContents,
        allocator: IdentifierAllocator,
        existing_project_names: Collection[str],
        existing_document_names: Collection[str],
    ) -> ProjectImportResult:
        kind = ArchiveKind.PROJECT

        # 1. Validate everything before touching ids or storage
        self._require_entries(contents, kind)
        project = self._validate(Project, self._load_json(contents, PROJECT_ENTRY, kind), PROJECT_ENTRY, kind)
        documents = self._validate_list(Document, self._load_json(contents, DOCUMENTS_ENTRY, kind), DOCUMENTS_ENTRY, kind)

        if project.id is not None:
            foreign = [d.id for d in documents if d.project_id != project.id]
            if foreign:
                raise SchemaError(
                    f"Documents {foreign} do not belong to project {project.id}",
                    kind=kind.value,
                    errors=[f"projectId mismatch for document {doc_id}" for doc_id in foreign],
                )

        file_entries = contents.list_prefix(FILES_PREFIX)
        log_archive_entries(kind.value, contents.paths)

        # 2. New identity for the project
        new_project_id = allocator.next_project_id()
        new_project = project.model_copy(update={
            "id": new_project_id,
            "name": unique_name(project.name, set(existing_project_names)),
            "date": iso_timestamp(self.clock()),
            "doc_count": len(documents),
        })

        # 3. Documents, in archive order
        used_names = set(existing_document_names)
        imported: List[Document] = []
        missing: List[str] = []
        total = len(documents)

        try:
            for i, doc in enumerate(documents):
                self._check_cancelled()

                # Extension is frozen before the name can receive a suffix
                ext = get_file_extension(doc.name)
                new_name = unique_name(doc.name, used_names)
                used_names.add(new_name)

                new_storage_id = None
                if doc.storage_id:
                    new_storage_id = self.storage_id_factory()
                    logger.debug(f"Document '{doc.name}': storage id {doc.storage_id} -> {new_storage_id}")
                    for variant in (BlobVariant.ORIGINAL, BlobVariant.ANNOTATED):
                        expected = project_blob_path(doc.storage_id, variant, ext)
                        path = self._locate(contents, file_entries, expected)
                        restored = self._restore(contents, path, new_storage_id, ext, variant)
                        if not restored and (variant == BlobVariant.ORIGINAL or doc.is_processed):
                            logger.warning(f"{variant.value.capitalize()} file missing for '{new_name}' ({expected})")
                            missing.append(expected)

                imported.append(doc.model_copy(update={
                    "id": allocator.next_document_id(),
                    "project_id": new_project_id,
                    "name": new_name,
                    "storage_id": new_storage_id,
                }))

                if self.progress_callback:
                    self.progress_callback(int(((i + 1) / total) * 100))
        except UserCancelled:
            # Files restored so far stay in storage
            logger.info(f"Import of '{new_project.name}' cancelled after {len(imported)} of {total} documents")
            raise

        if self.progress_callback:
            self.progress_callback(100)

        logger.info(f"Project '{new_project.name}' imported with {len(imported)} documents"
                    + (f", {len(missing)} file(s) missing" if missing else ""))
        return ProjectImportResult(project=new_project, documents=imported, missing_blobs=missing)

    # --- Single document import ---

    def import_document(
        self,
        data: bytes,
        allocator: IdentifierAllocator,
        target_project_id: int,
        existing_names: Collection[str] = (),
        password: Optional[str] = None,
    ) -> DocumentImportResult:
        """
        Imports a single document archive into an existing project.

        Args:
            data: The archive bytes.
            allocator: Source of the new document id.
            target_project_id: Project that receives the document.
            existing_names: Document names already used in the target project.
            password: Password for sealed archives.

        Returns:
            The remapped document plus the labels and rules shipped with it.
        """
        with self.open_container(data, password, ArchiveKind.DOCUMENT) as contents:
            return self._import_document(contents, allocator, target_project_id, existing_names)

    def _import_document(
        self,
        contents: ArchiveContents,
        allocator: IdentifierAllocator,
        target_project_id: int,
        existing_names: Collection[str],
    ) -> DocumentImportResult:
        kind = ArchiveKind.DOCUMENT

        self._require_entries(contents, kind)
        document = self._validate(Document, self._load_json(contents, DOCUMENT_ENTRY, kind), DOCUMENT_ENTRY, kind)
        labels: List[Label] = []
        rules: List[Rule] = []
        if LABELS_ENTRY in contents:
            labels = self._validate_list(Label, self._load_json(contents, LABELS_ENTRY, kind), LABELS_ENTRY, kind)
        if RULES_ENTRY in contents:
            rules = self._validate_list(Rule, self._load_json(contents, RULES_ENTRY, kind), RULES_ENTRY, kind)
        log_archive_entries(kind.value, contents.paths)

        ext = get_file_extension(document.name)
        new_name = unique_name(document.name, set(existing_names))
        root_entries = [p for p in contents.paths if "/" not in p]

        original_path = self._locate(contents, root_entries, document_blob_path(BlobVariant.ORIGINAL, ext))
        missing: List[str] = []
        new_storage_id = None
        if document.storage_id or original_path:
            new_storage_id = self.storage_id_factory()
            for variant in (BlobVariant.ORIGINAL, BlobVariant.ANNOTATED):
                expected = document_blob_path(variant, ext)
                path = self._locate(contents, root_entries, expected)
                restored = self._restore(contents, path, new_storage_id, ext, variant)
                if not restored and (variant == BlobVariant.ORIGINAL or document.is_processed):
                    logger.warning(f"{variant.value.capitalize()} file missing for '{new_name}' ({expected})")
                    missing.append(expected)

        new_document = document.model_copy(update={
            "id": allocator.next_document_id(),
            "project_id": target_project_id,
            "name": new_name,
            "storage_id": new_storage_id,
            "date": iso_timestamp(self.clock()),
        })
        logger.info(f"Document '{new_name}' imported into project {target_project_id}")
        return DocumentImportResult(document=new_document, labels=labels, rules=rules, missing_blobs=missing)

    # --- Labels and rules ---

    def import_labels(self, data: bytes) -> List[Label]:
        """Parses a labels file (plain JSON array)."""
        return self._validate_list(Label, self._parse_plain_json(data, ArchiveKind.LABELS), "labels file", ArchiveKind.LABELS)

    def import_rules(self, data: bytes) -> List[Rule]:
        """Parses a rules file (plain JSON array)."""
        return self._validate_list(Rule, self._parse_plain_json(data, ArchiveKind.RULES), "rules file", ArchiveKind.RULES)

    @staticmethod
    def _parse_plain_json(data: bytes, kind: ArchiveKind) -> Any:
        try:
            return json.loads(data.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Not a valid {kind.value} file: {e}")
            raise FormatError(f"Not a valid {kind.value} file", kind=kind.value) from e

    # --- Internals ---

    @staticmethod
    def _locate(contents: ArchiveContents, candidates: List[str], expected: str) -> Optional[str]:
        """
        Finds the entry for a stored file.
        Falls back to a unique entry sharing the name before the extension, which
        covers archives whose writer derived extensions differently.
        """
        if expected in contents:
            return expected
        stem = expected.rsplit(".", 1)[0] if "." in expected.rsplit("/", 1)[-1] else expected
        matches = [p for p in candidates if p == stem or p.startswith(stem + ".")]
        if len(matches) == 1:
            logger.debug(f"Using '{matches[0]}' for expected entry '{expected}'")
            return matches[0]
        return None

    def _restore(self, contents: ArchiveContents, path: Optional[str], storage_id: str, ext: str, variant: BlobVariant) -> bool:
        """Copies one archive entry into storage. Failures are logged and reported as False."""
        if path is None:
            return False
        try:
            payload = contents[path]
            self.storage.put(storage_id, ext, variant, payload)
        except FormatError as e:
            logger.error(f"Cannot read '{path}' from archive: {e}")
            return False
        except (StorageError, OSError) as e:
            logger.warning(f"Failed to save {variant.value} file {storage_id}{ext}: {e}")
            return False
        logger.debug(f"Restored '{path}' as {storage_id}{ext} ({len(payload)} bytes)")
        return True

    def _check_cancelled(self) -> None:
        if self.cancel_check and self.cancel_check():
            logger.info("Import cancelled")
            raise UserCancelled()

