"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           main.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Command line entry point. Sets up configuration and logging,
                opens the local store (vault, database) and runs archive
                exports and imports.
------------------------------------------------------------------------------
"""

import argparse
import getpass
import sys
from typing import Callable, List, Optional, TypeVar

from annotaloop.codec import is_container
from annotaloop.config import AppConfig
from annotaloop.database import DatabaseManager
from annotaloop.envelope import looks_sealed
from annotaloop.errors import (
    ArchiveError,
    DecryptionError,
    FormatError,
    PasswordRequired,
    SchemaError,
    StorageError,
)
from annotaloop.importer import ArchiveImporter
from annotaloop.logger import get_logger, setup_logging
from annotaloop.models.archive import ExportResult
from annotaloop.models.types import ArchiveKind
from annotaloop.service import ArchiveService, open_storage, read_file
from annotaloop.sink import DirectorySink
from annotaloop.storage import MemoryStorage

MAX_PASSWORD_ATTEMPTS = 3

ResultT = TypeVar("ResultT")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="annotaloop", description="AnnotaLoop - project and document archives")
    parser.add_argument("-P", "--profile", type=str, help="Application profile for isolation (e.g. 'dev', 'test')")
    parser.add_argument("--db", type=str, help="Database path (overrides configuration)")
    parser.add_argument("--vault", type=str, help="Vault directory (overrides configuration)")
    parser.add_argument("--log-level", type=str, help="Log level (DEBUG, INFO, WARNING, ERROR)")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_export(name: str, target: str, help_text: str, encryptable: bool = True, many: bool = False):
        p = sub.add_parser(name, help=help_text)
        p.add_argument(target, type=int, nargs="+" if many else None)
        p.add_argument("-o", "--output-dir", type=str, help="Target directory (default: configured export dir)")
        p.add_argument("--overwrite", action="store_true", help="Replace an existing file of the same name")
        if encryptable:
            p.add_argument("--password", type=str, help="Encrypt the archive with this password")
            p.add_argument("--encrypt", action="store_true", help="Prompt for a password and encrypt the archive")
        return p

    add_export("export-project", "project_id", "Export a project with all documents")
    add_export("export-document", "document_id", "Export a single document")
    add_export("export-batch", "document_ids", "Export selected documents as a project", many=True)
    add_export("export-labels", "project_id", "Export the labels of a project", encryptable=False)
    add_export("export-rules", "project_id", "Export the rules of a project", encryptable=False)

    p = sub.add_parser("import-project", help="Import a project archive as a new project")
    p.add_argument("file")
    p.add_argument("--password", type=str)

    p = sub.add_parser("import-document", help="Import a document archive into a project")
    p.add_argument("file")
    p.add_argument("project_id", type=int)
    p.add_argument("--password", type=str)

    p = sub.add_parser("import-labels", help="Merge a labels file into a project")
    p.add_argument("file")
    p.add_argument("project_id", type=int)

    p = sub.add_parser("import-rules", help="Merge a rules file into a project")
    p.add_argument("file")
    p.add_argument("project_id", type=int)

    p = sub.add_parser("inspect", help="List the contents of an archive")
    p.add_argument("file")
    p.add_argument("--password", type=str)

    return parser


def prompt_new_password() -> Optional[str]:
    password = getpass.getpass("Password: ")
    if not password:
        return None
    if getpass.getpass("Repeat password: ") != password:
        print("Passwords do not match.", file=sys.stderr)
        return None
    return password


def with_password(operation: Callable[[Optional[str]], ResultT], password: Optional[str]) -> ResultT:
    """
    Runs an import step, asking for the password when the archive is sealed.
    A wrong password is asked for again, up to MAX_PASSWORD_ATTEMPTS times.
    """
    attempts = 0
    while True:
        try:
            return operation(password)
        except PasswordRequired:
            if not sys.stdin.isatty():
                raise
            print("This file is encrypted.", file=sys.stderr)
        except DecryptionError as e:
            attempts += 1
            if attempts >= MAX_PASSWORD_ATTEMPTS or not sys.stdin.isatty():
                raise
            print(f"{e.message}. Please try again.", file=sys.stderr)
        password = getpass.getpass("Password: ")


def report_export(result: Optional[ExportResult]) -> int:
    if result is None:
        print("Export cancelled.")
        return 2
    suffix = " (encrypted)" if result.encrypted else ""
    print(f"Exported {result.kind.value} to {result.path}{suffix}")
    for path in result.missing_blobs:
        print(f"  warning: missing file {path}")
    return 0


def inspect_archive(data: bytes, password: Optional[str]) -> List[str]:
    """Describes an archive without importing it."""
    if not is_container(data) and not looks_sealed(data):
        importer = ArchiveImporter(MemoryStorage())
        try:
            labels = importer.import_labels(data)
            return [f"labels file: {len(labels)} labels"]
        except SchemaError:
            rules = importer.import_rules(data)
            return [f"rules file: {len(rules)} rules"]

    def _open(pw: Optional[str]):
        return ArchiveImporter(MemoryStorage()).open_container(data, pw, ArchiveKind.PROJECT)

    with with_password(_open, password) as contents:
        lines = [f"{'encrypted ' if looks_sealed(data) else ''}archive: {len(contents)} entries"]
        for path in contents.paths:
            lines.append(f"  {path} ({len(contents[path])} bytes)")
    return lines


def run(args: argparse.Namespace, config: AppConfig) -> int:
    logger = get_logger("cli")

    if args.command == "inspect":
        for line in inspect_archive(read_file(args.file), args.password):
            print(line)
        return 0

    db = DatabaseManager(db_path=args.db or config.get_database_path())
    try:
        storage = open_storage(args.vault or config.get_vault_path(), db)
        sink = None
        if args.command.startswith("export-"):
            sink = DirectorySink(args.output_dir or config.get_export_dir(), overwrite=args.overwrite)
        service = ArchiveService(db, storage, sink=sink, compression_level=config.get_compression_level())

        password = getattr(args, "password", None)
        if getattr(args, "encrypt", False) and not password:
            password = prompt_new_password()
            if password is None:
                print("No password given, aborting.", file=sys.stderr)
                return 1

        if args.command == "export-project":
            return report_export(service.export_project(args.project_id, password))
        if args.command == "export-document":
            return report_export(service.export_document(args.document_id, password))
        if args.command == "export-batch":
            return report_export(service.export_batch(args.document_ids, password))
        if args.command == "export-labels":
            return report_export(service.export_labels(args.project_id))
        if args.command == "export-rules":
            return report_export(service.export_rules(args.project_id))

        data = read_file(args.file)
        if args.command == "import-project":
            result = with_password(lambda pw: service.import_project(data, pw), password)
            if result is None:
                print("Import cancelled.")
                return 2
            print(f"Imported project '{result.project.name}' (id {result.project.id}) "
                  f"with {len(result.documents)} documents")
            for path in result.missing_blobs:
                print(f"  warning: missing file {path}")
        elif args.command == "import-document":
            result = with_password(lambda pw: service.import_document(data, args.project_id, pw), password)
            print(f"Imported document '{result.document.name}' (id {result.document.id})")
            for path in result.missing_blobs:
                print(f"  warning: missing file {path}")
        elif args.command == "import-labels":
            added = service.import_labels(data, args.project_id)
            print(f"{len(added)} labels added")
        elif args.command == "import-rules":
            added = service.import_rules(data, args.project_id)
            print(f"{len(added)} rules added")
        else:
            logger.error(f"Unknown command: {args.command}")
            return 1
        return 0
    finally:
        db.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    AnnotaLoop Entry Point.
    Initializes configuration and logging and dispatches the sub command.
    """
    args = build_parser().parse_args(argv)
    config = AppConfig(profile=args.profile)

    setup_logging(
        level=args.log_level or config.get_log_level(),
        log_file=str(config.get_log_file_path()),
        component_levels=config.get_log_components()
    )
    logger = get_logger("cli")
    logger.info(f"AnnotaLoop started (Profile: {args.profile or 'default'}, command: {args.command})")

    try:
        return run(args, config)
    except (FormatError, SchemaError) as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        print("Error: invalid or incompatible file.", file=sys.stderr)
    except DecryptionError as e:
        print(f"Error: {e.message}.", file=sys.stderr)
    except (StorageError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
    except ArchiveError as e:
        print(f"Error: {e.message}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
