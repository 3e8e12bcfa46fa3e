"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/database.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Central database manager for SQLite persistence. Holds the
                live store of projects and documents and the mirrored blob
                table used next to the file vault.
------------------------------------------------------------------------------
"""

import sqlite3
from typing import Optional

from annotaloop.logger import get_logger

logger = get_logger("db")


class DatabaseManager:
    """
    Manages the SQLite connection and schema of the local store.
    """

    def __init__(self, db_path: str = "annotaloop.db") -> None:
        """
        Initializes the DatabaseManager.

        Args:
            db_path: Path to the SQLite database file (or ':memory:').
        """
        self.db_path: str = db_path
        self.connection: Optional[sqlite3.Connection] = None
        self._connect()
        self.init_db()

    def _connect(self) -> None:
        """
        Establishes a connection to the database and configures PRAGMAs.
        Enables WAL mode and foreign key constraints.
        """
        try:
            self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self.connection.row_factory = sqlite3.Row  # Enable named column access
            self.connection.execute("PRAGMA foreign_keys = ON")
            self.connection.execute("PRAGMA journal_mode = WAL")
            logger.info(f"Connected to database at {self.db_path}")
        except sqlite3.Error as e:
            logger.critical(f"Failed to connect to database: {e}")
            raise

    def init_db(self) -> None:
        """
        Creates the tables for projects, documents and mirrored blobs.
        Records are stored as their archive JSON next to the indexed columns.
        """
        create_projects_table = """
        CREATE TABLE IF NOT EXISTS projects (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            payload TEXT NOT NULL -- Project JSON (camelCase)
        );
        """

        create_documents_table = """
        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY,
            project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            storage_id TEXT,
            payload TEXT NOT NULL -- Document JSON (camelCase)
        );
        """

        create_blobs_table = """
        CREATE TABLE IF NOT EXISTS blobs (
            storage_id TEXT NOT NULL,
            variant TEXT NOT NULL, -- 'original' or 'annotated'
            ext TEXT NOT NULL,
            data BLOB NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (storage_id, variant)
        );
        """

        if not self.connection:
            return

        with self.connection:
            self.connection.execute(create_projects_table)
            self.connection.execute(create_documents_table)
            self.connection.execute(create_blobs_table)
            self.connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_project ON documents(project_id)"
            )

    def close(self) -> None:
        if self.connection:
            self.connection.close()
            self.connection = None
