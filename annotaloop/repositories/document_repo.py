import json
from typing import Iterable, List, Optional

from annotaloop.logger import log_sql_query
from annotaloop.models.document import Document
from .base import BaseRepository


class DocumentRepository(BaseRepository):
    """
    Manages access to the 'documents' table.
    """

    def save(self, doc: Document) -> int:
        """Insert or update a document. Its project must exist."""
        sql = """
        INSERT INTO documents (id, project_id, name, storage_id, payload)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET project_id = excluded.project_id, name = excluded.name,
            storage_id = excluded.storage_id, payload = excluded.payload
        """
        values = (doc.id, doc.project_id, doc.name, doc.storage_id, json.dumps(doc.to_json_dict()))
        with self.conn:
            self.conn.execute(sql, values)
        log_sql_query(sql, values[:4], 1)
        return doc.id

    def save_many(self, docs: Iterable[Document]) -> None:
        for doc in docs:
            self.save(doc)

    def get(self, doc_id: int) -> Optional[Document]:
        row = self.conn.execute("SELECT payload FROM documents WHERE id = ?", (doc_id,)).fetchone()
        if row:
            return Document.model_validate_json(row["payload"])
        return None

    def get_many(self, doc_ids: Iterable[int]) -> List[Document]:
        """Fetches documents in the given order, skipping unknown ids."""
        docs = []
        for doc_id in doc_ids:
            doc = self.get(doc_id)
            if doc:
                docs.append(doc)
        return docs

    def list_by_project(self, project_id: int) -> List[Document]:
        rows = self.conn.execute(
            "SELECT payload FROM documents WHERE project_id = ? ORDER BY id", (project_id,)
        ).fetchall()
        return [Document.model_validate_json(r["payload"]) for r in rows]

    def get_names(self, project_id: Optional[int] = None) -> List[str]:
        if project_id is None:
            rows = self.conn.execute("SELECT name FROM documents")
        else:
            rows = self.conn.execute("SELECT name FROM documents WHERE project_id = ?", (project_id,))
        return [r["name"] for r in rows]

    def get_ids(self) -> List[int]:
        return [r["id"] for r in self.conn.execute("SELECT id FROM documents")]

    def count_by_project(self, project_id: int) -> int:
        row = self.conn.execute("SELECT COUNT(*) FROM documents WHERE project_id = ?", (project_id,)).fetchone()
        return int(row[0])
