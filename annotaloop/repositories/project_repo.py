import json
from typing import List, Optional

from annotaloop.logger import log_sql_query
from annotaloop.models.project import Project
from .base import BaseRepository


class ProjectRepository(BaseRepository):
    """
    Manages access to the 'projects' table.
    """

    def save(self, project: Project) -> int:
        """Insert or update a project. The project must carry an id."""
        if project.id is None:
            raise ValueError("Cannot persist a project without id")
        sql = """
        INSERT INTO projects (id, name, payload) VALUES (?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET name = excluded.name, payload = excluded.payload
        """
        values = (project.id, project.name, json.dumps(project.to_json_dict()))
        with self.conn:
            self.conn.execute(sql, values)
        log_sql_query(sql, (project.id, project.name), 1)
        return project.id

    def get(self, project_id: int) -> Optional[Project]:
        row = self.conn.execute("SELECT payload FROM projects WHERE id = ?", (project_id,)).fetchone()
        if row:
            return Project.model_validate_json(row["payload"])
        return None

    def list_all(self) -> List[Project]:
        rows = self.conn.execute("SELECT payload FROM projects ORDER BY id").fetchall()
        return [Project.model_validate_json(r["payload"]) for r in rows]

    def get_names(self) -> List[str]:
        return [r["name"] for r in self.conn.execute("SELECT name FROM projects")]

    def get_ids(self) -> List[int]:
        return [r["id"] for r in self.conn.execute("SELECT id FROM projects")]

    def delete(self, project_id: int) -> bool:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        return cursor.rowcount > 0
