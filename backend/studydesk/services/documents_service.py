"""
Documents Service - Database-backed registry of uploaded PDFs

Each row records the owner, the original file name, where the file was
stored, the page count read at upload time and the latest AI summary.
"""

import logging
import uuid
from typing import Any

from .base_database_service import BaseDatabaseService

logger = logging.getLogger(__name__)


class DocumentsService(BaseDatabaseService):
    """
    Service for managing the documents table.
    """

    def __init__(self, db_path: str | None = None):
        super().__init__(db_path)
        self._init_table()

    def _init_table(self):
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    file_name TEXT NOT NULL,              -- Original upload name
                    file_size INTEGER,
                    file_type TEXT,
                    num_pages INTEGER NOT NULL,
                    file_path TEXT NOT NULL,              -- Location in the upload directory
                    summary TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_user
                ON documents(user_id, created_at)
            """)
            conn.commit()

    def _row_to_dict(self, row) -> dict[str, Any]:
        document = dict(row)
        document["created_at"] = self.format_timestamp_iso(document["created_at"])
        document["updated_at"] = self.format_timestamp_iso(document["updated_at"])
        return document

    def create_document(
        self,
        user_id: str,
        title: str,
        file_name: str,
        num_pages: int,
        file_path: str,
        file_size: int | None = None,
        file_type: str | None = "application/pdf",
        document_id: str | None = None,
    ) -> str | None:
        """
        Register an uploaded document.

        Returns:
            str | None: The document id, or None if the insert failed
        """
        document_id = document_id or str(uuid.uuid4())
        now = self.get_current_timestamp()
        try:
            with self.get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO documents (
                        id, user_id, title, file_name, file_size, file_type,
                        num_pages, file_path, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        document_id,
                        user_id,
                        title,
                        file_name,
                        file_size,
                        file_type,
                        num_pages,
                        file_path,
                        now,
                        now,
                    ),
                )
                conn.commit()
        except Exception as e:
            logger.error(f"Error creating document {file_name}: {e}")
            return None

        logger.info(f"Registered document {document_id} ({file_name}, {num_pages} pages)")
        return document_id

    def get_by_id(self, document_id: str) -> dict[str, Any] | None:
        row = self.execute_query(
            "SELECT * FROM documents WHERE id = ?", (document_id,), fetch_one=True
        )
        return self._row_to_dict(row) if row else None

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        """Documents of a user, newest first"""
        rows = self.execute_query(
            """
            SELECT * FROM documents
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (user_id,),
            fetch_all=True,
        )
        return [self._row_to_dict(row) for row in rows or []]

    def update_summary(self, document_id: str, user_id: str, summary: str) -> bool:
        """
        Store the AI summary of a document. Only the owner's row is touched.
        """
        updated = self.execute_update_delete(
            """
            UPDATE documents SET summary = ?, updated_at = ?
            WHERE id = ? AND user_id = ?
            """,
            (summary, self.get_current_timestamp(), document_id, user_id),
        )
        if updated:
            logger.info(f"Updated summary of document {document_id}")
        return updated

    def delete_document(self, document_id: str) -> bool:
        deleted = self.execute_update_delete(
            "DELETE FROM documents WHERE id = ?", (document_id,)
        )
        if deleted:
            logger.info(f"Deleted document {document_id}")
        return deleted
