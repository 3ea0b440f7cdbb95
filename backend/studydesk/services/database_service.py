"""
Database Service Module

A facade over the specialized storage services. Routers talk to the shared
``db_service`` instance; the facade coordinates operations that span several
tables, such as deleting a document together with its highlights.

The service manages:
1. Documents - uploaded PDFs and their summaries
2. Highlights - text selections stored as page-relative rectangles
3. Concepts - the concept map and its connections
"""

import logging
from typing import Any

from ..config import config
from .concepts_service import ConceptsService
from .documents_service import DocumentsService
from .highlights_service import HighlightsService

# Configure logger for this module
logger = logging.getLogger(__name__)


class DatabaseService:
    """
    Facade that owns the specialized storage services.

    - DocumentsService: document registry
    - HighlightsService: highlights with relative geometry
    - ConceptsService: concept map
    """

    def __init__(self, db_path: str | None = None):
        """
        Args:
            db_path (str | None): Path to the SQLite database file. Defaults to
                          the configured STUDYDESK_DB_PATH.
        """
        self.db_path = db_path or config.DB_PATH

        self.documents = DocumentsService(self.db_path)
        self.highlights = HighlightsService(self.db_path)
        self.concepts = ConceptsService(self.db_path)
        logger.info(f"Database services initialized at {self.db_path}")

    # Documents

    def create_document(self, **kwargs) -> str | None:
        return self.documents.create_document(**kwargs)

    def get_document(self, document_id: str) -> dict[str, Any] | None:
        return self.documents.get_by_id(document_id)

    def list_documents(self, user_id: str) -> list[dict[str, Any]]:
        return self.documents.list_for_user(user_id)

    def update_document_summary(self, document_id: str, user_id: str, summary: str) -> bool:
        return self.documents.update_summary(document_id, user_id, summary)

    def delete_document(self, document_id: str) -> bool:
        """
        Delete a document row and all of its highlights in one transaction.

        Highlights are kept when there is no document row to delete.
        """
        try:
            with self.documents.get_connection() as conn:
                removed = conn.execute(
                    "DELETE FROM highlights WHERE document_id = ?", (document_id,)
                ).rowcount
                cursor = conn.execute(
                    "DELETE FROM documents WHERE id = ?", (document_id,)
                )
                if cursor.rowcount == 0:
                    conn.rollback()
                    return False
                conn.commit()
        except Exception as e:
            logger.error(f"Error deleting document {document_id}: {e}")
            return False

        logger.info(f"Deleted document {document_id} and {removed} highlights")
        return True

    # Highlights

    def save_highlight(self, **kwargs) -> str | None:
        return self.highlights.save_highlight(**kwargs)

    def get_highlights_for_document(
        self,
        document_id: str,
        user_id: str | None = None,
        page_number: int | None = None,
    ) -> list[dict[str, Any]]:
        return self.highlights.get_highlights_for_document(
            document_id, user_id=user_id, page_number=page_number
        )

    def get_highlight_by_id(self, highlight_id: str) -> dict[str, Any] | None:
        return self.highlights.get_highlight_by_id(highlight_id)

    def update_highlight_note(self, highlight_id: str, note: str) -> bool:
        return self.highlights.update_note(highlight_id, note)

    def delete_highlight(self, highlight_id: str) -> bool:
        return self.highlights.delete_highlight(highlight_id)

    def get_highlights_stats(self, user_id: str) -> dict[str, dict[str, Any]]:
        return self.highlights.get_highlights_stats_by_document(user_id)


# Global database service instance
db_service = DatabaseService()
