"""
Highlights Service Module

This module provides database operations for text highlights. A highlight
stores its box as fractions of the rendered page (relative_x, relative_y,
relative_width, relative_height) so it can be redrawn at any zoom level.

Geometry, page and text are written once on creation. The note is the only
field that is ever updated.
"""

import logging
import sqlite3
import uuid
from typing import Any

from ..models.highlight_types import DEFAULT_HIGHLIGHT_COLOR
from .base_database_service import BaseDatabaseService

# Configure logger for this module
logger = logging.getLogger(__name__)

HIGHLIGHT_COLUMNS = """
    id, document_id, user_id, page_number, selected_text, note, color,
    relative_x, relative_y, relative_width, relative_height, created_at
"""


class DuplicateHighlightError(Exception):
    """Raised when a highlight id is already taken"""


class HighlightsService(BaseDatabaseService):
    """
    Service class for managing text highlights using SQLite.
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the highlights service.

        Args:
            db_path (str | None): Path to the SQLite database file
        """
        super().__init__(db_path)
        self._init_table()

    def _init_table(self):
        """
        Initialize the highlights table and indexes.
        """
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS highlights (
                    id TEXT PRIMARY KEY,                  -- Client generated UUID
                    document_id TEXT NOT NULL,            -- Which document this highlight belongs to
                    user_id TEXT NOT NULL,                -- Owner of the document
                    page_number INTEGER NOT NULL CHECK (page_number >= 1),
                    selected_text TEXT NOT NULL,          -- The exact captured selection
                    note TEXT NOT NULL DEFAULT '',        -- Free-form annotation, the only mutable field
                    color TEXT NOT NULL DEFAULT '#ffff00',
                    relative_x REAL NOT NULL,             -- Left edge as a fraction of page width
                    relative_y REAL NOT NULL,             -- Top edge as a fraction of page height
                    relative_width REAL NOT NULL CHECK (relative_width > 0),
                    relative_height REAL NOT NULL CHECK (relative_height > 0),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_highlights_document_page
                ON highlights(document_id, page_number)
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_highlights_user
                ON highlights(user_id)
            """)

            conn.commit()

    def _row_to_dict(self, row: sqlite3.Row) -> dict[str, Any]:
        highlight = dict(row)
        highlight["created_at"] = self.format_timestamp_iso(highlight["created_at"])
        return highlight

    def save_highlight(
        self,
        document_id: str,
        user_id: str,
        page_number: int,
        selected_text: str,
        relative_x: float,
        relative_y: float,
        relative_width: float,
        relative_height: float,
        note: str = "",
        color: str = DEFAULT_HIGHLIGHT_COLOR,
        highlight_id: str | None = None,
    ) -> str | None:
        """
        Save a highlight with its relative geometry.

        Args:
            document_id (str): Document the highlight belongs to
            user_id (str): Owner of the document
            page_number (int): 1-based page number
            selected_text (str): The captured selection text
            relative_x, relative_y, relative_width, relative_height (float):
                Selection box as fractions of the rendered page
            note (str): Optional annotation
            color (str): Highlight color in hex format
            highlight_id (str | None): Client generated id; a UUID is created when omitted

        Returns:
            str | None: The highlight id, or None if the insert failed

        Raises:
            DuplicateHighlightError: If a highlight with this id already exists
        """
        highlight_id = highlight_id or str(uuid.uuid4())

        query = f"""
            INSERT INTO highlights ({HIGHLIGHT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            highlight_id,
            document_id,
            user_id,
            page_number,
            selected_text,
            note or "",
            color,
            relative_x,
            relative_y,
            relative_width,
            relative_height,
            self.get_current_timestamp(),
        )

        try:
            with self.get_connection() as conn:
                conn.execute(query, params)
                conn.commit()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e) or "PRIMARY KEY" in str(e):
                raise DuplicateHighlightError(
                    f"Highlight {highlight_id} already exists"
                ) from e
            logger.error(f"Highlight violates table constraints: {e}")
            return None
        except Exception as e:
            logger.error(f"Error saving highlight: {e}")
            return None

        logger.info(
            f"Saved highlight {highlight_id} for document {document_id}, page {page_number}"
        )
        return highlight_id

    def get_highlights_for_document(
        self,
        document_id: str,
        user_id: str | None = None,
        page_number: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Retrieve highlights of a document in creation order.

        Args:
            document_id (str): Document to get highlights for
            user_id (str | None): Restrict to highlights of this owner
            page_number (int | None): Restrict to one page

        Returns:
            list[dict[str, Any]]: List of highlight dictionaries
        """
        conditions = ["document_id = ?"]
        params: list[Any] = [document_id]
        if user_id is not None:
            conditions.append("user_id = ?")
            params.append(user_id)
        if page_number is not None:
            conditions.append("page_number = ?")
            params.append(page_number)

        query = f"""
            SELECT {HIGHLIGHT_COLUMNS}
            FROM highlights
            WHERE {" AND ".join(conditions)}
            ORDER BY created_at ASC, rowid ASC
        """
        rows = self.execute_query(query, tuple(params), fetch_all=True)
        if not rows:
            return []
        return [self._row_to_dict(row) for row in rows]

    def get_highlight_by_id(self, highlight_id: str) -> dict[str, Any] | None:
        """
        Retrieve a specific highlight by its id.

        Returns:
            dict[str, Any] | None: Highlight dictionary, or None if not found
        """
        query = f"SELECT {HIGHLIGHT_COLUMNS} FROM highlights WHERE id = ?"
        row = self.execute_query(query, (highlight_id,), fetch_one=True)
        return self._row_to_dict(row) if row else None

    def update_note(self, highlight_id: str, note: str) -> bool:
        """
        Replace the note of a highlight. Geometry is left untouched.

        Returns:
            bool: True if the highlight was updated
        """
        updated = self.execute_update_delete(
            "UPDATE highlights SET note = ? WHERE id = ?", (note, highlight_id)
        )
        if updated:
            logger.info(f"Updated note of highlight {highlight_id}")
        return updated

    def delete_highlight(self, highlight_id: str) -> bool:
        """
        Delete a specific highlight by its id.

        Returns:
            bool: True if a highlight was deleted
        """
        deleted = self.execute_update_delete(
            "DELETE FROM highlights WHERE id = ?", (highlight_id,)
        )
        if deleted:
            logger.info(f"Deleted highlight {highlight_id}")
        return deleted

    def delete_highlights_for_document(self, document_id: str) -> int:
        """
        Delete all highlights of a document.

        Returns:
            int: Number of deleted highlights
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM highlights WHERE document_id = ?", (document_id,)
                )
                conn.commit()
                return cursor.rowcount
        except Exception as e:
            logger.error(f"Error deleting highlights of document {document_id}: {e}")
            return 0

    def get_highlights_stats_by_document(self, user_id: str) -> dict[str, dict[str, Any]]:
        """
        Summarize the highlights of every document owned by a user.

        Returns:
            dict[str, dict[str, Any]]: Document id -> count, pages covered,
            latest highlight date and a 50 character preview of its text
        """
        query = """
            SELECT
                document_id,
                COUNT(*) AS highlights_count,
                COUNT(DISTINCT page_number) AS pages_highlighted,
                MAX(created_at) AS latest_highlight_date
            FROM highlights
            WHERE user_id = ?
            GROUP BY document_id
        """
        rows = self.execute_query(query, (user_id,), fetch_all=True)

        stats = {}
        for row in rows or []:
            text_row = self.execute_query(
                """
                SELECT selected_text FROM highlights
                WHERE document_id = ? AND created_at = ?
                ORDER BY rowid DESC
                LIMIT 1
                """,
                (row["document_id"], row["latest_highlight_date"]),
                fetch_one=True,
            )

            text = text_row["selected_text"] if text_row else ""
            preview = text[:50] + "..." if len(text) > 50 else text

            stats[row["document_id"]] = {
                "highlights_count": row["highlights_count"],
                "pages_highlighted": row["pages_highlighted"],
                "latest_highlight_date": self.format_timestamp_iso(
                    row["latest_highlight_date"]
                ),
                "latest_highlight_text": preview,
            }

        logger.info(f"Found highlights for {len(stats)} documents of user {user_id}")
        return stats
