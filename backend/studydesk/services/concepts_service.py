"""
Concepts Service Module

Storage for the concept map: concepts placed on a canvas and directed
connections between them. Everything is scoped to the owning user.
"""

import logging
import sqlite3
from typing import Any

from .base_database_service import BaseDatabaseService

logger = logging.getLogger(__name__)


class ConceptsService(BaseDatabaseService):
    """
    Service class for concepts and concept_connections.
    """

    def __init__(self, db_path: str | None = None):
        super().__init__(db_path)
        self._init_tables()

    def _init_tables(self):
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS concepts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    position_x REAL NOT NULL DEFAULT 0,   -- Position on the map canvas
                    position_y REAL NOT NULL DEFAULT 0,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS concept_connections (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    from_concept_id INTEGER NOT NULL,
                    to_concept_id INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(from_concept_id, to_concept_id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_concepts_user
                ON concepts(user_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_connections_user
                ON concept_connections(user_id)
            """)
            conn.commit()

    def _row_to_dict(self, row: sqlite3.Row) -> dict[str, Any]:
        item = dict(row)
        for key in ("created_at", "updated_at"):
            if key in item:
                item[key] = self.format_timestamp_iso(item[key])
        return item

    # ========================================
    # CONCEPT CRUD OPERATIONS
    # ========================================

    def create_concept(
        self,
        user_id: str,
        name: str,
        description: str = "",
        position_x: float = 0.0,
        position_y: float = 0.0,
    ) -> int | None:
        """
        Create a concept on the user's map.

        Returns:
            ID of the new concept, or None if creation failed
        """
        now = self.get_current_timestamp()
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO concepts
                    (user_id, name, description, position_x, position_y, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, name, description, position_x, position_y, now, now),
                )
                conn.commit()
                return cursor.lastrowid
        except Exception as e:
            logger.error(f"Error creating concept '{name}': {e}")
            return None

    def get_concept(self, concept_id: int) -> dict[str, Any] | None:
        row = self.execute_query(
            "SELECT * FROM concepts WHERE id = ?", (concept_id,), fetch_one=True
        )
        return self._row_to_dict(row) if row else None

    def list_concepts(self, user_id: str) -> list[dict[str, Any]]:
        """Concepts of a user, newest first"""
        rows = self.execute_query(
            "SELECT * FROM concepts WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
            fetch_all=True,
        )
        return [self._row_to_dict(row) for row in rows or []]

    def update_concept(
        self,
        concept_id: int,
        name: str | None = None,
        description: str | None = None,
        position_x: float | None = None,
        position_y: float | None = None,
    ) -> bool:
        """Update the given fields of a concept."""
        updates = []
        params: list[Any] = []

        if name is not None:
            updates.append("name = ?")
            params.append(name)
        if description is not None:
            updates.append("description = ?")
            params.append(description)
        if position_x is not None:
            updates.append("position_x = ?")
            params.append(position_x)
        if position_y is not None:
            updates.append("position_y = ?")
            params.append(position_y)

        if not updates:
            return self.get_concept(concept_id) is not None

        updates.append("updated_at = ?")
        params.append(self.get_current_timestamp())
        params.append(concept_id)

        return self.execute_update_delete(
            f"UPDATE concepts SET {', '.join(updates)} WHERE id = ?", tuple(params)
        )

    def delete_concept(self, concept_id: int) -> bool:
        """Delete a concept together with every connection touching it."""
        try:
            with self.get_connection() as conn:
                conn.execute(
                    """
                    DELETE FROM concept_connections
                    WHERE from_concept_id = ? OR to_concept_id = ?
                    """,
                    (concept_id, concept_id),
                )
                cursor = conn.execute("DELETE FROM concepts WHERE id = ?", (concept_id,))
                conn.commit()
                return cursor.rowcount > 0
        except Exception as e:
            logger.error(f"Error deleting concept {concept_id}: {e}")
            return False

    # ========================================
    # CONNECTION OPERATIONS
    # ========================================

    def create_connection(
        self, user_id: str, from_concept_id: int, to_concept_id: int
    ) -> int | None:
        """
        Connect two concepts.

        Returns:
            ID of the connection, or None if it already exists

        Raises:
            ValueError: If a concept would be connected to itself
            sqlite3.Error: If the connection could not be stored
        """
        if from_concept_id == to_concept_id:
            raise ValueError("A concept cannot be connected to itself")

        try:
            with self.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO concept_connections
                    (user_id, from_concept_id, to_concept_id, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (user_id, from_concept_id, to_concept_id, self.get_current_timestamp()),
                )
                conn.commit()
                if cursor.rowcount == 0:
                    logger.info(
                        f"Connection {from_concept_id} -> {to_concept_id} already exists"
                    )
                    return None
                return cursor.lastrowid
        except sqlite3.Error as e:
            logger.error(f"Error creating connection: {e}")
            raise

    def list_connections(self, user_id: str) -> list[dict[str, Any]]:
        rows = self.execute_query(
            "SELECT * FROM concept_connections WHERE user_id = ? ORDER BY id",
            (user_id,),
            fetch_all=True,
        )
        return [self._row_to_dict(row) for row in rows or []]

    def delete_connection(
        self, user_id: str, from_concept_id: int, to_concept_id: int
    ) -> bool:
        return self.execute_update_delete(
            """
            DELETE FROM concept_connections
            WHERE user_id = ? AND from_concept_id = ? AND to_concept_id = ?
            """,
            (user_id, from_concept_id, to_concept_id),
        )
