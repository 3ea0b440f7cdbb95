"""
Base Database Service Module

This module provides shared database utilities and connection management
for all specialized database services in the application.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from ..config import config

# Configure logger for this module
logger = logging.getLogger(__name__)


class BaseDatabaseService:
    """
    Base class providing shared database utilities and connection management.

    Subclasses create their own tables in ``_init_table`` and use the helpers
    below for queries. Every helper opens a short-lived connection.
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the base database service.

        Args:
            db_path (str | None): Path to the SQLite database file. Defaults to the
                          configured STUDYDESK_DB_PATH. The directory is created
                          if it doesn't exist.
        """
        self.db_path = db_path or config.DB_PATH
        self._ensure_data_dir()

    def _ensure_data_dir(self):
        """
        Ensure the data directory exists for the database file.
        """
        data_dir = os.path.dirname(self.db_path)
        if data_dir and not os.path.exists(data_dir):
            os.makedirs(data_dir)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections with name-based row access"""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def execute_query(
        self,
        query: str,
        params: tuple = (),
        fetch_one: bool = False,
        fetch_all: bool = False,
    ) -> Any:
        """
        Execute a read query with error handling.

        Args:
            query (str): SQL query to execute
            params (tuple): Query parameters
            fetch_one (bool): Whether to fetch one result
            fetch_all (bool): Whether to fetch all results

        Returns:
            Any: A row, a list of rows, or None if an error occurred
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                if fetch_one:
                    return cursor.fetchone()
                if fetch_all:
                    return cursor.fetchall()
                conn.commit()
                return cursor.lastrowid
        except Exception as e:
            logger.error(f"Database query error: {e}")
            return None

    def execute_update_delete(self, query: str, params: tuple) -> bool:
        """
        Execute an UPDATE or DELETE query.

        Args:
            query (str): UPDATE or DELETE SQL query
            params (tuple): Query parameters

        Returns:
            bool: True if rows were affected, False otherwise
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.execute(query, params)
                conn.commit()
                return cursor.rowcount > 0
        except Exception as e:
            logger.error(f"Database update/delete error: {e}")
            return False

    def get_current_timestamp(self) -> str:
        """
        Get current timestamp for database operations.

        Microseconds are kept so that rows created within the same second
        still sort in creation order.
        """
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")

    def format_timestamp_iso(self, timestamp_str: str | None) -> str | None:
        """
        Convert a stored timestamp string to ISO 8601 ("2025-12-11 11:08:40.123456"
        -> "2025-12-11T11:08:40.123456").
        """
        if not timestamp_str:
            return timestamp_str
        return timestamp_str.replace(" ", "T")
