"""
Services Package

Storage services for documents, highlights and the concept map, the PDF file
store, the summarization client, and the highlight geometry and overlay
session used to place highlights on a rendered page.
"""

from .base_database_service import BaseDatabaseService
from .concepts_service import ConceptsService
from .database_service import DatabaseService, db_service
from .documents_service import DocumentsService
from .highlights_service import DuplicateHighlightError, HighlightsService

__all__ = [
    "DatabaseService",
    "db_service",
    "DocumentsService",
    "HighlightsService",
    "DuplicateHighlightError",
    "ConceptsService",
    "BaseDatabaseService",
]
