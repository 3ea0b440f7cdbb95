from typing import Any

from fastapi import HTTPException

from ..services.database_service import db_service


def get_owned_document(document_id: str, user_id: str) -> dict[str, Any]:
    """
    Look up a document and check that user_id owns it.

    Raises:
        HTTPException: 404 if the document does not exist, 403 for another owner
    """
    document = db_service.get_document(document_id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    if document["user_id"] != user_id:
        raise HTTPException(
            status_code=403, detail="Not allowed to access this document"
        )
    return document


def get_owned_highlight(highlight_id: str, user_id: str) -> dict[str, Any]:
    """
    Look up a highlight and check that user_id owns it.

    Raises:
        HTTPException: 404 if the highlight does not exist, 403 for another owner
    """
    highlight = db_service.get_highlight_by_id(highlight_id)
    if highlight is None:
        raise HTTPException(status_code=404, detail="Highlight not found")
    if highlight["user_id"] != user_id:
        raise HTTPException(
            status_code=403, detail="Not allowed to access this highlight"
        )
    return highlight
