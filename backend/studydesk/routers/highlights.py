import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException

from ..models.highlight_models import (
    HighlightCreateRequest,
    HighlightResponse,
    HighlightsStats,
    NoteUpdateRequest,
    OverlayRequest,
    OverlayResponse,
)
from ..models.highlight_types import (
    GeometryFailure,
    GeometryResult,
    HighlightRecord,
    RelativeRect,
)
from ..services.database_service import db_service
from ..services.highlight_geometry import capture, prepare_for_storage, reproject_page
from ..services.highlights_service import DuplicateHighlightError
from .access import get_owned_document, get_owned_highlight

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/highlights", tags=["highlights"])


def _raise_for_geometry(result: GeometryResult) -> None:
    """Map a failed geometry result to an HTTP error"""
    status_code = 400 if result.failure == GeometryFailure.INVALID_GEOMETRY else 409
    raise HTTPException(
        status_code=status_code,
        detail={"error": result.failure.value, "reason": result.reason},
    )


@router.post("/", response_model=HighlightResponse)
async def create_highlight(highlight_data: HighlightCreateRequest):
    """
    Create a highlight on a page of a document.

    Args:
        highlight_data: Text, page and geometry. Geometry is either the pixel
                       selection and page boxes or precomputed relative fractions.

    Returns:
        HighlightResponse: The stored highlight

    Raises:
        HTTPException: 400 for invalid geometry or page, 403/404 for the
                      document, 409 for a duplicate id
    """
    try:
        document = get_owned_document(highlight_data.document_id, highlight_data.user_id)

        if highlight_data.page_number > document["num_pages"]:
            raise HTTPException(
                status_code=400,
                detail=f"Page {highlight_data.page_number} is out of range. "
                f"Document has {document['num_pages']} pages.",
            )

        if highlight_data.has_pixel_geometry():
            result = capture(
                highlight_data.selection_rect.to_rect(),
                highlight_data.page_rect.to_rect(),
                highlight_data.selected_text,
            )
        elif highlight_data.has_relative_geometry():
            result = GeometryResult.success(
                RelativeRect(
                    x=highlight_data.relative_x,
                    y=highlight_data.relative_y,
                    width=highlight_data.relative_width,
                    height=highlight_data.relative_height,
                )
            )
        else:
            raise HTTPException(
                status_code=400,
                detail="Either selection_rect and page_rect or all relative coordinates must be provided",
            )

        if result.ok:
            result = prepare_for_storage(result.value, highlight_data.selected_text)
        if not result.ok:
            _raise_for_geometry(result)

        rect = result.value
        highlight_id = db_service.save_highlight(
            document_id=highlight_data.document_id,
            user_id=highlight_data.user_id,
            page_number=highlight_data.page_number,
            selected_text=highlight_data.selected_text,
            relative_x=rect.x,
            relative_y=rect.y,
            relative_width=rect.width,
            relative_height=rect.height,
            note=highlight_data.note,
            color=highlight_data.color,
            highlight_id=highlight_data.id,
        )

        if highlight_id is None:
            raise HTTPException(status_code=500, detail="Failed to create highlight")

        # Retrieve the created highlight to return complete data
        created_highlight = db_service.get_highlight_by_id(highlight_id)
        if created_highlight is None:
            raise HTTPException(
                status_code=500, detail="Failed to retrieve created highlight"
            )

        return HighlightResponse(**created_highlight)

    except HTTPException:
        raise
    except DuplicateHighlightError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error creating highlight: {str(e)}"
        )


@router.get("/document/{document_id}", response_model=List[HighlightResponse])
async def get_highlights_for_document(
    document_id: str, user_id: str, page_number: Optional[int] = None
):
    """
    Get the highlights of a document in creation order, optionally for one page.
    """
    try:
        get_owned_document(document_id, user_id)
        highlights = db_service.get_highlights_for_document(
            document_id, user_id=user_id, page_number=page_number
        )
        return [HighlightResponse(**highlight) for highlight in highlights]
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving highlights: {str(e)}"
        )


@router.post(
    "/document/{document_id}/page/{page_number}/overlay",
    response_model=OverlayResponse,
)
async def get_page_overlay(document_id: str, page_number: int, request: OverlayRequest):
    """
    Position every highlight of a page for drawing.

    The viewer sends one measurement of the page (and optionally its
    container) taken after the page finished rendering; all highlights of the
    page are projected through that single measurement.

    Raises:
        HTTPException: 409 with "not_ready" when the page box is not usable yet
    """
    try:
        get_owned_document(document_id, request.user_id)

        rows = db_service.get_highlights_for_document(
            document_id, user_id=request.user_id, page_number=page_number
        )
        records = [HighlightRecord.from_row(row) for row in rows]

        result = reproject_page(
            records,
            page_number,
            request.page_rect.to_rect(),
            request.container_rect.to_rect() if request.container_rect else None,
        )
        if not result.ok:
            _raise_for_geometry(result)

        return OverlayResponse.from_projection(document_id, result.value)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error positioning highlights: {str(e)}"
        )


@router.get("/id/{highlight_id}", response_model=HighlightResponse)
async def get_highlight_by_id(highlight_id: str, user_id: str):
    """
    Get a specific highlight by its ID.
    """
    try:
        return HighlightResponse(**get_owned_highlight(highlight_id, user_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving highlight: {str(e)}"
        )


@router.put("/{highlight_id}/note", response_model=HighlightResponse)
async def update_highlight_note(highlight_id: str, note_data: NoteUpdateRequest):
    """
    Replace the note of a highlight. Page, text and geometry never change.
    """
    try:
        get_owned_highlight(highlight_id, note_data.user_id)

        if not db_service.update_highlight_note(highlight_id, note_data.note):
            raise HTTPException(status_code=404, detail="Highlight not found")

        return HighlightResponse(**db_service.get_highlight_by_id(highlight_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error updating highlight note: {str(e)}"
        )


@router.delete("/{highlight_id}")
async def delete_highlight(highlight_id: str, user_id: str):
    """
    Delete a specific highlight by its ID.
    """
    try:
        get_owned_highlight(highlight_id, user_id)

        if not db_service.delete_highlight(highlight_id):
            raise HTTPException(status_code=404, detail="Highlight not found")

        return {"message": "Highlight deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error deleting highlight: {str(e)}"
        )


@router.get("/stats/count", response_model=Dict[str, HighlightsStats])
async def get_highlights_stats(user_id: str):
    """
    Get per-document highlight statistics for a user.
    """
    try:
        return db_service.get_highlights_stats(user_id)
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving highlight statistics: {str(e)}"
        )
