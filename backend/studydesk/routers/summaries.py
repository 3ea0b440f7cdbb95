import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException

from ..models.document_models import SummaryMetadata, SummaryResponse
from ..services.database_service import db_service
from ..services.pdf_service import PDFService
from ..services.summarization_service import (
    SummarizationNotConfiguredError,
    SummarizationService,
    SummarizationUnavailableError,
    SummarizationUpstreamError,
)
from .access import get_owned_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/summaries", tags=["summaries"])

# Initialize services
pdf_service = PDFService()
summarization_service = SummarizationService()


def _raise_for_summarization(e: Exception) -> None:
    if isinstance(e, SummarizationNotConfiguredError):
        raise HTTPException(status_code=500, detail=str(e))
    if isinstance(e, SummarizationUnavailableError):
        raise HTTPException(status_code=503, detail=str(e))
    if isinstance(e, SummarizationUpstreamError):
        raise HTTPException(
            status_code=502,
            detail={
                "error": "Summarization service returned an error",
                "status": e.status_code,
                "details": e.details,
            },
        )
    raise e


@router.post("/documents/{document_id}/pages/{page_number}", response_model=SummaryResponse)
async def summarize_page(document_id: str, page_number: int, user_id: str):
    """
    Summarize one page of a document with the external summarization service
    """
    try:
        document = get_owned_document(document_id, user_id)
        page_pdf = pdf_service.extract_page_pdf(document["file_path"], page_number)

        try:
            result = await summarization_service.summarize_page(
                page_pdf, page_number, user_id, document_id
            )
        except (
            SummarizationNotConfiguredError,
            SummarizationUnavailableError,
            SummarizationUpstreamError,
        ) as e:
            _raise_for_summarization(e)

        return SummaryResponse(
            success=True,
            summary=result["summary"],
            document_id=document_id,
            page_number=page_number,
            metadata=SummaryMetadata(**result["metadata"]),
        )
    except HTTPException:
        raise
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document file not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error summarizing page: {str(e)}")


@router.post("/documents/{document_id}", response_model=SummaryResponse)
async def summarize_document(document_id: str, user_id: str):
    """
    Summarize a whole document and store the summary on it
    """
    try:
        document = get_owned_document(document_id, user_id)
        file_path = pdf_service.get_pdf_path(document["file_path"])

        try:
            result = await summarization_service.summarize_document(
                Path(file_path).read_bytes(), document["file_name"], user_id, document_id
            )
        except (
            SummarizationNotConfiguredError,
            SummarizationUnavailableError,
            SummarizationUpstreamError,
        ) as e:
            _raise_for_summarization(e)

        summary = result["summary"]
        if summary:
            if not db_service.update_document_summary(document_id, user_id, summary):
                raise HTTPException(status_code=500, detail="Failed to store summary")
        else:
            logger.warning(f"Summarization service returned no summary for {document_id}")

        return SummaryResponse(
            success=True,
            summary=summary,
            document_id=document_id,
            metadata=SummaryMetadata(**result["metadata"]),
        )
    except HTTPException:
        raise
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document file not found")
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error summarizing document: {str(e)}"
        )
