import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse

from ..config import config
from ..models.document_models import (
    DocumentDeletionResponse,
    DocumentRecord,
    PageTextResponse,
    SummaryUpdateRequest,
)
from ..services.database_service import db_service
from ..services.pdf_service import PDFService
from .access import get_owned_document

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

# Initialize services
pdf_service = PDFService()


@router.post("/upload", response_model=DocumentRecord)
async def upload_document(
    file: UploadFile = File(...),
    user_id: str = Form(...),
    title: str | None = Form(None),
) -> DocumentRecord:
    """
    Upload a PDF and register it for the user
    """
    try:
        filename = file.filename or ""
        if not filename.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail="Only PDF files are supported")

        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        if len(content) > config.MAX_UPLOAD_MB * 1024 * 1024:
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds the {config.MAX_UPLOAD_MB} MB upload limit",
            )

        num_pages = pdf_service.count_pages(content)
        file_path = pdf_service.store_upload(user_id, filename, content)

        document_id = db_service.create_document(
            user_id=user_id,
            title=title or Path(filename).stem,
            file_name=filename,
            num_pages=num_pages,
            file_path=str(file_path),
            file_size=len(content),
            file_type=file.content_type or "application/pdf",
        )
        if document_id is None:
            pdf_service.delete_file(file_path)
            raise HTTPException(status_code=500, detail="Failed to register document")

        return DocumentRecord(**db_service.get_document(document_id))
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error uploading document: {str(e)}")


@router.get("/", response_model=List[DocumentRecord])
async def list_documents(user_id: str) -> List[DocumentRecord]:
    """
    List the user's documents, newest first
    """
    try:
        return [DocumentRecord(**doc) for doc in db_service.list_documents(user_id)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error listing documents: {str(e)}")


@router.get("/{document_id}", response_model=DocumentRecord)
async def get_document(document_id: str, user_id: str) -> DocumentRecord:
    try:
        return DocumentRecord(**get_owned_document(document_id, user_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error getting document: {str(e)}")


@router.get("/{document_id}/file")
async def get_document_file(document_id: str, user_id: str):
    """
    Serve the stored PDF file
    """
    try:
        document = get_owned_document(document_id, user_id)
        file_path = pdf_service.get_pdf_path(document["file_path"])
        return FileResponse(
            path=str(file_path),
            media_type="application/pdf",
            filename=document["file_name"],
        )
    except HTTPException:
        raise
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document file not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error serving document: {str(e)}")


@router.get("/{document_id}/text/{page_number}", response_model=PageTextResponse)
async def get_page_text(document_id: str, page_number: int, user_id: str):
    """
    Extract text from a specific page of the document
    """
    try:
        document = get_owned_document(document_id, user_id)
        text = pdf_service.extract_page_text(document["file_path"], page_number)
        return PageTextResponse(document_id=document_id, page_number=page_number, text=text)
    except HTTPException:
        raise
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Document file not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error extracting text: {str(e)}")


@router.patch("/{document_id}/summary", response_model=DocumentRecord)
async def update_document_summary(document_id: str, request: SummaryUpdateRequest):
    try:
        get_owned_document(document_id, request.user_id)
        if not db_service.update_document_summary(
            document_id, request.user_id, request.summary
        ):
            raise HTTPException(status_code=500, detail="Failed to update summary")
        return DocumentRecord(**db_service.get_document(document_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating summary: {str(e)}")


@router.delete("/{document_id}", response_model=DocumentDeletionResponse)
async def delete_document(document_id: str, user_id: str) -> DocumentDeletionResponse:
    """
    Delete a document, its stored file and all of its highlights
    """
    try:
        document = get_owned_document(document_id, user_id)

        if not db_service.delete_document(document_id):
            raise HTTPException(status_code=500, detail="Failed to delete document")

        file_deleted = pdf_service.delete_file(document["file_path"])
        if not file_deleted:
            logger.warning(f"Stored file for document {document_id} was already gone")

        return DocumentDeletionResponse(
            success=True,
            message=f"Document {document['file_name']} deleted",
            document_id=document_id,
            file_deleted=file_deleted,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting document: {str(e)}")
