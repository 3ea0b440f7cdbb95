from pydantic import BaseModel


class DocumentRecord(BaseModel):
    """Document record from the documents table"""

    id: str
    user_id: str
    title: str
    file_name: str
    file_size: int | None = None
    file_type: str | None = None
    num_pages: int
    file_path: str
    summary: str | None = None
    created_at: str
    updated_at: str


class DocumentDeletionResponse(BaseModel):
    success: bool
    message: str
    document_id: str
    file_deleted: bool


class SummaryUpdateRequest(BaseModel):
    user_id: str
    summary: str


class PageTextResponse(BaseModel):
    document_id: str
    page_number: int
    text: str


class SummaryMetadata(BaseModel):
    processing_time: float | None = None
    model: str | None = None
    confidence: float | None = None


class SummaryResponse(BaseModel):
    success: bool
    summary: str | None
    document_id: str
    page_number: int | None = None
    metadata: SummaryMetadata
