"""
Highlight API Models

Request and response models for the highlights router.
"""

from pydantic import BaseModel, Field

from .highlight_types import DEFAULT_HIGHLIGHT_COLOR, OverlayItem, PageProjection, Rect

# ============================================
# Geometry
# ============================================


class RectModel(BaseModel):
    """Pixel rectangle as reported by the browser"""

    left: float
    top: float
    width: float
    height: float

    def to_rect(self) -> Rect:
        return Rect(left=self.left, top=self.top, width=self.width, height=self.height)


# ============================================
# Requests
# ============================================


class HighlightCreateRequest(BaseModel):
    """
    New highlight.

    Geometry is given either as raw pixel boxes (selection_rect + page_rect),
    normalized on the server, or as relative fractions already computed by
    the client.
    """

    id: str | None = None  # Client generated UUID
    document_id: str
    user_id: str
    page_number: int = Field(..., ge=1)
    selected_text: str
    note: str = ""
    color: str = Field(default=DEFAULT_HIGHLIGHT_COLOR, pattern=r"^#[0-9a-fA-F]{6}$")

    selection_rect: RectModel | None = None
    page_rect: RectModel | None = None

    relative_x: float | None = None
    relative_y: float | None = None
    relative_width: float | None = None
    relative_height: float | None = None

    def has_pixel_geometry(self) -> bool:
        return self.selection_rect is not None and self.page_rect is not None

    def has_relative_geometry(self) -> bool:
        return None not in (
            self.relative_x,
            self.relative_y,
            self.relative_width,
            self.relative_height,
        )


class NoteUpdateRequest(BaseModel):
    user_id: str
    note: str


class OverlayRequest(BaseModel):
    """Page measurement taken by the viewer for one redraw"""

    user_id: str
    page_rect: RectModel
    container_rect: RectModel | None = None


# ============================================
# Responses
# ============================================


class HighlightResponse(BaseModel):
    id: str
    document_id: str
    user_id: str
    page_number: int
    selected_text: str
    note: str
    color: str
    relative_x: float
    relative_y: float
    relative_width: float
    relative_height: float
    created_at: str


class OverlayItemResponse(BaseModel):
    highlight_id: str
    text: str
    color: str
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_item(cls, item: OverlayItem) -> "OverlayItemResponse":
        return cls(
            highlight_id=item.highlight_id,
            text=item.text,
            color=item.color,
            x=item.rect.x,
            y=item.rect.y,
            width=item.rect.width,
            height=item.rect.height,
        )


class OverlayResponse(BaseModel):
    """All overlays of one page, computed from a single measurement"""

    document_id: str
    page_number: int
    offset_x: float
    offset_y: float
    scale_x: float
    scale_y: float
    overlays: list[OverlayItemResponse]

    @classmethod
    def from_projection(
        cls, document_id: str, projection: PageProjection
    ) -> "OverlayResponse":
        return cls(
            document_id=document_id,
            page_number=projection.page_number,
            offset_x=projection.frame.offset_x,
            offset_y=projection.frame.offset_y,
            scale_x=projection.frame.scale_x,
            scale_y=projection.frame.scale_y,
            overlays=[OverlayItemResponse.from_item(item) for item in projection.overlays],
        )


class HighlightsStats(BaseModel):
    """Summary of highlights for one document"""

    highlights_count: int
    pages_highlighted: int
    latest_highlight_date: str | None = None
    latest_highlight_text: str | None = None
