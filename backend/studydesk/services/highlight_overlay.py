"""
Highlight Overlay Session Module

Keeps the highlights of the displayed document and turns rendering events
into overlay rectangles. Page geometry is pulled from the rendering layer at
the moment of each redraw instead of being cached between renders, since the
page can re-layout at any time while it renders asynchronously.

Event flow:
    open_document()  -> highlight list rebuilt, page 1, not rendered
    show_page(n)     -> overlays cleared, waits for page_rendered(n)
    page_rendered(n) -> redraw (a render event for another page is ignored)
    viewport_resized -> redraw
"""

import logging
import uuid
from typing import Protocol

from ..models.highlight_types import (
    DEFAULT_HIGHLIGHT_COLOR,
    GeometryResult,
    HighlightRecord,
    OverlayItem,
    PageProjection,
    Rect,
)
from .highlight_geometry import capture, prepare_for_storage, reproject_page
from .highlights_service import HighlightsService

logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    """Rendering layer of the document viewer"""

    def page_rect(self, page_number: int) -> Rect | None:
        """Bounding box of the rendered page, or None while not available"""
        ...

    def current_selection_rect(self) -> Rect | None:
        """Bounding box of the current text selection, if any"""
        ...


class ContainerView(Protocol):
    """Scrollable element that hosts the page and the overlay"""

    def container_rect(self) -> Rect | None: ...


class HighlightStore(Protocol):
    """Persistence for highlights"""

    def save(self, highlight: HighlightRecord, user_id: str) -> HighlightRecord | None: ...

    def list(self, document_id: str, user_id: str) -> list[HighlightRecord]: ...

    def delete(self, highlight_id: str, user_id: str) -> bool: ...


class HighlightSaveError(Exception):
    """Raised when the store does not accept a captured highlight"""


class ServiceHighlightStore:
    """HighlightStore backed by the SQLite highlights service"""

    def __init__(self, highlights_service: HighlightsService):
        self._service = highlights_service

    def save(self, highlight: HighlightRecord, user_id: str) -> HighlightRecord | None:
        highlight_id = self._service.save_highlight(
            document_id=highlight.document_id,
            user_id=user_id,
            page_number=highlight.page_number,
            selected_text=highlight.text,
            relative_x=highlight.rect.x,
            relative_y=highlight.rect.y,
            relative_width=highlight.rect.width,
            relative_height=highlight.rect.height,
            note=highlight.note,
            color=highlight.color,
            highlight_id=highlight.id,
        )
        if highlight_id is None:
            return None
        row = self._service.get_highlight_by_id(highlight_id)
        return HighlightRecord.from_row(row) if row else None

    def list(self, document_id: str, user_id: str) -> list[HighlightRecord]:
        rows = self._service.get_highlights_for_document(document_id, user_id=user_id)
        return [HighlightRecord.from_row(row) for row in rows]

    def delete(self, highlight_id: str, user_id: str) -> bool:
        row = self._service.get_highlight_by_id(highlight_id)
        if row is None or row["user_id"] != user_id:
            return False
        return self._service.delete_highlight(highlight_id)


class OverlaySession:
    """
    Display session for one viewer.

    The session exclusively owns the in-memory highlight list of the
    displayed document. Geometry is never patched in place: the list is
    rebuilt when the document changes and overlays are recomputed from
    scratch on every redraw.

    Each page change bumps a generation counter. A redraw remembers the
    generation it started under and only writes its overlays if the page is
    still the same when the computation finishes.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        container: ContainerView | None = None,
        store: HighlightStore | None = None,
    ):
        self._renderer = renderer
        self._container = container
        self._store = store

        self.document_id: str | None = None
        self.user_id: str | None = None
        self.page_number = 1
        self.num_pages: int | None = None

        self._highlights: list[HighlightRecord] = []
        self._overlays: tuple[OverlayItem, ...] = ()
        self._generation = 0
        self._rendered = False
        self._retry_pending = False

    @property
    def highlights(self) -> tuple[HighlightRecord, ...]:
        return tuple(self._highlights)

    @property
    def overlays(self) -> tuple[OverlayItem, ...]:
        return self._overlays

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def rendered(self) -> bool:
        return self._rendered

    @property
    def retry_pending(self) -> bool:
        """True when the last redraw was NOT_READY and waits for a render event"""
        return self._retry_pending

    def open_document(
        self,
        document_id: str,
        user_id: str | None = None,
        highlights: list[HighlightRecord] | None = None,
        num_pages: int | None = None,
    ) -> None:
        """
        Switch to a document and rebuild the highlight list.

        Args:
            document_id: Document to display
            user_id: Owner, passed to the store
            highlights: Explicit highlight list; loaded from the store when None
            num_pages: Page count of the document; pages beyond it are refused
        """
        if highlights is None:
            highlights = (
                self._store.list(document_id, user_id) if self._store is not None else []
            )

        self.document_id = document_id
        self.user_id = user_id
        self.num_pages = num_pages
        self._highlights = list(highlights)
        logger.info(
            f"Opened document {document_id} with {len(self._highlights)} highlights"
        )
        self._change_page(1)

    def show_page(self, page_number: int) -> int:
        """
        Make a page the visible one.

        Showing the page that is already visible keeps its overlays.

        Returns:
            int: The current page generation
        """
        if page_number < 1:
            raise ValueError(f"Page number must be >= 1, got {page_number}")
        if self.num_pages is not None and page_number > self.num_pages:
            raise ValueError(
                f"Page {page_number} is out of range. Document has {self.num_pages} pages."
            )
        if page_number != self.page_number:
            self._change_page(page_number)
        return self._generation

    def _change_page(self, page_number: int) -> None:
        self.page_number = page_number
        self._generation += 1
        self._rendered = False
        self._retry_pending = False
        self._overlays = ()

    def page_rendered(self, page_number: int) -> GeometryResult[PageProjection] | None:
        """
        Render-complete event from the rendering layer.

        Returns:
            The redraw result, or None when the event was for a page that is
            no longer visible and has been discarded
        """
        if page_number != self.page_number:
            logger.debug(
                f"Ignoring render event for page {page_number}, showing {self.page_number}"
            )
            return None

        self._rendered = True
        return self.redraw()

    def viewport_resized(self) -> GeometryResult[PageProjection]:
        return self.redraw()

    def redraw(self) -> GeometryResult[PageProjection]:
        """
        Recompute every overlay of the visible page from one measurement.

        Returns:
            GeometryResult[PageProjection]: NOT_READY when the page has not
            finished rendering, its box is unavailable, or the page changed
            while measuring. A NOT_READY redraw is retried on the next
            render-complete event for the visible page.
        """
        if not self._rendered:
            self._retry_pending = True
            return GeometryResult.not_ready(f"Page {self.page_number} has not rendered")

        generation = self._generation
        page_number = self.page_number

        page_rect = self._renderer.page_rect(page_number)
        container_rect = (
            self._container.container_rect() if self._container is not None else None
        )
        result = reproject_page(self._highlights, page_number, page_rect, container_rect)

        if generation != self._generation:
            logger.debug(f"Discarding overlays computed for stale page {page_number}")
            return GeometryResult.not_ready("Page changed during redraw")

        if not result.ok:
            logger.debug(f"Redraw of page {page_number} not ready: {result.reason}")
            self._overlays = ()
            self._retry_pending = True
            return result

        self._overlays = result.value.overlays
        self._retry_pending = False
        return result

    def add_highlight(
        self, text: str, note: str = "", color: str = DEFAULT_HIGHLIGHT_COLOR
    ) -> GeometryResult[HighlightRecord]:
        """
        Capture the current selection and persist it as a highlight.

        Nothing is stored when capture fails; the failure is returned for the
        caller to show.

        Raises:
            HighlightSaveError: If the store rejects the highlight
        """
        if self.document_id is None:
            return GeometryResult.not_ready("No document is open")
        if self.num_pages is not None and self.page_number > self.num_pages:
            return GeometryResult.invalid(
                f"Page {self.page_number} is out of range. Document has {self.num_pages} pages."
            )

        page_rect = self._renderer.page_rect(self.page_number) if self._rendered else None
        captured = capture(self._renderer.current_selection_rect(), page_rect, text)
        if not captured.ok:
            return GeometryResult(failure=captured.failure, reason=captured.reason)

        prepared = prepare_for_storage(captured.value, text)
        if not prepared.ok:
            return GeometryResult(failure=prepared.failure, reason=prepared.reason)

        record = HighlightRecord(
            id=str(uuid.uuid4()),
            document_id=self.document_id,
            page_number=self.page_number,
            text=text,
            rect=prepared.value,
            note=note,
            color=color,
        )

        if self._store is not None:
            saved = self._store.save(record, self.user_id)
            if saved is None:
                raise HighlightSaveError(f"Failed to save highlight {record.id}")
            record = saved

        self._highlights.append(record)
        logger.info(f"Added highlight {record.id} on page {record.page_number}")
        if self._rendered:
            self.redraw()
        return GeometryResult.success(record)

    def delete_highlight(self, highlight_id: str) -> bool:
        """Remove a highlight from the store and from the display"""
        if self._store is not None and not self._store.delete(highlight_id, self.user_id):
            return False

        before = len(self._highlights)
        self._highlights = [h for h in self._highlights if h.id != highlight_id]
        self._overlays = tuple(
            overlay for overlay in self._overlays if overlay.highlight_id != highlight_id
        )
        if self._store is not None:
            # The store already confirmed the deletion
            return True
        return len(self._highlights) < before

    def highlights_on_page(self, page_number: int | None = None) -> list[HighlightRecord]:
        page = self.page_number if page_number is None else page_number
        return [h for h in self._highlights if h.page_number == page]
