"""
Highlight Geometry Module

Converts on-screen text selections into page-relative rectangles and projects
stored rectangles back onto the currently rendered page. Storing fractions of
the page box instead of pixels lets a highlight survive window resizes, zoom
changes and device-pixel-ratio changes.

Both directions are pure functions. Failures are returned as a tagged
GeometryResult and never raised past this module.
"""

import logging
import math
from collections.abc import Iterable

from ..models.highlight_types import (
    GeometryResult,
    HighlightRecord,
    OverlayItem,
    OverlayRect,
    PageFrame,
    PageProjection,
    Rect,
    RelativeRect,
)

# Configure logger for this module
logger = logging.getLogger(__name__)


def _all_finite(values: Iterable[float]) -> bool:
    return all(
        isinstance(value, (int, float)) and math.isfinite(value) for value in values
    )


def _clamp_extent(start: float, extent: float) -> float:
    """
    Trim an extent so that start + extent stays on the page.

    Only the trailing edge is clamped. A trim that would leave nothing is not
    applied, so a positive extent never becomes zero or negative.
    """
    if start + extent > 1.0:
        trimmed = 1.0 - start
        if trimmed > 0:
            return trimmed
    return extent


def capture(
    selection_rect: Rect | None, page_rect: Rect | None, text: str | None
) -> GeometryResult[RelativeRect]:
    """
    Normalize a pixel selection against the page box it was made on.

    Args:
        selection_rect: Bounding box of the selected range, in the same pixel
            space as page_rect
        page_rect: Bounding box of the rendered page
        text: The selected text

    Returns:
        GeometryResult[RelativeRect]: The relative rectangle, INVALID_GEOMETRY
        for empty text or degenerate boxes, NOT_READY when a rect is missing
    """
    # Text is checked before any geometry is looked at
    if text is None or not text.strip():
        logger.info("Rejected highlight capture: selection text is empty")
        return GeometryResult.invalid("Selection text is empty")

    if page_rect is None or selection_rect is None:
        logger.debug("Highlight capture skipped: page or selection rect unavailable")
        return GeometryResult.not_ready("Page or selection rect is not available")

    if not _all_finite(page_rect.values()) or not _all_finite(selection_rect.values()):
        logger.info("Rejected highlight capture: non-finite coordinates")
        return GeometryResult.invalid("Coordinates must be finite numbers")

    if page_rect.width <= 0 or page_rect.height <= 0:
        logger.info(
            f"Rejected highlight capture: page rect is {page_rect.width}x{page_rect.height}"
        )
        return GeometryResult.invalid(
            f"Page rect must have positive size, got {page_rect.width}x{page_rect.height}"
        )

    if selection_rect.width <= 0 or selection_rect.height <= 0:
        logger.info("Rejected highlight capture: selection has zero size")
        return GeometryResult.invalid(
            f"Selection must have positive size, got {selection_rect.width}x{selection_rect.height}"
        )

    relative_x = (selection_rect.left - page_rect.left) / page_rect.width
    relative_y = (selection_rect.top - page_rect.top) / page_rect.height
    relative_width = _clamp_extent(relative_x, selection_rect.width / page_rect.width)
    relative_height = _clamp_extent(
        relative_y, selection_rect.height / page_rect.height
    )

    return GeometryResult.success(
        RelativeRect(
            x=relative_x, y=relative_y, width=relative_width, height=relative_height
        )
    )


def measure_frame(
    page_rect: Rect | None, container_rect: Rect | None = None
) -> GeometryResult[PageFrame]:
    """
    Reduce a page measurement to offsets and scale factors.

    Args:
        page_rect: Current bounding box of the rendered page
        container_rect: Bounding box of the element hosting the overlay.
            Defaults to the page's own box, giving page-local coordinates.

    Returns:
        GeometryResult[PageFrame]: NOT_READY when the page has no usable box
    """
    if page_rect is None:
        return GeometryResult.not_ready("Page rect is not available")

    if (
        not _all_finite(page_rect.values())
        or page_rect.width <= 0
        or page_rect.height <= 0
    ):
        # A zero-sized page box means rendering has not finished
        return GeometryResult.not_ready(
            f"Page rect is not usable yet ({page_rect.width}x{page_rect.height})"
        )

    if container_rect is None:
        container_rect = page_rect
    elif not _all_finite(container_rect.values()):
        return GeometryResult.not_ready("Container rect is not usable yet")

    return GeometryResult.success(
        PageFrame(
            offset_x=page_rect.left - container_rect.left,
            offset_y=page_rect.top - container_rect.top,
            scale_x=page_rect.width,
            scale_y=page_rect.height,
        )
    )


def project(rect: RelativeRect, frame: PageFrame) -> OverlayRect:
    """Place a relative rectangle through an already measured frame"""
    return OverlayRect(
        x=frame.offset_x + rect.x * frame.scale_x,
        y=frame.offset_y + rect.y * frame.scale_y,
        width=rect.width * frame.scale_x,
        height=rect.height * frame.scale_y,
    )


def reproject(
    rect: RelativeRect,
    current_page_rect: Rect | None,
    container_rect: Rect | None = None,
) -> GeometryResult[OverlayRect]:
    """
    Compute the pixel rectangle to draw a stored highlight.

    Args:
        rect: The stored relative rectangle
        current_page_rect: Page box as rendered right now
        container_rect: Box of the overlay container, see measure_frame

    Returns:
        GeometryResult[OverlayRect]: Container-local pixel rectangle, or
        NOT_READY when the page box is missing or zero-sized
    """
    if not _all_finite(rect.values()):
        return GeometryResult.invalid("Relative rectangle has non-finite values")

    frame_result = measure_frame(current_page_rect, container_rect)
    if not frame_result.ok:
        return GeometryResult(failure=frame_result.failure, reason=frame_result.reason)

    return GeometryResult.success(project(rect, frame_result.value))


def reproject_page(
    highlights: Iterable[HighlightRecord],
    page_number: int,
    page_rect: Rect | None,
    container_rect: Rect | None = None,
) -> GeometryResult[PageProjection]:
    """
    Re-project every highlight of one page against one measurement.

    The page and container boxes are reduced to a single PageFrame and that
    frame is applied to the whole batch, so all overlays of a redraw agree on
    offsets and scale. Highlights belonging to other pages are ignored.

    Args:
        highlights: Highlights of the displayed document
        page_number: The page being drawn (1-based)
        page_rect: Page box measured once for this pass
        container_rect: Container box measured once for this pass

    Returns:
        GeometryResult[PageProjection]: NOT_READY for the whole batch when the
        page box is not usable
    """
    frame_result = measure_frame(page_rect, container_rect)
    if not frame_result.ok:
        return GeometryResult(failure=frame_result.failure, reason=frame_result.reason)

    frame = frame_result.value
    overlays = []
    for highlight in highlights:
        if highlight.page_number != page_number:
            continue
        if not _all_finite(highlight.rect.values()):
            logger.warning(f"Skipping highlight {highlight.id}: corrupt geometry")
            continue
        overlays.append(
            OverlayItem(
                highlight_id=highlight.id,
                text=highlight.text,
                color=highlight.color,
                rect=project(highlight.rect, frame),
            )
        )

    return GeometryResult.success(
        PageProjection(page_number=page_number, frame=frame, overlays=tuple(overlays))
    )


def prepare_for_storage(
    rect: RelativeRect, text: str | None
) -> GeometryResult[RelativeRect]:
    """
    Validate a relative rectangle before it is persisted.

    The rectangle is clipped to the page box [0, 1] x [0, 1]. A capture made
    in a scrolled state may start slightly before the page edge; the part off
    the page is dropped. A rectangle with nothing left on the page, or with
    non-positive size, is rejected.

    Args:
        rect: Relative rectangle from capture or from a client
        text: The selected text

    Returns:
        GeometryResult[RelativeRect]: The clipped rectangle or INVALID_GEOMETRY
    """
    if text is None or not text.strip():
        return GeometryResult.invalid("Selection text is empty")

    if not _all_finite(rect.values()):
        return GeometryResult.invalid("Relative rectangle has non-finite values")

    if rect.width <= 0 or rect.height <= 0:
        return GeometryResult.invalid(
            f"Relative size must be positive, got {rect.width}x{rect.height}"
        )

    if (
        rect.x >= 0.0
        and rect.y >= 0.0
        and rect.x + rect.width <= 1.0
        and rect.y + rect.height <= 1.0
    ):
        return GeometryResult.success(rect)

    left = max(rect.x, 0.0)
    top = max(rect.y, 0.0)
    right = min(rect.x + rect.width, 1.0)
    bottom = min(rect.y + rect.height, 1.0)

    if right <= left or bottom <= top:
        logger.info("Rejected highlight: rectangle lies outside the page")
        return GeometryResult.invalid("Selection lies outside the page")

    return GeometryResult.success(
        RelativeRect(x=left, y=top, width=right - left, height=bottom - top)
    )
