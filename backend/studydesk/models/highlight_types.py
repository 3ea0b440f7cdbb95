"""
Type definitions for highlight geometry.

Pixel rectangles come from the rendering layer (viewport or container
space). Relative rectangles are fractions of a rendered page box and are
what gets persisted.
"""

from dataclasses import astuple, dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

DEFAULT_HIGHLIGHT_COLOR = "#ffff00"


@dataclass(frozen=True)
class Rect:
    """Pixel rectangle: top-left corner plus size"""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def values(self) -> tuple[float, ...]:
        return astuple(self)


@dataclass(frozen=True)
class RelativeRect:
    """Selection box as fractions of the page box it was captured against"""

    x: float
    y: float
    width: float
    height: float

    def values(self) -> tuple[float, ...]:
        return astuple(self)


@dataclass(frozen=True)
class OverlayRect:
    """Pixel rectangle in the overlay container's local space"""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PageFrame:
    """
    A single page measurement reduced to the numbers re-projection needs.

    Every highlight drawn in one pass is projected through the same frame.
    """

    offset_x: float
    offset_y: float
    scale_x: float
    scale_y: float


class GeometryFailure(str, Enum):
    """Named failures returned by capture and re-projection"""

    INVALID_GEOMETRY = "invalid_geometry"
    NOT_READY = "not_ready"


@dataclass(frozen=True)
class GeometryResult(Generic[T]):
    """
    Tagged result of a geometry operation.

    Exactly one of ``value`` and ``failure`` is set. ``reason`` is a human
    readable explanation for logs and API error details.
    """

    value: T | None = None
    failure: GeometryFailure | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "GeometryResult[T]":
        return cls(value=value)

    @classmethod
    def invalid(cls, reason: str) -> "GeometryResult[T]":
        return cls(failure=GeometryFailure.INVALID_GEOMETRY, reason=reason)

    @classmethod
    def not_ready(cls, reason: str) -> "GeometryResult[T]":
        return cls(failure=GeometryFailure.NOT_READY, reason=reason)


@dataclass(frozen=True)
class HighlightRecord:
    """In-memory view of a stored highlight"""

    id: str
    document_id: str
    page_number: int
    text: str
    rect: RelativeRect
    note: str = ""
    color: str = DEFAULT_HIGHLIGHT_COLOR
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "HighlightRecord":
        """Build a record from a highlights table row dictionary"""
        return cls(
            id=str(row["id"]),
            document_id=str(row["document_id"]),
            page_number=int(row["page_number"]),
            text=row["selected_text"],
            rect=RelativeRect(
                x=float(row["relative_x"]),
                y=float(row["relative_y"]),
                width=float(row["relative_width"]),
                height=float(row["relative_height"]),
            ),
            note=row.get("note") or "",
            color=row.get("color") or DEFAULT_HIGHLIGHT_COLOR,
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class OverlayItem:
    """One highlight positioned for drawing"""

    highlight_id: str
    text: str
    color: str
    rect: OverlayRect


@dataclass(frozen=True)
class PageProjection:
    """All overlays of one page computed from a single measurement"""

    page_number: int
    frame: PageFrame
    overlays: tuple[OverlayItem, ...] = field(default_factory=tuple)
