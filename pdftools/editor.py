"""
Rectangle editor for marking redaction areas on page previews.

Pointer events (down / move / up) drive a drag; a committed drag becomes
a RedactionArea on the current page. Coordinates stay in screen space
relative to the page canvas.
"""
import itertools
import json
import time
from typing import Callable, Dict, List, Optional, Tuple

from pdftools.models import RedactionArea, RedactionColor
from pdftools.services.tools import count_pages

# drags this small or smaller on either axis are treated as clicks
MIN_AREA_SIZE = 5


def normalize_drag(start: Tuple[float, float], end: Tuple[float, float]) -> Tuple[float, float, float, float]:
    """(x, y, width, height) of the rectangle spanned by two drag points."""
    (start_x, start_y), (end_x, end_y) = start, end
    return (
        min(start_x, end_x),
        min(start_y, end_y),
        abs(end_x - start_x),
        abs(end_y - start_y),
    )


class RedactionEditor:
    def __init__(
        self,
        page_count: int = 1,
        color: RedactionColor = RedactionColor.BLACK,
        clock: Callable[[], float] = time.time,
    ):
        self.page_count = max(1, page_count)
        self.current_page = 1
        self.color = RedactionColor(color)
        self.areas: List[RedactionArea] = []
        self._clock = clock
        self._sequence = itertools.count(1)
        self._start: Optional[Tuple[float, float]] = None
        self._end: Optional[Tuple[float, float]] = None

    @classmethod
    def from_pdf(cls, pdf_bytes: bytes, **kwargs) -> "RedactionEditor":
        return cls(page_count=count_pages(pdf_bytes), **kwargs)

    @property
    def drawing(self) -> bool:
        return self._start is not None

    def begin_drag(self, x: float, y: float) -> None:
        self._start = (x, y)
        self._end = (x, y)

    def update_drag(self, x: float, y: float) -> None:
        if self.drawing:
            self._end = (x, y)

    def preview(self) -> Optional[Tuple[float, float, float, float]]:
        """Rectangle under the pointer while drawing, for live feedback."""
        if not self.drawing:
            return None
        return normalize_drag(self._start, self._end)

    def commit_drag(self) -> Optional[RedactionArea]:
        if not self.drawing:
            return None
        x, y, width, height = normalize_drag(self._start, self._end)
        self._start = self._end = None

        if width <= MIN_AREA_SIZE or height <= MIN_AREA_SIZE:
            return None
        area = RedactionArea(
            id=self._next_id(),
            page=self.current_page,
            x=x,
            y=y,
            width=width,
            height=height,
        )
        self.areas.append(area)
        return area

    def remove_area(self, area_id: str) -> bool:
        remaining = [area for area in self.areas if area.id != area_id]
        removed = len(remaining) != len(self.areas)
        self.areas = remaining
        return removed

    def reset(self) -> None:
        self.areas = []
        self._start = self._end = None
        self.current_page = 1

    def go_to_page(self, page: int) -> int:
        self.current_page = min(max(page, 1), self.page_count)
        return self.current_page

    def next_page(self) -> int:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self.current_page - 1)

    def areas_on_page(self, page: Optional[int] = None) -> List[RedactionArea]:
        page = self.current_page if page is None else page
        return [area for area in self.areas if area.page == page]

    def form_fields(self) -> Dict[str, str]:
        """Fields for the redaction request, minus the PDF itself."""
        return {
            "redactionAreas": json.dumps([area.model_dump() for area in self.areas]),
            "redactionColor": self.color.value,
        }

    def _next_id(self) -> str:
        return f"area_{int(self._clock() * 1000)}_{next(self._sequence)}"
