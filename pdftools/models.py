from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RedactionColor(str, Enum):
    BLACK = "black"
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    GRAY = "gray"

    @classmethod
    def _missing_(cls, value):
        # unknown names fall back to black
        return cls.BLACK

    @property
    def rgb(self) -> Tuple[float, float, float]:
        if self is RedactionColor.RED:
            return (1, 0, 0)
        if self is RedactionColor.BLUE:
            return (0, 0, 1)
        if self is RedactionColor.GREEN:
            return (0, 0.5, 0)
        if self is RedactionColor.GRAY:
            return (0.5, 0.5, 0.5)
        return (0, 0, 0)


class RedactionArea(BaseModel):
    """A rectangle drawn over a rendered page, in screen pixels.

    ``x``/``y`` is the top-left corner relative to the page canvas.
    ``page`` is 1-indexed and is only checked against the document
    when the rectangle is painted.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    page: int
    x: float
    y: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    id: Optional[str] = None


class SplitRange(BaseModel):
    start: int
    end: int


class ToolInfo(BaseModel):
    name: str
    path: str
    description: str


class ToolList(BaseModel):
    tools: List[ToolInfo]
