"""
Geometry and layout types shared by the detection engine
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..core.constants import Orientation, NO_MARK
from ..core.exceptions import MalformedInputError

# Single bubble index, several indices (double-marked), or NO_MARK
DetectionResult = Union[int, List[int]]


@dataclass(frozen=True)
class Point:
    """2-D coordinate in image-pixel space"""
    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class Corners:
    """Four fiducial positions: top-left, top-right, bottom-right, bottom-left"""
    tl: Point
    tr: Point
    br: Point
    bl: Point

    def as_list(self) -> List[Point]:
        return [self.tl, self.tr, self.br, self.bl]

    def translated(self, dx: float, dy: float) -> "Corners":
        return Corners(*[Point(p.x + dx, p.y + dy) for p in self.as_list()])

    @classmethod
    def from_points(cls, points: List[Point]) -> "Corners":
        if len(points) != 4:
            raise MalformedInputError(f"Corners need exactly 4 points, got {len(points)}")
        return cls(*points)


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in a page's pixel coordinates"""
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise MalformedInputError(
                f"Region size must be non-negative, got {self.width}x{self.height}"
            )

    @property
    def is_empty(self) -> bool:
        return int(self.width) <= 0 or int(self.height) <= 0

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def bounds(self) -> Tuple[int, int, int, int]:
        """Integer (x0, y0, x1, y1) of the rectangle"""
        x0 = int(self.x)
        y0 = int(self.y)
        return x0, y0, x0 + int(self.width), y0 + int(self.height)

    def clipped(self, width: int, height: int) -> "Region":
        """Intersection with a width x height image (may be empty)"""
        x0, y0, x1, y1 = self.bounds()
        x0, y0 = max(0, x0), max(0, y0)
        x1, y1 = min(width, x1), min(height, y1)
        return Region(x0, y0, max(0, x1 - x0), max(0, y1 - y0))


@dataclass(frozen=True)
class BubbleLayout:
    """Geometry and key of one mark-sheet question"""
    option_count: int = 4
    orientation: Orientation = Orientation.HORIZONTAL
    correct_index: Optional[int] = None

    def __post_init__(self):
        if self.option_count < 1:
            raise MalformedInputError(f"option_count must be >= 1, got {self.option_count}")
        if self.correct_index is not None and not 0 <= self.correct_index < self.option_count:
            raise MalformedInputError(
                f"correct_index {self.correct_index} outside [0, {self.option_count})"
            )
        # accept plain strings from templates
        object.__setattr__(self, "orientation", Orientation(self.orientation))

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == Orientation.HORIZONTAL


@dataclass
class MarkSheetResult:
    """Decoder output for one region on one page"""
    index: DetectionResult = NO_MARK
    positions: List[Point] = field(default_factory=list)
    fill_ratios: List[float] = field(default_factory=list)
    brightness: List[float] = field(default_factory=list)
    rois: List[Region] = field(default_factory=list)
    used_reference: bool = False

    @property
    def is_blank(self) -> bool:
        return self.index == NO_MARK

    @property
    def is_ambiguous(self) -> bool:
        return isinstance(self.index, list)
