"""
Pydantic schemas for exam templates
"""
import json
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional, Union

from .core.constants import AreaType, Orientation
from .engine.types import BubbleLayout, Corners, Point, Region


# ===== Geometry Schemas =====
class PointModel(BaseModel):
    x: float
    y: float

    def to_point(self) -> Point:
        return Point(self.x, self.y)


class CornersModel(BaseModel):
    tl: PointModel
    tr: PointModel
    br: PointModel
    bl: PointModel

    def to_corners(self) -> Corners:
        return Corners.from_points([p.to_point() for p in (self.tl, self.tr, self.br, self.bl)])


class AreaModel(BaseModel):
    id: int
    type: AreaType = Field(..., description="Area kind")
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)
    page_index: int = Field(default=0, ge=0)

    def to_region(self) -> Region:
        return Region(self.x, self.y, self.width, self.height)


# ===== Question Schemas =====
class QuestionModel(BaseModel):
    id: int = Field(..., description="Id of the answer area this question scores")
    label: str = ""
    points: float = 1.0
    mark_sheet_options: int = Field(default=4, ge=1)
    mark_sheet_layout: Orientation = Orientation.HORIZONTAL
    correct_answer_index: Optional[int] = None

    def to_layout(self) -> BubbleLayout:
        return BubbleLayout(
            option_count=self.mark_sheet_options,
            orientation=self.mark_sheet_layout,
            correct_index=self.correct_answer_index,
        )


# ===== Template Schemas =====
class TemplateModel(BaseModel):
    name: str = ""
    ideal_corners: Optional[CornersModel] = None
    areas: List[AreaModel] = []
    questions: List[QuestionModel] = []

    def area(self, area_id: int) -> Optional[AreaModel]:
        return next((a for a in self.areas if a.id == area_id), None)

    def question(self, area_id: int) -> Optional[QuestionModel]:
        return next((q for q in self.questions if q.id == area_id), None)

    def areas_of_type(self, area_type: AreaType) -> List[AreaModel]:
        return [a for a in self.areas if a.type == area_type]

    def reference_for(self, target: AreaModel) -> Optional[AreaModel]:
        """Reference strip used to space the bubbles of a mark-sheet area"""
        question = self.question(target.id)
        horizontal = question is None or question.mark_sheet_layout == Orientation.HORIZONTAL
        ref_type = AreaType.MARKSHEET_REF_BOTTOM if horizontal else AreaType.MARKSHEET_REF_RIGHT
        return find_nearest_aligned_reference(target, self.areas, ref_type)


def _overlap(a0: float, a1: float, b0: float, b1: float) -> float:
    return max(0.0, min(a1, b1) - max(a0, b0))


def find_nearest_aligned_reference(
    target: AreaModel,
    candidates: List[AreaModel],
    area_type: AreaType
) -> Optional[AreaModel]:
    """
    Reference area best aligned with target.

    Right-hand references must share rows with the target (vertical
    overlap) and bottom references must share columns (horizontal overlap).
    Overlapping candidates come first, then the smallest offset along the
    scan direction.

    Args:
        target: Mark-sheet or ID area
        candidates: All template areas
        area_type: Reference kind to look for

    Returns:
        Best candidate on the same page, or None
    """
    same_page = [c for c in candidates if c.type == area_type and c.page_index == target.page_index]
    if not same_page:
        return None

    right_side = area_type in (AreaType.MARKSHEET_REF_RIGHT, AreaType.STUDENT_ID_REF_RIGHT)

    def sort_key(c: AreaModel):
        if right_side:
            overlap = _overlap(target.y, target.y + target.height, c.y, c.y + c.height)
            return (overlap <= 0, c.x - target.x)
        overlap = _overlap(target.x, target.x + target.width, c.x, c.x + c.width)
        return (overlap <= 0, c.y - target.y)

    return min(same_page, key=sort_key)


def load_template(path: Union[str, Path]) -> TemplateModel:
    """Load a template JSON file"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return TemplateModel.model_validate(data)
