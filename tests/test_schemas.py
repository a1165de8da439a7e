"""
Unit tests for template schemas
"""
import json

import pytest
from pydantic import ValidationError

from scangrader.core.constants import AreaType, Orientation
from scangrader.core.exceptions import MalformedInputError
from scangrader.engine.types import Point, Region
from scangrader.schemas import (
    AreaModel,
    QuestionModel,
    TemplateModel,
    find_nearest_aligned_reference,
    load_template,
)

TEMPLATE = {
    "name": "Midterm",
    "ideal_corners": {
        "tl": {"x": 49.5, "y": 49.5},
        "tr": {"x": 949.5, "y": 49.5},
        "br": {"x": 949.5, "y": 1349.5},
        "bl": {"x": 49.5, "y": 1349.5},
    },
    "areas": [
        {"id": 1, "type": "mark_sheet", "x": 400, "y": 600, "width": 200, "height": 50},
        {"id": 2, "type": "marksheet_ref_bottom", "x": 400, "y": 660, "width": 200, "height": 10},
        {"id": 3, "type": "marksheet_ref_bottom", "x": 400, "y": 900, "width": 200, "height": 10},
        {"id": 4, "type": "student_id_mark", "x": 300, "y": 800, "width": 200, "height": 60},
    ],
    "questions": [
        {"id": 1, "label": "Q1", "points": 2, "mark_sheet_options": 4, "correct_answer_index": 1},
    ],
}


def area(id, type, x, y, width, height, page_index=0):
    return AreaModel(id=id, type=type, x=x, y=y, width=width, height=height, page_index=page_index)


class TestTemplateModel:
    """Test cases for template parsing"""

    def test_load_template(self, tmp_path):
        path = tmp_path / "template.json"
        path.write_text(json.dumps(TEMPLATE), encoding="utf-8")
        template = load_template(path)

        assert template.name == "Midterm"
        assert template.ideal_corners.to_corners().tl == Point(49.5, 49.5)
        assert template.area(1).to_region() == Region(400, 600, 200, 50)
        assert template.area(99) is None
        assert len(template.areas_of_type(AreaType.MARKSHEET_REF_BOTTOM)) == 2

    def test_corners_in_order(self):
        template = TemplateModel.model_validate(TEMPLATE)
        corners = template.ideal_corners.to_corners()
        assert corners.as_list() == [
            Point(49.5, 49.5), Point(949.5, 49.5), Point(949.5, 1349.5), Point(49.5, 1349.5)
        ]

    def test_question_layout(self):
        template = TemplateModel.model_validate(TEMPLATE)
        layout = template.question(1).to_layout()
        assert layout.option_count == 4
        assert layout.orientation == Orientation.HORIZONTAL
        assert layout.correct_index == 1

    def test_reference_for(self):
        template = TemplateModel.model_validate(TEMPLATE)
        assert template.reference_for(template.area(1)).id == 2

    def test_invalid_area_type(self):
        with pytest.raises(ValidationError):
            AreaModel(id=1, type="doodle", x=0, y=0, width=1, height=1)

    def test_negative_size(self):
        with pytest.raises(ValidationError):
            AreaModel(id=1, type="answer", x=0, y=0, width=-1, height=1)

    def test_key_out_of_range(self):
        question = QuestionModel(id=1, mark_sheet_options=3, correct_answer_index=5)
        with pytest.raises(MalformedInputError):
            question.to_layout()


class TestFindNearestAlignedReference:
    """Test cases for reference strip lookup"""

    def test_bottom_prefers_overlap(self):
        target = area(1, AreaType.MARK_SHEET, 100, 100, 200, 50)
        far_aligned = area(2, AreaType.MARKSHEET_REF_BOTTOM, 120, 400, 200, 10)
        near_offset = area(3, AreaType.MARKSHEET_REF_BOTTOM, 600, 160, 200, 10)
        found = find_nearest_aligned_reference(
            target, [far_aligned, near_offset], AreaType.MARKSHEET_REF_BOTTOM
        )
        assert found.id == 2

    def test_bottom_nearest_offset(self):
        target = area(1, AreaType.MARK_SHEET, 100, 100, 200, 50)
        a = area(2, AreaType.MARKSHEET_REF_BOTTOM, 100, 400, 200, 10)
        b = area(3, AreaType.MARKSHEET_REF_BOTTOM, 100, 160, 200, 10)
        assert find_nearest_aligned_reference(target, [a, b], AreaType.MARKSHEET_REF_BOTTOM).id == 3

    def test_right_requires_row_overlap(self):
        target = area(1, AreaType.STUDENT_ID_MARK, 100, 100, 200, 60)
        aligned = area(2, AreaType.STUDENT_ID_REF_RIGHT, 500, 100, 10, 60)
        below = area(3, AreaType.STUDENT_ID_REF_RIGHT, 310, 500, 10, 60)
        found = find_nearest_aligned_reference(target, [aligned, below], AreaType.STUDENT_ID_REF_RIGHT)
        assert found.id == 2

    def test_other_page_ignored(self):
        target = area(1, AreaType.MARK_SHEET, 100, 100, 200, 50)
        other = area(2, AreaType.MARKSHEET_REF_BOTTOM, 100, 160, 200, 10, page_index=1)
        assert find_nearest_aligned_reference(target, [other], AreaType.MARKSHEET_REF_BOTTOM) is None
