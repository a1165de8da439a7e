"""
Engine constants
"""
from enum import Enum


class Orientation(str, Enum):
    """Bubble arrangement of a mark-sheet question"""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class AreaType(str, Enum):
    """Template area kinds"""
    ANSWER = "answer"
    NAME = "name"
    MARK_SHEET = "mark_sheet"
    ALIGNMENT_MARK = "alignment_mark"
    STUDENT_ID_MARK = "student_id_mark"
    STUDENT_ID_REF_RIGHT = "student_id_ref_right"
    STUDENT_ID_REF_BOTTOM = "student_id_ref_bottom"
    MARKSHEET_REF_RIGHT = "marksheet_ref_right"
    MARKSHEET_REF_BOTTOM = "marksheet_ref_bottom"


class ScoringStatus(str, Enum):
    """Per-question scoring outcome"""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNSCORED = "unscored"
    NEEDS_REVIEW = "needs_review"


class AlignmentStatus(str, Enum):
    """How a region crop was obtained"""
    ALIGNED = "aligned"
    MARKS_NOT_FOUND = "marks_not_found"
    DEGENERATE = "degenerate"
    IDENTITY = "identity"


# Detection result sentinel for "no bubble marked"
NO_MARK = -1

# ITU-R BT.601 luma weights (R, G, B)
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
