"""
Grading Engine Module
Turns detection results into per-question scoring records
"""
import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .processor import PageReading
from .types import BubbleLayout, DetectionResult
from ..core.constants import NO_MARK, ScoringStatus
from ..core.exceptions import MalformedInputError
from ..core.logger import grading_logger as logger


@dataclass
class QuestionResult:
    """Scoring record for one question on one page"""
    student: str
    status: ScoringStatus
    score: float = 0.0
    detected: Optional[Any] = None
    correct_index: Optional[int] = None
    alignment: Optional[str] = None
    error: Optional[str] = None

    @property
    def needs_review(self) -> bool:
        return self.status == ScoringStatus.NEEDS_REVIEW

    def to_dict(self) -> Dict:
        """Convert to dictionary"""
        result = asdict(self)
        result["status"] = self.status.value
        # Remove None values
        return {k: v for k, v in result.items() if v is not None}


@dataclass
class QuestionSummary:
    """Counts over all pages for one question"""
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    unscored: int = 0
    needs_review: int = 0
    results: List[QuestionResult] = field(default_factory=list)


def score_detection(detected: DetectionResult, layout: BubbleLayout) -> ScoringStatus:
    """
    Status for a detection result against the layout's key.

    A double-marked answer is flagged for review rather than graded.
    """
    if layout.correct_index is None:
        raise MalformedInputError("Layout has no correct_index to grade against")
    if isinstance(detected, list):
        return ScoringStatus.NEEDS_REVIEW
    if detected == NO_MARK:
        return ScoringStatus.UNSCORED
    if detected == layout.correct_index:
        return ScoringStatus.CORRECT
    return ScoringStatus.INCORRECT


class GradingEngine:
    """
    Scores mark-sheet readings for one question.
    """

    def __init__(self, layout: BubbleLayout, points: float = 1.0):
        """
        Args:
            layout: Question layout including correct_index
            points: Points awarded for a correct answer
        """
        if layout.correct_index is None:
            raise MalformedInputError("Cannot grade a question without a correct_index")
        self.layout = layout
        self.points = points

    def grade_reading(self, reading: PageReading) -> QuestionResult:
        student = str(reading.image_key)
        alignment = reading.alignment.value if reading.alignment else None

        if not reading.success or reading.result is None:
            return QuestionResult(
                student=student,
                status=ScoringStatus.UNSCORED,
                correct_index=self.layout.correct_index,
                error=reading.error,
            )

        detected = reading.result.index
        status = score_detection(detected, self.layout)
        return QuestionResult(
            student=student,
            status=status,
            score=self.points if status == ScoringStatus.CORRECT else 0.0,
            detected=detected,
            correct_index=self.layout.correct_index,
            alignment=alignment,
        )

    def grade(self, readings: List[PageReading]) -> QuestionSummary:
        summary = QuestionSummary(total=len(readings))
        for reading in readings:
            result = self.grade_reading(reading)
            summary.results.append(result)
            if result.status == ScoringStatus.CORRECT:
                summary.correct += 1
            elif result.status == ScoringStatus.INCORRECT:
                summary.incorrect += 1
            elif result.status == ScoringStatus.NEEDS_REVIEW:
                summary.needs_review += 1
            else:
                summary.unscored += 1

        logger.info(
            f"Graded {summary.total} pages: {summary.correct} correct, "
            f"{summary.incorrect} incorrect, {summary.unscored} unscored, "
            f"{summary.needs_review} for review"
        )
        return summary


def save_results(results: List[QuestionResult], output_path: Union[str, Path]) -> None:
    """
    Save scoring records to a JSON file.

    Args:
        results: QuestionResult records
        output_path: Path to output JSON file
    """
    review = sum(1 for r in results if r.needs_review)
    output_data = {
        "total": len(results),
        "needs_review": review,
        "results": [r.to_dict() for r in results]
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(output_data, f, ensure_ascii=False, indent=4)

    logger.info(f"Saved {len(results)} results to {output_path}")


def load_results(input_path: Union[str, Path]) -> List[Dict]:
    """
    Load scoring records from a JSON file.

    Returns:
        List of result dictionaries
    """
    with open(input_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return data.get("results", [])
