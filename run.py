#!/usr/bin/env python
"""
Scan Grader - Command Line Entry Point

Grades one mark-sheet question across a directory of scanned pages.

Usage:
    python run.py TEMPLATE SCANS_DIR --area ID [--output FILE] [--bilinear]

Examples:
    python run.py template.json scans/ --area 3
    python run.py template.json scans/ --area 3 --output results/q3.json
"""
import argparse
import sys

from scangrader.config import settings
from scangrader.core import AreaType, ScanGraderException, logger
from scangrader.engine import GradingEngine, PageAligner, SheetProcessor, save_results
from scangrader.schemas import load_template
from scangrader.utils import ensure_directory, generate_timestamp_id, list_scans


def main():
    parser = argparse.ArgumentParser(
        description="Grade one mark-sheet question across scanned pages"
    )
    parser.add_argument("template", help="Template JSON file")
    parser.add_argument("scans", help="Directory of scanned student pages")
    parser.add_argument(
        "--area",
        type=int,
        required=True,
        help="Id of the mark-sheet area to grade"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Results JSON (default: results/<area>_<timestamp>.json)"
    )
    parser.add_argument(
        "--bilinear",
        action="store_true",
        help="Use bilinear interpolation when warping"
    )

    args = parser.parse_args()

    try:
        template = load_template(args.template)
        area = template.area(args.area)
        question = template.question(args.area)
        if area is None or area.type != AreaType.MARK_SHEET:
            parser.error(f"area {args.area} is not a mark-sheet area")
        if question is None or question.correct_answer_index is None:
            parser.error(f"area {args.area} has no answer key")

        scans = list_scans(args.scans)
        if not scans:
            parser.error(f"no scan images in {args.scans}")

        corners = template.ideal_corners.to_corners() if template.ideal_corners else None
        aligner = PageAligner(
            corners,
            interpolation="bilinear" if args.bilinear else settings.INTERPOLATION
        )
        processor = SheetProcessor(aligner)

        reference = template.reference_for(area)
        layout = question.to_layout()
        readings = processor.grade_question(
            [str(p) for p in scans],
            area.to_region(),
            layout,
            reference.to_region() if reference else None
        )
        summary = GradingEngine(layout, question.points).grade(readings)
        aligner.clear()

        output = args.output
        if output is None:
            output = ensure_directory("results") / f"{generate_timestamp_id(f'area{args.area}')}.json"
        save_results(summary.results, output)

    except ScanGraderException as e:
        logger.error(f"{e.error_code}: {e.detail}")
        sys.exit(1)

    print(
        f"{summary.total} pages: {summary.correct} correct, {summary.incorrect} incorrect, "
        f"{summary.unscored} unscored, {summary.needs_review} need review -> {output}"
    )


if __name__ == "__main__":
    main()
