"""
services/grade_calculator.py

- K-12 quarterly grade formula: Written Work / Performance Task / Quarterly Assessment
- Everything here is pure: same input -> same output, no I/O.
- Range checks on raw scores belong to the input schemas, not to the calculator.
"""

import math
from functools import lru_cache
from typing import Dict, Iterable, Optional, Tuple

from config.settings import settings
from schemas.common import Quarter
from schemas.grades import ComponentScores, GradeWeights, RemarkBand

# ✅ Built-in fallback when no grading system is configured (25 / 50 / 25)
DEFAULT_WEIGHTS = GradeWeights(written_work=0.25, performance_task=0.50, quarterly_assessment=0.25)

# ✅ Lower bound (inclusive) of each remark band, highest first
REMARK_THRESHOLDS = (
    (90.0, RemarkBand.OUTSTANDING),
    (85.0, RemarkBand.VERY_SATISFACTORY),
    (80.0, RemarkBand.SATISFACTORY),
    (75.0, RemarkBand.FAIRLY_SATISFACTORY),
)


def round_half_up(value: float, places: int = 2) -> float:
    """Scale, round half up, unscale (4.125 -> 4.13)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def weights_from_percentages(written_work: float, performance_task: float, quarterly_assessment: float) -> GradeWeights:
    return GradeWeights(
        written_work=written_work / 100,
        performance_task=performance_task / 100,
        quarterly_assessment=quarterly_assessment / 100,
    )


def configured_default_weights() -> GradeWeights:
    """Fallback weights from settings (DEFAULT_*_PERCENTAGE)."""
    return weights_from_percentages(
        settings.DEFAULT_WRITTEN_WORK_PERCENTAGE,
        settings.DEFAULT_PERFORMANCE_TASK_PERCENTAGE,
        settings.DEFAULT_QUARTERLY_ASSESSMENT_PERCENTAGE,
    )


@lru_cache(maxsize=4096)
def compute_final_grade(scores: ComponentScores, weights: GradeWeights = DEFAULT_WEIGHTS) -> float:
    """
    Weighted sum of the three components, rounded to 2 decimals.

    - A missing component counts as 0; the remaining weights are NOT renormalised.
    - Out-of-range scores and weights that do not add up to 1.0 are used as given.
    """
    ww = scores.written_work or 0
    pt = scores.performance_task or 0
    qa = scores.quarterly_assessment or 0

    final = (
        ww * weights.written_work
        + pt * weights.performance_task
        + qa * weights.quarterly_assessment
    )
    return round_half_up(final, 2)


def remark_for(grade: float) -> RemarkBand:
    for lower_bound, band in REMARK_THRESHOLDS:
        if grade >= lower_bound:
            return band
    return RemarkBand.DID_NOT_MEET_EXPECTATIONS


def grade_with_remark(scores: ComponentScores, weights: GradeWeights = DEFAULT_WEIGHTS) -> Tuple[float, RemarkBand]:
    final = compute_final_grade(scores, weights)
    return final, remark_for(final)


def is_passing(grade: Optional[float]) -> bool:
    return grade is not None and grade >= settings.PASSING_GRADE


# ==========================================================
# Averages over several grades (student summary panels)
# ==========================================================

def average(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def quarter_averages(grades) -> Dict[Quarter, Optional[float]]:
    """Mean final grade per quarter; None for a quarter with no grades."""
    by_quarter: Dict[Quarter, list] = {q: [] for q in Quarter}
    for g in grades:
        if g.final_grade is not None:
            by_quarter[Quarter(g.quarter)].append(g.final_grade)
    return {q: average(values) for q, values in by_quarter.items()}


def overall_average(grades) -> Optional[float]:
    """Mean final grade over every graded row, regardless of quarter."""
    return average(g.final_grade for g in grades)
