"""Compatibility scoring between two study profiles."""

import math
from typing import Iterable, Protocol

from app.schemas.match import CompatibilityBreakdown, CompatibilityResponse

SUBJECT_WEIGHT = 40
LEARNING_STYLE_WEIGHT = 30
AVAILABILITY_WEIGHT = 20
PERFORMANCE_WEIGHT = 10

DAYS_PER_WEEK = 7


class StudyProfile(Protocol):
    subjects: list[str]
    learning_style: int
    availability: list[str]
    performance_level: int


def _normalize(values: Iterable[str] | None) -> set[str]:
    """Lower-cased, stripped set of values. Empty/None gives an empty set."""
    if not values:
        return set()
    return {str(v).strip().lower() for v in values if str(v).strip()}


def _day_names(values: Iterable | None) -> set[str]:
    if not values:
        return set()
    return {getattr(v, "value", v) for v in values}


def subject_score(a: StudyProfile, b: StudyProfile) -> float:
    subjects_a = _normalize(a.subjects)
    subjects_b = _normalize(b.subjects)
    if not subjects_a or not subjects_b:
        return 0.0
    common = len(subjects_a & subjects_b)
    return common / max(len(subjects_a), len(subjects_b)) * SUBJECT_WEIGHT


def learning_style_score(a: StudyProfile, b: StudyProfile) -> float:
    difference = abs(int(a.learning_style) - int(b.learning_style))
    if difference == 0:
        return float(LEARNING_STYLE_WEIGHT)
    if difference == 1:
        return LEARNING_STYLE_WEIGHT / 2
    return 0.0


def availability_score(a: StudyProfile, b: StudyProfile) -> float:
    overlap = len(_day_names(a.availability) & _day_names(b.availability))
    return overlap / DAYS_PER_WEEK * AVAILABILITY_WEIGHT


def performance_score(a: StudyProfile, b: StudyProfile) -> float:
    difference = abs(a.performance_level - b.performance_level)
    return float(max(0, PERFORMANCE_WEIGHT - 2 * difference))


def calculate_compatibility(a: StudyProfile, b: StudyProfile) -> int:
    """
    Calculate compatibility score between two complete profiles.

    Scoring (total 100 points):
    - Subject overlap: 40 points
    - Learning style: 30 points (15 for adjacent styles)
    - Availability overlap: 20 points
    - Performance level closeness: 10 points
    """
    total = (
        subject_score(a, b)
        + learning_style_score(a, b)
        + availability_score(a, b)
        + performance_score(a, b)
    )
    # Half-up rounding, not banker's rounding
    return max(0, min(100, math.floor(total + 0.5)))


def compatibility_breakdown(a: StudyProfile, b: StudyProfile) -> CompatibilityResponse:
    """Per-factor view of calculate_compatibility, for previews."""
    common_subjects = _normalize(a.subjects) & _normalize(b.subjects)
    common_days = _day_names(a.availability) & _day_names(b.availability)
    level_gap = abs(a.performance_level - b.performance_level)

    breakdown = {
        "subjects": CompatibilityBreakdown(
            score=round(subject_score(a, b), 2),
            max_score=SUBJECT_WEIGHT,
            detail=f"{len(common_subjects)} subject(s) in common",
        ),
        "learning_style": CompatibilityBreakdown(
            score=learning_style_score(a, b),
            max_score=LEARNING_STYLE_WEIGHT,
            detail=(
                "Same learning style"
                if a.learning_style == b.learning_style
                else "Different learning styles"
            ),
        ),
        "availability": CompatibilityBreakdown(
            score=round(availability_score(a, b), 2),
            max_score=AVAILABILITY_WEIGHT,
            detail=f"{len(common_days)} day(s) in common",
        ),
        "performance": CompatibilityBreakdown(
            score=performance_score(a, b),
            max_score=PERFORMANCE_WEIGHT,
            detail=f"Performance levels {level_gap} apart",
        ),
    }

    return CompatibilityResponse(
        score=calculate_compatibility(a, b),
        breakdown=breakdown,
    )
