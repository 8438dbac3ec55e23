"""Weighted score computation for assessments.

Scores are averaged per section (plain mean of the scored indicators) and the
section averages are combined using the section weights. Sections without any
scored indicator are left out of both the weighted sum and the total weight,
so a partially completed self-assessment still yields a meaningful running
score.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple

NOT_APPLICABLE = "X"
DEFAULT_SCORES = (0, 1, 2, 3, 4)
ACTORS = ("staff", "manager")

# (exclusive lower bound, grade), checked top-down
GRADE_THRESHOLDS = (
    (3.71, "A+"),
    (3.41, "A"),
    (3.11, "B+"),
    (2.81, "B"),
    (2.51, "C+"),
    (2.21, "C"),
    (2.00, "D"),
)


@dataclass
class ScoredIndicator:
    id: int
    staff_score: Optional[float] = None
    manager_score: Optional[float] = None


@dataclass
class SectionScores:
    id: int
    weight: float
    indicators: List[ScoredIndicator] = field(default_factory=list)


def _numeric(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def calculate_weighted_score(
    sections: Optional[Iterable[SectionScores]], actor: str = "staff"
) -> Optional[float]:
    """Return the weighted score for ``actor`` or None when nothing is scored."""
    if actor not in ACTORS:
        raise ValueError(f"Unknown actor: {actor}")
    if not sections:
        return None

    attr = f"{actor}_score"
    weighted_sum = 0.0
    total_weight = 0.0
    all_scored: List[float] = []

    for section in sections:
        scored = [
            v for v in (_numeric(getattr(ind, attr)) for ind in section.indicators)
            if v is not None
        ]
        if not scored:
            continue
        all_scored.extend(scored)

        weight = _numeric(section.weight) or 0.0
        section_avg = sum(scored) / len(scored)
        weighted_sum += section_avg * weight
        total_weight += weight

    if total_weight == 0:
        # scored sections that all carry zero weight fall back to a plain mean
        if not all_scored:
            return None
        return sum(all_scored) / len(all_scored)

    return weighted_sum / total_weight


def get_grade_from_score(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score > threshold:
            return grade
    return "F"


def allowed_scores(indicator) -> set:
    options = getattr(indicator, "score_options", None)
    if not options:
        return set(DEFAULT_SCORES)
    allowed = set()
    for opt in options:
        if not isinstance(opt, Mapping) or not opt.get("enabled", True):
            continue
        score = opt.get("score")
        if isinstance(score, int) and not isinstance(score, bool):
            allowed.add(score)
    return allowed


def coerce_score(indicator, value) -> Optional[int]:
    """Return ``value`` if it is a usable score for ``indicator``, else None."""
    if value is None or value == NOT_APPLICABLE:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value not in allowed_scores(indicator):
        return None
    return value


def build_section_scores(
    template,
    staff_scores: Optional[Mapping] = None,
    manager_scores: Optional[Mapping] = None,
) -> List[SectionScores]:
    """Join a rubric template with the score maps of an assessment.

    Unknown indicator ids and unusable values are dropped silently.
    """
    staff_scores = staff_scores or {}
    manager_scores = manager_scores or {}

    sections = []
    for section in template.sections:
        indicators = []
        for indicator in section.indicators:
            key = str(indicator.id)
            indicators.append(
                ScoredIndicator(
                    id=indicator.id,
                    staff_score=coerce_score(indicator, staff_scores.get(key)),
                    manager_score=coerce_score(indicator, manager_scores.get(key)),
                )
            )
        sections.append(SectionScores(id=section.id, weight=section.weight, indicators=indicators))
    return sections


def score_assessment(template, assessment, actor: str = "manager") -> Tuple[Optional[float], Optional[str]]:
    sections = build_section_scores(template, assessment.staff_scores, assessment.manager_scores)
    score = calculate_weighted_score(sections, actor)
    if score is None:
        return None, None
    return score, get_grade_from_score(score)
