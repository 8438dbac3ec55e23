from typing import Mapping, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from appraisal.core.exceptions import NotFoundError, ValidationError
from appraisal.models.rubric import RubricTemplate
from appraisal.services.scoring import DEFAULT_SCORES, NOT_APPLICABLE, allowed_scores


async def load_template(db: AsyncSession, template_id: int) -> RubricTemplate:
    result = await db.execute(select(RubricTemplate).where(RubricTemplate.id == template_id))
    template = result.scalar_one_or_none()
    if not template:
        raise NotFoundError("Template not found")
    return template


def indicator_index(template: RubricTemplate) -> dict:
    return {
        str(indicator.id): indicator
        for section in template.sections
        for indicator in section.indicators
    }


def validate_score_map(template: RubricTemplate, scores: Optional[Mapping]) -> dict:
    """Check a score map before it is written; returns it with string keys."""
    if not scores:
        return {}
    indicators = indicator_index(template)
    cleaned = {}
    for key, value in scores.items():
        indicator = indicators.get(str(key))
        if indicator is None:
            raise ValidationError(f"Indicator {key} does not belong to this template")
        if value is None:
            continue
        if value != NOT_APPLICABLE and (
            isinstance(value, bool)
            or not isinstance(value, int)
            or value not in allowed_scores(indicator)
        ):
            raise ValidationError(f"Invalid score {value!r} for indicator {key}")
        cleaned[str(key)] = value
    return cleaned


def validate_evidence_map(template: RubricTemplate, evidence: Optional[Mapping]) -> dict:
    if not evidence:
        return {}
    indicators = indicator_index(template)
    for key in evidence:
        if str(key) not in indicators:
            raise ValidationError(f"Indicator {key} does not belong to this template")
    return {str(k): v for k, v in evidence.items()}


DEFAULT_SCORE_LABELS = {
    0: "Not demonstrated",
    1: "Developing",
    2: "Meets expectations",
    3: "Exceeds expectations",
    4: "Outstanding",
}


def score_options_for(indicator) -> list:
    """Options shown for an indicator; the default 0..4 scale when none are stored."""
    if indicator.score_options:
        return [opt for opt in indicator.score_options if isinstance(opt, Mapping)]
    return [
        {"score": score, "label": DEFAULT_SCORE_LABELS[score], "enabled": True}
        for score in DEFAULT_SCORES
    ]
