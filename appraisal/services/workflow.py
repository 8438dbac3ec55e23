"""Assessment lifecycle.

    draft ──submit──> self_submitted ──review──> manager_reviewed
    manager_reviewed ──approve──> director_approved ──release──> admin_reviewed
    manager_reviewed ──reject──> rejected ──submit──> self_submitted
    admin_reviewed ──acknowledge──> acknowledged

Every transition loads the row with a row lock, checks the caller through
``authorize`` and the current status against the transition table, then
commits. The notification type of the transition is handed back to the
caller, which schedules the email dispatch outside the request.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from appraisal.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from appraisal.core.permissions import ADMIN, DIRECTOR, MANAGER, authorize, has_role, is_admin
from appraisal.models.assessment import Assessment, AssessmentStatus
from appraisal.models.user import User
from appraisal.schemas.assessment import (
    AssessmentCreate,
    DirectorDraftPatch,
    ManagerDraftPatch,
    StaffDraftPatch,
)
from appraisal.services.rubrics import load_template, validate_evidence_map, validate_score_map
from appraisal.services.scoring import score_assessment
from appraisal.services.notifications.types import NotificationType

logger = logging.getLogger(__name__)

S = AssessmentStatus


@dataclass(frozen=True)
class Transition:
    action: str
    sources: frozenset
    target: AssessmentStatus
    notification: NotificationType


TRANSITIONS = {
    t.action: t
    for t in (
        Transition("submit", frozenset({S.DRAFT, S.REJECTED}), S.SELF_SUBMITTED,
                   NotificationType.ASSESSMENT_SUBMITTED),
        Transition("review", frozenset({S.SELF_SUBMITTED}), S.MANAGER_REVIEWED,
                   NotificationType.MANAGER_REVIEW_COMPLETED),
        Transition("approve", frozenset({S.MANAGER_REVIEWED}), S.DIRECTOR_APPROVED,
                   NotificationType.DIRECTOR_APPROVED),
        Transition("reject", frozenset({S.MANAGER_REVIEWED}), S.REJECTED,
                   NotificationType.ASSESSMENT_RETURNED),
        Transition("release", frozenset({S.DIRECTOR_APPROVED}), S.ADMIN_REVIEWED,
                   NotificationType.ADMIN_RELEASED),
        Transition("acknowledge", frozenset({S.ADMIN_REVIEWED}), S.ACKNOWLEDGED,
                   NotificationType.ASSESSMENT_ACKNOWLEDGED),
    )
}

OWNER_EDITABLE = frozenset({S.DRAFT, S.REJECTED})
OWNER_DELETABLE = frozenset({S.DRAFT, S.REJECTED})


@dataclass
class TransitionOutcome:
    assessments: List[Assessment]
    notification: Optional[NotificationType] = None
    notify_ids: List[int] = field(default_factory=list)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _status(assessment: Assessment) -> AssessmentStatus:
    return AssessmentStatus(assessment.status)


def _is_owner(assessment: Assessment):
    return lambda user: assessment.staff_id == user.id


def _is_assigned(assessment: Assessment, column: str):
    # the owner never reviews or approves their own assessment
    return lambda user: (
        getattr(assessment, column) in (None, user.id) and assessment.staff_id != user.id
    )


def _check_source(assessment: Assessment, transition: Transition) -> None:
    if _status(assessment) not in transition.sources:
        raise InvalidTransitionError(
            f"Cannot {transition.action} an assessment in status {assessment.status}"
        )


def _outcome(assessment: Assessment, transition: Transition) -> TransitionOutcome:
    return TransitionOutcome(
        assessments=[assessment],
        notification=transition.notification,
        notify_ids=[assessment.id],
    )


async def _load(db: AsyncSession, assessment_id: int, for_update: bool = False) -> Assessment:
    query = select(Assessment).where(Assessment.id == assessment_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    assessment = result.scalar_one_or_none()
    if not assessment:
        raise NotFoundError("Assessment not found")
    return assessment


async def _commit(db: AsyncSession, assessment: Assessment) -> Assessment:
    db.add(assessment)
    await db.commit()
    await db.refresh(assessment)
    return assessment


def can_view(user, assessment: Assessment) -> bool:
    if is_admin(user) or assessment.staff_id == user.id:
        return True
    if has_role(user, MANAGER) and assessment.manager_id in (None, user.id):
        return True
    if has_role(user, DIRECTOR) and assessment.director_id in (None, user.id):
        return True
    return False


# ---- reads ----

async def get_assessment(db: AsyncSession, user, assessment_id: int) -> Assessment:
    assessment = await _load(db, assessment_id)
    authorize(user, predicate=lambda u: can_view(u, assessment), detail="Access denied")
    return assessment


async def list_assessments(
    db: AsyncSession, user, staff_id: Optional[int] = None, status: Optional[str] = None
) -> List[Assessment]:
    query = select(Assessment)

    if not is_admin(user):
        visible = [
            Assessment.staff_id == user.id,
            Assessment.manager_id == user.id,
            Assessment.director_id == user.id,
        ]
        if has_role(user, MANAGER):
            visible.append(Assessment.manager_id.is_(None))
        if has_role(user, DIRECTOR):
            visible.append(Assessment.director_id.is_(None))
        query = query.where(or_(*visible))

    if staff_id:
        query = query.where(Assessment.staff_id == staff_id)
    if status:
        query = query.where(Assessment.status == status)

    result = await db.execute(query.order_by(Assessment.created_at.desc(), Assessment.id.desc()))
    return list(result.scalars().all())


async def score_preview(db: AsyncSession, user, assessment_id: int) -> dict:
    assessment = await get_assessment(db, user, assessment_id)
    template = await load_template(db, assessment.template_id)
    staff_score, staff_grade = score_assessment(template, assessment, "staff")
    manager_score, manager_grade = score_assessment(template, assessment, "manager")
    return {
        "staff_score": staff_score,
        "staff_grade": staff_grade,
        "manager_score": manager_score,
        "manager_grade": manager_grade,
    }


# ---- creation, drafts, deletion ----

async def create_assessment(db: AsyncSession, user, data: AssessmentCreate) -> Assessment:
    authorize(user)
    await load_template(db, data.template_id)

    for label, role, user_id in (
        ("Manager", MANAGER, data.manager_id),
        ("Director", DIRECTOR, data.director_id),
    ):
        if user_id is None:
            continue
        if user_id == user.id:
            raise ValidationError(f"{label} must be someone other than the assessed staff member")
        result = await db.execute(select(User).where(User.id == user_id))
        assignee = result.scalar_one_or_none()
        if assignee is None:
            raise ValidationError(f"{label} user not found")
        if not has_role(assignee, role):
            raise ValidationError(f"{label} user does not hold the {role} role")

    assessment = Assessment(
        staff_id=user.id,
        manager_id=data.manager_id,
        director_id=data.director_id,
        template_id=data.template_id,
        period=data.period,
        status=S.DRAFT.value,
        staff_scores={},
        staff_evidence={},
        manager_scores={},
        manager_evidence={},
    )
    assessment = await _commit(db, assessment)
    logger.info("Assessment %s created by user %s", assessment.id, user.id)
    return assessment


async def save_draft(db: AsyncSession, user, assessment_id: int, patch) -> Assessment:
    """Apply a partial edit; which fields may change depends on the patch kind."""
    assessment = await _load(db, assessment_id, for_update=True)
    template = await load_template(db, assessment.template_id)
    changes = patch.model_dump(exclude_unset=True, exclude={"kind"})

    if isinstance(patch, StaffDraftPatch):
        authorize(user, predicate=_is_owner(assessment), detail="Only the owner can edit this assessment")
        allowed = OWNER_EDITABLE
    elif isinstance(patch, ManagerDraftPatch):
        authorize(user, roles=[MANAGER], predicate=_is_assigned(assessment, "manager_id"),
                  detail="Only the assigned manager can edit this review")
        allowed = frozenset({S.SELF_SUBMITTED})
    elif isinstance(patch, DirectorDraftPatch):
        authorize(user, roles=[DIRECTOR], predicate=_is_assigned(assessment, "director_id"),
                  detail="Only the assigned director can edit these comments")
        allowed = frozenset({S.MANAGER_REVIEWED})
    else:
        raise ValidationError("Unknown patch")

    if _status(assessment) not in allowed:
        raise InvalidTransitionError(f"Assessment is locked in status {assessment.status}")

    for key, value in changes.items():
        if key.endswith("_scores"):
            value = validate_score_map(template, value)
        elif key.endswith("_evidence"):
            value = validate_evidence_map(template, value)
        setattr(assessment, key, value)

    return await _commit(db, assessment)


async def delete_assessment(db: AsyncSession, user, assessment_id: int) -> None:
    assessment = await _load(db, assessment_id, for_update=True)
    if not is_admin(user):
        authorize(
            user,
            predicate=lambda u: assessment.staff_id == u.id and _status(assessment) in OWNER_DELETABLE,
            detail="Only drafts or rejected assessments can be deleted by their owner",
        )
    await db.delete(assessment)
    await db.commit()
    logger.info("Assessment %s deleted by user %s", assessment_id, user.id)


# ---- transitions ----

async def submit(
    db: AsyncSession, user, assessment_id: int,
    staff_scores: Optional[dict] = None, staff_evidence: Optional[dict] = None,
) -> TransitionOutcome:
    transition = TRANSITIONS["submit"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, predicate=_is_owner(assessment), detail="Only the owner can submit this assessment")
    _check_source(assessment, transition)

    template = await load_template(db, assessment.template_id)
    if staff_scores is not None:
        assessment.staff_scores = validate_score_map(template, staff_scores)
    if staff_evidence is not None:
        assessment.staff_evidence = validate_evidence_map(template, staff_evidence)
    if assessment.staff_scores is None:
        raise ValidationError("Scores are required before submitting")

    assessment.status = transition.target.value
    assessment.staff_submitted_at = _now()
    return _outcome(await _commit(db, assessment), transition)


async def review(
    db: AsyncSession, user, assessment_id: int,
    manager_scores: Optional[dict] = None,
    manager_evidence: Optional[dict] = None,
    manager_notes: Optional[str] = None,
) -> TransitionOutcome:
    transition = TRANSITIONS["review"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, roles=[MANAGER], predicate=_is_assigned(assessment, "manager_id"),
              detail="Only the assigned manager can review this assessment")
    _check_source(assessment, transition)

    template = await load_template(db, assessment.template_id)
    if manager_scores is not None:
        assessment.manager_scores = validate_score_map(template, manager_scores)
    if manager_evidence is not None:
        assessment.manager_evidence = validate_evidence_map(template, manager_evidence)
    if manager_notes is not None:
        assessment.manager_notes = manager_notes

    assessment.manager_id = assessment.manager_id or user.id
    assessment.final_score, assessment.final_grade = score_assessment(template, assessment, "manager")
    assessment.status = transition.target.value
    assessment.manager_reviewed_at = _now()
    return _outcome(await _commit(db, assessment), transition)


async def approve(
    db: AsyncSession, user, assessment_id: int, director_comments: Optional[str] = None
) -> TransitionOutcome:
    transition = TRANSITIONS["approve"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, roles=[DIRECTOR], predicate=_is_assigned(assessment, "director_id"),
              detail="Only the assigned director can approve this assessment")
    _check_source(assessment, transition)

    if director_comments is not None:
        assessment.director_comments = director_comments
    assessment.director_id = assessment.director_id or user.id
    assessment.status = transition.target.value
    assessment.director_approved_at = _now()
    return _outcome(await _commit(db, assessment), transition)


async def reject(
    db: AsyncSession, user, assessment_id: int, feedback: Optional[str] = None
) -> TransitionOutcome:
    transition = TRANSITIONS["reject"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, roles=[DIRECTOR], predicate=_is_assigned(assessment, "director_id"),
              detail="Only the assigned director can reject this assessment")
    _check_source(assessment, transition)

    assessment.director_id = assessment.director_id or user.id
    assessment.return_feedback = feedback
    assessment.returned_by = user.id
    assessment.status = transition.target.value
    return _outcome(await _commit(db, assessment), transition)


async def release(db: AsyncSession, user, assessment_id: int) -> TransitionOutcome:
    transition = TRANSITIONS["release"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, roles=[ADMIN], detail="Admin access required")
    _check_source(assessment, transition)

    assessment.status = transition.target.value
    assessment.admin_released_at = _now()
    return _outcome(await _commit(db, assessment), transition)


async def release_all(db: AsyncSession, user) -> TransitionOutcome:
    """Release every director-approved assessment at once."""
    transition = TRANSITIONS["release"]
    authorize(user, roles=[ADMIN], detail="Admin access required")

    result = await db.execute(
        select(Assessment)
        .where(Assessment.status == S.DIRECTOR_APPROVED.value)
        .order_by(Assessment.id)
        .with_for_update()
    )
    assessments = list(result.scalars().all())
    now = _now()
    for assessment in assessments:
        assessment.status = transition.target.value
        assessment.admin_released_at = now
        db.add(assessment)
    await db.commit()

    logger.info("Released %d assessments", len(assessments))
    return TransitionOutcome(
        assessments=assessments,
        notification=transition.notification,
        notify_ids=[a.id for a in assessments],
    )


async def acknowledge(
    db: AsyncSession, user, assessment_id: int, staff_notes: Optional[str] = None
) -> TransitionOutcome:
    transition = TRANSITIONS["acknowledge"]
    assessment = await _load(db, assessment_id, for_update=True)
    authorize(user, predicate=_is_owner(assessment), detail="Only the owner can acknowledge this assessment")
    _check_source(assessment, transition)

    if staff_notes is not None:
        assessment.staff_notes = staff_notes
    assessment.status = transition.target.value
    assessment.acknowledged_at = _now()
    return _outcome(await _commit(db, assessment), transition)
