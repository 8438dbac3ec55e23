from fastapi import APIRouter, BackgroundTasks, Depends, Body
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from appraisal.database import get_db
from appraisal.core.auth import get_current_user
from appraisal.schemas.assessment import (
    AssessmentCreate, AssessmentPatch, AssessmentResponse, ScorePreviewResponse,
    SubmitRequest, ReviewRequest, ApproveRequest, RejectRequest, AcknowledgeRequest,
)
from appraisal.services import workflow
from appraisal.services.notifications.dispatcher import trigger_notification

router = APIRouter(prefix="/assessments", tags=["assessments"])


def schedule_notifications(background_tasks: BackgroundTasks, outcome: workflow.TransitionOutcome) -> None:
    # runs after the response is sent; failures are logged by the dispatcher
    for assessment_id in outcome.notify_ids:
        background_tasks.add_task(trigger_notification, assessment_id, outcome.notification)


@router.get("", response_model=List[AssessmentResponse])
async def list_assessments(
    staff_id: Optional[int] = None,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await workflow.list_assessments(db, current_user, staff_id=staff_id, status=status)


@router.post("", response_model=AssessmentResponse, status_code=201)
async def create_assessment(
    assessment_in: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await workflow.create_assessment(db, current_user, assessment_in)


@router.get("/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(
    assessment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await workflow.get_assessment(db, current_user, assessment_id)


@router.get("/{assessment_id}/score", response_model=ScorePreviewResponse)
async def get_score_preview(
    assessment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await workflow.score_preview(db, current_user, assessment_id)


@router.patch("/{assessment_id}", response_model=AssessmentResponse)
async def save_draft(
    assessment_id: int,
    patch: AssessmentPatch = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    return await workflow.save_draft(db, current_user, assessment_id, patch)


@router.delete("/{assessment_id}", status_code=204)
async def delete_assessment(
    assessment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    await workflow.delete_assessment(db, current_user, assessment_id)


@router.post("/{assessment_id}/submit", response_model=AssessmentResponse)
async def submit_assessment(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[SubmitRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    body = body or SubmitRequest()
    outcome = await workflow.submit(
        db, current_user, assessment_id,
        staff_scores=body.staff_scores, staff_evidence=body.staff_evidence,
    )
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]


@router.post("/{assessment_id}/review", response_model=AssessmentResponse)
async def submit_review(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ReviewRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    body = body or ReviewRequest()
    outcome = await workflow.review(
        db, current_user, assessment_id,
        manager_scores=body.manager_scores,
        manager_evidence=body.manager_evidence,
        manager_notes=body.manager_notes,
    )
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]


@router.post("/{assessment_id}/approve", response_model=AssessmentResponse)
async def approve_assessment(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ApproveRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    body = body or ApproveRequest()
    outcome = await workflow.approve(db, current_user, assessment_id, body.director_comments)
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]


@router.post("/{assessment_id}/reject", response_model=AssessmentResponse)
async def reject_assessment(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[RejectRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    body = body or RejectRequest()
    outcome = await workflow.reject(db, current_user, assessment_id, body.feedback)
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]


@router.post("/{assessment_id}/acknowledge", response_model=AssessmentResponse)
async def acknowledge_assessment(
    assessment_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[AcknowledgeRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    body = body or AcknowledgeRequest()
    outcome = await workflow.acknowledge(db, current_user, assessment_id, body.staff_notes)
    schedule_notifications(background_tasks, outcome)
    return outcome.assessments[0]
