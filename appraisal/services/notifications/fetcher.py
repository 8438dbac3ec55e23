from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from appraisal.models.assessment import Assessment
from appraisal.models.rubric import RubricTemplate
from appraisal.models.user import User
from appraisal.services.notifications.types import AssessmentNotificationData


def _format_score(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    return f"{score:.2f}"


async def get_assessment_notification_data(
    db: AsyncSession, assessment_id: int
) -> Optional[AssessmentNotificationData]:
    """Load everything a notification needs about one assessment in a single query."""
    staff = aliased(User)
    manager = aliased(User)
    director = aliased(User)
    returner = aliased(User)

    result = await db.execute(
        select(
            Assessment.id,
            Assessment.staff_id,
            Assessment.period,
            Assessment.final_score,
            Assessment.final_grade,
            Assessment.return_feedback,
            RubricTemplate.name.label("template_name"),
            staff.name.label("staff_name"),
            staff.email.label("staff_email"),
            manager.id.label("manager_id"),
            manager.name.label("manager_name"),
            manager.email.label("manager_email"),
            director.id.label("director_id"),
            director.name.label("director_name"),
            director.email.label("director_email"),
            returner.name.label("returned_by_name"),
        )
        .outerjoin(RubricTemplate, RubricTemplate.id == Assessment.template_id)
        .outerjoin(staff, staff.id == Assessment.staff_id)
        .outerjoin(manager, manager.id == Assessment.manager_id)
        .outerjoin(director, director.id == Assessment.director_id)
        .outerjoin(returner, returner.id == Assessment.returned_by)
        .where(Assessment.id == assessment_id)
    )
    row = result.one_or_none()
    if row is None:
        return None

    return AssessmentNotificationData(
        assessment_id=row.id,
        staff_id=row.staff_id,
        staff_name=row.staff_name or "Staff",
        staff_email=row.staff_email,
        period=row.period,
        template_name=row.template_name,
        score=_format_score(row.final_score),
        grade=row.final_grade,
        notes=row.return_feedback,
        manager_id=row.manager_id,
        manager_name=row.manager_name,
        manager_email=row.manager_email,
        director_id=row.director_id,
        director_name=row.director_name,
        director_email=row.director_email,
        returned_by=row.returned_by_name,
    )
