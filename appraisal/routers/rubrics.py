from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List
from appraisal.database import get_db
from appraisal.core.auth import get_current_user
from appraisal.models.rubric import RubricTemplate
from appraisal.schemas.rubric import TemplateResponse, TemplateSummary
from appraisal.services.rubrics import load_template, score_options_for

router = APIRouter(prefix="/rubrics", tags=["rubrics"])


@router.get("", response_model=List[TemplateSummary])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    result = await db.execute(
        select(RubricTemplate)
        .where(RubricTemplate.is_active.is_(True))
        .order_by(RubricTemplate.name)
    )
    return result.scalars().all()


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    template = await load_template(db, template_id)
    return TemplateResponse(
        id=template.id,
        name=template.name,
        description=template.description,
        is_active=template.is_active,
        sections=[
            {
                "id": section.id,
                "name": section.name,
                "weight": section.weight,
                "indicators": [
                    {
                        "id": indicator.id,
                        "name": indicator.name,
                        "description": indicator.description,
                        "evidence_guidance": indicator.evidence_guidance,
                        "score_options": score_options_for(indicator),
                    }
                    for indicator in section.indicators
                ],
            }
            for section in template.sections
        ],
    )
