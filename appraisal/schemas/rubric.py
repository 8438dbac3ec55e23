from pydantic import BaseModel
from typing import List, Optional

class ScoreOption(BaseModel):
    score: int
    label: str
    enabled: bool = True

class IndicatorResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    evidence_guidance: Optional[str]
    score_options: List[ScoreOption]

class SectionResponse(BaseModel):
    id: int
    name: str
    weight: float
    indicators: List[IndicatorResponse]

class TemplateSummary(BaseModel):
    id: int
    name: str
    description: Optional[str]
    is_active: bool

    model_config = {"from_attributes": True}

class TemplateResponse(TemplateSummary):
    sections: List[SectionResponse]
