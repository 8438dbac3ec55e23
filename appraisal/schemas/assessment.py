from pydantic import BaseModel, Field
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

# indicator id -> 0..4, or "X" for not applicable
ScoreMap = Dict[str, Union[int, Literal["X"], None]]
EvidenceMap = Dict[str, Any]

class AssessmentCreate(BaseModel):
    template_id: int
    period: str = Field(..., min_length=1, max_length=100)
    manager_id: Optional[int] = None
    director_id: Optional[int] = None

class StaffDraftPatch(BaseModel):
    kind: Literal["staff"]
    staff_scores: Optional[ScoreMap] = None
    staff_evidence: Optional[EvidenceMap] = None

    model_config = {"extra": "forbid"}

class ManagerDraftPatch(BaseModel):
    kind: Literal["manager"]
    manager_scores: Optional[ScoreMap] = None
    manager_evidence: Optional[EvidenceMap] = None
    manager_notes: Optional[str] = None

    model_config = {"extra": "forbid"}

class DirectorDraftPatch(BaseModel):
    kind: Literal["director"]
    director_comments: Optional[str] = None

    model_config = {"extra": "forbid"}

AssessmentPatch = Annotated[
    Union[StaffDraftPatch, ManagerDraftPatch, DirectorDraftPatch],
    Field(discriminator="kind"),
]

class SubmitRequest(BaseModel):
    staff_scores: Optional[ScoreMap] = None
    staff_evidence: Optional[EvidenceMap] = None

class ReviewRequest(BaseModel):
    manager_scores: Optional[ScoreMap] = None
    manager_evidence: Optional[EvidenceMap] = None
    manager_notes: Optional[str] = None

class ApproveRequest(BaseModel):
    director_comments: Optional[str] = None

class RejectRequest(BaseModel):
    feedback: Optional[str] = None

class AcknowledgeRequest(BaseModel):
    staff_notes: Optional[str] = None

class AssessmentResponse(BaseModel):
    id: int
    staff_id: int
    manager_id: Optional[int]
    director_id: Optional[int]
    template_id: int
    period: str
    status: str
    staff_scores: Dict[str, Any]
    staff_evidence: Dict[str, Any]
    manager_scores: Dict[str, Any]
    manager_evidence: Dict[str, Any]
    manager_notes: Optional[str]
    director_comments: Optional[str]
    staff_notes: Optional[str]
    return_feedback: Optional[str]
    returned_by: Optional[int]
    final_score: Optional[float]
    final_grade: Optional[str]
    staff_submitted_at: Optional[datetime]
    manager_reviewed_at: Optional[datetime]
    director_approved_at: Optional[datetime]
    admin_released_at: Optional[datetime]
    acknowledged_at: Optional[datetime]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class ScorePreviewResponse(BaseModel):
    staff_score: Optional[float]
    staff_grade: Optional[str]
    manager_score: Optional[float]
    manager_grade: Optional[str]

class ReleaseAllResponse(BaseModel):
    released: List[int]
    count: int
