from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from mockprep.infrastructure.db.models.course_model import SourcingMode

# ------------------ Course Schemas ------------------

class CourseCreate(BaseModel):
    name: str = Field(min_length=2)
    description: Optional[str] = None


class SubjectPlanCreate(BaseModel):
    subject_id: int
    question_count: int = Field(gt=0)
    marks_per_question: float = Field(gt=0, default=1.0)
    negative_marks: float = Field(ge=0, default=0.0)
    order_index: int = 0
    difficulty_config: Optional[Dict[str, float]] = None
    # Inferred from the subject name when omitted
    sourcing_mode: Optional[SourcingMode] = None


class SubjectPlanOut(BaseModel):
    subject_id: int
    subject_name: str
    question_count: int
    marks_per_question: float
    negative_marks: float
    order_index: int
    difficulty_config: Optional[Dict[str, float]] = None
    sourcing_mode: SourcingMode

    class Config:
        from_attributes = True


class CourseOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    subjects: List[SubjectPlanOut] = []
