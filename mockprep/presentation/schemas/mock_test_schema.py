from pydantic import BaseModel, Field
from typing import List, Optional


class MockExamGenerate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3)
    # Set to build a sectional exam from a single subject of the course
    subject_id: Optional[int] = None


class MockTestOut(BaseModel):
    id: int
    course_id: int
    title: str
    duration_minutes: int
    total_marks: float
    is_live: bool
    total_questions: int


class MockTestSummaryOut(BaseModel):
    id: int
    title: str
    duration_minutes: int
    total_marks: float
    total_questions: int


class MockTestQuestionOut(BaseModel):
    """Question as shown to a candidate: no correct answer, no explanation."""
    question_id: int
    question_text: str
    options: List[str]
    marks: float
    negative_marks: float
    position: int


class MockTestDetailOut(BaseModel):
    id: int
    title: str
    duration_minutes: int
    total_marks: float
    questions: List[MockTestQuestionOut]


class OrphanSweepResponse(BaseModel):
    deleted: int
