from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class AnswerSubmit(BaseModel):
    question_id: int
    selected_option: Optional[int] = None  # None = skipped
    time_taken: int = Field(ge=0, default=0)


class AttemptSubmit(BaseModel):
    answers: List[AnswerSubmit] = []
    # Total exam duration reported by the client; summed from answers when omitted
    time_taken: Optional[int] = Field(ge=0, default=None)
    warning_count: int = Field(ge=0, default=0)


class AnswerRecordOut(BaseModel):
    question_id: int
    selected_option: Optional[int] = None
    is_correct: bool
    time_taken: int

    class Config:
        from_attributes = True


class AttemptOut(BaseModel):
    id: int
    user_id: int
    mock_test_id: int
    score: float
    correct_count: int
    wrong_count: int
    skipped_count: int
    time_taken: int
    warning_count: int
    analysis_json: Optional[dict] = None
    ai_feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None
    answers: List[AnswerRecordOut] = []

    class Config:
        from_attributes = True


class AttemptHistoryOut(BaseModel):
    id: int
    mock_test_id: int
    mock_test_title: str
    course_name: str
    score: float
    total_marks: float
    correct_count: int
    wrong_count: int
    skipped_count: int
    time_taken: int
    submitted_at: Optional[datetime] = None
