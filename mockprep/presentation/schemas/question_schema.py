# question_schema.py
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

from mockprep.infrastructure.db.models.question_model import Difficulty


class QuestionCreate(BaseModel):
    topic_id: int
    question_text: str = Field(min_length=1)
    options: List[str]
    correct_index: int
    difficulty: Difficulty = Difficulty.MEDIUM
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def check_options(self):
        if len(self.options) < 2:
            raise ValueError("Question must have at least 2 options")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError("correct_index must point at one of the options")
        return self


class QuestionOut(BaseModel):
    id: int
    topic_id: int
    question_text: str
    options: List[str]
    correct_index: int
    difficulty: Difficulty
    explanation: Optional[str] = None

    class Config:
        from_attributes = True
