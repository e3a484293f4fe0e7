from pydantic import BaseModel, Field
from typing import List, Optional


class TopicCreate(BaseModel):
    subject_id: int
    name: str = Field(min_length=2)


class TopicOut(BaseModel):
    id: int
    subject_id: int
    name: str

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str = Field(min_length=2)
    description: Optional[str] = None


class SubjectOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    topics: List[TopicOut] = []

    class Config:
        from_attributes = True
