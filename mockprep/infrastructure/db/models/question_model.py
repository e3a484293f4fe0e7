import enum

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class Difficulty(str, enum.Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuestionBankEntry(Base):
    __tablename__ = "question_bank"

    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # ordered list of option strings
    correct_index = Column(Integer, nullable=False)  # 0-based index into options
    difficulty = Column(Enum(Difficulty), nullable=False, default=Difficulty.MEDIUM)
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    topic = relationship("Topic", back_populates="questions", passive_deletes=True)
