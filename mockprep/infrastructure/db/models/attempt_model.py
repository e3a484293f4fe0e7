from sqlalchemy import Column, Integer, Float, Boolean, ForeignKey, DateTime, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class MockTestAttempt(Base):
    __tablename__ = "mock_test_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)  # owned by the auth service
    mock_test_id = Column(Integer, ForeignKey("mock_tests.id", ondelete="CASCADE"), nullable=False)
    score = Column(Float, nullable=False, default=0.0)  # can be negative
    correct_count = Column(Integer, nullable=False, default=0)
    wrong_count = Column(Integer, nullable=False, default=0)
    skipped_count = Column(Integer, nullable=False, default=0)
    time_taken = Column(Integer, nullable=False, default=0)  # seconds
    warning_count = Column(Integer, nullable=False, default=0)
    analysis_json = Column(JSON, nullable=True)
    ai_feedback = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    mock_test = relationship("MockTest", back_populates="attempts")
    answers = relationship(
        "AttemptAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.id",
    )


class AttemptAnswer(Base):
    __tablename__ = "attempt_answers"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("mock_test_attempts.id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("question_bank.id"), nullable=False)
    selected_option = Column(Integer, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    time_taken = Column(Integer, nullable=False, default=0)

    attempt = relationship("MockTestAttempt", back_populates="answers")
