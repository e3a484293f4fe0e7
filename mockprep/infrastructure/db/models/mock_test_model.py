from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class MockTest(Base):
    __tablename__ = "mock_tests"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    total_marks = Column(Float, nullable=False, default=0.0)
    is_live = Column(Boolean, nullable=False, default=False)  # False = draft
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    course = relationship("Course", back_populates="mock_tests")
    questions = relationship(
        "MockTestQuestion",
        back_populates="mock_test",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MockTestQuestion.position",
    )
    attempts = relationship("MockTestAttempt", back_populates="mock_test", cascade="all, delete-orphan")


class MockTestQuestion(Base):
    """Frozen scoring snapshot of one bank question inside one mock test."""

    __tablename__ = "mock_test_questions"

    mock_test_id = Column(Integer, ForeignKey("mock_tests.id", ondelete="CASCADE"), primary_key=True)
    question_id = Column(Integer, ForeignKey("question_bank.id", ondelete="CASCADE"), primary_key=True)
    marks = Column(Float, nullable=False)
    negative_marks = Column(Float, nullable=False, default=0.0)
    position = Column(Integer, nullable=False, default=0)

    mock_test = relationship("MockTest", back_populates="questions")
    question = relationship("QuestionBankEntry")
