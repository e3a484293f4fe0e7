import enum

from sqlalchemy import Column, Integer, String, Float, ForeignKey, JSON, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from ..base import Base


class SourcingMode(str, enum.Enum):
    BANK = "BANK"
    GENERATIVE = "GENERATIVE"


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    description = Column(String, nullable=True)

    # Relationships
    subjects = relationship(
        "CourseSubject",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSubject.order_index",
    )
    mock_tests = relationship("MockTest", back_populates="course", cascade="all, delete-orphan")


class CourseSubject(Base):
    """Subject plan: how many questions a course draws from one subject, and at what marks."""

    __tablename__ = "course_subjects"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    question_count = Column(Integer, nullable=False)
    marks_per_question = Column(Float, nullable=False, default=1.0)
    negative_marks = Column(Float, nullable=False, default=0.0)
    order_index = Column(Integer, nullable=False, default=0)
    difficulty_config = Column(JSON, nullable=True)  # e.g. {"EASY": 30, "MEDIUM": 50, "HARD": 20}
    sourcing_mode = Column(Enum(SourcingMode), nullable=False, default=SourcingMode.BANK)

    course = relationship("Course", back_populates="subjects")
    subject = relationship("Subject", back_populates="course_links")

    __table_args__ = (
        UniqueConstraint("course_id", "subject_id", name="uq_course_subject"),
    )
