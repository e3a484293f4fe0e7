from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..base import Base


class Topic(Base):
    """Tag on bank questions; wrong answers are reported back per topic as weak areas."""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    subject = relationship("Subject", back_populates="topics")
    questions = relationship("QuestionBankEntry", back_populates="topic", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("subject_id", "name", name="uq_topic_subject_name"),
    )
