from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from ..base import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)  # e.g. "Quantitative Aptitude", "Current Affairs"
    description = Column(String, nullable=True)

    topics = relationship("Topic", back_populates="subject", cascade="all, delete-orphan", order_by="Topic.id")
    # plans of the courses this subject is part of
    course_links = relationship("CourseSubject", back_populates="subject", cascade="all, delete-orphan")
