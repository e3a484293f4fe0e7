from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

from sqlalchemy.orm import Session, joinedload

from mockprep.application.exceptions import CourseNotFound
from mockprep.infrastructure.db.models import Course, CourseSubject, SourcingMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectPlanView:
    course_id: int
    subject_id: int
    subject_name: str
    question_count: int
    marks_per_question: float
    negative_marks: float
    order_index: int
    sourcing_mode: SourcingMode = SourcingMode.BANK
    difficulty_config: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class CoursePlan:
    course_id: int
    course_name: str
    subjects: List[SubjectPlanView] = field(default_factory=list)


def resolve_subject_plans(db: Session, course_id: int, subject_id: Optional[int] = None) -> CoursePlan:
    """
    Ordered sourcing plan of a course (ascending order_index).
    With `subject_id` the plan is narrowed to that one subject (sectional exam).
    """
    course = (
        db.query(Course)
        .options(joinedload(Course.subjects).joinedload(CourseSubject.subject))
        .filter(Course.id == course_id)
        .first()
    )
    if not course:
        logger.warning(f"Course with id {course_id} not found")
        raise CourseNotFound(course_id)

    links = sorted(course.subjects, key=lambda cs: (cs.order_index, cs.id))
    if subject_id is not None:
        links = [cs for cs in links if cs.subject_id == subject_id]
        if not links:
            raise ValueError(f"Subject {subject_id} is not part of course {course_id}'s syllabus")

    subjects = [
        SubjectPlanView(
            course_id=course.id,
            subject_id=cs.subject_id,
            subject_name=cs.subject.name,
            question_count=cs.question_count,
            marks_per_question=cs.marks_per_question,
            negative_marks=cs.negative_marks,
            order_index=cs.order_index,
            sourcing_mode=cs.sourcing_mode or SourcingMode.BANK,
            difficulty_config=cs.difficulty_config,
        )
        for cs in links
    ]
    logger.info(f"Resolved {len(subjects)} subject plans for course {course_id}")
    return CoursePlan(course_id=course.id, course_name=course.name, subjects=subjects)
