from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from mockprep.application.exceptions import CourseNotFound, SubjectNotFound
from mockprep.infrastructure.db.models import Course, CourseSubject, Subject, Topic, SourcingMode
from mockprep.presentation.schemas.course_schema import CourseCreate, SubjectPlanCreate
from mockprep.presentation.schemas.subject_schema import SubjectCreate, TopicCreate
import logging

logger = logging.getLogger(__name__)

# Subjects whose questions are generated fresh instead of sampled from the bank
DYNAMIC_SUBJECT_KEYWORDS = ("current affairs", "news")


def infer_sourcing_mode(subject_name: str) -> SourcingMode:
    """Default sourcing mode for a subject that is linked without an explicit one"""
    lowered = subject_name.lower()
    if any(keyword in lowered for keyword in DYNAMIC_SUBJECT_KEYWORDS):
        return SourcingMode.GENERATIVE
    return SourcingMode.BANK


def create_course(db: Session, course_data: CourseCreate) -> Course:
    """Create a new course"""
    try:
        existing = db.query(Course).filter(Course.name == course_data.name).first()
        if existing:
            logger.warning(f"Attempt to create duplicate course: {course_data.name}")
            raise ValueError(f"Course '{course_data.name}' already exists")

        course = Course(name=course_data.name, description=course_data.description)
        db.add(course)
        db.commit()
        db.refresh(course)
        logger.info(f"Created course: {course.name} (ID: {course.id})")
        return course

    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating course: {e}")
        raise ValueError(f"Database error: {str(e)}")
    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating course: {e}", exc_info=True)
        raise


def get_course_by_id(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        logger.warning(f"Course with id {course_id} not found")
        raise CourseNotFound(course_id)
    return course


def create_subject(db: Session, subject_data: SubjectCreate) -> Subject:
    """Create a new subject"""
    try:
        existing = db.query(Subject).filter(Subject.name == subject_data.name).first()
        if existing:
            logger.warning(f"Attempt to create duplicate subject: {subject_data.name}")
            raise ValueError(f"Subject '{subject_data.name}' already exists")

        subject = Subject(name=subject_data.name, description=subject_data.description)
        db.add(subject)
        db.commit()
        db.refresh(subject)
        logger.info(f"Created subject: {subject.name} (ID: {subject.id})")
        return subject

    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating subject: {e}")
        raise ValueError(f"Database error: {str(e)}")
    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating subject: {e}", exc_info=True)
        raise


def get_subject_by_id(db: Session, subject_id: int) -> Subject:
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        logger.warning(f"Subject with id {subject_id} not found")
        raise SubjectNotFound(subject_id)
    return subject


def create_topic(db: Session, topic_data: TopicCreate) -> Topic:
    """Create a new topic under an existing subject"""
    try:
        get_subject_by_id(db, topic_data.subject_id)

        existing = db.query(Topic).filter(
            Topic.name == topic_data.name,
            Topic.subject_id == topic_data.subject_id
        ).first()
        if existing:
            logger.warning(f"Attempt to create duplicate topic: {topic_data.name} for subject_id: {topic_data.subject_id}")
            raise ValueError(f"Topic '{topic_data.name}' already exists for this subject")

        topic = Topic(name=topic_data.name, subject_id=topic_data.subject_id)
        db.add(topic)
        db.commit()
        db.refresh(topic)
        logger.info(f"Created topic: {topic.name} (ID: {topic.id}) for subject_id: {topic.subject_id}")
        return topic

    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating topic: {e}", exc_info=True)
        raise


def link_subject_to_course(db: Session, course_id: int, plan_data: SubjectPlanCreate) -> CourseSubject:
    """
    Attach a subject to a course syllabus. Re-linking the same subject
    overwrites the existing plan instead of adding a second one.
    """
    try:
        get_course_by_id(db, course_id)
        subject = get_subject_by_id(db, plan_data.subject_id)

        sourcing_mode = plan_data.sourcing_mode or infer_sourcing_mode(subject.name)

        plan = db.query(CourseSubject).filter(
            CourseSubject.course_id == course_id,
            CourseSubject.subject_id == subject.id,
        ).first()

        if plan is None:
            plan = CourseSubject(course_id=course_id, subject_id=subject.id)
            db.add(plan)
            logger.info(f"Linking subject {subject.id} ({subject.name}) to course {course_id}")
        else:
            logger.info(f"Updating plan for subject {subject.id} ({subject.name}) in course {course_id}")

        plan.question_count = plan_data.question_count
        plan.marks_per_question = plan_data.marks_per_question
        plan.negative_marks = plan_data.negative_marks
        plan.order_index = plan_data.order_index
        plan.difficulty_config = plan_data.difficulty_config
        plan.sourcing_mode = sourcing_mode

        db.commit()
        db.refresh(plan)
        return plan

    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error linking subject {plan_data.subject_id} to course {course_id}: {e}", exc_info=True)
        raise


def unlink_subject_from_course(db: Session, course_id: int, subject_id: int) -> dict:
    try:
        plan = db.query(CourseSubject).filter(
            CourseSubject.course_id == course_id,
            CourseSubject.subject_id == subject_id,
        ).first()
        if not plan:
            raise ValueError(f"Subject {subject_id} is not linked to course {course_id}")

        db.delete(plan)
        db.commit()
        logger.info(f"Unlinked subject {subject_id} from course {course_id}")
        return {"message": f"Subject {subject_id} removed from course {course_id}"}

    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error unlinking subject {subject_id} from course {course_id}: {e}", exc_info=True)
        raise
