import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mockprep.application.exams.mock_exam_generation import MockExamGenerator
from mockprep.application.exams.plan_resolver import resolve_subject_plans
from mockprep.application.exceptions import (
    CourseNotFound,
    SourcingFailure,
    SubjectNotFound,
    TopicNotFound,
)
from mockprep.infrastructure.repositories.course_repo_impl import (
    create_course,
    create_subject,
    create_topic,
    get_course_by_id,
    get_subject_by_id,
    link_subject_to_course,
    unlink_subject_from_course,
)
from mockprep.infrastructure.repositories.mock_test_repo_impl import MockTestRepository
from mockprep.infrastructure.repositories.question_bank_repository import QuestionBankRepository, create_question
from mockprep.presentation.dependencies import get_db, admin_required, get_exam_generator
from mockprep.presentation.schemas.course_schema import CourseCreate, CourseOut, SubjectPlanCreate, SubjectPlanOut
from mockprep.presentation.schemas.mock_test_schema import MockExamGenerate, MockTestOut, OrphanSweepResponse
from mockprep.presentation.schemas.question_schema import QuestionCreate, QuestionOut
from mockprep.presentation.schemas.subject_schema import SubjectCreate, SubjectOut, TopicCreate, TopicOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# --------------------------------------------------
# Syllabus
# --------------------------------------------------
@router.post("/courses", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def add_course(data: CourseCreate, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        course = create_course(db, data)
        return CourseOut(id=course.id, name=course.name, description=course.description, subjects=[])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/courses/{course_id}", response_model=CourseOut)
def get_course(course_id: int, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        course = get_course_by_id(db, course_id)
        plan = resolve_subject_plans(db, course_id)
    except CourseNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return CourseOut(
        id=course.id,
        name=course.name,
        description=course.description,
        subjects=[SubjectPlanOut.model_validate(s) for s in plan.subjects],
    )


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def add_subject(data: SubjectCreate, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        return create_subject(db, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/topics", response_model=TopicOut, status_code=status.HTTP_201_CREATED)
def add_topic(data: TopicCreate, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        return create_topic(db, data)
    except SubjectNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/courses/{course_id}/subjects", response_model=SubjectPlanOut)
def link_subject(
    course_id: int,
    data: SubjectPlanCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        plan = link_subject_to_course(db, course_id, data)
        return SubjectPlanOut(
            subject_id=plan.subject_id,
            subject_name=plan.subject.name,
            question_count=plan.question_count,
            marks_per_question=plan.marks_per_question,
            negative_marks=plan.negative_marks,
            order_index=plan.order_index,
            difficulty_config=plan.difficulty_config,
            sourcing_mode=plan.sourcing_mode,
        )
    except (CourseNotFound, SubjectNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/courses/{course_id}/subjects/{subject_id}")
def unlink_subject(
    course_id: int,
    subject_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        return unlink_subject_from_course(db, course_id, subject_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --------------------------------------------------
# Question bank
# --------------------------------------------------
@router.post("/questions", response_model=QuestionOut, status_code=status.HTTP_201_CREATED)
def add_question(data: QuestionCreate, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        logger.info(f"Admin {admin['user_id']} is adding a bank question to topic {data.topic_id}")
        return create_question(db, data)
    except TopicNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error adding question by admin {admin['user_id']}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/subjects/{subject_id}/questions", response_model=List[QuestionOut])
def list_subject_questions(subject_id: int, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        get_subject_by_id(db, subject_id)
    except SubjectNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return QuestionBankRepository(db).list_for_subject(subject_id)


# --------------------------------------------------
# Mock test generation
# --------------------------------------------------
@router.post(
    "/courses/{course_id}/mock-tests",
    response_model=MockTestOut,
    status_code=status.HTTP_201_CREATED,
)
async def generate_mock_test(
    course_id: int,
    data: MockExamGenerate,
    admin: dict = Depends(admin_required),
    generator: MockExamGenerator = Depends(get_exam_generator),
):
    """
    Builds a full (or sectional) mock test for the course and publishes it.
    Question sourcing is bounded by EXAM_GENERATION_TIMEOUT (504 on expiry).
    """
    logger.info(f"Admin {admin['user_id']} generating mock test for course {course_id}")
    try:
        mock_test = await generator.generate_mock_exam(course_id, data.title, data.subject_id)
    except asyncio.TimeoutError:
        logger.error(f"Mock test generation timeout for course {course_id}")
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="Mock test generation is taking longer than expected. Please try again in a moment.",
        )
    except CourseNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        logger.warning(f"Mock test generation rejected for course {course_id}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SourcingFailure as e:
        logger.error(f"Mock test generation failed for course {course_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error generating mock test for course {course_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )

    return MockTestOut(
        id=mock_test.id,
        course_id=mock_test.course_id,
        title=mock_test.title,
        duration_minutes=mock_test.duration_minutes,
        total_marks=mock_test.total_marks,
        is_live=mock_test.is_live,
        total_questions=len(mock_test.questions),
    )


@router.delete("/mock-tests/drafts", response_model=OrphanSweepResponse)
def sweep_orphan_drafts(
    older_than_hours: int = Query(default=24, ge=0),
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    cutoff = datetime.now(timezone.utc) - timedelta(hours=older_than_hours)
    deleted = MockTestRepository(db).delete_orphan_drafts(cutoff)
    return OrphanSweepResponse(deleted=deleted)
