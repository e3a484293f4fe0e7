import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from mockprep.application.exams.attempt_submission import AttemptSubmissionService
from mockprep.application.exams.grading import SubmittedAnswer
from mockprep.application.exceptions import MockTestNotFound
from mockprep.infrastructure.repositories.attempt_repository import AttemptRepository
from mockprep.infrastructure.repositories.mock_test_repo_impl import MockTestRepository
from mockprep.presentation.dependencies import get_db, get_current_user, get_attempt_service
from mockprep.presentation.schemas.attempt_schema import AttemptHistoryOut, AttemptOut, AttemptSubmit
from mockprep.presentation.schemas.mock_test_schema import (
    MockTestDetailOut,
    MockTestQuestionOut,
    MockTestSummaryOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mock-tests", tags=["Mock Tests"])


# --------------------------------------------------
# 1. Live tests of a course
# --------------------------------------------------
@router.get("/courses/{course_id}", response_model=List[MockTestSummaryOut])
def list_live_mock_tests(
    course_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        logger.info(f"User {user['user_id']} fetching live mock tests for course {course_id}")
        return MockTestRepository(db).list_live_for_course(course_id)
    except Exception as e:
        logger.error(f"Error fetching mock tests for course {course_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


# --------------------------------------------------
# 2. Attempt history of the current user
# --------------------------------------------------
@router.get("/attempts/me", response_model=List[AttemptHistoryOut])
def get_my_results(
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    attempts = AttemptRepository(db).get_user_history(user["user_id"])
    return [
        AttemptHistoryOut(
            id=a.id,
            mock_test_id=a.mock_test_id,
            mock_test_title=a.mock_test.title,
            course_name=a.mock_test.course.name,
            score=a.score,
            total_marks=a.mock_test.total_marks,
            correct_count=a.correct_count,
            wrong_count=a.wrong_count,
            skipped_count=a.skipped_count,
            time_taken=a.time_taken,
            submitted_at=a.submitted_at,
        )
        for a in attempts
    ]


# --------------------------------------------------
# 3. Test paper (no answers)
# --------------------------------------------------
@router.get("/{mock_test_id}", response_model=MockTestDetailOut)
def get_mock_test(
    mock_test_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
):
    try:
        logger.info(f"User {user['user_id']} fetching questions for mock test {mock_test_id}")
        test = MockTestRepository(db).get_live_with_questions(mock_test_id)
    except MockTestNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return MockTestDetailOut(
        id=test.id,
        title=test.title,
        duration_minutes=test.duration_minutes,
        total_marks=test.total_marks,
        questions=[
            MockTestQuestionOut(
                question_id=link.question_id,
                question_text=link.question.question_text,
                options=link.question.options,
                marks=link.marks,
                negative_marks=link.negative_marks,
                position=link.position,
            )
            for link in test.questions
        ],
    )


# --------------------------------------------------
# 4. Submission
# --------------------------------------------------
@router.post(
    "/{mock_test_id}/attempts",
    response_model=AttemptOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attempt(
    mock_test_id: int,
    payload: AttemptSubmit,
    user: dict = Depends(get_current_user),
    service: AttemptSubmissionService = Depends(get_attempt_service),
):
    """
    Grades the submitted answers with negative marking and records the attempt.
    """
    user_id = user["user_id"]
    try:
        logger.info(f"User {user_id} submitting {len(payload.answers)} answers for mock test {mock_test_id}")
        return await service.submit_mock_attempt(
            user_id,
            mock_test_id,
            [
                SubmittedAnswer(
                    question_id=a.question_id,
                    selected_option=a.selected_option,
                    time_taken=a.time_taken,
                )
                for a in payload.answers
            ],
            time_taken=payload.time_taken,
            warning_count=payload.warning_count,
        )
    except MockTestNotFound as e:
        logger.warning(f"Submission for unknown mock test {mock_test_id} by user {user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(
            f"Unexpected error submitting attempt for mock test {mock_test_id} by user {user_id}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )
