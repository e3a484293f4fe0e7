from typing import Dict, List
import logging
from sqlalchemy.orm import Session, joinedload
from ..db.models import MockTestAttempt, AttemptAnswer, MockTest

logger = logging.getLogger(__name__)


class AttemptRepository:
    def __init__(self, db: Session):
        self.db = db

    def record_attempt(self, attempt: MockTestAttempt, answers: List[Dict]) -> MockTestAttempt:
        """
        Persist an attempt together with its answer rows in one commit.
        Attempts are append-only: every submission creates a new row.
        """
        try:
            attempt.answers = [
                AttemptAnswer(
                    question_id=a["question_id"],
                    selected_option=a["selected_option"],
                    is_correct=a["is_correct"],
                    time_taken=a["time_taken"],
                )
                for a in answers
            ]
            self.db.add(attempt)
            self.db.commit()
            self.db.refresh(attempt)
            logger.info(
                f"Recorded attempt {attempt.id} for user_id={attempt.user_id}, "
                f"mock_test_id={attempt.mock_test_id} with {len(answers)} answers"
            )
            return attempt
        except Exception as e:
            logger.error(
                f"Error recording attempt for user_id={attempt.user_id}, mock_test_id={attempt.mock_test_id}: {e}",
                exc_info=True,
            )
            self.db.rollback()
            raise

    def get_with_answers(self, attempt_id: int) -> MockTestAttempt:
        return (
            self.db.query(MockTestAttempt)
            .options(joinedload(MockTestAttempt.answers))
            .filter(MockTestAttempt.id == attempt_id)
            .first()
        )

    def get_user_history(self, user_id: int) -> List[MockTestAttempt]:
        return (
            self.db.query(MockTestAttempt)
            .options(joinedload(MockTestAttempt.mock_test).joinedload(MockTest.course))
            .filter(MockTestAttempt.user_id == user_id)
            .order_by(MockTestAttempt.submitted_at.desc(), MockTestAttempt.id.desc())
            .all()
        )
