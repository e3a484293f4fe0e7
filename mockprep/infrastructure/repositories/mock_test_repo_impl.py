from datetime import datetime
from typing import Dict, List, Sequence
import logging

from sqlalchemy import func, insert
from sqlalchemy.orm import Session, joinedload

from mockprep.application.exceptions import MockTestNotFound
from mockprep.infrastructure.db.models import MockTest, MockTestQuestion, QuestionBankEntry

logger = logging.getLogger(__name__)


class MockTestRepository:
    """
    Persistence for mock tests and their question links.

    The write methods only flush; the caller owns the transaction so that
    draft creation, link attachment and publishing commit together.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------------------------
    # Lifecycle writes
    # ---------------------------

    def create_draft(self, course_id: int, title: str, duration_minutes: int) -> MockTest:
        mock_test = MockTest(
            course_id=course_id,
            title=title,
            duration_minutes=duration_minutes,
            total_marks=0.0,
            is_live=False,
        )
        self.db.add(mock_test)
        self.db.flush()  # get mock_test.id
        logger.debug(f"Draft mock test {mock_test.id} created for course {course_id}")
        return mock_test

    def attach_links(self, mock_test_id: int, rows: Sequence[Dict]) -> int:
        """Single bulk INSERT of every question link of the test."""
        if not rows:
            return 0
        payload = [
            {
                "mock_test_id": mock_test_id,
                "question_id": row["question_id"],
                "marks": row["marks"],
                "negative_marks": row["negative_marks"],
                "position": position,
            }
            for position, row in enumerate(rows)
        ]
        self.db.execute(insert(MockTestQuestion), payload)
        logger.debug(f"Attached {len(payload)} question links to mock test {mock_test_id}")
        return len(payload)

    def publish(self, mock_test: MockTest, total_marks: float) -> MockTest:
        mock_test.total_marks = total_marks
        mock_test.is_live = True
        self.db.flush()
        return mock_test

    def delete_orphan_drafts(self, older_than: datetime) -> int:
        """Remove draft tests created before the cutoff; live tests are never touched."""
        drafts = (
            self.db.query(MockTest)
            .filter(MockTest.is_live.is_(False), MockTest.created_at < older_than)
            .all()
        )
        for draft in drafts:
            self.db.delete(draft)
        self.db.commit()
        logger.info(f"Deleted {len(drafts)} orphan draft mock tests older than {older_than.isoformat()}")
        return len(drafts)

    # ---------------------------
    # Reads
    # ---------------------------

    def get_by_id(self, mock_test_id: int) -> MockTest:
        mock_test = self.db.query(MockTest).filter(MockTest.id == mock_test_id).first()
        if not mock_test:
            logger.warning(f"Mock Test {mock_test_id} not found")
            raise MockTestNotFound(mock_test_id)
        return mock_test

    def get_live_with_questions(self, mock_test_id: int) -> MockTest:
        mock_test = (
            self.db.query(MockTest)
            .options(joinedload(MockTest.questions).joinedload(MockTestQuestion.question))
            .filter(MockTest.id == mock_test_id, MockTest.is_live.is_(True))
            .first()
        )
        if not mock_test:
            logger.warning(f"Live Mock Test {mock_test_id} not found")
            raise MockTestNotFound(mock_test_id)
        return mock_test

    def get_scoring_links(self, mock_test_id: int) -> List[MockTestQuestion]:
        """Links with their question and topic loaded, used to build the grading map."""
        return (
            self.db.query(MockTestQuestion)
            .options(joinedload(MockTestQuestion.question).joinedload(QuestionBankEntry.topic))
            .filter(MockTestQuestion.mock_test_id == mock_test_id)
            .order_by(MockTestQuestion.position)
            .all()
        )

    def list_live_for_course(self, course_id: int) -> List[Dict]:
        question_count = func.count(MockTestQuestion.question_id).label("total_questions")
        rows = (
            self.db.query(
                MockTest.id,
                MockTest.title,
                MockTest.duration_minutes,
                MockTest.total_marks,
                question_count,
            )
            .outerjoin(MockTestQuestion, MockTestQuestion.mock_test_id == MockTest.id)
            .filter(MockTest.course_id == course_id, MockTest.is_live.is_(True))
            .group_by(MockTest.id)
            .order_by(MockTest.created_at.desc(), MockTest.id.desc())
            .all()
        )
        return [
            {
                "id": r.id,
                "title": r.title,
                "duration_minutes": r.duration_minutes,
                "total_marks": r.total_marks,
                "total_questions": r.total_questions,
            }
            for r in rows
        ]
