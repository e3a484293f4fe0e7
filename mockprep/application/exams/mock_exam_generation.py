"""
Mock test generation: resolve the course plan, source every subject in
parallel, then create, fill and publish the test.

The test row only comes into existence once sourcing has fully succeeded:
draft creation, the bulk link insert and the draft -> live flip share a
single transaction, so a failed generation leaves nothing behind. The
generation timeout only bounds sourcing; once sourcing is done the test is
always created and returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from mockprep.application.exceptions import NoQuestionsAvailable, NoTopicsConfigured
from mockprep.infrastructure.db.models import MockTest
from mockprep.infrastructure.repositories.mock_test_repo_impl import MockTestRepository
from .parallel_assembler import AssembledExam, ParallelAssembler
from .plan_resolver import CoursePlan, resolve_subject_plans

logger = logging.getLogger(__name__)


class MockExamGenerator:
    def __init__(
        self,
        session_factory: sessionmaker,
        assembler: ParallelAssembler,
        *,
        default_duration_minutes: int = 60,
        sourcing_timeout: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._assembler = assembler
        self._default_duration = default_duration_minutes
        self._sourcing_timeout = sourcing_timeout

    async def generate_mock_exam(
        self,
        course_id: int,
        title: Optional[str] = None,
        subject_id: Optional[int] = None,
    ) -> MockTest:
        logger.info(f"Generating mock exam for course {course_id} (subject filter: {subject_id})")

        plan = await asyncio.to_thread(self._resolve_plan, course_id, subject_id)
        if not plan.subjects:
            logger.warning(f"Course {course_id} has no subjects configured")
            raise NoTopicsConfigured(course_id)

        try:
            assembled = await asyncio.wait_for(
                self._assembler.assemble(plan.subjects), timeout=self._sourcing_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Question sourcing for course {course_id} timed out after {self._sourcing_timeout}s")
            raise
        if not assembled.questions:
            logger.warning(f"No questions could be sourced for course {course_id}")
            raise NoQuestionsAvailable(course_id)

        exam_title = title or f"{plan.course_name} - AI Generated Mock"
        # committed even when the caller is cancelled
        return await asyncio.shield(asyncio.to_thread(self._create_live_test, plan, exam_title, assembled))

    def _resolve_plan(self, course_id: int, subject_id: Optional[int]) -> CoursePlan:
        with self._session_factory() as db:
            return resolve_subject_plans(db, course_id, subject_id)

    def _create_live_test(self, plan: CoursePlan, title: str, assembled: AssembledExam) -> MockTest:
        with self._session_factory() as db:
            repo = MockTestRepository(db)
            try:
                mock_test = repo.create_draft(plan.course_id, title, self._default_duration)
                repo.attach_links(mock_test.id, assembled.link_rows())
                repo.publish(mock_test, assembled.total_marks)
                db.commit()
            except Exception as e:
                logger.error(f"Error creating mock test for course {plan.course_id}: {e}", exc_info=True)
                db.rollback()
                raise

            db.refresh(mock_test)
            logger.info(
                f"Mock Test {mock_test.id} is live with {len(mock_test.questions)} questions, "
                f"total_marks={mock_test.total_marks}"
            )
            return mock_test
