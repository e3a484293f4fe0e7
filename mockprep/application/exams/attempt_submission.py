from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import sessionmaker

from mockprep.application.exceptions import AnalysisFailure, MockTestNotFound
from mockprep.infrastructure.ai.llm_client import PerformanceAnalyzer
from mockprep.infrastructure.ai.performance_analysis import PerformanceAnalysis
from mockprep.infrastructure.db.models import MockTestAttempt
from mockprep.infrastructure.repositories.attempt_repository import AttemptRepository
from mockprep.infrastructure.repositories.mock_test_repo_impl import MockTestRepository
from .grading import GradingResult, ScoringLink, SubmittedAnswer, grade_answers

logger = logging.getLogger(__name__)


class AttemptSubmissionService:
    """
    Grades a submitted mock attempt, asks for a performance analysis and
    records the attempt. Analysis problems never fail the submission.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        analyzer: Optional[PerformanceAnalyzer] = None,
        *,
        fallback_feedback: str = "Keep practicing!",
    ):
        self._session_factory = session_factory
        self._analyzer = analyzer
        self._fallback_feedback = fallback_feedback

    async def submit_mock_attempt(
        self,
        user_id: int,
        mock_test_id: int,
        answers: Sequence[SubmittedAnswer],
        *,
        time_taken: Optional[int] = None,
        warning_count: int = 0,
    ) -> MockTestAttempt:
        total_marks, links = await asyncio.to_thread(self._load_scoring_links, mock_test_id)

        result = grade_answers(links, answers)
        total_time = time_taken if time_taken is not None else result.time_taken
        logger.info(
            f"Graded attempt of user {user_id} on mock test {mock_test_id}: score={result.score}, "
            f"correct={result.correct_count}, wrong={result.wrong_count}, skipped={result.skipped_count}"
        )

        analysis = await self._analyze(result, total_marks, total_time)
        return await asyncio.to_thread(
            self._record, user_id, mock_test_id, result, total_time, warning_count, analysis
        )

    def _load_scoring_links(self, mock_test_id: int) -> Tuple[float, List[ScoringLink]]:
        with self._session_factory() as db:
            repo = MockTestRepository(db)
            mock_test = repo.get_by_id(mock_test_id)
            if not mock_test.is_live:
                # drafts are invisible to candidates
                raise MockTestNotFound(mock_test_id)

            links = [
                ScoringLink(
                    question_id=link.question_id,
                    marks=link.marks,
                    negative_marks=link.negative_marks,
                    correct_index=link.question.correct_index,
                    topic_name=link.question.topic.name if link.question.topic else None,
                )
                for link in repo.get_scoring_links(mock_test_id)
            ]
            return mock_test.total_marks, links

    async def _analyze(self, result: GradingResult, total_marks: float, time_taken: int) -> Optional[PerformanceAnalysis]:
        if self._analyzer is None:
            logger.warning("No performance analyzer configured, using fallback feedback")
            return None

        try:
            return await asyncio.to_thread(
                self._analyzer.analyze_performance,
                result.score,
                total_marks,
                result.weak_topics,
                time_taken,
            )
        except AnalysisFailure as e:
            logger.warning(f"AI Analysis Error, using fallback feedback: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during performance analysis: {e}", exc_info=True)
        return None

    def _record(
        self,
        user_id: int,
        mock_test_id: int,
        result: GradingResult,
        time_taken: int,
        warning_count: int,
        analysis: Optional[PerformanceAnalysis],
    ) -> MockTestAttempt:
        attempt = MockTestAttempt(
            user_id=user_id,
            mock_test_id=mock_test_id,
            score=result.score,
            correct_count=result.correct_count,
            wrong_count=result.wrong_count,
            skipped_count=result.skipped_count,
            time_taken=time_taken,
            warning_count=warning_count,
            analysis_json=analysis.to_dict() if analysis else {},
            ai_feedback=analysis.summary if analysis else self._fallback_feedback,
        )
        with self._session_factory() as db:
            repo = AttemptRepository(db)
            saved = repo.record_attempt(attempt, result.answer_records)
            # load answers before the session closes
            return repo.get_with_answers(saved.id)
