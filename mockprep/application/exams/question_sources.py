"""
Question sources: the two ways a subject's share of a mock exam is filled.

Both variants run their blocking work (database sessions, the synchronous LLM
client) on worker threads, and each thread opens its own session from the
session factory.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import sessionmaker
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from mockprep.infrastructure.ai.llm_client import QuestionGenerator
from mockprep.infrastructure.db.models import QuestionBankEntry, Difficulty, SourcingMode
from mockprep.infrastructure.repositories.question_bank_repository import QuestionBankRepository
from mockprep.infrastructure.repositories.source_article_repository import SourceArticleRepository
from .plan_resolver import SubjectPlanView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredQuestion:
    question_id: int
    marks: float
    negative_marks: float


def _score(question_id: int, plan: SubjectPlanView) -> ScoredQuestion:
    return ScoredQuestion(
        question_id=question_id,
        marks=plan.marks_per_question,
        negative_marks=plan.negative_marks,
    )


class QuestionSource(Protocol):
    async def fetch(self, plan: SubjectPlanView) -> List[ScoredQuestion]:
        """Produce at most plan.question_count scored questions for the subject."""
        ...


# ---------------------------
# Bank sampling
# ---------------------------

class BankSamplingSource:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def fetch(self, plan: SubjectPlanView) -> List[ScoredQuestion]:
        question_ids = await asyncio.to_thread(self._sample_ids, plan)
        return [_score(qid, plan) for qid in question_ids]

    def _sample_ids(self, plan: SubjectPlanView) -> List[int]:
        with self._session_factory() as db:
            entries = QuestionBankRepository(db).sample_for_subject(plan.subject_id, plan.question_count)
            ids = [entry.id for entry in entries]

        if len(ids) < plan.question_count:
            logger.warning(
                f"[ExamGen] Not enough questions for {plan.subject_name} "
                f"(Found {len(ids)}, Needed {plan.question_count})."
            )
        return ids


# ---------------------------
# Generative sourcing
# ---------------------------

def is_transient_ai_error(exc: BaseException) -> bool:
    """Rate limits, server errors and network failures are worth another try."""
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    return isinstance(status, int) and (status == 429 or status >= 500)


class ArticleMaterialLoader:
    """Formats the latest stored articles of a category as prompt material."""

    def __init__(self, session_factory: sessionmaker, limit: int = 10):
        self._session_factory = session_factory
        self._limit = limit

    def __call__(self, category: str) -> str:
        with self._session_factory() as db:
            articles = SourceArticleRepository(db).get_recent(category, self._limit)
            lines = [f"- {a.title}: {a.description or ''}".rstrip() for a in articles]

        if not lines:
            logger.warning(f"No source articles stored for category '{category}'")
            return f"- Recent national and international developments relevant to {category}"
        return "\n".join(lines)


class GenerativeSource:
    def __init__(
        self,
        session_factory: sessionmaker,
        generator: QuestionGenerator,
        material_provider: Callable[[str], str],
        *,
        retry_attempts: int = 3,
        retry_wait=None,
    ):
        self._session_factory = session_factory
        self._generator = generator
        self._material_provider = material_provider
        self._retry_attempts = retry_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    async def fetch(self, plan: SubjectPlanView) -> List[ScoredQuestion]:
        logger.info(f"Generating fresh questions for {plan.subject_name}...")
        material = await asyncio.to_thread(self._material_provider, plan.subject_name)

        generated = (await self._generate(material, plan.question_count))[: plan.question_count]
        if len(generated) < plan.question_count:
            logger.warning(
                f"[ExamGen] Generator returned {len(generated)} of {plan.question_count} "
                f"questions for {plan.subject_name}; accepting the shortfall."
            )
        if not generated:
            return []

        topic_id = await asyncio.to_thread(self._default_topic_id, plan)
        saved_ids = await asyncio.gather(
            *(asyncio.to_thread(self._persist, topic_id, question) for question in generated)
        )
        return [_score(qid, plan) for qid in saved_ids]

    async def _generate(self, material: str, count: int) -> List[Dict]:
        generated: List[Dict] = []
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception(is_transient_ai_error),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(f"AI busy, retrying question generation (attempt {attempt.retry_state.attempt_number})")
                generated = await asyncio.to_thread(self._generator.generate_questions, material, count)
        return generated

    def _default_topic_id(self, plan: SubjectPlanView) -> int:
        with self._session_factory() as db:
            return QuestionBankRepository(db).get_or_create_default_topic(plan.subject_id, plan.subject_name).id

    def _persist(self, topic_id: int, question: Dict) -> int:
        with self._session_factory() as db:
            entry = QuestionBankRepository(db).save_question(
                QuestionBankEntry(
                    topic_id=topic_id,
                    question_text=question["question_text"],
                    options=question["options"],
                    correct_index=question["correct_index"],
                    explanation=question.get("explanation"),
                    difficulty=Difficulty.MEDIUM,
                )
            )
            return entry.id


def build_sources(
    session_factory: sessionmaker,
    generator: Optional[QuestionGenerator] = None,
    material_provider: Optional[Callable[[str], str]] = None,
    retry_attempts: int = 3,
) -> Dict:
    """Source per sourcing mode; generative sourcing is only available with a generator."""
    sources = {SourcingMode.BANK: BankSamplingSource(session_factory)}
    if generator is not None:
        sources[SourcingMode.GENERATIVE] = GenerativeSource(
            session_factory,
            generator,
            material_provider or ArticleMaterialLoader(session_factory),
            retry_attempts=retry_attempts,
        )
    return sources
