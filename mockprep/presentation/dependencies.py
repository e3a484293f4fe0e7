from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session, sessionmaker
from typing import Optional
import logging

from mockprep.core.config import settings
from mockprep.application.exams.attempt_submission import AttemptSubmissionService
from mockprep.application.exams.mock_exam_generation import MockExamGenerator
from mockprep.application.exams.parallel_assembler import ParallelAssembler
from mockprep.application.exams.question_sources import build_sources
from mockprep.infrastructure.ai.performance_analysis import LLMPerformanceAnalyzer
from mockprep.infrastructure.ai.question_generation import LLMQuestionGenerator

logger = logging.getLogger(__name__)


def get_session_factory(request: Request) -> sessionmaker:
    return request.app.state.session_factory


def get_db(session_factory: sessionmaker = Depends(get_session_factory)):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    x_user_role: str = Header(default="USER"),
) -> dict:
    """
    Identity is resolved by the upstream auth gateway and forwarded as
    X-User-Id / X-User-Role headers.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return {"user_id": x_user_id, "role": x_user_role.upper()}


def admin_required(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("role") != "ADMIN":
        logger.warning(
            f"Access denied for non-admin user_id: {current_user.get('user_id')}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrative privileges required",
        )
    logger.info(f"Admin access granted for user_id: {current_user.get('user_id')}")
    return current_user


def get_exam_generator(
    request: Request,
    session_factory: sessionmaker = Depends(get_session_factory),
) -> MockExamGenerator:
    llm_client = request.app.state.llm_client
    generator = LLMQuestionGenerator(llm_client) if llm_client is not None else None
    sources = build_sources(
        session_factory,
        generator=generator,
        material_provider=request.app.state.source_material_cache.get,
        retry_attempts=settings.AI_RETRY_ATTEMPTS,
    )
    return MockExamGenerator(
        session_factory,
        ParallelAssembler(sources),
        default_duration_minutes=settings.DEFAULT_EXAM_DURATION_MIN,
        sourcing_timeout=settings.EXAM_GENERATION_TIMEOUT,
    )


def get_attempt_service(
    request: Request,
    session_factory: sessionmaker = Depends(get_session_factory),
) -> AttemptSubmissionService:
    llm_client = request.app.state.llm_client
    analyzer = LLMPerformanceAnalyzer(llm_client) if llm_client is not None else None
    return AttemptSubmissionService(
        session_factory,
        analyzer,
        fallback_feedback=settings.FALLBACK_FEEDBACK,
    )
