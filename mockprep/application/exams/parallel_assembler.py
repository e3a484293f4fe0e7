from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from mockprep.application.exceptions import SourcingFailure
from mockprep.infrastructure.db.models import SourcingMode
from .plan_resolver import SubjectPlanView
from .question_sources import QuestionSource, ScoredQuestion

logger = logging.getLogger(__name__)


@dataclass
class AssembledExam:
    questions: List[ScoredQuestion] = field(default_factory=list)
    total_marks: float = 0.0
    per_subject: Dict[int, int] = field(default_factory=dict)  # subject_id -> questions sourced

    def link_rows(self) -> List[Dict]:
        return [
            {"question_id": q.question_id, "marks": q.marks, "negative_marks": q.negative_marks}
            for q in self.questions
        ]


class ParallelAssembler:
    """
    Sources every subject of a plan concurrently and flattens the results
    in plan order. One failing subject fails the whole assembly.
    """

    def __init__(self, sources: Mapping[SourcingMode, QuestionSource]):
        self._sources = dict(sources)

    async def assemble(self, plans: Sequence[SubjectPlanView]) -> AssembledExam:
        logger.info(f"Sourcing {len(plans)} subjects in parallel")
        tasks = [asyncio.ensure_future(self._source_subject(plan)) for plan in plans]
        try:
            # gather keeps input order, so results line up with plan order
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        questions = [q for subject_questions in results for q in subject_questions]
        total_marks = math.fsum(q.marks for q in questions)
        per_subject = {plan.subject_id: len(found) for plan, found in zip(plans, results)}

        logger.info(f"Assembled {len(questions)} questions, total_marks={total_marks}")
        return AssembledExam(questions=questions, total_marks=total_marks, per_subject=per_subject)

    async def _source_subject(self, plan: SubjectPlanView) -> List[ScoredQuestion]:
        source = self._sources.get(plan.sourcing_mode)
        if source is None:
            raise SourcingFailure(
                plan.subject_name,
                RuntimeError(f"no question source configured for {plan.sourcing_mode.value} sourcing"),
            )

        try:
            questions = await source.fetch(plan)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Sourcing failed for subject {plan.subject_name}: {e}", exc_info=True)
            raise SourcingFailure(plan.subject_name, e) from e

        # A source must never contribute more than the plan asks for
        return list(questions)[: plan.question_count]
