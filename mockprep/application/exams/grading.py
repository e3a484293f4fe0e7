from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class ScoringLink:
    question_id: int
    marks: float
    negative_marks: float
    correct_index: int
    topic_name: Optional[str] = None


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: int
    selected_option: Optional[int] = None
    time_taken: int = 0


@dataclass
class GradingResult:
    score: float
    correct_count: int
    wrong_count: int
    skipped_count: int
    time_taken: int
    weak_topics: List[str] = field(default_factory=list)
    answer_records: List[Dict] = field(default_factory=list)


def grade_answers(links: Sequence[ScoringLink], answers: Iterable[SubmittedAnswer]) -> GradingResult:
    """
    Score a submission under negative marking.

    Answers for questions that are not part of the test are ignored, and
    only the first answer to a question counts.
    Unanswered questions, explicit or missing from the submission, all
    end up in skipped_count = len(links) - (correct + wrong).
    """
    by_question = {link.question_id: link for link in links}

    contributions: List[float] = []
    correct = 0
    wrong = 0
    time_taken = 0
    weak_topics = set()
    records: List[Dict] = []
    answered = set()

    for answer in answers:
        link = by_question.get(answer.question_id)
        if link is None or answer.question_id in answered:
            continue
        answered.add(answer.question_id)

        answer_time = answer.time_taken or 0
        time_taken += answer_time

        if answer.selected_option is None:
            records.append(_record(answer, None, False, answer_time))
            continue

        is_correct = answer.selected_option == link.correct_index
        if is_correct:
            contributions.append(link.marks)
            correct += 1
        else:
            contributions.append(-link.negative_marks)
            wrong += 1
            if link.topic_name:
                weak_topics.add(link.topic_name)

        records.append(_record(answer, answer.selected_option, is_correct, answer_time))

    return GradingResult(
        # fsum is order independent, so permuted submissions score identically
        score=math.fsum(contributions),
        correct_count=correct,
        wrong_count=wrong,
        skipped_count=len(by_question) - (correct + wrong),
        time_taken=time_taken,
        weak_topics=sorted(weak_topics),
        answer_records=records,
    )


def _record(answer: SubmittedAnswer, selected: Optional[int], is_correct: bool, time_taken: int) -> Dict:
    return {
        "question_id": answer.question_id,
        "selected_option": selected,
        "is_correct": is_correct,
        "time_taken": time_taken,
    }
