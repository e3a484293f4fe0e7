import json
from typing import Dict, List, Optional

import pytest

from mockprep.infrastructure.db.base import Base
from mockprep.infrastructure.db import models  # noqa: F401
from mockprep.infrastructure.db.models import (
    Course,
    CourseSubject,
    Difficulty,
    QuestionBankEntry,
    SourcingMode,
    Subject,
    Topic,
)
from mockprep.infrastructure.db.session import build_engine, build_session_factory


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'mockprep_test.db'}")
    Base.metadata.create_all(bind=engine)
    factory = build_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def add_course(db, name="SSC CGL") -> Course:
    course = Course(name=name)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def add_subject(db, name, question_total=0, topic_name=None) -> Subject:
    """Subject with one topic holding `question_total` bank questions (correct answer always index 0)."""
    subject = Subject(name=name)
    db.add(subject)
    db.flush()
    topic = Topic(name=topic_name or f"{name} basics", subject_id=subject.id)
    db.add(topic)
    db.flush()
    for i in range(question_total):
        db.add(
            QuestionBankEntry(
                topic_id=topic.id,
                question_text=f"{name} question {i + 1}",
                options=["right", "wrong 1", "wrong 2", "wrong 3"],
                correct_index=0,
                difficulty=Difficulty.MEDIUM,
            )
        )
    db.commit()
    db.refresh(subject)
    return subject


def link(db, course, subject, question_count, marks=1.0, negative=0.0, order_index=0,
         mode=SourcingMode.BANK) -> CourseSubject:
    plan = CourseSubject(
        course_id=course.id,
        subject_id=subject.id,
        question_count=question_count,
        marks_per_question=marks,
        negative_marks=negative,
        order_index=order_index,
        sourcing_mode=mode,
    )
    db.add(plan)
    db.commit()
    return plan


def question_ids(db, subject_id) -> List[int]:
    return [
        q.id
        for q in db.query(QuestionBankEntry)
        .join(Topic, QuestionBankEntry.topic_id == Topic.id)
        .filter(Topic.subject_id == subject_id)
        .order_by(QuestionBankEntry.id)
        .all()
    ]


class FakeLLMClient:
    """Returns canned responses in order and records every prompt it saw."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[Dict] = []

    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def generated_payload(count: int, prefix="Who won") -> str:
    return json.dumps(
        {
            "questions": [
                {
                    "question_text": f"{prefix} {i}?",
                    "options": ["A) Alpha", "B) Bravo", "C) Charlie", "D) Delta"],
                    "correct_index": 1,
                    "explanation": "Reported this week.",
                }
                for i in range(count)
            ]
        }
    )


class FakeGenerator:
    """Question generator double: raises the queued errors first, then returns `count` questions."""

    def __init__(self, errors: Optional[List[Exception]] = None, produce: Optional[int] = None):
        self.errors = list(errors or [])
        self.produce = produce
        self.calls = 0

    def generate_questions(self, source_material: str, count: int) -> List[Dict]:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        n = count if self.produce is None else self.produce
        return [
            {
                "question_text": f"Generated question {i}",
                "options": ["a", "b", "c", "d"],
                "correct_index": 2,
                "explanation": "",
            }
            for i in range(n)
        ]


class FakeAnalyzer:
    def __init__(self, result=None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls = []

    def analyze_performance(self, score, total_marks, weak_topics, time_taken):
        self.calls.append((score, total_marks, list(weak_topics), time_taken))
        if self.error is not None:
            raise self.error
        return self.result
