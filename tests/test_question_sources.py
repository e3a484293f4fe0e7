import asyncio

import pytest
from tenacity import wait_none

from conftest import FakeGenerator, add_subject
from mockprep.application.exams.plan_resolver import SubjectPlanView
from mockprep.application.exams.question_sources import (
    ArticleMaterialLoader,
    BankSamplingSource,
    GenerativeSource,
    build_sources,
    is_transient_ai_error,
)
from mockprep.infrastructure.db.models import QuestionBankEntry, SourceArticle, SourcingMode, Topic
from mockprep.infrastructure.repositories.course_repo_impl import infer_sourcing_mode


def _plan(subject, count, marks=1.0, negative=0.25, mode=SourcingMode.BANK):
    return SubjectPlanView(
        course_id=1,
        subject_id=subject.id,
        subject_name=subject.name,
        question_count=count,
        marks_per_question=marks,
        negative_marks=negative,
        order_index=0,
        sourcing_mode=mode,
    )


class RateLimited(Exception):
    status_code = 429


def _generative(session_factory, generator, attempts=3):
    return GenerativeSource(
        session_factory,
        generator,
        lambda category: "- RBI keeps repo rate unchanged",
        retry_attempts=attempts,
        retry_wait=wait_none(),
    )


def test_bank_sampling_is_capped_by_plan(db, session_factory):
    subject = add_subject(db, "Reasoning", question_total=6)

    found = asyncio.run(BankSamplingSource(session_factory).fetch(_plan(subject, 4, marks=2.0)))

    assert len(found) == 4
    assert all(q.marks == 2.0 and q.negative_marks == 0.25 for q in found)


def test_bank_sampling_only_returns_subject_questions(db, session_factory):
    subject = add_subject(db, "Reasoning", question_total=2)
    add_subject(db, "English", question_total=5)

    found = asyncio.run(BankSamplingSource(session_factory).fetch(_plan(subject, 5)))

    assert len(found) == 2


def test_generative_shortfall_is_accepted(db, session_factory):
    subject = add_subject(db, "Current Affairs")
    generator = FakeGenerator(produce=3)

    found = asyncio.run(_generative(session_factory, generator).fetch(_plan(subject, 5, mode=SourcingMode.GENERATIVE)))

    assert len(found) == 3
    assert sum(q.marks for q in found) == 3.0
    stored = db.query(QuestionBankEntry).filter(QuestionBankEntry.id.in_([q.question_id for q in found])).all()
    assert len(stored) == 3
    assert {q.topic.subject_id for q in stored} == {subject.id}


def test_generated_questions_get_a_topic_when_subject_has_none(db, session_factory):
    subject = add_subject(db, "News")
    db.query(Topic).filter(Topic.subject_id == subject.id).delete()
    db.commit()

    found = asyncio.run(_generative(session_factory, FakeGenerator()).fetch(_plan(subject, 2, mode=SourcingMode.GENERATIVE)))

    topic = db.query(Topic).filter(Topic.subject_id == subject.id).one()
    assert topic.name == "News"
    assert len(found) == 2


def test_transient_errors_are_retried(db, session_factory):
    subject = add_subject(db, "Current Affairs")
    generator = FakeGenerator(errors=[RateLimited("429 Too Many Requests"), TimeoutError("slow")])

    found = asyncio.run(_generative(session_factory, generator).fetch(_plan(subject, 2, mode=SourcingMode.GENERATIVE)))

    assert generator.calls == 3
    assert len(found) == 2


def test_retries_stop_after_configured_attempts(db, session_factory):
    subject = add_subject(db, "Current Affairs")
    generator = FakeGenerator(errors=[ConnectionError("down")] * 5)

    with pytest.raises(ConnectionError):
        asyncio.run(_generative(session_factory, generator, attempts=2).fetch(_plan(subject, 2, mode=SourcingMode.GENERATIVE)))

    assert generator.calls == 2


def test_permanent_errors_are_not_retried(db, session_factory):
    subject = add_subject(db, "Current Affairs")
    generator = FakeGenerator(errors=[ValueError("LLM returned malformed JSON")])

    with pytest.raises(ValueError):
        asyncio.run(_generative(session_factory, generator).fetch(_plan(subject, 2, mode=SourcingMode.GENERATIVE)))

    assert generator.calls == 1


def test_is_transient_ai_error():
    class ServerError(Exception):
        def __init__(self, status):
            self.response = type("Response", (), {"status_code": status})()

    assert is_transient_ai_error(RateLimited())
    assert is_transient_ai_error(ServerError(503))
    assert is_transient_ai_error(TimeoutError())
    assert not is_transient_ai_error(ServerError(400))
    assert not is_transient_ai_error(ValueError("bad json"))


def test_article_loader_formats_latest_articles(db, session_factory):
    db.add_all([
        SourceArticle(category="Current Affairs", title="Old", description="stale"),
        SourceArticle(category="Current Affairs", title="Budget 2026", description="Fiscal deficit target set"),
        SourceArticle(category="Sports", title="Cricket", description="ignored"),
    ])
    db.commit()

    material = ArticleMaterialLoader(session_factory, limit=1)("Current Affairs")

    assert material.count("\n") == 0
    assert "Cricket" not in material


def test_article_loader_ignores_category_case(db, session_factory):
    db.add(SourceArticle(category="Current Affairs", title="Budget 2026", description="Fiscal deficit target set"))
    db.commit()

    assert "Budget 2026" in ArticleMaterialLoader(session_factory)("current affairs")
    assert "Budget 2026" in ArticleMaterialLoader(session_factory)("CURRENT AFFAIRS")


def test_article_loader_falls_back_without_articles(session_factory):
    material = ArticleMaterialLoader(session_factory)("Current Affairs")

    assert "Current Affairs" in material


def test_build_sources_without_generator_is_bank_only(session_factory):
    sources = build_sources(session_factory)

    assert set(sources) == {SourcingMode.BANK}
    assert set(build_sources(session_factory, generator=FakeGenerator())) == {SourcingMode.BANK, SourcingMode.GENERATIVE}


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Current Affairs", SourcingMode.GENERATIVE),
        ("Daily news digest", SourcingMode.GENERATIVE),
        ("Quantitative Aptitude", SourcingMode.BANK),
    ],
)
def test_infer_sourcing_mode(name, expected):
    assert infer_sourcing_mode(name) == expected
