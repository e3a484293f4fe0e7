import json

import pytest

from conftest import FakeLLMClient, generated_payload
from mockprep.application.exceptions import AnalysisFailure
from mockprep.infrastructure.ai.json_utils import extract_json, parse_llm_json
from mockprep.infrastructure.ai.performance_analysis import LLMPerformanceAnalyzer
from mockprep.infrastructure.ai.question_generation import LLMQuestionGenerator


def test_extract_json_from_fenced_block():
    raw = 'Here you go:\n```json\n{"questions": []}\n```\nGood luck!'

    assert json.loads(extract_json(raw)) == {"questions": []}


def test_parse_llm_json_escapes_raw_newlines_in_strings():
    raw = '{"summary": "Line one\nLine two"}'

    assert parse_llm_json(raw) == {"summary": "Line one\nLine two"}


def test_parse_llm_json_rejects_empty_and_garbage():
    with pytest.raises(ValueError):
        parse_llm_json("   ")
    with pytest.raises(ValueError):
        parse_llm_json("I cannot help with that.")


def test_generator_strips_option_prefixes():
    client = FakeLLMClient(generated_payload(2))

    questions = LLMQuestionGenerator(client).generate_questions("- RBI news", 2)

    assert len(questions) == 2
    assert questions[0]["options"] == ["Alpha", "Bravo", "Charlie", "Delta"]
    assert questions[0]["correct_index"] == 1
    assert "- RBI news" in client.calls[0]["user_prompt"]


def test_generator_truncates_to_requested_count():
    questions = LLMQuestionGenerator(FakeLLMClient(generated_payload(6))).generate_questions("material", 4)

    assert len(questions) == 4


def test_generator_drops_malformed_items():
    payload = json.dumps(
        {
            "quiz": [
                {"questionText": "Capital of India?", "options": ["Delhi", "Mumbai"], "correctIndex": 0},
                {"question_text": "No options"},
                {"question_text": "Bad index", "options": ["a", "b"], "correct_index": 5},
            ]
        }
    )

    questions = LLMQuestionGenerator(FakeLLMClient(payload)).generate_questions("material", 3)

    assert [q["question_text"] for q in questions] == ["Capital of India?"]


def test_generator_propagates_malformed_json():
    with pytest.raises(ValueError):
        LLMQuestionGenerator(FakeLLMClient("not json at all")).generate_questions("material", 3)


def test_analyzer_parses_response():
    client = FakeLLMClient(
        json.dumps(
            {
                "summary": "Good attempt.",
                "strengths": ["Polity"],
                "weaknesses": ["Economy"],
                "actionPlan": ["Revise budget terms", "Take a sectional test"],
            }
        )
    )

    analysis = LLMPerformanceAnalyzer(client).analyze_performance(12.5, 20.0, ["Economy"], 600)

    assert analysis.summary == "Good attempt."
    assert analysis.action_plan == "- Revise budget terms\n- Take a sectional test"
    assert "12.5 / 20.0" in client.calls[0]["user_prompt"]
    assert analysis.to_dict()["weaknesses"] == ["Economy"]


def test_analyzer_wraps_client_errors():
    with pytest.raises(AnalysisFailure):
        LLMPerformanceAnalyzer(FakeLLMClient(TimeoutError("timed out"))).analyze_performance(1, 2, [], 10)


def test_analyzer_requires_summary():
    with pytest.raises(AnalysisFailure):
        LLMPerformanceAnalyzer(FakeLLMClient('{"strengths": []}')).analyze_performance(1, 2, [], 10)
