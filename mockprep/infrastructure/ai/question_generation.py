# question_generation.py

from __future__ import annotations

import logging
import re
from typing import Dict, List

from .json_utils import parse_llm_json
from .llm_client import LLMClient


logger = logging.getLogger(__name__)


# LLM Question Generator

class LLMQuestionGenerator:
    """
    Produces batches of exam-style MCQs from source material (news summaries
    for current-affairs papers) using an LLM.
    """

    SYSTEM_PROMPT = (
        'You are an examiner setting a "General Awareness" paper for competitive '
        "government exams (UPSC, SSC, banking)."
    )

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    def generate_questions(self, source_material: str, count: int) -> List[Dict]:
        """
        Returns up to `count` questions, each a dict with question_text,
        options, correct_index and explanation. Items the model got wrong are
        dropped, so the batch may be shorter than requested.
        """
        logger.info(f"Requesting {count} generated questions, source material length={len(source_material)} chars")

        raw_output = self._llm.generate(
            system_prompt=self.SYSTEM_PROMPT,
            user_prompt=self._build_prompt(source_material, count),
        )
        logger.debug(f"LLM response received, length={len(raw_output)} chars")

        questions = self._parse_response(raw_output)[:count]
        if len(questions) < count:
            logger.warning(f"LLM produced {len(questions)} usable questions, {count} requested")
        return questions

    # ---------------------------
    # Prompt Construction
    # ---------------------------

    @staticmethod
    def _build_prompt(source_material: str, count: int) -> str:
        return f"""Generate {count} high-quality multiple-choice questions based *strictly* on the recent news below.
Focus on: Appointments, Awards, Government Schemes, Sports, and Geopolitics.

RECENT NEWS:
{source_material}

QUESTION REQUIREMENTS:
- Exactly 4 options per question, one of them correct
- Do NOT add A), B), C), D) prefixes to options
- Explanation is a plain string of 1-2 sentences

OUTPUT FORMAT (valid JSON, nothing else):
{{
  "questions": [
    {{
      "question_text": "Question stem",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
      "correct_index": 0,
      "explanation": "Why the correct option is right."
    }}
  ]
}}""".strip()

    # ---------------------------
    # Response Parsing & Validation
    # ---------------------------

    def _parse_response(self, raw_output: str) -> List[Dict]:
        data = parse_llm_json(raw_output)

        if isinstance(data, dict):
            # Models drift between key names
            items = data.get("questions") or data.get("quiz") or []
        elif isinstance(data, list):
            items = data
        else:
            raise ValueError(f"Unexpected LLM payload type: {type(data).__name__}")

        questions = []
        for index, item in enumerate(items):
            try:
                questions.append(self._normalise_question(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping generated question #{index}: {e}")
        return questions

    @staticmethod
    def _normalise_question(item: Dict) -> Dict:
        text = item.get("question_text") or item.get("questionText")
        if not text:
            raise ValueError("missing question text")

        options = item.get("options")
        if not isinstance(options, list) or len(options) < 2:
            raise ValueError("at least 2 options required")
        options = [re.sub(r"^[A-D][:\)\.]\s*", "", str(opt).strip()) for opt in options]

        correct_index = item.get("correct_index", item.get("correctIndex"))
        if isinstance(correct_index, bool) or not isinstance(correct_index, int):
            raise ValueError(f"invalid correct_index: {correct_index!r}")
        if not 0 <= correct_index < len(options):
            raise ValueError(f"correct_index {correct_index} out of range")

        explanation = item.get("explanation") or ""
        if not isinstance(explanation, str):
            explanation = str(explanation)

        return {
            "question_text": str(text).strip(),
            "options": options,
            "correct_index": correct_index,
            "explanation": explanation,
        }
