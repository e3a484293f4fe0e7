from __future__ import annotations

import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List

from mockprep.application.exceptions import AnalysisFailure
from .json_utils import parse_llm_json
from .llm_client import LLMClient

logger = logging.getLogger(__name__)


@dataclass
class PerformanceAnalysis:
    summary: str
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    action_plan: str = ""

    def to_dict(self) -> Dict:
        return asdict(self)


class LLMPerformanceAnalyzer:
    """Turns a graded attempt into a short mentor-style diagnosis."""

    SYSTEM_PROMPT = "You are a senior exam mentor for SSC/UPSC aspirants."

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    def analyze_performance(
        self,
        score: float,
        total_marks: float,
        weak_topics: List[str],
        time_taken: int,
    ) -> PerformanceAnalysis:
        prompt = f"""Analyze the student's mock test performance.

Inputs:
- Score: {score} / {total_marks}
- Weak Topics: {", ".join(weak_topics) if weak_topics else "None"}
- Time Management: {time_taken} seconds total.

Output JSON format:
{{
  "summary": "Brief 2-line summary of performance.",
  "strengths": ["List of inferred strengths"],
  "weaknesses": ["List of weak areas"],
  "action_plan": "3 bullet points on what to study next."
}}"""

        try:
            raw_output = self._llm.generate(system_prompt=self.SYSTEM_PROMPT, user_prompt=prompt)
            data = parse_llm_json(raw_output)
        except Exception as e:
            raise AnalysisFailure(f"Performance analysis call failed: {e}") from e

        return self._to_analysis(data)

    @staticmethod
    def _to_analysis(data) -> PerformanceAnalysis:
        if not isinstance(data, dict) or not isinstance(data.get("summary"), str) or not data["summary"].strip():
            raise AnalysisFailure("Performance analysis is missing a summary")

        action_plan = data.get("action_plan", data.get("actionPlan", ""))
        if isinstance(action_plan, list):
            action_plan = "\n".join(f"- {step}" for step in action_plan)

        return PerformanceAnalysis(
            summary=data["summary"].strip(),
            strengths=[str(s) for s in data.get("strengths") or []],
            weaknesses=[str(w) for w in data.get("weaknesses") or []],
            action_plan=str(action_plan),
        )
