from typing import Dict, List, Protocol


class LLMClient(Protocol):
    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        """Single chat turn: system prompt + user prompt in, raw model text out."""
        ...


class QuestionGenerator(Protocol):
    def generate_questions(self, source_material: str, count: int) -> List[Dict]:
        ...


class PerformanceAnalyzer(Protocol):
    # returns a PerformanceAnalysis, raises AnalysisFailure
    def analyze_performance(self, score: float, total_marks: float, weak_topics: List[str], time_taken: int):
        ...
