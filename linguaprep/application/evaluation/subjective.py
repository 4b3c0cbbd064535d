"""
Adapters for the external subjective-answer evaluator.

Speaking, writing and free-response comprehension answers are not graded by
the engine itself. An evaluator returns an overall score on its own scale
(``scale_max``, e.g. the 9-band IELTS scale) plus named sub-scores; the
engine maps that onto the question's points.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from tenacity import retry, stop_after_attempt, wait_exponential

from linguaprep.domain.entities import QuestionRecord
from linguaprep.domain.question_types import SPEAKING_TYPES, QuestionType

logger = logging.getLogger(__name__)

BAND_SCALE_MAX = 9.0


@dataclass(frozen=True)
class FreeformAnswer:
    text: Optional[str] = None
    audio_url: Optional[str] = None
    transcript: Optional[str] = None
    duration: Optional[float] = None

    def is_empty(self) -> bool:
        return not any(
            [
                self.text and self.text.strip(),
                self.audio_url,
                self.transcript and self.transcript.strip(),
            ]
        )

    def content(self) -> str:
        return (self.text or self.transcript or "").strip()


@dataclass
class SubjectiveScore:
    overall_score: float
    scale_max: float = BAND_SCALE_MAX
    sub_scores: Dict[str, float] = field(default_factory=dict)


class SubjectiveEvaluator(Protocol):
    def evaluate_subjective(self, question: QuestionRecord, answer: FreeformAnswer) -> SubjectiveScore:
        ...


class LLMClient(Protocol):
    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        """
        Generates a response from the LLM based on system and user prompts.
        """
        ...


class MockSubjectiveEvaluator:
    """
    Stand-in until a real rubric service exists. Returns fixed band values
    per question family so results are reproducible.
    """

    SPEAKING = {
        "fluency": 8.5,
        "pronunciation": 7.5,
        "lexical_resource": 8.0,
        "grammatical_range": 7.0,
    }
    WRITING = {
        "task_achievement": 7.5,
        "coherence_and_cohesion": 8.0,
        "lexical_resource": 8.5,
        "grammatical_range_and_accuracy": 7.0,
    }
    COMPREHENSION = {
        "accuracy": 7.0,
        "completeness": 7.0,
    }

    def evaluate_subjective(self, question: QuestionRecord, answer: FreeformAnswer) -> SubjectiveScore:
        if question.type in SPEAKING_TYPES:
            subs, overall = self.SPEAKING, 7.8
        elif question.type == QuestionType.WRITING:
            subs, overall = self.WRITING, 7.8
        else:
            subs, overall = self.COMPREHENSION, 7.0
        logger.debug(f"Mock subjective evaluation for question_id={question.id}: {overall}")
        return SubjectiveScore(overall_score=overall, scale_max=BAND_SCALE_MAX, sub_scores=dict(subs))


class LLMSubjectiveEvaluator:
    """
    Asks an LLM for a band report on a free-form answer.
    Transport errors are retried; a malformed report raises ``ValueError``.
    """

    SYSTEM_PROMPT = "You are a certified language examiner. Reply with JSON only."

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    def evaluate_subjective(self, question: QuestionRecord, answer: FreeformAnswer) -> SubjectiveScore:
        logger.info(f"Requesting LLM evaluation for question_id={question.id}, type={question.type.value}")
        raw_output = self._generate(self._build_prompt(question, answer))
        return self._parse_response(raw_output, question_id=question.id)

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=0.5, max=4), reraise=True)
    def _generate(self, prompt: str) -> str:
        return self._llm.generate(system_prompt=self.SYSTEM_PROMPT, user_prompt=prompt)

    @staticmethod
    def _build_prompt(question: QuestionRecord, answer: FreeformAnswer) -> str:
        if question.type in SPEAKING_TYPES:
            criteria = "fluency, pronunciation, lexical_resource, grammatical_range"
            medium = "spoken response transcript"
        elif question.type == QuestionType.WRITING:
            criteria = "task_achievement, coherence_and_cohesion, lexical_resource, grammatical_range_and_accuracy"
            medium = "written response"
        else:
            criteria = "accuracy, completeness"
            medium = "free-form comprehension answer"

        return f"""Rate the candidate's {medium} on a 0-9 band scale.

TASK ({question.type.value}):
{question.prompt}

CANDIDATE ANSWER:
{answer.content() or "(audio only, no transcript)"}

Score each criterion: {criteria}.

OUTPUT FORMAT (valid JSON, nothing else):
{{"overall": <number 0-9>, "criteria": {{"<criterion>": <number 0-9>}}}}""".strip()

    @staticmethod
    def _extract_json(text: str) -> str:
        if "```" in text:
            for part in text.split("```")[1:]:
                cleaned = part.replace("json", "", 1).strip()
                if cleaned.startswith("{"):
                    return cleaned
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            return text[start : end + 1]
        return text.strip()

    def _parse_response(self, raw_output: str, *, question_id: int) -> SubjectiveScore:
        try:
            data = json.loads(self._extract_json(raw_output))
        except json.JSONDecodeError as exc:
            logger.error(
                f"JSON parsing failed for question_id={question_id}: {exc}",
                extra={"raw_output_preview": raw_output[:500]},
            )
            raise ValueError(f"Evaluator returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict) or "overall" not in data:
            raise ValueError("Evaluator response missing 'overall'")

        overall = float(data["overall"])
        if not 0.0 <= overall <= BAND_SCALE_MAX:
            raise ValueError(f"Overall band {overall} outside 0-{BAND_SCALE_MAX:g}")

        criteria = data.get("criteria") or {}
        sub_scores = {str(k): float(v) for k, v in criteria.items() if isinstance(v, (int, float))}
        return SubjectiveScore(overall_score=overall, scale_max=BAND_SCALE_MAX, sub_scores=sub_scores)
