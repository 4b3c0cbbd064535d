from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from linguaprep.domain.entities import EvaluationResult, QuestionRecord
from linguaprep.domain.errors import ValidationError
from linguaprep.domain.question_types import OBJECTIVE_TYPES, SUBJECTIVE_TYPES, QuestionType
from .subjective import FreeformAnswer, SubjectiveEvaluator

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "t", "yes", "y", "1"}
_FALSE_WORDS = {"false", "f", "no", "n", "0"}


@dataclass(frozen=True)
class EvaluationPolicy:
    # Share of a subjective question's points needed for is_correct
    subjective_pass_ratio: float = 0.6

    def __post_init__(self):
        if not 0.0 <= self.subjective_pass_ratio <= 1.0:
            raise ValueError("subjective_pass_ratio must be within [0, 1]")


# ---------------------------
# Normalization helpers
# ---------------------------

def normalize_text(value: Any) -> str:
    """
    Canonical form for free-text comparison: NFKC (folds full-width forms),
    case-folded, whitespace collapsed.
    """
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"Expected text, got {type(value).__name__}")
    text = unicodedata.normalize("NFKC", str(value))
    return " ".join(text.casefold().split())


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(f"Cannot interpret {value!r} as true/false")


def _alternatives(expected: Any) -> Set[str]:
    """A single accepted answer or a list of accepted alternatives."""
    if isinstance(expected, (list, tuple)):
        return {normalize_text(e) for e in expected}
    return {normalize_text(expected)}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ---------------------------
# Evaluation Engine
# ---------------------------

class EvaluationEngine:
    """
    Grades a single (question, answer) pair at a time.

    Objective types are right or wrong: full points or zero. Subjective types
    are scored by the injected ``SubjectiveEvaluator`` and mapped into
    ``[0, points]``; ``is_correct`` is then a threshold set by the policy.

    The engine never raises for a bad answer. Missing answers come back as
    ``unanswered``, malformed ones as ``invalid`` and evaluator failures as
    ``error``, all with a zero score, so one item cannot sink a batch.
    """

    def __init__(
        self,
        subjective_evaluator: SubjectiveEvaluator,
        policy: Optional[EvaluationPolicy] = None,
    ):
        self._subjective = subjective_evaluator
        self._policy = policy or EvaluationPolicy()
        self._objective_graders: Dict[QuestionType, Callable[[QuestionRecord, Mapping], Optional[bool]]] = {
            QuestionType.MULTIPLE_CHOICE: self._grade_multiple_choice,
            QuestionType.TRUE_FALSE: self._grade_true_false,
            QuestionType.FILL_BLANK: self._grade_fill_blank,
            QuestionType.MATCHING: self._grade_matching,
            QuestionType.AUDIO_QUESTION: self._grade_audio_question,
        }

    # ---------------------------
    # Public API
    # ---------------------------

    def evaluate(
        self,
        question: QuestionRecord,
        payload: Optional[Mapping[str, Any]],
        policy: Optional[EvaluationPolicy] = None,
    ) -> EvaluationResult:
        policy = policy or self._policy
        max_score = float(question.points)

        if payload is None:
            return self._zero(question, "unanswered")
        if not isinstance(payload, Mapping):
            return self._zero(question, "invalid", f"Answer must be an object, got {type(payload).__name__}")

        try:
            if question.type in OBJECTIVE_TYPES:
                correct = self._objective_graders[question.type](question, payload)
                if correct is None:
                    return self._zero(question, "unanswered")
                return EvaluationResult(
                    question_id=question.id,
                    question_type=question.type,
                    is_correct=correct,
                    score=max_score if correct else 0.0,
                    max_score=max_score,
                )
            if question.type in SUBJECTIVE_TYPES:
                return self._evaluate_subjective(question, payload, policy)
            raise ValueError(f"Unsupported question type {question.type}")
        except ValidationError as e:
            logger.info(f"Invalid answer for question_id={question.id}: {e.message}")
            return self._zero(question, "invalid", e.message)
        except Exception as e:
            logger.error(f"Evaluation failed for question_id={question.id}: {e}", exc_info=True)
            return self._zero(question, "error", "Evaluation failed")

    def evaluate_batch(
        self,
        questions: Sequence[QuestionRecord],
        answers: Mapping[int, Mapping[str, Any]],
        policy: Optional[EvaluationPolicy] = None,
    ) -> List[EvaluationResult]:
        """
        Grades every question in order; a question with no entry in
        ``answers`` is graded as unanswered.
        """
        return [self.evaluate(q, answers.get(q.id), policy) for q in questions]

    # ---------------------------
    # Objective graders
    # ---------------------------

    @staticmethod
    def _correct_option_ids(question: QuestionRecord) -> Set[str]:
        option_ids = set(question.option_ids)
        expected = question.correct_answer
        if expected is not None and not isinstance(expected, (dict, list, bool)):
            if str(expected) in option_ids:
                return {str(expected)}
            # Older rows store the correct option's text instead of its id
            wanted = normalize_text(expected)
            by_text = {str(o["id"]) for o in question.options if normalize_text(o.get("text", "")) == wanted}
            if by_text:
                return by_text
        flagged = {str(o["id"]) for o in question.options if o.get("is_correct")}
        if not flagged:
            raise ValueError(f"Question {question.id} has no correct option")
        return flagged

    def _grade_multiple_choice(self, question: QuestionRecord, payload: Mapping) -> Optional[bool]:
        selected = payload.get("selected_option")
        if _is_blank(selected):
            return None
        if not isinstance(selected, (str, int)) or isinstance(selected, bool):
            raise ValidationError("selected_option must be an option id")
        return str(selected).strip() in self._correct_option_ids(question)

    def _grade_true_false(self, question: QuestionRecord, payload: Mapping) -> Optional[bool]:
        given = payload.get("value")
        if given is None:
            given = payload.get("text_answer")
        if given is None:
            given = payload.get("selected_option")
        if _is_blank(given):
            return None
        try:
            expected = _to_bool(question.correct_answer)
        except ValidationError as e:
            raise ValueError(f"Question {question.id} has an unusable answer key: {e.message}")
        return _to_bool(given) == expected

    def _grade_fill_blank(self, question: QuestionRecord, payload: Mapping) -> Optional[bool]:
        expected = question.correct_answer
        if expected is None:
            raise ValueError(f"Question {question.id} has no answer key")
        # Multiple blanks are a list, one entry per blank
        blanks = list(expected) if isinstance(expected, list) else [expected]

        provided = payload.get("answers")
        if provided is None:
            provided = payload.get("text_answer")
        if _is_blank(provided):
            return None

        if isinstance(provided, Mapping):
            try:
                by_index = {int(k): v for k, v in provided.items()}
            except (TypeError, ValueError):
                raise ValidationError("Blank answers must be keyed by blank index")
            values = [by_index.get(i) for i in range(len(blanks))]
        elif isinstance(provided, (list, tuple)):
            values = list(provided)
        elif isinstance(provided, str):
            values = [provided]
        else:
            raise ValidationError("Fill-in-blank answer must be text, a list or an index map")

        if len(values) != len(blanks):
            return False
        return all(
            not _is_blank(v) and normalize_text(v) in _alternatives(b)
            for v, b in zip(values, blanks)
        )

    def _grade_matching(self, question: QuestionRecord, payload: Mapping) -> Optional[bool]:
        expected = question.correct_answer
        if not isinstance(expected, Mapping) or not expected:
            raise ValueError(f"Question {question.id} has no matching key")

        provided = payload.get("matches")
        if provided is None or (isinstance(provided, Mapping) and not provided):
            return None
        if not isinstance(provided, Mapping):
            raise ValidationError("matches must map left items to right items")

        want = {(normalize_text(k), normalize_text(v)) for k, v in expected.items()}
        got = {(normalize_text(k), normalize_text(v)) for k, v in provided.items()}
        return want == got

    def _grade_audio_question(self, question: QuestionRecord, payload: Mapping) -> Optional[bool]:
        # Discrete listening item: option-based when options exist, else short text
        if question.options:
            return self._grade_multiple_choice(question, payload)

        given = payload.get("text_answer")
        if given is None:
            given = payload.get("transcript")
        if _is_blank(given):
            return None
        if question.correct_answer is None:
            raise ValueError(f"Question {question.id} has no answer key")
        return normalize_text(given) in _alternatives(question.correct_answer)

    # ---------------------------
    # Subjective
    # ---------------------------

    @staticmethod
    def _freeform(payload: Mapping) -> FreeformAnswer:
        text = payload.get("text_answer")
        if text is None:
            text = payload.get("content")
        nested = payload.get("answers")
        if text is None and isinstance(nested, Mapping):
            text = "\n".join(str(v) for v in nested.values() if not _is_blank(v))
        if text is not None and not isinstance(text, str):
            raise ValidationError("Free-form answer text must be a string")

        audio_url = payload.get("audio_url")
        transcript = payload.get("transcript")
        if audio_url is not None and not isinstance(audio_url, str):
            raise ValidationError("audio_url must be a string")
        if transcript is not None and not isinstance(transcript, str):
            raise ValidationError("transcript must be a string")

        duration = payload.get("duration")
        if duration is not None:
            try:
                duration = float(duration)
            except (TypeError, ValueError):
                raise ValidationError("duration must be a number")

        return FreeformAnswer(text=text, audio_url=audio_url, transcript=transcript, duration=duration)

    def _evaluate_subjective(
        self,
        question: QuestionRecord,
        payload: Mapping,
        policy: EvaluationPolicy,
    ) -> EvaluationResult:
        answer = self._freeform(payload)
        if answer.is_empty():
            return self._zero(question, "unanswered")

        report = self._subjective.evaluate_subjective(question, answer)
        if report.scale_max <= 0:
            raise ValueError("Evaluator returned a non-positive scale")

        max_score = float(question.points)
        ratio = min(max(report.overall_score / report.scale_max, 0.0), 1.0)
        score = round(ratio * max_score, 4)
        return EvaluationResult(
            question_id=question.id,
            question_type=question.type,
            is_correct=score >= policy.subjective_pass_ratio * max_score,
            score=score,
            max_score=max_score,
            sub_scores=dict(report.sub_scores),
        )

    @staticmethod
    def _zero(question: QuestionRecord, status: str, error: Optional[str] = None) -> EvaluationResult:
        return EvaluationResult(
            question_id=question.id,
            question_type=question.type,
            is_correct=False,
            score=0.0,
            max_score=float(question.points),
            status=status,
            error=error,
        )
