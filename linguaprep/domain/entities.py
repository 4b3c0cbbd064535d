from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .question_types import QuestionType, TestType


# ---------------------------
# Catalog records
# ---------------------------

@dataclass(frozen=True)
class QuestionRecord:
    """
    Read-only view of a persisted question.

    ``correct_answer`` never leaves the service: ``public_view`` is the only
    shape handed to clients.
    """

    id: int
    type: QuestionType
    prompt: str
    points: float = 1.0
    order_index: int = 0
    options: List[Dict[str, Any]] = field(default_factory=list)
    correct_answer: Any = None
    explanation: Optional[str] = None
    audio_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    test_id: Optional[int] = None
    language: Optional[str] = None
    module: Optional[str] = None
    section: Optional[str] = None
    standard_section: Optional[str] = None
    difficulty: Optional[str] = None

    @property
    def option_ids(self) -> List[str]:
        return [str(o["id"]) for o in self.options]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "points": self.points,
            "order_index": self.order_index,
            "options": [dict(o) for o in self.options],
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "audio_url": self.audio_url,
            "image_url": self.image_url,
            "video_url": self.video_url,
            "test_id": self.test_id,
            "language": self.language,
            "module": self.module,
            "section": self.section,
            "standard_section": self.standard_section,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionRecord":
        return cls(
            id=int(data["id"]),
            type=QuestionType(data["type"]),
            prompt=data["prompt"],
            points=float(data.get("points", 1.0)),
            order_index=int(data.get("order_index", 0)),
            options=[dict(o) for o in data.get("options") or []],
            correct_answer=data.get("correct_answer"),
            explanation=data.get("explanation"),
            audio_url=data.get("audio_url"),
            image_url=data.get("image_url"),
            video_url=data.get("video_url"),
            test_id=data.get("test_id"),
            language=data.get("language"),
            module=data.get("module"),
            section=data.get("section"),
            standard_section=data.get("standard_section"),
            difficulty=data.get("difficulty"),
        )

    def public_view(self, option_order: Optional[List[str]] = None) -> Dict[str, Any]:
        """Client-facing shape: no correct answer, no per-option correctness flag."""
        options = [
            {"id": str(o["id"]), "text": o.get("text") or ""} for o in self.options
        ]
        if option_order:
            by_id = {o["id"]: o for o in options}
            ordered = [by_id[oid] for oid in option_order if oid in by_id]
            # Options added after the snapshot keep their stored order at the end
            seen = {o["id"] for o in ordered}
            options = ordered + [o for o in options if o["id"] not in seen]

        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "points": self.points,
            "order_index": self.order_index,
            "options": options,
            "audio_url": self.audio_url,
            "image_url": self.image_url,
            "video_url": self.video_url,
            "language": self.language,
            "module": self.module,
            "section": self.section,
            "standard_section": self.standard_section,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class TestRecord:
    __test__ = False

    id: int
    title: str
    type: TestType = TestType.PRACTICE
    duration: int = 0
    passing_score: float = 60.0
    questions_count: int = 0
    shuffle_questions: bool = False
    shuffle_options: bool = False
    allow_retake: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "duration": self.duration,
            "passing_score": self.passing_score,
            "questions_count": self.questions_count,
            "shuffle_questions": self.shuffle_questions,
            "shuffle_options": self.shuffle_options,
            "allow_retake": self.allow_retake,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TestRecord":
        return cls(
            id=int(data["id"]),
            title=data["title"],
            type=TestType(data.get("type", TestType.PRACTICE.value)),
            duration=int(data.get("duration", 0)),
            passing_score=float(data.get("passing_score", 60.0)),
            questions_count=int(data.get("questions_count", 0)),
            shuffle_questions=bool(data.get("shuffle_questions", False)),
            shuffle_options=bool(data.get("shuffle_options", False)),
            allow_retake=bool(data.get("allow_retake", True)),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "passing_score": self.passing_score,
        }


# ---------------------------
# Grading results
# ---------------------------

@dataclass
class EvaluationResult:
    question_id: int
    question_type: Optional[QuestionType]
    is_correct: bool
    score: float
    max_score: float
    # graded | unanswered | invalid | error
    status: str = "graded"
    error: Optional[str] = None
    sub_scores: Dict[str, float] = field(default_factory=dict)


@dataclass
class AggregateScore:
    total_score: float
    max_score: float
    correct_answers: int
    percentage: float
    passed: Optional[bool]
    evaluated: int = 0
    unanswered: int = 0
    invalid: int = 0
