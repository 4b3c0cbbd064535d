from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from linguaprep.domain.entities import EvaluationResult, QuestionRecord, TestRecord
from linguaprep.domain.errors import NotFound, OwnershipViolation, AlreadyCompleted
from linguaprep.domain.filters import PracticeQuery
from linguaprep.infrastructure.db.models import AttemptModel
from linguaprep.infrastructure.repositories.attempt_repository import AttemptRepository
from .evaluation.engine import EvaluationEngine
from .scoring import ScoreAggregator, feedback_for, round_score
from .shuffle import ShuffleService

logger = logging.getLogger(__name__)


class QuestionCatalog(Protocol):
    def get_test(self, test_id: int) -> Optional[TestRecord]: ...

    def get_test_questions(self, test_id: int) -> List[QuestionRecord]: ...

    def find_matching(self, query: PracticeQuery) -> List[QuestionRecord]: ...

    def get_questions_by_ids(self, question_ids: Sequence[int]) -> Dict[int, QuestionRecord]: ...


def _key_answers(answers: Sequence[Mapping[str, Any]]) -> Dict[int, Dict[str, Any]]:
    """
    Indexes submitted answers by question id. The first answer for a
    question wins; entries without a usable question id are dropped.
    """
    keyed: Dict[int, Dict[str, Any]] = {}
    for raw in answers:
        if not isinstance(raw, Mapping):
            logger.warning(f"Ignoring non-object answer entry: {raw!r}")
            continue
        try:
            qid = int(raw["question_id"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Ignoring answer without a valid question_id: {raw!r}")
            continue
        if qid in keyed:
            logger.info(f"Duplicate answer for question_id={qid} ignored")
            continue
        keyed[qid] = {k: v for k, v in raw.items() if k != "question_id"}
    return keyed


def _result_view(r: EvaluationResult) -> Dict[str, Any]:
    return {
        "question_id": r.question_id,
        "is_correct": r.is_correct,
        "score": r.score,
        "max_score": r.max_score,
        "status": r.status,
        "error": r.error,
        "sub_scores": r.sub_scores,
    }


class AttemptLifecycleManager:
    """
    Orchestrates practice draws and formal test attempts.

    Formal attempts go OPEN -> COMPLETED exactly once. The question order is
    decided at start and stored on the attempt; submit grades against that
    stored snapshot.
    """

    def __init__(
        self,
        *,
        catalog: QuestionCatalog,
        attempts: AttemptRepository,
        engine: EvaluationEngine,
        aggregator: ScoreAggregator,
        shuffler: ShuffleService,
    ):
        self._catalog = catalog
        self._attempts = attempts
        self._engine = engine
        self._aggregator = aggregator
        self._shuffler = shuffler

    # ---------------------------
    # Practice
    # ---------------------------

    def start_practice(self, query: PracticeQuery) -> Dict[str, Any]:
        matches = self._catalog.find_matching(query)
        if not matches:
            logger.warning(f"No practice questions for filters={query.as_dict()}")
            raise NotFound("No questions found matching the specified filters")

        drawn = self._shuffler.sample(matches, query.limit)
        logger.info(f"Practice draw: {len(drawn)} of {len(matches)} questions for filters={query.as_dict()}")
        return {
            "questions": [q.public_view() for q in drawn],
            "total_questions": len(drawn),
            "available_count": len(matches),
            "filters": query.as_dict(),
        }

    def grade_practice(self, answers: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Grades a practice draw without storing anything. Practice has no
        pass/fail verdict.
        """
        keyed = _key_answers(answers)
        questions = self._catalog.get_questions_by_ids(list(keyed))
        missing = set(keyed) - set(questions)
        if missing:
            raise NotFound(f"Questions not found: {sorted(missing)}")

        results = self._engine.evaluate_batch([questions[qid] for qid in keyed], keyed)
        agg = self._aggregator.aggregate(results)
        logger.info(f"Practice graded: {agg.correct_answers}/{agg.evaluated} correct, {agg.percentage:.2f}%")
        return {
            "total_score": agg.total_score,
            "max_score": agg.max_score,
            "correct_answers": agg.correct_answers,
            "total_questions": agg.evaluated,
            "unanswered": agg.unanswered,
            "invalid": agg.invalid,
            "percentage": round_score(agg.percentage),
            "passed": None,
            "feedback": feedback_for(agg.percentage, None),
            "results": [_result_view(r) for r in results],
        }

    # ---------------------------
    # Formal attempts
    # ---------------------------

    def start_formal(self, user_id: str, test_id: int) -> Dict[str, Any]:
        test = self._catalog.get_test(test_id)
        if not test:
            raise NotFound(f"Test {test_id} not found")

        questions = self._catalog.get_test_questions(test_id)
        ordered, option_order = self._shuffler.snapshot(
            questions,
            shuffle_questions=test.shuffle_questions,
            shuffle_options=test.shuffle_options,
        )
        attempt = self._attempts.create_attempt(
            user_id=user_id,
            test_id=test.id,
            question_ids=[q.id for q in ordered],
            option_order=option_order,
        )
        logger.info(f"User {user_id} started attempt {attempt.id} for test {test_id}")
        return {
            "attempt_id": attempt.id,
            "test": test.summary(),
            "questions": [q.public_view(option_order.get(str(q.id))) for q in ordered],
        }

    def _load_owned_attempt(self, user_id: str, attempt_id: int) -> AttemptModel:
        attempt = self._attempts.get_by_id(attempt_id)
        if not attempt:
            raise NotFound(f"Attempt {attempt_id} not found")
        if attempt.user_id != user_id:
            logger.warning(f"Attempt ownership mismatch: attempt_id={attempt_id}, user_id={user_id}")
            raise OwnershipViolation("Attempt does not belong to current user")
        return attempt

    def submit(
        self,
        user_id: str,
        attempt_id: int,
        answers: Sequence[Mapping[str, Any]],
        time_spent: int,
    ) -> Dict[str, Any]:
        attempt = self._load_owned_attempt(user_id, attempt_id)
        if attempt.completed_at is not None:
            raise AlreadyCompleted(f"Attempt {attempt_id} has already been submitted")

        passing_score = None
        if attempt.test_id is not None:
            test = self._catalog.get_test(attempt.test_id)
            if not test:
                raise NotFound(f"Test {attempt.test_id} not found")
            passing_score = test.passing_score

        snapshot = [int(qid) for qid in attempt.question_ids]
        questions = self._catalog.get_questions_by_ids(snapshot)
        keyed = _key_answers(answers)
        stray = set(keyed) - set(snapshot)
        if stray:
            logger.warning(f"Ignoring answers for questions outside attempt {attempt_id}: {sorted(stray)}")

        graded = {
            r.question_id: r
            for r in self._engine.evaluate_batch([questions[qid] for qid in snapshot if qid in questions], keyed)
        }

        results: List[EvaluationResult] = []
        rows: List[Dict[str, Any]] = []
        for qid in snapshot:
            result = graded.get(qid)
            if result is None:
                # Removed from the catalog after the attempt started; nothing to grade against
                logger.error(f"Question {qid} of attempt {attempt_id} no longer exists")
                results.append(
                    EvaluationResult(
                        question_id=qid,
                        question_type=None,
                        is_correct=False,
                        score=0.0,
                        max_score=0.0,
                        status="error",
                        error="Question unavailable",
                    )
                )
                continue
            results.append(result)
            rows.append(
                {
                    "question_id": qid,
                    "payload": keyed.get(qid),
                    "is_correct": result.is_correct,
                    "score": result.score,
                    "max_score": result.max_score,
                    "status": result.status,
                }
            )

        agg = self._aggregator.aggregate(results, passing_score)
        passed = bool(agg.passed) if agg.passed is not None else False
        completed = self._attempts.complete_attempt(
            attempt_id,
            score=agg.percentage,
            earned_points=agg.total_score,
            total_points=agg.max_score,
            correct_answers=agg.correct_answers,
            passed=passed,
            time_spent=time_spent,
            answers=rows,
        )
        logger.info(
            f"User {user_id} submitted attempt {attempt_id}: score={agg.percentage:.2f}, "
            f"correct={agg.correct_answers}/{completed.total_questions}, passed={passed}"
        )
        return {
            "attempt_id": completed.id,
            "score": round_score(agg.percentage),
            "correct_answers": agg.correct_answers,
            "total_questions": completed.total_questions,
            "unanswered": agg.unanswered,
            "invalid": agg.invalid,
            "passed": passed,
            "time_spent": time_spent,
            "earned_points": agg.total_score,
            "total_points": agg.max_score,
            "feedback": feedback_for(agg.percentage, passed),
            "results": [_result_view(r) for r in results],
        }

    # ---------------------------
    # Reads
    # ---------------------------

    def get_attempt(self, user_id: str, attempt_id: int) -> Dict[str, Any]:
        attempt = self._load_owned_attempt(user_id, attempt_id)
        snapshot = [int(qid) for qid in attempt.question_ids]
        questions = self._catalog.get_questions_by_ids(snapshot)
        option_order = attempt.option_order or {}
        test = self._catalog.get_test(attempt.test_id) if attempt.test_id is not None else None

        completed = attempt.completed_at is not None
        return {
            "attempt_id": attempt.id,
            "status": "COMPLETED" if completed else "OPEN",
            "test": test.summary() if test else None,
            "score": round_score(attempt.score) if completed else None,
            "correct_answers": attempt.correct_answers,
            "total_questions": attempt.total_questions,
            "passed": attempt.passed if completed else None,
            "time_spent": attempt.time_spent,
            "started_at": attempt.started_at,
            "completed_at": attempt.completed_at,
            "questions": [
                questions[qid].public_view(option_order.get(str(qid)))
                for qid in snapshot
                if qid in questions
            ],
        }

    def list_results(self, user_id: str, page: int, limit: int) -> Dict[str, Any]:
        rows, total = self._attempts.list_completed(user_id, page, limit)
        return {
            "data": [
                {
                    "attempt_id": a.id,
                    "test_id": a.test_id,
                    "test_title": a.test.title if a.test else None,
                    "score": round_score(a.score),
                    "correct_answers": a.correct_answers,
                    "total_questions": a.total_questions,
                    "passed": a.passed,
                    "time_spent": a.time_spent,
                    "completed_at": a.completed_at,
                }
                for a in rows
            ],
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "total_pages": math.ceil(total / limit) if limit else 0,
                "has_next": page * limit < total,
                "has_prev": page > 1,
            },
        }
