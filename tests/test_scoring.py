import pytest

from linguaprep.application.scoring import ScoreAggregator, feedback_for, round_score
from linguaprep.domain.entities import EvaluationResult
from linguaprep.domain.question_types import QuestionType


def _results(correct, total, points=1.0):
    return [
        EvaluationResult(
            question_id=i,
            question_type=QuestionType.MULTIPLE_CHOICE,
            is_correct=i < correct,
            score=points if i < correct else 0.0,
            max_score=points,
        )
        for i in range(total)
    ]


def test_three_of_five_passes_at_sixty():
    agg = ScoreAggregator().aggregate(_results(3, 5), passing_score=60)
    assert agg.percentage == 60.0
    assert agg.correct_answers == 3
    assert agg.passed is True


def test_two_of_five_fails_at_sixty():
    agg = ScoreAggregator().aggregate(_results(2, 5), passing_score=60)
    assert agg.percentage == 40.0
    assert agg.correct_answers == 2
    assert agg.passed is False


def test_all_correct_and_all_wrong():
    assert ScoreAggregator().aggregate(_results(4, 4)).percentage == 100.0
    assert ScoreAggregator().aggregate(_results(0, 4)).percentage == 0.0


def test_zero_questions_scores_zero():
    agg = ScoreAggregator().aggregate([], passing_score=60)
    assert agg.percentage == 0.0
    assert agg.max_score == 0.0
    assert agg.passed is False


def test_practice_has_no_verdict():
    agg = ScoreAggregator().aggregate(_results(5, 5))
    assert agg.passed is None


def test_points_are_weighted():
    results = _results(1, 2, points=1.0) + [
        EvaluationResult(
            question_id=9,
            question_type=QuestionType.WRITING,
            is_correct=True,
            score=6.5,
            max_score=8.0,
        )
    ]
    agg = ScoreAggregator().aggregate(results)
    assert agg.total_score == 7.5
    assert agg.max_score == 10.0
    assert agg.percentage == pytest.approx(75.0)
    assert agg.correct_answers == 2


def test_status_counts():
    results = _results(1, 1) + [
        EvaluationResult(2, QuestionType.TRUE_FALSE, False, 0.0, 1.0, status="unanswered"),
        EvaluationResult(3, QuestionType.TRUE_FALSE, False, 0.0, 1.0, status="invalid"),
        EvaluationResult(4, QuestionType.WRITING, False, 0.0, 1.0, status="error"),
    ]
    agg = ScoreAggregator().aggregate(results)
    assert agg.evaluated == 4
    assert agg.unanswered == 1
    assert agg.invalid == 2


def test_round_score_two_decimals():
    assert round_score(200 / 3) == 66.67
    assert round_score(60.0) == 60.0


def test_feedback_bands():
    assert feedback_for(95, True).startswith("Excellent")
    assert feedback_for(85, True).startswith("Good job")
    assert feedback_for(72, True).startswith("Not bad")
    assert feedback_for(65, True).startswith("You passed")
    assert feedback_for(40, False).startswith("You didn't pass")
    assert feedback_for(40, None).startswith("Keep practicing")
