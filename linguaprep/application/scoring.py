from typing import Iterable, Optional

from linguaprep.domain.entities import AggregateScore, EvaluationResult


class ScoreAggregator:
    """
    Reduces per-question results to an attempt-level score.

    ``passed`` is only computed when a passing threshold is given; practice
    sessions have no pass/fail verdict.
    """

    def aggregate(
        self,
        results: Iterable[EvaluationResult],
        passing_score: Optional[float] = None,
    ) -> AggregateScore:
        total_score = 0.0
        max_score = 0.0
        correct = 0
        evaluated = unanswered = invalid = 0

        for r in results:
            evaluated += 1
            total_score += r.score
            max_score += r.max_score
            if r.is_correct:
                correct += 1
            if r.status == "unanswered":
                unanswered += 1
            elif r.status in ("invalid", "error"):
                invalid += 1

        # Zero-question attempts score 0 rather than dividing by zero
        percentage = total_score * 100 / max_score if max_score > 0 else 0.0
        passed = percentage >= passing_score if passing_score is not None else None

        return AggregateScore(
            total_score=total_score,
            max_score=max_score,
            correct_answers=correct,
            percentage=percentage,
            passed=passed,
            evaluated=evaluated,
            unanswered=unanswered,
            invalid=invalid,
        )


def round_score(value: float) -> float:
    return round(value * 100) / 100


def feedback_for(percentage: float, passed: Optional[bool]) -> str:
    if percentage >= 90:
        return "Excellent work! You have a strong understanding of the material."
    if percentage >= 80:
        return "Good job! You have a solid grasp of most concepts."
    if percentage >= 70:
        return "Not bad, but consider reviewing the areas where you made mistakes."
    if passed:
        return "You passed, but there's room for improvement. Review the incorrect answers."
    if passed is None:
        return "Keep practicing and review the questions you missed."
    return "You didn't pass this time. Please review the material and try again."
