import random
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

from linguaprep.domain.entities import QuestionRecord

T = TypeVar("T")


class ShuffleService:
    """
    Uniform random permutations (Fisher-Yates) for question and option order.

    The caller persists the result; nothing here is recomputed on read. A
    seeded ``random.Random`` can be injected for reproducible tests.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.SystemRandom()

    def permute(self, items: Sequence[T]) -> List[T]:
        result = list(items)
        # Fisher-Yates: swap each position with a uniformly chosen earlier-or-equal slot
        for i in range(len(result) - 1, 0, -1):
            j = self._rng.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        """Uniform draw of ``min(k, len(items))`` items without replacement, in random order."""
        k = max(0, min(k, len(items)))
        # Partial Fisher-Yates: the first k slots end up as the sample
        pool = list(items)
        n = len(pool)
        for i in range(k):
            j = self._rng.randint(i, n - 1)
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:k]

    def snapshot(
        self,
        questions: Sequence[QuestionRecord],
        *,
        shuffle_questions: bool,
        shuffle_options: bool,
    ) -> Tuple[List[QuestionRecord], Dict[str, List[str]]]:
        """
        Builds an attempt's ordering: the question sequence plus, per
        question, the option id order to present.
        """
        ordered = self.permute(questions) if shuffle_questions else list(questions)
        option_order = {}
        for q in ordered:
            ids = q.option_ids
            option_order[str(q.id)] = self.permute(ids) if shuffle_options else ids
        return ordered, option_order
