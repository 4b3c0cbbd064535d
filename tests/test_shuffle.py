import random
from collections import Counter

from linguaprep.application.shuffle import ShuffleService
from linguaprep.domain.entities import QuestionRecord
from linguaprep.domain.question_types import QuestionType


def _questions(n):
    return [
        QuestionRecord(
            id=i,
            type=QuestionType.MULTIPLE_CHOICE,
            prompt=f"Q{i}",
            options=[{"id": c, "text": c.upper()} for c in "abcd"],
        )
        for i in range(1, n + 1)
    ]


def test_permute_is_a_permutation():
    items = list(range(20))
    shuffled = ShuffleService(random.Random(1)).permute(items)
    assert sorted(shuffled) == items
    assert items == list(range(20))


def test_permute_produces_more_than_one_ordering():
    service = ShuffleService(random.Random(3))
    seen = {tuple(service.permute([1, 2, 3])) for _ in range(200)}
    assert len(seen) > 1


def test_permute_is_roughly_uniform():
    service = ShuffleService(random.Random(5))
    counts = Counter(tuple(service.permute("abc")) for _ in range(6000))
    # 6 orderings, 1000 expected each
    assert len(counts) == 6
    assert all(800 < c < 1200 for c in counts.values())


def test_sample_draws_without_replacement():
    service = ShuffleService(random.Random(2))
    drawn = service.sample(list(range(50)), 10)
    assert len(drawn) == 10
    assert len(set(drawn)) == 10
    assert set(drawn) <= set(range(50))


def test_sample_larger_than_pool_returns_everything():
    drawn = ShuffleService(random.Random(2)).sample([1, 2, 3], 5)
    assert sorted(drawn) == [1, 2, 3]


def test_snapshot_without_flags_keeps_stored_order():
    questions = _questions(4)
    ordered, option_order = ShuffleService(random.Random(9)).snapshot(
        questions, shuffle_questions=False, shuffle_options=False
    )
    assert [q.id for q in ordered] == [1, 2, 3, 4]
    assert option_order == {str(i): ["a", "b", "c", "d"] for i in range(1, 5)}


def test_snapshot_with_flags_permutes_questions_and_options():
    questions = _questions(6)
    ordered, option_order = ShuffleService(random.Random(9)).snapshot(
        questions, shuffle_questions=True, shuffle_options=True
    )
    assert sorted(q.id for q in ordered) == [1, 2, 3, 4, 5, 6]
    assert set(option_order) == {str(i) for i in range(1, 7)}
    assert all(sorted(ids) == ["a", "b", "c", "d"] for ids in option_order.values())
