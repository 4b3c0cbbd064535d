from typing import Dict, List, Optional, Sequence
import logging

from linguaprep.domain.entities import QuestionRecord, TestRecord
from linguaprep.domain.filters import PracticeQuery
from ..cache.content_cache import (
    ContentCache,
    PRACTICE_POOL_KEY,
    TEST_KEY,
    TEST_QUESTIONS_KEY,
)
from .question_repository import QuestionRepository

logger = logging.getLogger(__name__)


def _encode_questions(questions: List[QuestionRecord]) -> List[Dict]:
    return [q.to_dict() for q in questions]


def _decode_questions(data: List[Dict]) -> List[QuestionRecord]:
    return [QuestionRecord.from_dict(d) for d in data]


class CachedQuestionCatalog:
    """
    Catalog lookups served cache-first. Grading reads
    (``get_questions_by_ids``) always go to the database.
    """

    def __init__(self, repo: QuestionRepository, cache: ContentCache, ttl_seconds: Optional[int] = None):
        self._repo = repo
        self._cache = cache
        self._ttl = ttl_seconds

    def get_test(self, test_id: int) -> Optional[TestRecord]:
        return self._cache.read_through(
            TEST_KEY.format(test_id=test_id),
            lambda: self._repo.get_test(test_id),
            encode=lambda t: t.to_dict(),
            decode=TestRecord.from_dict,
            ttl_seconds=self._ttl,
        )

    def get_test_questions(self, test_id: int) -> List[QuestionRecord]:
        return self._cache.read_through(
            TEST_QUESTIONS_KEY.format(test_id=test_id),
            lambda: self._repo.get_test_questions(test_id),
            encode=_encode_questions,
            decode=_decode_questions,
            ttl_seconds=self._ttl,
        )

    def find_matching(self, query: PracticeQuery) -> List[QuestionRecord]:
        return self._cache.read_through(
            PRACTICE_POOL_KEY.format(filters=query.cache_key()),
            lambda: self._repo.find_matching(query),
            encode=_encode_questions,
            decode=_decode_questions,
            ttl_seconds=self._ttl,
        )

    def get_questions_by_ids(self, question_ids: Sequence[int]) -> Dict[int, QuestionRecord]:
        return self._repo.get_questions_by_ids(question_ids)
