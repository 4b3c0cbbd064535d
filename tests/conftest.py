import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from linguaprep.application.attempt_service import AttemptLifecycleManager
from linguaprep.application.evaluation.engine import EvaluationEngine
from linguaprep.application.evaluation.subjective import MockSubjectiveEvaluator
from linguaprep.application.scoring import ScoreAggregator
from linguaprep.application.shuffle import ShuffleService
from linguaprep.infrastructure.cache.content_cache import ContentCache
from linguaprep.infrastructure.cache.stores import MemoryCacheStore
from linguaprep.infrastructure.db.base import Base
from linguaprep.infrastructure.db.models import MockTestModel, QuestionModel
from linguaprep.infrastructure.repositories.attempt_repository import AttemptRepository
from linguaprep.infrastructure.repositories.cached_catalog import CachedQuestionCatalog
from linguaprep.infrastructure.repositories.question_repository import QuestionRepository
from linguaprep.presentation.dependencies import get_db
from main import create_app

MCQ_OPTIONS = [
    {"id": "a", "text": "Alpha", "is_correct": True},
    {"id": "b", "text": "Bravo", "is_correct": False},
    {"id": "c", "text": "Charlie", "is_correct": False},
    {"id": "d", "text": "Delta", "is_correct": False},
]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def seed_test(db_session):
    """Creates a test of multiple-choice questions whose correct option is always "a"."""

    def _seed(
        n_questions=5,
        passing_score=60.0,
        shuffle_questions=False,
        shuffle_options=False,
        title="Mock Test",
    ):
        test = MockTestModel(
            title=title,
            type="FINAL",
            duration=30,
            passing_score=passing_score,
            questions_count=n_questions,
            shuffle_questions=shuffle_questions,
            shuffle_options=shuffle_options,
        )
        db_session.add(test)
        db_session.flush()
        for i in range(n_questions):
            db_session.add(
                QuestionModel(
                    test_id=test.id,
                    type="MULTIPLE_CHOICE",
                    question_text=f"Question {i + 1}",
                    options=[dict(o) for o in MCQ_OPTIONS],
                    correct_answer="a",
                    points=1.0,
                    order_index=i,
                    language="english",
                    module="grammar",
                )
            )
        db_session.commit()
        return test.id

    return _seed


@pytest.fixture
def seed_practice_pool(db_session):
    """Three Japanese questions and four English ones, none bound to a test."""
    for i in range(3):
        db_session.add(
            QuestionModel(
                type="MULTIPLE_CHOICE",
                question_text=f"Japanese question {i + 1}",
                options=[dict(o) for o in MCQ_OPTIONS],
                correct_answer="a",
                language="japanese",
                difficulty="beginner",
                module="reading",
            )
        )
    for i in range(4):
        db_session.add(
            QuestionModel(
                type="TRUE_FALSE",
                question_text=f"English statement {i + 1}",
                correct_answer=True,
                language="english",
                difficulty="intermediate",
                module="reading",
            )
        )
    db_session.commit()


@pytest.fixture
def cache_store(clock):
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def content_cache(cache_store):
    return ContentCache(cache_store, default_ttl=300, namespace="test")


@pytest.fixture
def service(db_session, content_cache):
    return AttemptLifecycleManager(
        catalog=CachedQuestionCatalog(QuestionRepository(db_session), content_cache),
        attempts=AttemptRepository(db_session),
        engine=EvaluationEngine(MockSubjectiveEvaluator()),
        aggregator=ScoreAggregator(),
        shuffler=ShuffleService(random.Random(7)),
    )


@pytest.fixture
def client(db_engine, session_factory, cache_store):
    app = create_app(
        db_engine=db_engine,
        cache_store=cache_store,
        subjective_evaluator=MockSubjectiveEvaluator(),
        shuffle_service=ShuffleService(random.Random(11)),
    )

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth():
    return {"Authorization": "Bearer user-1"}
