import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from linguaprep.application.attempt_service import AttemptLifecycleManager
from linguaprep.application.evaluation.engine import EvaluationEngine
from linguaprep.application.scoring import ScoreAggregator
from linguaprep.application.shuffle import ShuffleService
from linguaprep.core.config import Config
from linguaprep.domain.errors import AuthenticationRequired
from linguaprep.infrastructure.cache.content_cache import ContentCache
from linguaprep.infrastructure.db.session import SessionLocal
from linguaprep.infrastructure.repositories.attempt_repository import AttemptRepository
from linguaprep.infrastructure.repositories.cached_catalog import CachedQuestionCatalog
from linguaprep.infrastructure.repositories.question_repository import QuestionRepository
from linguaprep.infrastructure.security.identity import IdentityProvider

logger = logging.getLogger(__name__)

# auto_error=False so a missing token maps to our own 401 body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_content_cache(request: Request) -> ContentCache:
    return request.app.state.content_cache


def get_evaluation_engine(request: Request) -> EvaluationEngine:
    return request.app.state.evaluation_engine


def get_shuffle_service(request: Request) -> ShuffleService:
    return request.app.state.shuffle_service


def get_current_user(
    token: str = Depends(oauth2_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> dict:
    try:
        user_id = identity.resolve(token)
    except AuthenticationRequired as e:
        logger.warning(f"Rejected unauthenticated request: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": e.kind, "message": e.message},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"user_id": user_id}


def get_attempt_service(
    db: Session = Depends(get_db),
    cache: ContentCache = Depends(get_content_cache),
    engine: EvaluationEngine = Depends(get_evaluation_engine),
    shuffler: ShuffleService = Depends(get_shuffle_service),
    settings: Config = Depends(get_config),
) -> AttemptLifecycleManager:
    catalog = CachedQuestionCatalog(QuestionRepository(db), cache, settings.CACHE_TTL_SECONDS)
    return AttemptLifecycleManager(
        catalog=catalog,
        attempts=AttemptRepository(db),
        engine=engine,
        aggregator=ScoreAggregator(),
        shuffler=shuffler,
    )
