import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from linguaprep.application.evaluation.engine import EvaluationEngine, EvaluationPolicy
from linguaprep.application.evaluation.subjective import (
    LLMSubjectiveEvaluator,
    MockSubjectiveEvaluator,
    SubjectiveEvaluator,
)
from linguaprep.application.shuffle import ShuffleService
from linguaprep.core.config import Config, config
from linguaprep.infrastructure.cache.content_cache import ContentCache
from linguaprep.infrastructure.cache.stores import CacheStore, build_cache_store
from linguaprep.infrastructure.db.session import Base, engine
from linguaprep.infrastructure.db import models  # noqa: F401
from linguaprep.infrastructure.security.identity import IdentityProvider, PassthroughIdentityProvider
from linguaprep.presentation.api.routers.mock_test_router import router as mock_test_router
from linguaprep.presentation.api.routers.practice_router import router as practice_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def build_subjective_evaluator(settings: Config) -> SubjectiveEvaluator:
    if settings.SUBJECTIVE_EVALUATOR == "huggingface":
        if not settings.HF_TOKEN:
            logger.warning("SUBJECTIVE_EVALUATOR=huggingface but HF_TOKEN is not set; using mock evaluator")
            return MockSubjectiveEvaluator()

        from linguaprep.infrastructure.llm.huggingface_client import HuggingFaceExaminerClient

        logger.info(f"Subjective answers graded by LLM repo_id={settings.HF_REPO_ID}")
        return LLMSubjectiveEvaluator(HuggingFaceExaminerClient.from_config(settings))

    return MockSubjectiveEvaluator()


def create_app(
    settings: Optional[Config] = None,
    *,
    db_engine=None,
    cache_store: Optional[CacheStore] = None,
    identity_provider: Optional[IdentityProvider] = None,
    subjective_evaluator: Optional[SubjectiveEvaluator] = None,
    shuffle_service: Optional[ShuffleService] = None,
) -> FastAPI:
    settings = settings or config
    bind = db_engine or engine
    store = cache_store or build_cache_store(settings.REDIS_URL, settings.REDIS_SOCKET_TIMEOUT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{settings.API_TITLE} starting up...")
        # Create tables
        Base.metadata.create_all(bind=bind)
        yield
        logger.info(f"{settings.API_TITLE} shutting down...")
        store.close()

    app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION, lifespan=lifespan)

    app.state.config = settings
    app.state.content_cache = ContentCache(
        store,
        default_ttl=settings.CACHE_TTL_SECONDS,
        namespace=settings.CACHE_KEY_PREFIX,
    )
    app.state.identity_provider = identity_provider or PassthroughIdentityProvider()
    app.state.evaluation_engine = EvaluationEngine(
        subjective_evaluator or build_subjective_evaluator(settings),
        EvaluationPolicy(subjective_pass_ratio=settings.SUBJECTIVE_PASS_RATIO),
    )
    app.state.shuffle_service = shuffle_service or ShuffleService()

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal server error occurred."}
        )

    # Include routers
    app.include_router(practice_router)
    app.include_router(mock_test_router)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "cache": type(store).__name__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
