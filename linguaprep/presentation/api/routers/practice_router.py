import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from linguaprep.application.attempt_service import AttemptLifecycleManager
from linguaprep.core.config import Config
from linguaprep.domain.errors import AssessmentError
from linguaprep.domain.filters import PracticeQuery
from linguaprep.presentation.api.errors import to_http_exception
from linguaprep.presentation.dependencies import get_attempt_service, get_config, get_current_user
from linguaprep.presentation.schemas.practice_schema import (
    PracticeGradeRequest,
    PracticeGradeResponse,
    PracticeQuestionsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/practice", tags=["Practice"])


# --------------------------------------------------
# 1. Draw practice questions
# --------------------------------------------------
@router.get("/questions", response_model=PracticeQuestionsResponse)
def get_practice_questions(
    language: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    module: Optional[str] = Query(None),
    section: Optional[str] = Query(None),
    standard_section: Optional[str] = Query(None),
    limit: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    settings: Config = Depends(get_config),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    """
    Returns a random draw of questions matching the given tags. At least one
    tag is required. Nothing is stored.
    """
    try:
        query = PracticeQuery.build(
            limit=limit if limit is not None else settings.PRACTICE_DEFAULT_LIMIT,
            max_limit=settings.PRACTICE_MAX_LIMIT,
            language=language,
            difficulty=difficulty,
            module=module,
            section=section,
            standard_section=standard_section,
        )
        logger.info(f"User {current_user.get('user_id')} drawing practice questions: {query.as_dict()}")
        return service.start_practice(query)
    except AssessmentError as e:
        logger.warning(f"Practice draw rejected for user {current_user.get('user_id')}: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Unexpected error drawing practice questions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )


# --------------------------------------------------
# 2. Grade a practice draw
# --------------------------------------------------
@router.post("/grade", response_model=PracticeGradeResponse)
def grade_practice(
    payload: PracticeGradeRequest,
    current_user: dict = Depends(get_current_user),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    """
    Grades practice answers immediately. Practice has no pass/fail and
    leaves no attempt history.
    """
    try:
        answers = [a.model_dump(exclude_none=True) for a in payload.answers]
        return service.grade_practice(answers)
    except AssessmentError as e:
        logger.warning(f"Practice grading rejected for user {current_user.get('user_id')}: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Unexpected error grading practice answers: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred.",
        )
