import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from linguaprep.application.attempt_service import AttemptLifecycleManager
from linguaprep.domain.errors import AssessmentError
from linguaprep.presentation.api.errors import to_http_exception
from linguaprep.presentation.dependencies import get_attempt_service, get_current_user
from linguaprep.presentation.schemas.attempt_schema import (
    AttemptDetailResponse,
    ResultsPage,
    StartAttemptResponse,
    SubmitRequest,
    SubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mock-tests", tags=["Mock Tests"])


def _unexpected(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred.",
    )


# --------------------------------------------------
# 1. Completed attempts of the current user
# --------------------------------------------------
@router.get("/results", response_model=ResultsPage)
def list_results(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    """
    Lists the caller's submitted attempts, newest first.
    """
    try:
        return service.list_results(current_user.get("user_id"), page, limit)
    except AssessmentError as e:
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"listing results for user {current_user.get('user_id')}", e)


# --------------------------------------------------
# 2. Start an attempt
# --------------------------------------------------
@router.post(
    "/{test_id}/start",
    response_model=StartAttemptResponse,
    status_code=status.HTTP_201_CREATED,
)
def start_attempt(
    test_id: int,
    current_user: dict = Depends(get_current_user),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    """
    Starts a new attempt. Question and option order is fixed here and stays
    the same for every later read of the attempt.
    """
    try:
        user_id = current_user.get("user_id")
        logger.info(f"User {user_id} starting attempt for test {test_id}")
        return service.start_formal(user_id, test_id)
    except AssessmentError as e:
        logger.warning(f"Start rejected for user {current_user.get('user_id')}, test {test_id}: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"starting attempt for test {test_id}", e)


# --------------------------------------------------
# 3. Final submission
# --------------------------------------------------
@router.post("/attempts/{attempt_id}/submit", response_model=SubmitResponse)
def submit_attempt(
    attempt_id: int,
    payload: SubmitRequest,
    current_user: dict = Depends(get_current_user),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    """
    Grades and closes an attempt. An attempt accepts exactly one submission.
    """
    try:
        user_id = current_user.get("user_id")
        logger.info(f"User {user_id} submitting attempt {attempt_id}")
        answers = [a.model_dump(exclude_none=True) for a in payload.answers]
        return service.submit(user_id, attempt_id, answers, payload.time_spent)
    except AssessmentError as e:
        logger.warning(f"Submit rejected for attempt {attempt_id}: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"submitting attempt {attempt_id}", e)


# --------------------------------------------------
# 4. Attempt detail
# --------------------------------------------------
@router.get("/attempts/{attempt_id}", response_model=AttemptDetailResponse)
def get_attempt(
    attempt_id: int,
    current_user: dict = Depends(get_current_user),
    service: AttemptLifecycleManager = Depends(get_attempt_service),
):
    try:
        return service.get_attempt(current_user.get("user_id"), attempt_id)
    except AssessmentError as e:
        logger.warning(f"Attempt lookup rejected for attempt {attempt_id}: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        raise _unexpected(f"fetching attempt {attempt_id}", e)
