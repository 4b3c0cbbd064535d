from fastapi import HTTPException

from linguaprep.domain.errors import AssessmentError


def to_http_exception(error: AssessmentError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.kind, "message": error.message},
    )
