from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .attempt_schema import AnswerSubmission, QuestionOut, QuestionResultOut


class PracticeQuestionsResponse(BaseModel):
    questions: List[QuestionOut]
    total_questions: int
    available_count: int
    filters: Dict[str, str]


class PracticeGradeRequest(BaseModel):
    answers: List[AnswerSubmission] = Field(..., min_length=1)


class PracticeGradeResponse(BaseModel):
    total_score: float
    max_score: float
    correct_answers: int
    total_questions: int
    unanswered: int = 0
    invalid: int = 0
    percentage: float
    passed: Optional[bool] = None
    feedback: str
    results: List[QuestionResultOut]
