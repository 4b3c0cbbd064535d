from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OptionOut(BaseModel):
    id: str
    text: str


class QuestionOut(BaseModel):
    id: int
    type: str
    prompt: str
    points: float
    order_index: int = 0
    options: List[OptionOut] = []
    audio_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    language: Optional[str] = None
    module: Optional[str] = None
    section: Optional[str] = None
    standard_section: Optional[str] = None
    difficulty: Optional[str] = None


class AnswerSubmission(BaseModel):
    """
    One answer. Which fields matter depends on the question type:
    selected_option (multiple choice), value (true/false), answers
    (fill-in-blank), matches (matching), text_answer / audio_url /
    transcript (free response).

    Fields are left untyped here. A badly shaped answer is graded as
    invalid on its own and never fails the whole request.
    """

    question_id: Optional[Any] = None
    selected_option: Optional[Any] = None
    value: Optional[Any] = None
    text_answer: Optional[Any] = None
    content: Optional[Any] = None
    answers: Optional[Any] = None
    matches: Optional[Any] = None
    audio_url: Optional[Any] = None
    transcript: Optional[Any] = None
    duration: Optional[Any] = None


class QuestionResultOut(BaseModel):
    question_id: int
    is_correct: bool
    score: float
    max_score: float
    status: str
    error: Optional[str] = None
    sub_scores: Dict[str, float] = {}


class TestSummary(BaseModel):
    id: int
    title: str
    duration: int
    passing_score: float


class StartAttemptResponse(BaseModel):
    attempt_id: int
    test: TestSummary
    questions: List[QuestionOut]


class SubmitRequest(BaseModel):
    answers: List[AnswerSubmission] = []
    time_spent: int = Field(0, ge=0)


class SubmitResponse(BaseModel):
    attempt_id: int
    score: float
    correct_answers: int
    total_questions: int
    unanswered: int = 0
    invalid: int = 0
    passed: bool
    time_spent: int
    earned_points: float
    total_points: float
    feedback: str
    results: List[QuestionResultOut]


class AttemptDetailResponse(BaseModel):
    attempt_id: int
    status: str
    test: Optional[TestSummary] = None
    score: Optional[float] = None
    correct_answers: int
    total_questions: int
    passed: Optional[bool] = None
    time_spent: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    questions: List[QuestionOut]


class ResultItem(BaseModel):
    attempt_id: int
    test_id: Optional[int] = None
    test_title: Optional[str] = None
    score: float
    correct_answers: int
    total_questions: int
    passed: bool
    time_spent: Optional[int] = None
    completed_at: Optional[datetime] = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ResultsPage(BaseModel):
    data: List[ResultItem]
    pagination: Pagination
