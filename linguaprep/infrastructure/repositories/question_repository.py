from typing import Dict, List, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from linguaprep.domain.entities import QuestionRecord, TestRecord
from linguaprep.domain.filters import FilterField, PracticeQuery
from linguaprep.domain.question_types import QuestionType, TestType
from ..db.models import MockTestModel, QuestionModel

logger = logging.getLogger(__name__)

_FILTER_COLUMNS = {
    FilterField.LANGUAGE: QuestionModel.language,
    FilterField.DIFFICULTY: QuestionModel.difficulty,
    FilterField.MODULE: QuestionModel.module,
    FilterField.SECTION: QuestionModel.section,
    FilterField.STANDARD_SECTION: QuestionModel.standard_section,
}


def to_question_record(model: QuestionModel) -> QuestionRecord:
    options = []
    for idx, raw in enumerate(model.options or []):
        if isinstance(raw, dict):
            opt = dict(raw)
            opt["id"] = str(opt.get("id", idx))
        else:
            # Legacy rows store options as plain strings
            opt = {"id": str(idx), "text": str(raw)}
        options.append(opt)

    return QuestionRecord(
        id=model.id,
        type=QuestionType(model.type),
        prompt=model.question_text,
        points=float(model.points if model.points is not None else 1.0),
        order_index=model.order_index or 0,
        options=options,
        correct_answer=model.correct_answer,
        explanation=model.explanation,
        audio_url=model.audio_url,
        image_url=model.image_url,
        video_url=model.video_url,
        test_id=model.test_id,
        language=model.language,
        module=model.module,
        section=model.section,
        standard_section=model.standard_section,
        difficulty=model.difficulty,
    )


def to_test_record(model: MockTestModel) -> TestRecord:
    return TestRecord(
        id=model.id,
        title=model.title,
        type=TestType(model.type),
        duration=model.duration or 0,
        passing_score=float(model.passing_score),
        questions_count=model.questions_count or 0,
        shuffle_questions=bool(model.shuffle_questions),
        shuffle_options=bool(model.shuffle_options),
        allow_retake=bool(model.allow_retake),
    )


class QuestionRepository:
    """
    Read-only catalog over persisted tests and questions.
    Question and test authoring belongs to the admin tooling.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_test(self, test_id: int) -> Optional[TestRecord]:
        logger.debug(f"Fetching test by test_id={test_id}")
        test = self.db.query(MockTestModel).filter(MockTestModel.id == test_id).first()
        if not test:
            logger.warning(f"Test not found: test_id={test_id}")
            return None
        return to_test_record(test)

    def get_test_questions(self, test_id: int) -> List[QuestionRecord]:
        logger.debug(f"Fetching questions for test_id={test_id}")
        rows = (
            self.db.query(QuestionModel)
            .filter(QuestionModel.test_id == test_id)
            .order_by(QuestionModel.order_index.asc(), QuestionModel.id.asc())
            .all()
        )
        logger.info(f"Found {len(rows)} questions for test_id={test_id}")
        return [to_question_record(q) for q in rows]

    def get_questions_by_ids(self, question_ids: Sequence[int]) -> Dict[int, QuestionRecord]:
        if not question_ids:
            return {}
        rows = (
            self.db.query(QuestionModel)
            .filter(QuestionModel.id.in_(list(question_ids)))
            .all()
        )
        if len(rows) != len(set(question_ids)):
            found = {q.id for q in rows}
            logger.warning(f"Questions not found: {set(question_ids) - found}")
        return {q.id: to_question_record(q) for q in rows}

    def find_matching(self, query: PracticeQuery) -> List[QuestionRecord]:
        """
        Returns every question matching all filter clauses, in catalog order.
        """
        q = self.db.query(QuestionModel)
        for clause in query.clauses:
            q = q.filter(_FILTER_COLUMNS[clause.field] == clause.value)
        rows = q.order_by(QuestionModel.id.asc()).all()
        logger.info(f"Found {len(rows)} practice questions for filters={query.as_dict()}")
        return [to_question_record(r) for r in rows]
