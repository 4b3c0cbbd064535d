from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from linguaprep.domain.errors import AlreadyCompleted
from ..db.models import AnswerModel, AttemptModel

logger = logging.getLogger(__name__)


class AttemptRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_attempt(
        self,
        *,
        user_id: str,
        test_id: Optional[int],
        question_ids: List[int],
        option_order: Dict[str, List[str]],
    ) -> AttemptModel:
        attempt = AttemptModel(
            user_id=user_id,
            test_id=test_id,
            question_ids=list(question_ids),
            option_order=dict(option_order),
            score=0.0,
            earned_points=0.0,
            total_points=0.0,
            correct_answers=0,
            total_questions=len(question_ids),
            passed=False,
            time_spent=0,
            completed_at=None,
        )
        try:
            self.db.add(attempt)
            self.db.commit()
            self.db.refresh(attempt)
        except SQLAlchemyError as e:
            logger.error(f"Error creating attempt for user_id={user_id}, test_id={test_id}: {e}", exc_info=True)
            self.db.rollback()
            raise
        logger.info(f"Created attempt_id={attempt.id} for user_id={user_id} with {len(question_ids)} questions")
        return attempt

    def get_by_id(self, attempt_id: int) -> Optional[AttemptModel]:
        return self.db.query(AttemptModel).filter(AttemptModel.id == attempt_id).first()

    def complete_attempt(
        self,
        attempt_id: int,
        *,
        score: float,
        earned_points: float,
        total_points: float,
        correct_answers: int,
        passed: bool,
        time_spent: int,
        answers: List[Dict],
    ) -> AttemptModel:
        """
        Moves an attempt from OPEN to COMPLETED and stores its answers in one
        transaction.

        The transition is a conditional UPDATE on ``completed_at IS NULL``; if
        another submission got there first no row matches and
        ``AlreadyCompleted`` is raised with nothing written.
        """
        stmt = (
            update(AttemptModel)
            .where(AttemptModel.id == attempt_id, AttemptModel.completed_at.is_(None))
            .values(
                score=score,
                earned_points=earned_points,
                total_points=total_points,
                correct_answers=correct_answers,
                passed=passed,
                time_spent=time_spent,
                completed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                logger.warning(f"Completion rejected, attempt_id={attempt_id} is not open")
                raise AlreadyCompleted(f"Attempt {attempt_id} has already been submitted")

            self.db.add_all(
                [
                    AnswerModel(
                        attempt_id=attempt_id,
                        question_id=a["question_id"],
                        payload=a.get("payload"),
                        is_correct=a["is_correct"],
                        score=a["score"],
                        max_score=a["max_score"],
                        status=a.get("status", "graded"),
                    )
                    for a in answers
                ]
            )
            self.db.commit()
        except IntegrityError:
            # Answer rows already exist for this attempt: a concurrent submit won
            self.db.rollback()
            logger.warning(f"Duplicate answers rejected for attempt_id={attempt_id}")
            raise AlreadyCompleted(f"Attempt {attempt_id} has already been submitted")
        except SQLAlchemyError as e:
            logger.error(f"Database error completing attempt_id={attempt_id}: {e}", exc_info=True)
            self.db.rollback()
            raise

        logger.info(f"Attempt {attempt_id} completed with {len(answers)} answers")
        return self.get_by_id(attempt_id)

    def list_completed(self, user_id: str, page: int, limit: int) -> Tuple[List[AttemptModel], int]:
        query = self.db.query(AttemptModel).filter(
            AttemptModel.user_id == user_id,
            AttemptModel.completed_at.isnot(None),
        )
        total = query.count()
        rows = (
            query.order_by(AttemptModel.completed_at.desc(), AttemptModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total
