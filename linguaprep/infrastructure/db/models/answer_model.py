from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean, Float, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class AnswerModel(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    payload = Column(JSON, nullable=True)  # answer exactly as submitted
    is_correct = Column(Boolean, nullable=False)
    score = Column(Float, nullable=False, default=0.0)
    max_score = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="graded")
    answered_at = Column(DateTime(timezone=True), server_default=func.now())

    attempt = relationship("AttemptModel", back_populates="answers")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_attempt_question"),
    )
