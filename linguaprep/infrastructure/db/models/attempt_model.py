from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean, String, Float, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class AttemptModel(Base):
    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)  # opaque id from identity provider
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=True, index=True)

    # Captured once at start, after any shuffle
    question_ids = Column(JSON, nullable=False)
    option_order = Column(JSON, nullable=False, default=dict)  # {question_id: [option ids]}

    # Completion fields, written exactly once by submit
    score = Column(Float, nullable=False, default=0.0)
    earned_points = Column(Float, nullable=False, default=0.0)
    total_points = Column(Float, nullable=False, default=0.0)
    correct_answers = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False, default=False)
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    test = relationship("MockTestModel", back_populates="attempts")
    answers = relationship("AnswerModel", back_populates="attempt", cascade="all, delete-orphan")
