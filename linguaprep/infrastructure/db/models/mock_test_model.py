from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class MockTestModel(Base):
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    type = Column(String, nullable=False, default="PRACTICE")  # PRACTICE / FINAL / CERTIFICATION
    duration = Column(Integer, nullable=False, default=0)  # minutes
    passing_score = Column(Float, nullable=False, default=60.0)  # 0-100
    questions_count = Column(Integer, nullable=False, default=0)
    shuffle_questions = Column(Boolean, nullable=False, default=False)
    shuffle_options = Column(Boolean, nullable=False, default=False)
    allow_retake = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    questions = relationship(
        "QuestionModel",
        back_populates="test",
        order_by="QuestionModel.order_index",
    )
    attempts = relationship("AttemptModel", back_populates="test")
