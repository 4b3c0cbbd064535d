from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class QuestionModel(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String, nullable=False)
    question_text = Column(Text, nullable=False)
    audio_url = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    options = Column(JSON)  # [{"id": "a", "text": "...", "is_correct": bool}]
    correct_answer = Column(JSON)  # option id / text / list of blanks / matching map
    explanation = Column(Text, nullable=True)
    points = Column(Float, nullable=False, default=1.0)
    order_index = Column(Integer, nullable=False, default=0)

    # Taxonomy used by practice filters
    language = Column(String, nullable=True, index=True)
    module = Column(String, nullable=True, index=True)
    section = Column(String, nullable=True, index=True)
    standard_section = Column(String, nullable=True, index=True)
    difficulty = Column(String, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    test = relationship("MockTestModel", back_populates="questions")
