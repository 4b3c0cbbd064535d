from .mock_test_model import MockTestModel
from .question_model import QuestionModel
from .attempt_model import AttemptModel
from .answer_model import AnswerModel

__all__ = ["MockTestModel", "QuestionModel", "AttemptModel", "AnswerModel"]
