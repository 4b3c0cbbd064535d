import pytest

from linguaprep.application.evaluation.engine import EvaluationEngine
from linguaprep.application.evaluation.subjective import (
    FreeformAnswer,
    LLMSubjectiveEvaluator,
    MockSubjectiveEvaluator,
)
from linguaprep.domain.entities import QuestionRecord
from linguaprep.domain.errors import AuthenticationRequired
from linguaprep.domain.question_types import QuestionType
from linguaprep.infrastructure.security.identity import PassthroughIdentityProvider

WRITING = QuestionRecord(id=7, type=QuestionType.WRITING, prompt="Describe your hometown.", points=9.0)


class ScriptedLLM:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def generate(self, *, system_prompt, user_prompt):
        self.prompts.append(user_prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_mock_evaluator_is_deterministic():
    evaluator = MockSubjectiveEvaluator()
    first = evaluator.evaluate_subjective(WRITING, FreeformAnswer(text="essay"))
    second = evaluator.evaluate_subjective(WRITING, FreeformAnswer(text="another essay"))
    assert first.overall_score == second.overall_score == 7.8
    assert first.scale_max == 9.0


def test_llm_report_is_parsed_from_code_fence():
    llm = ScriptedLLM('Here you go:\n```json\n{"overall": 6.5, "criteria": {"task_achievement": 6}}\n```')
    score = LLMSubjectiveEvaluator(llm).evaluate_subjective(WRITING, FreeformAnswer(text="My town is small."))
    assert score.overall_score == 6.5
    assert score.sub_scores == {"task_achievement": 6.0}
    assert "My town is small." in llm.prompts[0]


def test_llm_transport_errors_are_retried():
    llm = ScriptedLLM(ConnectionError("reset"), '{"overall": 5}')
    score = LLMSubjectiveEvaluator(llm).evaluate_subjective(WRITING, FreeformAnswer(text="text"))
    assert score.overall_score == 5.0
    assert len(llm.prompts) == 2


@pytest.mark.parametrize("reply", ["not json at all", '{"criteria": {}}', '{"overall": 12}'])
def test_bad_llm_reports_raise(reply):
    with pytest.raises(ValueError):
        LLMSubjectiveEvaluator(ScriptedLLM(reply)).evaluate_subjective(WRITING, FreeformAnswer(text="text"))


def test_bad_llm_report_becomes_zero_score_item():
    engine = EvaluationEngine(LLMSubjectiveEvaluator(ScriptedLLM("no idea")))
    result = engine.evaluate(WRITING, {"text_answer": "text"})
    assert result.status == "error"
    assert result.score == 0.0
    assert result.max_score == 9.0


def test_llm_band_maps_onto_points():
    engine = EvaluationEngine(LLMSubjectiveEvaluator(ScriptedLLM('{"overall": 4.5}')))
    result = engine.evaluate(WRITING, {"content": "text"})
    assert result.score == 4.5
    assert result.is_correct is False


def test_passthrough_identity():
    provider = PassthroughIdentityProvider()
    assert provider.resolve(" user-42 ") == "user-42"
    with pytest.raises(AuthenticationRequired):
        provider.resolve(None)
    with pytest.raises(AuthenticationRequired):
        provider.resolve("   ")


def test_chat_content_blocks_are_flattened():
    from linguaprep.infrastructure.llm.huggingface_client import _message_text

    assert _message_text('{"overall": 7}') == '{"overall": 7}'
    assert _message_text(['{"overall": ', {"type": "text", "text": "7}"}, {"type": "image"}]) == '{"overall": 7}'
