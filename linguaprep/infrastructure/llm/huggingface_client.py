import logging
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_huggingface import ChatHuggingFace, HuggingFaceEndpoint

from linguaprep.core.config import Config

logger = logging.getLogger(__name__)


def _message_text(content: Any) -> str:
    # Chat models may return a plain string or a list of content blocks
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)


class HuggingFaceExaminerClient:
    """
    Chat client used to request band reports for free-form answers.

    Greedy decoding by default so the same answer gets the same report.
    """

    def __init__(
        self,
        *,
        repo_id: str,
        api_token: Optional[str] = None,
        max_new_tokens: int = 384,
        temperature: Optional[float] = None,
        timeout: int = 30,
    ):
        endpoint_kwargs: Dict[str, Any] = {
            "repo_id": repo_id,
            "task": "text-generation",
            "max_new_tokens": max_new_tokens,
            "do_sample": temperature is not None,
            "repetition_penalty": 1.03,
            "timeout": timeout,
        }
        if temperature is not None:
            endpoint_kwargs["temperature"] = temperature
        if api_token:
            endpoint_kwargs["huggingfacehub_api_token"] = api_token

        self._chat = ChatHuggingFace(llm=HuggingFaceEndpoint(**endpoint_kwargs))
        self._repo_id = repo_id

    @classmethod
    def from_config(cls, settings: Config) -> "HuggingFaceExaminerClient":
        return cls(
            repo_id=settings.HF_REPO_ID,
            api_token=settings.HF_TOKEN,
            timeout=settings.HF_TIMEOUT,
        )

    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        logger.debug(f"Requesting band report from repo_id={self._repo_id}")
        result = self._chat.invoke(
            [
                SystemMessage(content=system_prompt),
                HumanMessage(content=user_prompt),
            ]
        )
        text = _message_text(result.content).strip()
        if not text:
            raise ValueError(f"Empty response from {self._repo_id}")
        logger.debug(f"Band report received, {len(text)} chars")
        return text
