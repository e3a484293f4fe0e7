import logging
from typing import Optional

from langchain_huggingface import HuggingFaceEndpoint, ChatHuggingFace
from langchain_core.messages import SystemMessage, HumanMessage

from mockprep.core.config import settings
from .llm_client import LLMClient

logger = logging.getLogger(__name__)


class HuggingFaceChatClient(LLMClient):
    """Chat-completion client over a HuggingFace inference endpoint."""

    def __init__(
        self,
        *,
        repo_id: str,
        huggingfacehub_api_token: Optional[str] = None,
        max_new_tokens: int = 2048,
        timeout: int = 60,
        temperature: float = 0.3,
    ):
        llm = HuggingFaceEndpoint(
            repo_id=repo_id,
            task="text-generation",
            max_new_tokens=max_new_tokens,
            temperature=temperature,
            timeout=timeout,
            huggingfacehub_api_token=huggingfacehub_api_token,
        )
        self._chat = ChatHuggingFace(llm=llm)
        self._repo_id = repo_id

    @classmethod
    def from_settings(cls) -> "HuggingFaceChatClient":
        return cls(
            repo_id=settings.HF_REPO_ID,
            huggingfacehub_api_token=settings.HF_TOKEN,
            max_new_tokens=settings.HF_MAX_NEW_TOKENS,
            timeout=settings.LLM_TIMEOUT,
        )

    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        logger.debug(f"Calling {self._repo_id}, prompt length={len(user_prompt)} chars")

        result = self._chat.invoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ])

        # content is either a string or a list of text parts
        content = result.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content
            )
        logger.debug(f"{self._repo_id} returned {len(content)} chars")
        return content
