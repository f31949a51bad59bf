"""Completion service: one blocking prompt -> reply round-trip."""

import logging
from abc import ABC, abstractmethod

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from quizforge.services.prompts import SYSTEM_PROMPT
from quizforge.utils.config import Settings
from quizforge.utils.errors import CompletionError

logger = logging.getLogger(__name__)


class CompletionService(ABC):
    """Anything that can answer a prompt with text."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the raw reply text.

        Transport and rate-limit errors propagate unchanged; nothing here
        retries.
        """
        pass


class GeminiCompletionService(CompletionService):
    """ChatGoogleGenerativeAI wrapper with the educational system prompt."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.7,
        max_output_tokens: int = 2000,
        timeout: float = 60.0,
    ):
        if not api_key:
            raise CompletionError("GOOGLE_API_KEY not found. Please check the API key configuration.")
        self.model = model
        self.llm = ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            timeout=timeout,
            max_retries=0,
        )

    def complete(self, prompt: str) -> str:
        logger.info(f"Calling {self.model} with a {len(prompt)} character prompt")
        response = self.llm.invoke([
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=prompt),
        ])
        return _message_text(response.content)


def _message_text(content) -> str:
    # newer chat models may return a list of content parts
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def create_completion_service(config: Settings) -> CompletionService:
    """ Build the completion client from explicit configuration. """
    return GeminiCompletionService(
        api_key=config.google_api_key,
        model=config.llm_model,
        temperature=config.llm_temperature,
        max_output_tokens=config.llm_max_output_tokens,
        timeout=config.llm_timeout_s,
    )
