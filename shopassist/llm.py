"""Chat-completion client used to generate grounded answers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from openai import OpenAI

from .config import config

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Message

logger = config.get_logger(__name__)

EMPTY_COMPLETION_ANSWER = "Je suis désolé, je n'ai pas pu générer de réponse."


class GenerationClient:
    """Thin wrapper over the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: OpenAI API key. If None, read from the environment.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            max_tokens: Completion budget. If None, uses config.CHAT_MAX_TOKENS.
            temperature: Sampling temperature. If None, uses
                config.CHAT_TEMPERATURE.
        """
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            timeout=config.OPENAI_TIMEOUT,
            default_headers=default_headers or None,
        )
        self.model = model or config.CHAT_MODEL
        self.max_tokens = max_tokens if max_tokens is not None else config.CHAT_MAX_TOKENS
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )

    def generate(self, messages: Sequence[Message]) -> str:
        """Generate an answer for an ordered list of messages.

        Returns:
            The stripped text of the first choice.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[message.to_dict() for message in messages],  # type: ignore[misc]
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        content = response.choices[0].message.content
        if not content:
            logger.warning("Chat completion returned empty content")
            return EMPTY_COMPLETION_ANSWER
        return content.strip()
