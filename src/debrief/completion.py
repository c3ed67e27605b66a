"""Text completion backends."""

import logging
from typing import Protocol

import openai

from debrief.config import Config
from debrief.errors import CompletionError

logger = logging.getLogger(__name__)


class TextCompletion(Protocol):
    """Anything that turns a prompt into a response string.

    Implementations raise CompletionError on failure, timeout or
    cancellation, and never retry on their own.
    """

    def complete(self, prompt: str) -> str:
        ...


class GatewayCompletion:
    """Completion backend using an OpenAI-compatible model gateway."""

    def __init__(
        self,
        model: str = "lfm2-1.2b",
        base_url: str = "http://localhost:8800/v1",
        system_prompt: str = "",
        timeout: float = 120.0,
    ):
        # Retries are the scheduler's business, not the client's
        self.client = openai.OpenAI(
            base_url=base_url, api_key="not-needed", timeout=timeout, max_retries=0
        )
        self.model = model
        self.system_prompt = system_prompt

    def complete(self, prompt: str) -> str:
        """Send a single prompt to the gateway.

        Args:
            prompt: User prompt

        Returns:
            Generated text response, empty string if the model returned none

        Raises:
            CompletionError: On any API error, including timeouts
        """
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except openai.APITimeoutError as e:
            raise CompletionError(f"Completion timed out: {e}") from e
        except openai.OpenAIError as e:
            raise CompletionError(f"Completion failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def get_backend(config: Config) -> GatewayCompletion:
    """Build the completion backend from configuration."""
    backend = GatewayCompletion(
        model=config.gateway_model,
        base_url=config.gateway_url,
        system_prompt=config.system_prompt,
        timeout=config.completion_timeout,
    )
    logger.info(f"Using gateway ({config.gateway_model} via {config.gateway_url})")
    return backend
