"""Base provider interface for LLM implementations."""

from abc import ABC, abstractmethod
from typing import Optional


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    A provider sends one prompt to a language model and returns the raw text
    of the reply. Interpreting that text is the caller's job.
    """

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 150,
        json_mode: bool = False,
    ) -> str:
        """Get a completion for a prompt.

        Args:
            system_prompt: Instructions for the model.
            user_prompt: The rendered user message.
            model: Model name. If None, the provider's configured model is used.
            temperature: Sampling temperature.
            max_tokens: Upper bound on output tokens.
            json_mode: Ask the service to constrain the reply to a JSON object.

        Returns:
            The model's reply text.

        Raises:
            InferenceError: If the service is unreachable, times out, returns
                an HTTP error, or returns an empty reply.
        """
        pass
