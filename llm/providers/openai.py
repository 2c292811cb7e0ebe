"""OpenAI-compatible provider implementation.

Works against OpenAI itself and against any server exposing the same
chat-completions API, such as Ollama (http://localhost:11434/v1) or OpenRouter.
"""

from typing import Optional
import openai
from openai import OpenAI
from errors import InferenceError
from llm.providers.base import LLMProvider
from logger import get_logger

logger = get_logger()


class OpenAIProvider(LLMProvider):
    """Chat-completions provider with a bounded request time."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: API key. Local servers such as Ollama accept any value.
            model: Default model to use (e.g., "llama3.2", "gpt-4o-mini").
            base_url: API root. If None, the OpenAI default is used.
            timeout: Seconds before a request is abandoned.
        """
        # Retries are left to callers; a slow model must not stall a chat
        self.client = OpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )
        self.model = model
        self.timeout = timeout

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
        """Send the prompt through the chat-completions endpoint.

        Raises:
            InferenceError: On transport, timeout, or HTTP errors, or if the
                reply is empty.
        """
        model = model or self.model
        logger.debug(f"Calling model {model} (json_mode={json_mode})")

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.APITimeoutError as e:
            raise InferenceError(
                f"Model {model} timed out after {self.timeout}s"
            ) from e
        except openai.APIStatusError as e:
            raise InferenceError(
                f"Model API returned HTTP {e.status_code}: {e.message}"
            ) from e
        except openai.OpenAIError as e:
            raise InferenceError(f"Model API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise InferenceError(f"Model {model} returned an empty response")

        return content.strip()
