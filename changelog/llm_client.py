"""
LLM client for sending chat prompts to OpenAI or Claude.

Uses OpenAI Python SDK which supports both OpenAI and Anthropic models
(through Anthropic's OpenAI-compatible endpoint), providing a unified
interface for both providers. Supports both streamed and single-shot
completions.
"""

import logging
from typing import Any, Dict, Iterator, List, Optional
from openai import OpenAI

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Client for interacting with LLM providers.

    The model and sampling parameters are chosen per call, since they come
    from the prompt template rather than from the client.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 4096,
        timeout: float = 30.0
    ):
        """
        Initialize LLM client.

        Args:
            provider: LLM provider - 'openai' or 'anthropic'
            api_key: API key for the provider
            model: Default model when a call does not name one
            temperature: Default sampling temperature
            max_tokens: Output cap used for Anthropic when a call sets none
                       (max_tokens is required by the Anthropic API)
            timeout: Request timeout in seconds

        Raises:
            ValueError: If provider is not supported or API key is missing
        """
        self.provider = provider.lower()
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        # Validate provider
        if self.provider not in ["anthropic", "openai"]:
            raise ValueError(f"Unsupported provider: {provider}. Must be 'anthropic' or 'openai'")

        # Validate API key
        if not api_key:
            raise ValueError(f"{provider} API key is required but not provided")

        # For Anthropic, OpenAI SDK uses base_url and api_key
        if self.provider == "anthropic":
            self.client = OpenAI(
                api_key=api_key,
                base_url="https://api.anthropic.com/v1",
                timeout=timeout
            )
        else:
            self.client = OpenAI(api_key=api_key, timeout=timeout)

        logger.info(f"Initialized LLMClient: provider={provider}, default model={model}")

    def _build_kwargs(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str],
        temperature: Optional[float],
        max_tokens: Optional[int]
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
        }

        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        elif self.provider == "anthropic":
            kwargs["max_tokens"] = self.max_tokens

        return kwargs

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Iterator[str]:
        """
        Stream a chat completion as text chunks.

        The request is sent on the first next() call; errors from the API
        surface there or mid-stream.

        Args:
            messages: Chat messages ({"role", "content"} dicts)
            model: Model name (defaults to the client's model)
            temperature: Sampling temperature
            max_tokens: Optional output token cap

        Yields:
            Non-empty text deltas in order
        """
        kwargs = self._build_kwargs(messages, model, temperature, max_tokens)
        logger.debug(f"Streaming completion from {self.provider} (model={kwargs['model']})")

        stream = self.client.chat.completions.create(stream=True, **kwargs)

        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            stream.close()

    def send_messages(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Send chat messages and get the full text response.

        Args:
            messages: Chat messages ({"role", "content"} dicts)
            model: Model name (defaults to the client's model)
            temperature: Sampling temperature
            max_tokens: Optional output token cap

        Returns:
            Text response from the LLM (empty string if the model returned none)

        Raises:
            Exception: If API call fails (auth, rate limit, etc.)
        """
        try:
            kwargs = self._build_kwargs(messages, model, temperature, max_tokens)
            logger.debug(f"Sending {len(messages)} messages to {self.provider} (model={kwargs['model']})")

            response = self.client.chat.completions.create(**kwargs)

            response_text = response.choices[0].message.content

            # Log token usage
            if hasattr(response, "usage") and response.usage:
                logger.info(
                    f"LLM usage: {response.usage.prompt_tokens} prompt tokens, "
                    f"{response.usage.completion_tokens} completion tokens, "
                    f"{response.usage.total_tokens} total"
                )

            return response_text if response_text else ""

        except Exception as e:
            logger.error(f"LLM API call failed: {e}")
            raise
