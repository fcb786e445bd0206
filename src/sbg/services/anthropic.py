"""Anthropic Claude API client wrapper."""

import logging
from typing import Optional

from anthropic import Anthropic, APIConnectionError, APIError, APIStatusError

from ..config import config
from ..errors import RemoteError, RemoteErrorKind, remote_error_for_status

logger = logging.getLogger(__name__)


class AnthropicClient:
    """Client wrapper for the Anthropic Messages API.

    Provider exceptions are translated into classified RemoteErrors; retrying
    is left to the pipeline's RetryExecutor.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to config.expansion_model.
        """
        self._api_key = api_key or config.anthropic_api_key
        if not self._api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY env var."
            )

        # The SDK's own retries would hide rate limits from our backoff policy
        self._client = Anthropic(api_key=self._api_key, max_retries=0)
        self._model = model or config.expansion_model

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Create a message using Claude.

        Args:
            prompt: The user prompt to send.
            max_tokens: Maximum tokens in the response.
            system: Optional system prompt.
            temperature: Sampling temperature (0.0-1.0).

        Returns:
            The text content of Claude's response.

        Raises:
            RemoteError: Classified failure (QuotaError for rate limits).
        """
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        logger.debug(f"Sending request to Claude ({self._model})")

        try:
            response = self._client.messages.create(**kwargs)

        except APIStatusError as e:
            logger.debug(f"Claude returned {e.status_code}: {e}")
            raise remote_error_for_status(e.status_code, f"Claude API error: {e}") from e

        except APIConnectionError as e:
            # Includes timeouts
            raise RemoteError(
                f"Claude connection error: {e}", kind=RemoteErrorKind.TRANSIENT
            ) from e

        except APIError as e:
            raise RemoteError(f"Claude API error: {e}") from e

        if getattr(response, "stop_reason", None) == "refusal":
            raise RemoteError("Claude declined the request", kind=RemoteErrorKind.BLOCKED)

        texts = [block.text for block in response.content if hasattr(block, "text")]
        text = "".join(texts).strip()
        if not text:
            raise RemoteError("Claude returned an empty response")
        return text
