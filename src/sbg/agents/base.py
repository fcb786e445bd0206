"""Base agent abstraction."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ..services.anthropic import AnthropicClient
from ..config import config
from ..errors import RemoteError

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for Claude-backed agents.

    Provides the shared message call and JSON extraction. Subclasses
    implement `run` and define their prompts.
    """

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: AnthropicClient instance. Created if not provided.
            model: Model to use. Defaults to config.expansion_model.
        """
        self._model = model or (client.model if client else config.expansion_model)
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Return the system prompt for this agent."""
        ...

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task."""
        ...

    def _create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """Send a prompt with the agent's system prompt and return the text.

        Raises:
            RemoteError: Propagated from the client, already classified.
        """
        self._logger.debug(f"Creating message with prompt length: {len(prompt)}")

        try:
            response = self._client.create_message(
                prompt=prompt,
                max_tokens=max_tokens,
                system=self.system_prompt,
                temperature=temperature,
            )
        except RemoteError as e:
            self._logger.error(f"Error creating message ({e.kind.value}): {e}")
            raise

        self._logger.debug(f"Received response of length: {len(response)}")
        return response

    def _parse_json(self, response: str) -> Any:
        """Decode the JSON payload of a model response.

        Raises:
            RemoteError: If no valid JSON can be found (malformed).
        """
        json_str = self._extract_json(response)
        try:
            return json.loads(json_str)
        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse JSON: {e}")
            self._logger.debug(f"Raw response: {response}")
            raise RemoteError(f"Invalid JSON in response: {e}") from e

    @staticmethod
    def _extract_json(response: str) -> str:
        """Extract JSON from a response that may contain markdown or other text."""
        # Try to find JSON in code blocks
        if "```json" in response:
            start = response.find("```json") + 7
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

        if "```" in response:
            start = response.find("```") + 3
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

        # Take whichever bracket opens first, then find its match
        candidates = [
            (response.find(open_char), open_char, close_char)
            for open_char, close_char in (("[", "]"), ("{", "}"))
            if response.find(open_char) != -1
        ]
        if candidates:
            start, open_char, close_char = min(candidates)
            depth = 0
            for i, char in enumerate(response[start:], start):
                if char == open_char:
                    depth += 1
                elif char == close_char:
                    depth -= 1
                    if depth == 0:
                        return response[start:i + 1]

        # Return as-is if no JSON structure found
        return response.strip()
