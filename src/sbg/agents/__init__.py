"""Claude-backed agents."""

from .base import BaseAgent
from .beats import BeatExpansionAgent

__all__ = ["BaseAgent", "BeatExpansionAgent"]
