"""
Reasoning engine clients.
"""

from .base import CancellationToken, ChatMessage, ReasoningEngine, RequestOptions
from .groq import GroqEngine

__all__ = [
    "CancellationToken",
    "ChatMessage",
    "ReasoningEngine",
    "RequestOptions",
    "GroqEngine",
]
