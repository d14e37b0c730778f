"""Core utilities shared by every layer.

This package is framework-agnostic. It must NEVER import from ``bot/``, ``sdk/`` or ``session/``.
"""

from core.logger import PollbotLogger

__all__ = [
    "PollbotLogger",
]
