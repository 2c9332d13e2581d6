"""Idea-generation services: a deterministic mock and an LLM-backed generator."""

from refinement_engine.config import RefinementSettings

from .ai_generator import AIIdeaGenerator
from .mock_generator import MockIdeaGenerator

__all__ = [
    "AIIdeaGenerator",
    "MockIdeaGenerator",
    "build_generator",
]


def build_generator(settings: RefinementSettings):
    """Return the generation service selected by *settings*."""
    if settings.generation_backend == "ai":
        return AIIdeaGenerator(
            preferred_api=settings.preferred_api,
            openai_model=settings.openai_model,
            claude_model=settings.claude_model,
        )
    return MockIdeaGenerator()
