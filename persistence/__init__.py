"""Idea stores implementing the persistence gateway contract."""

from refinement_engine.config import RefinementSettings

from .csv_gateway import CsvIdeaGateway
from .memory_gateway import InMemoryIdeaGateway, ensure_complete
from .supabase_gateway import SupabaseIdeaGateway

__all__ = [
    "CsvIdeaGateway",
    "InMemoryIdeaGateway",
    "SupabaseIdeaGateway",
    "build_gateway",
    "ensure_complete",
]


def build_gateway(settings: RefinementSettings):
    """Return the idea store selected by *settings*."""
    if settings.idea_store == "supabase":
        return SupabaseIdeaGateway.from_settings(settings)
    if settings.idea_store == "memory":
        return InMemoryIdeaGateway()
    return CsvIdeaGateway(settings.idea_store_path)
