"""Contracts of the collaborators the pipeline talks to."""
from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence, Union

from .models import CombinedConcept, FinalizedIdeaRecord, SeedIdea, Variation

# Services may hand back validated models or raw JSON-like mappings.
RawVariation = Union[Variation, Mapping[str, Any]]
RawCombinedConcept = Union[CombinedConcept, Mapping[str, Any]]

# Inspiration prefix of a single-variation regeneration request
REGENERATION_PREFIX = "Original variation: "


class IdeaGenerationService(Protocol):
    """Black-box generator of idea variations and combined concepts.

    Implementations raise any exception carrying a human-readable message on
    failure. The pipeline treats that message as the user-facing error.
    """

    async def generate_variations(self, seed: SeedIdea) -> List[RawVariation]:
        ...

    async def generate_combined_concepts(
        self,
        base_title: str,
        selected_variations: Sequence[Variation],
    ) -> List[RawCombinedConcept]:
        ...


class IdeaGateway(Protocol):
    """Durable store for finalized ideas.

    ``commit`` performs a single logical write and returns the new idea id, or
    raises :class:`~refinement_engine.errors.PersistError` leaving nothing behind.
    """

    async def commit(self, record: FinalizedIdeaRecord) -> str:
        ...
