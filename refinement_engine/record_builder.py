"""Assemble the :class:`FinalizedIdeaRecord` committed at the end of a run."""
from __future__ import annotations

from typing import Sequence

from .errors import ValidationError
from .models import (
    AIFeedback,
    CombinedConcept,
    CombinedConceptRef,
    FinalizedIdeaRecord,
    Variation,
    VariationSnapshot,
)

DRAFT_STATUS = "draft"


def snapshot_variation(variation: Variation) -> VariationSnapshot:
    return VariationSnapshot(
        title=variation.title,
        description=variation.description,
        differentiator=variation.differentiator,
        target_market=variation.target_market,
        revenue_model=variation.revenue_model,
        liked_aspects=variation.liked_aspects,
    )


def _require_title(title: str) -> None:
    if not title.strip():
        raise ValidationError("The selected idea has no title; edit it before continuing")


def record_from_variation(variation: Variation) -> FinalizedIdeaRecord:
    """Finalize directly from a single selected variation."""
    _require_title(variation.title)
    return FinalizedIdeaRecord(
        title=variation.title,
        description=variation.description,
        target_market=variation.target_market,
        solution_concept=variation.differentiator,
        status=DRAFT_STATUS,
        ai_feedback=AIFeedback(
            source_elements=[variation.differentiator],
            revenue_model=variation.revenue_model,
            original_variations=[snapshot_variation(variation)],
        ),
    )


def record_from_concept(
    concept: CombinedConcept,
    selected_variations: Sequence[Variation],
) -> FinalizedIdeaRecord:
    """Finalize from the chosen combined concept and the variations behind it."""
    _require_title(concept.title)
    return FinalizedIdeaRecord(
        title=concept.title,
        description=concept.description,
        target_market=concept.target_market,
        solution_concept=concept.value_proposition,
        status=DRAFT_STATUS,
        ai_feedback=AIFeedback(
            source_elements=list(concept.source_elements),
            revenue_model=concept.revenue_model,
            original_variations=[snapshot_variation(v) for v in selected_variations],
            combined_concept=CombinedConceptRef(id=concept.id, title=concept.title),
        ),
    )
