"""Pydantic data models used across the refinement engine."""
from __future__ import annotations

from enum import Enum
from typing import Any, List

from pydantic import BaseModel, Field, field_validator


class PipelineStage(str, Enum):
    """Current phase of a refinement run."""

    INITIAL = "initial"
    VARIATIONS = "variations"
    COMBINED = "combined"


class Collection(str, Enum):
    """Addressable item collections inside a draft."""

    VARIATIONS = "variations"
    COMBINED = "combined"


class SeedIdea(BaseModel):
    """The user's raw idea that starts a refinement run."""

    title: str = Field("", description="One-line description of the idea, e.g. 'Tutus for ponies'")
    inspiration: str = Field("", description="What sparked the idea")
    concept_type: str = Field("", alias="type", description="Free-text classification: product/service/technology")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def has_title(self) -> bool:
        return bool(self.title.strip())


class EditBuffer(BaseModel):
    """Uncommitted inline edits of an item's title and description."""

    title: str = ""
    description: str = ""


class _DraftItem(BaseModel):
    """Fields shared by variations and combined concepts."""

    id: str = Field(..., description="Identifier, stable within one generation batch")
    title: str = ""
    description: str = ""
    target_market: str = Field("", alias="targetMarket")
    revenue_model: str = Field("", alias="revenueModel")
    selected: bool = False
    editing: bool = False
    edit_buffer: EditBuffer | None = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Generation backends often hand back numeric ids
        if isinstance(value, int):
            return str(value)
        return value


class Variation(_DraftItem):
    """One generated angle on the seed idea; multi-selectable."""

    differentiator: str = ""
    liked_aspects: str = Field("", alias="likedAspects", description="What the user liked about this angle")


class CombinedConcept(_DraftItem):
    """A synthesis of two or more selected variations; single-selectable."""

    source_elements: List[str] = Field(default_factory=list, alias="sourceElements")
    value_proposition: str = Field("", alias="valueProposition")


class PipelineDraft(BaseModel):
    """Complete in-memory state of one refinement run."""

    stage: PipelineStage = PipelineStage.INITIAL
    seed: SeedIdea = Field(default_factory=SeedIdea)
    variations: List[Variation] = Field(default_factory=list)
    combined_concepts: List[CombinedConcept] = Field(default_factory=list)
    combined_from: List[Variation] = Field(
        default_factory=list,
        description="Snapshot of the variations the current combined concepts were generated from",
    )


class VariationSnapshot(BaseModel):
    """Audit copy of a selected variation stored with a finalized idea."""

    title: str
    description: str
    differentiator: str
    target_market: str
    revenue_model: str
    liked_aspects: str = ""


class CombinedConceptRef(BaseModel):
    id: str
    title: str


class AIFeedback(BaseModel):
    """Audit payload describing which generated items produced an idea."""

    source_elements: List[str] = Field(default_factory=list)
    revenue_model: str = ""
    original_variations: List[VariationSnapshot] = Field(default_factory=list)
    combined_concept: CombinedConceptRef | None = None


class FinalizedIdeaRecord(BaseModel):
    """The row written to the idea store when a run is committed."""

    title: str
    description: str = ""
    target_market: str = ""
    solution_concept: str = ""
    status: str = "draft"
    ai_feedback: AIFeedback = Field(default_factory=AIFeedback)

    model_config = {
        "frozen": True,
    }


class CommitResult(BaseModel):
    idea_id: str
    record: FinalizedIdeaRecord
