"""Idea Refinement Engine.

Guided pipeline that turns a founder's raw idea into a finalized concept:
seed idea -> generated variations -> combined concepts -> committed idea record.
"""

from .draft_state import DraftStateManager
from .errors import (
    GenerationError,
    GenerationInProgressError,
    ItemNotFoundError,
    PersistError,
    RefinementError,
    ValidationError,
)
from .models import (
    Collection,
    CombinedConcept,
    CommitResult,
    FinalizedIdeaRecord,
    PipelineDraft,
    PipelineStage,
    SeedIdea,
    Variation,
)
from .stage_controller import StageController

__all__ = [
    "Collection",
    "CombinedConcept",
    "CommitResult",
    "DraftStateManager",
    "FinalizedIdeaRecord",
    "GenerationError",
    "GenerationInProgressError",
    "ItemNotFoundError",
    "PersistError",
    "PipelineDraft",
    "PipelineStage",
    "RefinementError",
    "SeedIdea",
    "StageController",
    "ValidationError",
    "Variation",
]

__version__ = "0.1.0"
