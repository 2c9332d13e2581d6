"""Stage machine driving a refinement run.

::

    initial --generate_variations--> variations --combine--> combined
       ^                                |  ^                    |
       +-------------back---------------+  +--------back--------+

``commit`` is available from ``variations`` when exactly one variation is selected
(the combination stage is skipped) and from ``combined`` once one concept is picked.

Only calls to the generation service and the idea gateway suspend. At most one
generation request per collection may be outstanding; a result that arrives after
the user navigated away (back, reset, new seed) is dropped instead of being applied.
A combination is also dropped when the selected variations changed while it ran,
and the variations it was built from are kept with the draft for the audit payload.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Iterator, List, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from .draft_state import DraftStateManager
from .errors import (
    GenerationError,
    GenerationInProgressError,
    PersistError,
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
from .record_builder import record_from_concept, record_from_variation
from .services import REGENERATION_PREFIX, IdeaGateway, IdeaGenerationService

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_TIMEOUT = 60.0

ItemT = TypeVar("ItemT", bound=BaseModel)

# Variation fields a combination result depends on
_COMBINATION_INPUT_FIELDS = (
    "id",
    "title",
    "description",
    "differentiator",
    "target_market",
    "revenue_model",
    "liked_aspects",
)


class StageController:
    """Validates and applies every stage transition of one draft."""

    def __init__(
        self,
        service: IdeaGenerationService,
        gateway: IdeaGateway | None = None,
        state: DraftStateManager | None = None,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT,
    ):
        self.service = service
        self.gateway = gateway
        self.state = state if state is not None else DraftStateManager()
        self.generation_timeout = generation_timeout
        self._in_flight: set[Collection] = set()
        self._committing = False
        # Bumped whenever outstanding results would land out of context
        self._epoch = 0

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def draft(self) -> PipelineDraft:
        return self.state.draft

    @property
    def stage(self) -> PipelineStage:
        return self.state.draft.stage

    @property
    def seed(self) -> SeedIdea:
        return self.state.draft.seed

    def is_generating(self, collection: Collection | None = None) -> bool:
        if collection is None:
            return bool(self._in_flight)
        return Collection(collection) in self._in_flight

    # ------------------------------------------------------------------
    # Seed
    # ------------------------------------------------------------------

    def update_seed(
        self,
        title: str | None = None,
        inspiration: str | None = None,
        concept_type: str | None = None,
    ) -> SeedIdea:
        """Edit the seed idea; only allowed before variations exist."""
        if self.stage is not PipelineStage.INITIAL:
            raise ValidationError("The seed idea is locked once variations are generated; go back to change it")

        changes = {
            name: value
            for name, value in (("title", title), ("inspiration", inspiration), ("concept_type", concept_type))
            if value is not None
        }
        if changes:
            self.draft.seed = self.seed.model_copy(update=changes)
            self._epoch += 1
        return self.seed

    # ------------------------------------------------------------------
    # Generation transitions
    # ------------------------------------------------------------------

    async def generate_variations(self) -> List[Variation] | None:
        """``initial -> variations``: request the first batch of variations."""
        self._require_stage(PipelineStage.INITIAL, "generate variations")
        seed = self.seed
        if not seed.has_title():
            raise ValidationError("Please describe your idea first")

        with self._generation_slot(Collection.VARIATIONS):
            epoch = self._epoch
            logger.info("Generating variations for '%s'", seed.title)
            raw = await self._call_service(self.service.generate_variations(seed), "variations")
            batch = self._validate_batch(raw, Variation, "variations")

            if epoch != self._epoch or self.stage is not PipelineStage.INITIAL:
                logger.info("Discarding %d variations for '%s': the draft moved on", len(batch), seed.title)
                return None

            self.state.set_variations(batch)
            self.state.clear_combined_concepts()
            self.draft.stage = PipelineStage.VARIATIONS
            self._epoch += 1
            logger.info("Received %d variations", len(batch))
            return list(self.draft.variations)

    async def regenerate_variation(self, item_id: str) -> Variation | None:
        """Replace one variation's content in place; id, selection and liked aspects survive."""
        self._require_stage(PipelineStage.VARIATIONS, "regenerate a variation")
        current = self.state.get(Collection.VARIATIONS, item_id)
        seed = SeedIdea(
            title=self.seed.title,
            inspiration=f"{REGENERATION_PREFIX}{current.title} - {current.description}",
            concept_type=self.seed.concept_type,
        )

        with self._generation_slot(Collection.VARIATIONS):
            epoch = self._epoch
            logger.info("Regenerating variation '%s'", item_id)
            raw = await self._call_service(self.service.generate_variations(seed), "variations")
            batch = self._validate_batch(raw, Variation, "variations")

            if (
                epoch != self._epoch
                or self.stage is not PipelineStage.VARIATIONS
                or not self.state.has(Collection.VARIATIONS, item_id)
            ):
                logger.info("Discarding regenerated variation '%s': the draft moved on", item_id)
                return None

            return self.state.replace_variation_content(item_id, batch[0])

    async def combine(self) -> List[CombinedConcept] | None:
        """``variations -> combined``: synthesize concepts from the selected variations."""
        self._require_stage(PipelineStage.VARIATIONS, "combine variations")
        selected = self._require_combinable()
        if self.is_generating(Collection.VARIATIONS):
            raise GenerationInProgressError("Wait for the variations to finish generating before combining them")

        concepts = await self._run_combination(selected, PipelineStage.VARIATIONS)
        if concepts is not None:
            self.draft.stage = PipelineStage.COMBINED
        return concepts

    async def regenerate_combined(self) -> List[CombinedConcept] | None:
        """``combined -> combined``: replace the whole concept batch.

        Re-runs the combination with the variations that produced the current batch,
        whatever the variation selection looks like now.
        """
        self._require_stage(PipelineStage.COMBINED, "regenerate combined options")
        sources = list(self.draft.combined_from) or self._require_combinable()
        return await self._run_combination(sources, PipelineStage.COMBINED)

    async def _run_combination(
        self,
        selected: Sequence[Variation],
        expected_stage: PipelineStage,
    ) -> List[CombinedConcept] | None:
        with self._generation_slot(Collection.COMBINED):
            epoch = self._epoch
            logger.info("Combining %d variations of '%s'", len(selected), self.seed.title)
            raw = await self._call_service(
                self.service.generate_combined_concepts(self.seed.title, list(selected)),
                "combined ideas",
            )
            batch = self._validate_batch(raw, CombinedConcept, "combined ideas")

            if epoch != self._epoch or self.stage is not expected_stage:
                logger.info("Discarding %d combined ideas: the draft moved on", len(batch))
                return None
            if _combination_key(self._combination_inputs()) != _combination_key(selected):
                logger.info("Discarding %d combined ideas: the selected variations changed", len(batch))
                return None

            self.state.set_combined_concepts(batch, sources=selected)
            logger.info("Received %d combined ideas", len(batch))
            return list(self.draft.combined_concepts)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def back(self) -> PipelineStage:
        """Step back one stage, discarding the later stage's data."""
        if self.stage is PipelineStage.COMBINED:
            self.state.clear_combined_concepts()
            self.draft.stage = PipelineStage.VARIATIONS
        elif self.stage is PipelineStage.VARIATIONS:
            self.state.clear_combined_concepts()
            self.state.clear_variations()
            self.draft.stage = PipelineStage.INITIAL
        else:
            return self.stage
        self._epoch += 1
        logger.info("Moved back to stage '%s'", self.stage.value)
        return self.stage

    def reset(self) -> None:
        """Start over with an empty seed ("new idea")."""
        self.draft.stage = PipelineStage.INITIAL
        self.draft.seed = SeedIdea()
        self.state.clear_variations()
        self.state.clear_combined_concepts()
        self._epoch += 1

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def build_record(self) -> FinalizedIdeaRecord:
        """Derive the idea record from whichever stage holds the final selection."""
        if self.stage is PipelineStage.VARIATIONS:
            selected = self.state.selected_variations()
            if not selected:
                raise ValidationError("Please select an idea to continue")
            if len(selected) > 1:
                raise ValidationError("Combine your selected variations or keep exactly one selected to continue")
            return record_from_variation(selected[0])

        if self.stage is PipelineStage.COMBINED:
            concept = self.state.selected_concept()
            if concept is None:
                raise ValidationError("Please select an idea to continue")
            return record_from_concept(concept, self.draft.combined_from)

        raise ValidationError("Please select an idea to continue")

    async def commit(self, continue_to_next: bool = False) -> CommitResult:
        """Persist the selected idea.

        The draft is kept on failure so the user can retry. With *continue_to_next*
        the draft is reset after a successful write.
        """
        record = self.build_record()
        if self.gateway is None:
            raise PersistError("No idea store is configured")
        if self._committing:
            raise ValidationError("The idea is already being saved")

        self._committing = True
        try:
            idea_id = await self.gateway.commit(record)
        except PersistError as exc:
            logger.error("Error saving idea '%s': %s", record.title, exc)
            raise
        except Exception as exc:
            logger.error("Error saving idea '%s': %s", record.title, exc)
            raise PersistError(str(exc) or "Failed to save idea") from exc
        finally:
            self._committing = False

        logger.info("Saved idea '%s' as %s", record.title, idea_id)
        if continue_to_next:
            self.reset()
        return CommitResult(idea_id=str(idea_id), record=record)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_stage(self, stage: PipelineStage, action: str) -> None:
        if self.stage is not stage:
            raise ValidationError(f"Cannot {action} from stage '{self.stage.value}'")

    def _require_combinable(self) -> List[Variation]:
        selected = self.state.selected_variations()
        if len(selected) < 2:
            raise ValidationError("Please select at least two variations to combine")
        return selected

    def _combination_inputs(self) -> List[Variation]:
        if self.stage is PipelineStage.COMBINED:
            return list(self.draft.combined_from)
        return self.state.selected_variations()

    @contextlib.contextmanager
    def _generation_slot(self, collection: Collection) -> Iterator[None]:
        if collection in self._in_flight:
            raise GenerationInProgressError(f"Still generating {collection.value}; please wait")
        self._in_flight.add(collection)
        try:
            yield
        finally:
            self._in_flight.discard(collection)

    async def _call_service(self, call: Awaitable[Any], what: str) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self.generation_timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Generating %s timed out after %.0fs", what, self.generation_timeout)
            raise GenerationError(f"Timed out generating {what}; please try again") from exc
        except GenerationError:
            raise
        except Exception as exc:
            logger.error("Error generating %s: %s", what, exc)
            raise GenerationError(str(exc) or f"Failed to generate {what}") from exc

    @staticmethod
    def _validate_batch(raw: Any, model: Type[ItemT], what: str) -> List[ItemT]:
        """Validate a whole service response before anything is applied."""
        if not isinstance(raw, (list, tuple)):
            raise GenerationError(f"Invalid response format: {what} should be a list")
        if not raw:
            raise GenerationError(f"The generator returned no {what}")

        try:
            batch = [item.model_copy() if isinstance(item, model) else model.model_validate(item) for item in raw]
        except SchemaError as exc:
            raise GenerationError(f"Invalid {what} in response: {exc.error_count()} field error(s)") from exc

        ids = [item.id for item in batch]
        if len(set(ids)) != len(ids):
            raise GenerationError(f"Invalid response format: duplicate ids among {what}")
        return batch


def _combination_key(variations: Sequence[Variation]) -> List[tuple]:
    return [tuple(getattr(v, name) for name in _COMBINATION_INPUT_FIELDS) for v in variations]
