"""Selection and inline-edit bookkeeping for a refinement draft.

Every mutation builds a fresh item list and swaps it into the draft with a single
assignment, so a reader never sees a half-applied update (e.g. two combined concepts
selected at once).
"""
from __future__ import annotations

import logging
from typing import List, Sequence

from .errors import ItemNotFoundError, ValidationError
from .models import (
    Collection,
    CombinedConcept,
    EditBuffer,
    PipelineDraft,
    Variation,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description")

# Content replaced when a single variation is regenerated
_VARIATION_CONTENT_FIELDS = ("title", "description", "differentiator", "target_market", "revenue_model")


class DraftStateManager:
    """Owns the item collections of one :class:`PipelineDraft`."""

    def __init__(self, draft: PipelineDraft | None = None):
        self.draft = draft if draft is not None else PipelineDraft()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def items(self, collection: Collection) -> List[Variation] | List[CombinedConcept]:
        collection = Collection(collection)
        if collection is Collection.VARIATIONS:
            return self.draft.variations
        return self.draft.combined_concepts

    def get(self, collection: Collection, item_id: str) -> Variation | CombinedConcept:
        for item in self.items(collection):
            if item.id == item_id:
                return item
        raise ItemNotFoundError(Collection(collection).value, item_id)

    def has(self, collection: Collection, item_id: str) -> bool:
        return any(item.id == item_id for item in self.items(collection))

    def selected_variations(self) -> List[Variation]:
        return [v for v in self.draft.variations if v.selected]

    def selected_concept(self) -> CombinedConcept | None:
        return next((c for c in self.draft.combined_concepts if c.selected), None)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def toggle_select(self, collection: Collection, item_id: str) -> Variation | CombinedConcept:
        """Flip selection of *item_id*.

        Variations are multi-select. Combined concepts are single-select: selecting
        one clears every other, and toggling the selected one leaves none selected.
        """
        collection = Collection(collection)
        target = self.get(collection, item_id)

        if collection is Collection.VARIATIONS:
            updated = self._swap(collection, item_id, selected=not target.selected)
        else:
            make_selected = not target.selected
            concepts = [
                c.model_copy(update={"selected": make_selected and c.id == item_id})
                for c in self.draft.combined_concepts
            ]
            self.draft.combined_concepts = concepts
            updated = self.get(collection, item_id)

        logger.debug("Toggled %s '%s' -> selected=%s", collection.value, item_id, updated.selected)
        return updated

    # ------------------------------------------------------------------
    # Inline editing
    # ------------------------------------------------------------------

    def begin_edit(self, collection: Collection, item_id: str) -> Variation | CombinedConcept:
        """Enter edit mode, seeding the buffer from the canonical fields."""
        item = self.get(collection, item_id)
        if item.editing:
            return item
        buffer = EditBuffer(title=item.title, description=item.description)
        return self._swap(collection, item_id, editing=True, edit_buffer=buffer)

    def update_edit_buffer(self, collection: Collection, item_id: str, field: str, value: str) -> None:
        """Write *value* into the edit buffer; silently ignored outside edit mode."""
        if field not in EDITABLE_FIELDS:
            raise ValidationError(f"'{field}' is not an editable field (expected one of {EDITABLE_FIELDS})")
        if not self.has(collection, item_id):
            return
        item = self.get(collection, item_id)
        if not item.editing or item.edit_buffer is None:
            return
        self._swap(collection, item_id, edit_buffer=item.edit_buffer.model_copy(update={field: value}))

    def commit_edit(self, collection: Collection, item_id: str) -> Variation | CombinedConcept:
        """Copy the buffer into the canonical fields and leave edit mode.

        Blank buffer values keep the existing canonical value.
        """
        item = self.get(collection, item_id)
        if not item.editing or item.edit_buffer is None:
            return item
        buffer = item.edit_buffer
        return self._swap(
            collection,
            item_id,
            title=buffer.title if buffer.title.strip() else item.title,
            description=buffer.description if buffer.description.strip() else item.description,
            editing=False,
            edit_buffer=None,
        )

    def cancel_edit(self, collection: Collection, item_id: str) -> Variation | CombinedConcept:
        """Drop the buffer and leave edit mode; canonical fields are untouched."""
        self.get(collection, item_id)
        return self._swap(collection, item_id, editing=False, edit_buffer=None)

    def update_liked_aspects(self, item_id: str, text: str) -> Variation:
        self.get(Collection.VARIATIONS, item_id)
        return self._swap(Collection.VARIATIONS, item_id, liked_aspects=text)

    # ------------------------------------------------------------------
    # Batch application (driven by the stage controller)
    # ------------------------------------------------------------------

    def set_variations(self, batch: Sequence[Variation]) -> None:
        """Install a freshly generated batch with all user state cleared."""
        self.draft.variations = [
            v.model_copy(update={"selected": False, "editing": False, "edit_buffer": None, "liked_aspects": ""})
            for v in batch
        ]

    def replace_variation_content(self, item_id: str, fresh: Variation) -> Variation:
        """Swap in regenerated content, keeping id, selection and liked aspects."""
        self.get(Collection.VARIATIONS, item_id)
        content = {name: getattr(fresh, name) for name in _VARIATION_CONTENT_FIELDS}
        return self._swap(Collection.VARIATIONS, item_id, editing=False, edit_buffer=None, **content)

    def set_combined_concepts(
        self,
        batch: Sequence[CombinedConcept],
        sources: Sequence[Variation] = (),
    ) -> None:
        """Install a concept batch together with the variations it was generated from."""
        self.draft.combined_from = [v.model_copy() for v in sources]
        self.draft.combined_concepts = [
            c.model_copy(update={"selected": False, "editing": False, "edit_buffer": None}) for c in batch
        ]

    def clear_variations(self) -> None:
        self.draft.variations = []

    def clear_combined_concepts(self) -> None:
        self.draft.combined_concepts = []
        self.draft.combined_from = []

    # ------------------------------------------------------------------

    def _swap(self, collection: Collection, item_id: str, **changes) -> Variation | CombinedConcept:
        collection = Collection(collection)
        updated = None
        fresh_items = []
        for item in self.items(collection):
            if item.id == item_id:
                item = item.model_copy(update=changes)
                updated = item
            fresh_items.append(item)
        if updated is None:
            raise ItemNotFoundError(collection.value, item_id)

        if collection is Collection.VARIATIONS:
            self.draft.variations = fresh_items
        else:
            self.draft.combined_concepts = fresh_items
        return updated
