"""Dict-backed idea store used by tests and dry runs."""
from __future__ import annotations

import uuid
from typing import Dict

from refinement_engine.errors import PersistError
from refinement_engine.models import FinalizedIdeaRecord


def ensure_complete(record: FinalizedIdeaRecord) -> None:
    """Refuse records that would be written without their required fields."""
    if not record.title.strip():
        raise PersistError("Cannot save an idea without a title")
    if not record.status:
        raise PersistError("Cannot save an idea without a status")


class InMemoryIdeaGateway:
    """Keeps committed ideas in a dict keyed by generated id."""

    def __init__(self):
        self.ideas: Dict[str, FinalizedIdeaRecord] = {}
        self.fail_with: str | None = None

    async def commit(self, record: FinalizedIdeaRecord) -> str:
        ensure_complete(record)
        if self.fail_with is not None:
            raise PersistError(self.fail_with)
        idea_id = str(uuid.uuid4())
        self.ideas[idea_id] = record
        return idea_id
