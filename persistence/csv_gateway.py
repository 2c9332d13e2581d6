"""Local CSV idea store.

Each committed idea becomes one row of ``ideas.csv``; the audit payload is stored as
a JSON string in the ``ai_feedback`` column. Writes go to a temporary file that
atomically replaces the store, so a failed commit never leaves a partial row.
"""
from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pandas as pd

from refinement_engine.errors import PersistError
from refinement_engine.models import AIFeedback, FinalizedIdeaRecord

from .memory_gateway import ensure_complete

logger = logging.getLogger(__name__)

COLUMNS: List[str] = [
    "id",
    "title",
    "description",
    "target_market",
    "solution_concept",
    "status",
    "ai_feedback",
    "created_at",
]


class CsvIdeaGateway:
    """Append-only idea store backed by a single CSV file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def list_ideas(self) -> pd.DataFrame:
        """Return all stored ideas (empty frame with the store columns if none)."""
        if not self.path.exists():
            return pd.DataFrame(columns=COLUMNS)
        return pd.read_csv(self.path, dtype=str, keep_default_na=False)

    def get_idea(self, idea_id: str) -> FinalizedIdeaRecord | None:
        df = self.list_ideas()
        rows = df[df["id"] == idea_id]
        if rows.empty:
            return None
        row = rows.iloc[0]
        return FinalizedIdeaRecord(
            title=row["title"],
            description=row["description"],
            target_market=row["target_market"],
            solution_concept=row["solution_concept"],
            status=row["status"],
            ai_feedback=AIFeedback.model_validate_json(row["ai_feedback"]),
        )

    async def commit(self, record: FinalizedIdeaRecord) -> str:
        ensure_complete(record)
        idea_id = uuid.uuid4().hex
        new_row = pd.DataFrame(
            [
                {
                    "id": idea_id,
                    "title": record.title,
                    "description": record.description,
                    "target_market": record.target_market,
                    "solution_concept": record.solution_concept,
                    "status": record.status,
                    "ai_feedback": record.ai_feedback.model_dump_json(),
                    "created_at": datetime.now(timezone.utc).isoformat(),
                },
            ],
            columns=COLUMNS,
        )

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            existing = self.list_ideas()
            combined = new_row if existing.empty else pd.concat([existing, new_row], ignore_index=True)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            combined.to_csv(tmp_path, index=False)
            os.replace(tmp_path, self.path)
        except (OSError, pd.errors.ParserError) as e:
            if tmp_path.exists():
                tmp_path.unlink()
            logger.error(f"Could not write idea store {self.path}: {e}")
            raise PersistError(f"Could not save idea: {e}") from e

        logger.info(f"Stored idea {idea_id} in {self.path}")
        return idea_id
