"""Idea store writing to a Supabase (PostgREST) ``ideas`` table over HTTP."""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from refinement_engine.config import RefinementSettings
from refinement_engine.errors import PersistError
from refinement_engine.models import FinalizedIdeaRecord

from .memory_gateway import ensure_complete

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Best-effort human readable message from a PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class SupabaseIdeaGateway:
    """Insert finalized ideas with a single ``POST /rest/v1/<table>``."""

    def __init__(
        self,
        url: str,
        api_key: str,
        user_id: str | None = None,
        table: str = "ideas",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.user_id = user_id
        self.table = table
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: RefinementSettings) -> "SupabaseIdeaGateway":
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set to use the supabase idea store")
        return cls(settings.supabase_url, settings.supabase_key, user_id=settings.user_id)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _payload(self, record: FinalizedIdeaRecord) -> Dict[str, Any]:
        payload = record.model_dump(mode="json")
        if self.user_id:
            payload["user_id"] = self.user_id
        return payload

    async def commit(self, record: FinalizedIdeaRecord) -> str:
        ensure_complete(record)
        try:
            async with httpx.AsyncClient(base_url=self.url, timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"/rest/v1/{self.table}", json=self._payload(record), headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("Supabase insert into %s failed: %s", self.table, exc)
            raise PersistError(f"Could not reach the idea store: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.error("Supabase rejected idea '%s' (%s): %s", record.title, response.status_code, message)
            raise PersistError(message)

        rows = response.json()
        row = rows[0] if isinstance(rows, list) and rows else rows
        if not isinstance(row, dict) or not row.get("id"):
            raise PersistError("The idea store did not return the new idea id")
        return str(row["id"])
