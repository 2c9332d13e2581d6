"""Environment-driven settings.

Values come from the process environment after loading an optional ``.env`` file.

=========================  ==========================================  ==============
Variable                   Meaning                                     Default
=========================  ==========================================  ==============
``IDEA_GEN_BACKEND``       ``mock`` or ``ai``                          ``mock``
``IDEA_GEN_PREFERRED_API`` ``openai`` or ``claude``                    ``openai``
``IDEA_GEN_OPENAI_MODEL``  OpenAI chat model                           ``gpt-4o-mini``
``IDEA_GEN_CLAUDE_MODEL``  Anthropic model                             ``claude-3-5-sonnet-latest``
``IDEA_GEN_TIMEOUT``       Seconds allowed per generation call         ``60``
``IDEA_STORE``             ``memory``, ``csv`` or ``supabase``         ``csv``
``IDEA_STORE_PATH``        CSV idea store location                     ``data/ideas.csv``
``IDEA_SESSION_DIR``       Draft session snapshots                     ``data/refinement_sessions``
``SUPABASE_URL``           Project URL for the ``supabase`` store
``SUPABASE_KEY``           API key for the ``supabase`` store
``IDEA_USER_ID``           Owner attached to rows in the ``supabase`` store
=========================  ==========================================  ==============
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

_BACKENDS = ("mock", "ai")
_STORES = ("memory", "csv", "supabase")


class RefinementSettings(BaseModel):
    """Resolved configuration for one process."""

    generation_backend: str = "mock"
    preferred_api: str = "openai"
    openai_model: str = "gpt-4o-mini"
    claude_model: str = "claude-3-5-sonnet-latest"
    generation_timeout: float = Field(60.0, gt=0)
    idea_store: str = "csv"
    idea_store_path: Path = Path("data") / "ideas.csv"
    session_dir: Path = Path("data") / "refinement_sessions"
    supabase_url: str | None = None
    supabase_key: str | None = None
    user_id: str | None = None

    model_config = {
        "frozen": True,
    }

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "RefinementSettings":
        """Build settings from environment variables (and ``.env`` when *dotenv*)."""
        if dotenv:
            load_dotenv()

        backend = os.getenv("IDEA_GEN_BACKEND", "mock").strip().lower()
        if backend not in _BACKENDS:
            raise ValueError(f"IDEA_GEN_BACKEND must be one of {_BACKENDS}, got '{backend}'")
        store = os.getenv("IDEA_STORE", "csv").strip().lower()
        if store not in _STORES:
            raise ValueError(f"IDEA_STORE must be one of {_STORES}, got '{store}'")

        return cls(
            generation_backend=backend,
            preferred_api=os.getenv("IDEA_GEN_PREFERRED_API", "openai").strip().lower(),
            openai_model=os.getenv("IDEA_GEN_OPENAI_MODEL", "gpt-4o-mini"),
            claude_model=os.getenv("IDEA_GEN_CLAUDE_MODEL", "claude-3-5-sonnet-latest"),
            generation_timeout=float(os.getenv("IDEA_GEN_TIMEOUT", "60")),
            idea_store=store,
            idea_store_path=Path(os.getenv("IDEA_STORE_PATH", str(Path("data") / "ideas.csv"))),
            session_dir=Path(os.getenv("IDEA_SESSION_DIR", str(Path("data") / "refinement_sessions"))),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_KEY"),
            user_id=os.getenv("IDEA_USER_ID"),
        )
