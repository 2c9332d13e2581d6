from pathlib import Path

import pytest

from refinement_engine.config import RefinementSettings

_VARS = [
    "IDEA_GEN_BACKEND",
    "IDEA_GEN_PREFERRED_API",
    "IDEA_GEN_TIMEOUT",
    "IDEA_STORE",
    "IDEA_STORE_PATH",
    "IDEA_SESSION_DIR",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "IDEA_USER_ID",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = RefinementSettings.from_env(dotenv=False)
    assert settings.generation_backend == "mock"
    assert settings.idea_store == "csv"
    assert settings.generation_timeout == 60.0
    assert settings.idea_store_path == Path("data") / "ideas.csv"


def test_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("IDEA_GEN_BACKEND", "AI")
    monkeypatch.setenv("IDEA_GEN_PREFERRED_API", "claude")
    monkeypatch.setenv("IDEA_GEN_TIMEOUT", "12.5")
    monkeypatch.setenv("IDEA_STORE", "supabase")
    monkeypatch.setenv("IDEA_SESSION_DIR", str(tmp_path))
    monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "key")
    monkeypatch.setenv("IDEA_USER_ID", "user-1")

    settings = RefinementSettings.from_env(dotenv=False)

    assert settings.generation_backend == "ai"
    assert settings.preferred_api == "claude"
    assert settings.generation_timeout == 12.5
    assert settings.idea_store == "supabase"
    assert settings.session_dir == tmp_path
    assert settings.user_id == "user-1"


@pytest.mark.parametrize("name,value", [("IDEA_GEN_BACKEND", "llama"), ("IDEA_STORE", "sqlite")])
def test_rejects_unknown_choices(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        RefinementSettings.from_env(dotenv=False)
