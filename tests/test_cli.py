from pathlib import Path

import pytest

from persistence import CsvIdeaGateway
from refinement_engine.config import RefinementSettings
from refinement_engine.models import PipelineStage
from refinement_engine.session_store import DraftSessionStore
from refinery_cli.cli_entrypoints import main


@pytest.fixture
def settings(tmp_path: Path) -> RefinementSettings:
    return RefinementSettings(
        idea_store="csv",
        idea_store_path=tmp_path / "ideas.csv",
        session_dir=tmp_path / "sessions",
    )


def test_full_refinement_run(settings: RefinementSettings, capsys: pytest.CaptureFixture) -> None:
    """Drive a whole run through the console script, one step per call."""
    assert main(["start", "--title", "Tutus for ponies", "--type", "product"], settings=settings) == 0
    assert "session_001" in capsys.readouterr().out

    store = DraftSessionStore(settings.session_dir)
    first, second, _ = store.load("session_001").variations

    assert main(["select", "--session", "session_001", "--id", first.id, "--liked", "Analytics"], settings=settings) == 0
    assert main(["select", "--session", "session_001", "--id", second.id], settings=settings) == 0
    assert main(["combine", "--session", "session_001"], settings=settings) == 0

    draft = store.load("session_001")
    assert draft.stage is PipelineStage.COMBINED
    concept = draft.combined_concepts[0]

    assert main(["pick", "--session", "session_001", "--id", concept.id], settings=settings) == 0
    assert main(["edit", "--session", "session_001", "--id", concept.id, "--combined", "--title", "Tutu Club"], settings=settings) == 0
    capsys.readouterr()

    assert main(["commit", "--session", "session_001"], settings=settings) == 0
    assert "Tutu Club" in capsys.readouterr().out

    ideas = CsvIdeaGateway(settings.idea_store_path).list_ideas()
    assert list(ideas["title"]) == ["Tutu Club"]
    assert "session_001" not in store.list_sessions()


def test_failed_step_reports_error_and_keeps_session(
    settings: RefinementSettings,
    capsys: pytest.CaptureFixture,
) -> None:
    main(["start", "--title", "Tutus for ponies"], settings=settings)
    store = DraftSessionStore(settings.session_dir)
    variation = store.load("session_001").variations[0]
    main(["select", "--session", "session_001", "--id", variation.id], settings=settings)
    capsys.readouterr()

    assert main(["combine", "--session", "session_001"], settings=settings) == 1
    assert "at least two variations" in capsys.readouterr().err

    draft = store.load("session_001")
    assert draft.stage is PipelineStage.VARIATIONS
    assert draft.variations[0].selected


def test_back_and_regenerate(settings: RefinementSettings) -> None:
    main(["start", "--title", "Tutus for ponies"], settings=settings)
    store = DraftSessionStore(settings.session_dir)
    target = store.load("session_001").variations[2]

    assert main(["regenerate", "--session", "session_001", "--id", target.id], settings=settings) == 0
    regenerated = store.load("session_001").variations[2]
    assert regenerated.id == target.id
    assert regenerated.title != target.title

    assert main(["back", "--session", "session_001"], settings=settings) == 0
    assert store.load("session_001").stage is PipelineStage.INITIAL


def test_unknown_session(settings: RefinementSettings, capsys: pytest.CaptureFixture) -> None:
    assert main(["show", "--session", "session_999"], settings=settings) == 1
    assert "session_999" in capsys.readouterr().err


def test_back_then_reseed_generates_fresh_variations(settings: RefinementSettings) -> None:
    main(["start", "--title", "Tutus for ponies"], settings=settings)
    store = DraftSessionStore(settings.session_dir)
    old_ids = {v.id for v in store.load("session_001").variations}

    assert main(["back", "--session", "session_001"], settings=settings) == 0
    assert main(["seed", "--session", "session_001", "--title", "Raincoats for ponies"], settings=settings) == 0

    draft = store.load("session_001")
    assert draft.stage is PipelineStage.VARIATIONS
    assert draft.seed.title == "Raincoats for ponies"
    assert len(draft.variations) == 3
    assert old_ids.isdisjoint(v.id for v in draft.variations)
    assert store.list_sessions()["session_001"]["title"] == "Raincoats for ponies"


def test_seed_is_refused_once_variations_exist(settings: RefinementSettings, capsys: pytest.CaptureFixture) -> None:
    main(["start", "--title", "Tutus for ponies"], settings=settings)
    capsys.readouterr()

    assert main(["seed", "--session", "session_001", "--title", "Raincoats for ponies"], settings=settings) == 1
    assert "locked" in capsys.readouterr().err
    assert DraftSessionStore(settings.session_dir).load("session_001").seed.title == "Tutus for ponies"


def test_commit_with_unconfigured_store_reports_error(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    settings = RefinementSettings(idea_store="supabase", session_dir=tmp_path / "sessions")
    main(["start", "--title", "Tutus for ponies"], settings=settings)
    store = DraftSessionStore(settings.session_dir)
    variation = store.load("session_001").variations[0]
    main(["select", "--session", "session_001", "--id", variation.id], settings=settings)
    capsys.readouterr()

    assert main(["commit", "--session", "session_001"], settings=settings) == 1
    assert "SUPABASE_URL" in capsys.readouterr().err
    assert "session_001" in store.list_sessions()
