#!/usr/bin/env python3
"""Console-script wrapper for the idea refinement pipeline.

After an editable install (``pip install -e .``) the ``idea-refine`` command becomes
available system-wide. Each subcommand loads a draft session, applies one pipeline
action and saves the session again, so a refinement run can be driven step by step:

* ``idea-refine start --title "Tutus for ponies"``   – seed + first variations
* ``idea-refine seed --session session_001 --title "..."`` – re-seed after ``back``
* ``idea-refine select --session session_001 --id <variation> --liked "..."``
* ``idea-refine combine --session session_001``      – needs two selections
* ``idea-refine pick --session session_001 --id <concept>``
* ``idea-refine commit --session session_001``       – write the idea record
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from generators import build_generator
from persistence import build_gateway
from refinement_engine.config import RefinementSettings
from refinement_engine.draft_state import DraftStateManager
from refinement_engine.errors import RefinementError
from refinement_engine.models import Collection, PipelineDraft, PipelineStage
from refinement_engine.session_store import DraftSessionStore
from refinement_engine.stage_controller import StageController

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _print_draft(session_name: str, draft: PipelineDraft) -> None:
    print(f"📁 {session_name}  |  stage: {draft.stage.value}")
    print(f"💡 {draft.seed.title}")
    if draft.seed.inspiration:
        print(f"   Inspiration: {draft.seed.inspiration}")

    if draft.variations:
        print("\n🔀 VARIATIONS:")
        print("=" * 50)
        for v in draft.variations:
            mark = "✅" if v.selected else "  "
            print(f"{mark} [{v.id}] {v.title}")
            print(f"     {v.description}")
            print(f"     Differentiator: {v.differentiator}")
            print(f"     Market: {v.target_market}  |  Revenue: {v.revenue_model}")
            if v.liked_aspects:
                print(f"     👍 {v.liked_aspects}")

    if draft.combined_concepts:
        print("\n🧩 COMBINED IDEAS:")
        print("=" * 50)
        for c in draft.combined_concepts:
            mark = "✅" if c.selected else "  "
            print(f"{mark} [{c.id}] {c.title}")
            print(f"     {c.description}")
            print(f"     Elements: {', '.join(c.source_elements)}")
            print(f"     Value: {c.value_proposition}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def _run_action(args: argparse.Namespace, controller: StageController) -> None:
    state = controller.state
    command = args.command

    if command == "seed":
        controller.update_seed(args.title, args.inspiration, args.concept_type)
        await controller.generate_variations()
    elif command == "regenerate":
        await controller.regenerate_variation(args.id)
    elif command == "select":
        if args.liked is not None:
            state.update_liked_aspects(args.id, args.liked)
        if not args.keep_selection:
            state.toggle_select(Collection.VARIATIONS, args.id)
    elif command == "pick":
        state.toggle_select(Collection.COMBINED, args.id)
    elif command == "edit":
        collection = Collection.COMBINED if args.combined else Collection.VARIATIONS
        state.begin_edit(collection, args.id)
        if args.title is not None:
            state.update_edit_buffer(collection, args.id, "title", args.title)
        if args.description is not None:
            state.update_edit_buffer(collection, args.id, "description", args.description)
        state.commit_edit(collection, args.id)
    elif command == "combine":
        await controller.combine()
    elif command == "recombine":
        await controller.regenerate_combined()
    elif command == "back":
        controller.back()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refine a raw business idea into a validated concept")
    sub = parser.add_subparsers(dest="command", required=True)

    start = sub.add_parser("start", help="Seed a new idea and generate variations")
    start.add_argument("--title", required=True, help="One-line description of the idea")
    start.add_argument("--inspiration", default="", help="What inspired the idea")
    start.add_argument("--type", dest="concept_type", default="", help="product, service or technology")

    sub.add_parser("list", help="List draft sessions")

    seed = sub.add_parser("seed", help="Change the seed of a session back at the initial stage and regenerate")
    seed.add_argument("--session", required=True)
    seed.add_argument("--title", default=None)
    seed.add_argument("--inspiration", default=None)
    seed.add_argument("--type", dest="concept_type", default=None)

    for name, help_text in (
        ("show", "Show a draft session"),
        ("combine", "Combine the selected variations"),
        ("recombine", "Regenerate the combined ideas"),
        ("back", "Go back one stage"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--session", required=True)

    regenerate = sub.add_parser("regenerate", help="Regenerate one variation")
    regenerate.add_argument("--session", required=True)
    regenerate.add_argument("--id", required=True)

    select = sub.add_parser("select", help="Toggle selection of a variation")
    select.add_argument("--session", required=True)
    select.add_argument("--id", required=True)
    select.add_argument("--liked", default=None, help="What you like about this variation")
    select.add_argument(
        "--keep-selection",
        action="store_true",
        help="Only update liked aspects, do not toggle the selection",
    )

    pick = sub.add_parser("pick", help="Select one combined idea")
    pick.add_argument("--session", required=True)
    pick.add_argument("--id", required=True)

    edit = sub.add_parser("edit", help="Edit the title/description of an item")
    edit.add_argument("--session", required=True)
    edit.add_argument("--id", required=True)
    edit.add_argument("--title", default=None)
    edit.add_argument("--description", default=None)
    edit.add_argument("--combined", action="store_true", help="Edit a combined idea instead of a variation")

    commit = sub.add_parser("commit", help="Save the selected idea")
    commit.add_argument("--session", required=True)
    commit.add_argument("--keep", action="store_true", help="Keep the draft session after saving")

    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[RefinementSettings] = None) -> int:
    """Entry-point for the ``idea-refine`` command; returns the exit status."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    args = _build_parser().parse_args(argv)
    settings = settings or RefinementSettings.from_env()
    store = DraftSessionStore(settings.session_dir)

    if args.command == "list":
        sessions = store.list_sessions()
        print("📁 DRAFT SESSIONS:")
        print("=" * 50)
        for session_name, info in sorted(sessions.items()):
            print(f"{session_name}  [{info.get('stage', PipelineStage.INITIAL.value)}]  {info.get('title', '')}")
        return 0

    try:
        if args.command == "start":
            draft = PipelineDraft()
        else:
            draft = store.load(args.session)
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    try:
        controller = StageController(
            build_generator(settings),
            gateway=build_gateway(settings) if args.command == "commit" else None,
            state=DraftStateManager(draft),
            generation_timeout=settings.generation_timeout,
        )

        if args.command == "start":
            controller.update_seed(args.title, args.inspiration, args.concept_type)
            asyncio.run(controller.generate_variations())
            session_name = store.create_session(controller.draft)
            _print_draft(session_name, controller.draft)
            return 0

        if args.command == "commit":
            result = asyncio.run(controller.commit())
            print(f"✅ Saved idea '{result.record.title}' ({result.idea_id})")
            if args.keep:
                store.save(args.session, controller.draft)
            else:
                store.delete(args.session)
            return 0

        if args.command != "show":
            asyncio.run(_run_action(args, controller))
            store.save(args.session, controller.draft)
    except (RefinementError, ValueError) as e:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"❌ {e}", file=sys.stderr)
        return 1

    _print_draft(args.session, controller.draft)
    return 0


def run() -> None:
    """Console-script shim propagating :func:`main`'s exit status."""
    sys.exit(main())


if __name__ == "__main__":
    run()
