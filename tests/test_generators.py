import asyncio
import json

import pytest

from generators import AIIdeaGenerator, MockIdeaGenerator, build_generator
from refinement_engine.config import RefinementSettings
from refinement_engine.errors import GenerationError
from refinement_engine.models import SeedIdea, Variation

VARIATIONS_JSON = json.dumps(
    [
        {
            "title": "Pony Couture Subscription",
            "description": "Monthly tutu boxes for show ponies",
            "differentiator": "Custom fitted designs",
            "targetMarket": "Pony show competitors",
            "revenueModel": "Subscription",
        },
        {
            "id": 7,
            "title": "Tutu Rental",
            "description": "Rent tutus for events",
            "differentiator": "No upfront cost",
            "targetMarket": "Party planners",
            "revenueModel": "Rental fees",
        },
    ],
)


@pytest.fixture
def ai_generator(monkeypatch: pytest.MonkeyPatch) -> AIIdeaGenerator:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
    return AIIdeaGenerator(preferred_api="openai")


def test_variations_parsed_from_fenced_json(ai_generator: AIIdeaGenerator, monkeypatch: pytest.MonkeyPatch) -> None:
    prompts = []

    async def fake_openai(prompt):  # noqa: D401
        """Record the prompt and answer with a fenced JSON array."""
        prompts.append(prompt)
        return f"```json\n{VARIATIONS_JSON}\n```"

    monkeypatch.setattr(ai_generator, "_call_openai", fake_openai)
    seed = SeedIdea(title="Tutus for ponies", inspiration="Show season", concept_type="product")

    items = asyncio.run(ai_generator.generate_variations(seed))

    assert [item["id"] for item in items] == ["1", "7"]
    assert items[0]["targetMarket"] == "Pony show competitors"
    assert "IDEA: Tutus for ponies" in prompts[0]
    assert "CONCEPT TYPE: product" in prompts[0]
    assert Variation.model_validate(items[1]).revenue_model == "Rental fees"


def test_falls_back_to_claude(ai_generator: AIIdeaGenerator, monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_openai(prompt):
        ai_generator.last_error = "rate limited"
        return None

    async def fake_claude(prompt):
        return json.dumps({"combined_ideas": [{"id": "c1", "title": "Tutu Club", "sourceElements": ["x"]}]})

    monkeypatch.setattr(ai_generator, "_call_openai", failing_openai)
    monkeypatch.setattr(ai_generator, "_call_claude", fake_claude)
    selected = [
        Variation(id="1", title="A", differentiator="Custom fit", likedAspects="The fit"),
        Variation(id="2", title="B", differentiator="Rentals"),
    ]

    items = asyncio.run(ai_generator.generate_combined_concepts("Tutus for ponies", selected))

    assert items == [{"id": "c1", "title": "Tutu Club", "sourceElements": ["x"]}]


def test_combination_prompt_mentions_liked_aspects(ai_generator: AIIdeaGenerator) -> None:
    selected = [
        Variation(id="1", title="A", differentiator="Custom fit", likedAspects="The fit"),
        Variation(id="2", title="B", differentiator="Rentals"),
    ]
    prompt = ai_generator._get_combination_prompt("Tutus for ponies", selected)
    assert "The founder liked: The fit" in prompt
    assert prompt.count("The founder liked") == 1


def test_all_apis_failing_raises_generation_error(
    ai_generator: AIIdeaGenerator,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing(prompt):
        ai_generator.last_error = "upstream 503"
        return None

    monkeypatch.setattr(ai_generator, "_call_openai", failing)
    monkeypatch.setattr(ai_generator, "_call_claude", failing)

    with pytest.raises(GenerationError, match="upstream 503"):
        asyncio.run(ai_generator.generate_variations(SeedIdea(title="Tutus for ponies")))


def test_unreadable_response_raises(ai_generator: AIIdeaGenerator, monkeypatch: pytest.MonkeyPatch) -> None:
    async def chatty(prompt):
        return "Sure! Here are some ideas..."

    monkeypatch.setattr(ai_generator, "_call_openai", chatty)
    with pytest.raises(GenerationError):
        asyncio.run(ai_generator.generate_variations(SeedIdea(title="Tutus for ponies")))


def test_no_backend_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    generator = AIIdeaGenerator()
    assert not generator.openai_available
    assert not generator.claude_available

    with pytest.raises(GenerationError, match="No AI backend"):
        asyncio.run(generator.generate_variations(SeedIdea(title="Tutus for ponies")))


def test_mock_is_deterministic_per_seed() -> None:
    generator = MockIdeaGenerator()
    seed = SeedIdea(title="Tutus for ponies")

    first = asyncio.run(generator.generate_variations(seed))
    second = asyncio.run(generator.generate_variations(seed))
    other = asyncio.run(generator.generate_variations(SeedIdea(title="Hats for goats")))

    assert first == second
    assert {v["id"] for v in first}.isdisjoint(v["id"] for v in other)


def test_mock_regeneration_offers_a_new_angle() -> None:
    generator = MockIdeaGenerator()
    seed = SeedIdea(title="Tutus for ponies", type="product")
    first_batch = asyncio.run(generator.generate_variations(seed))
    first_titles = {v["title"] for v in first_batch}

    for original in first_batch:
        request = seed.model_copy(
            update={"inspiration": f"Original variation: {original['title']} - {original['description']}"},
        )
        fresh = asyncio.run(generator.generate_variations(request))
        again = asyncio.run(generator.generate_variations(request))

        assert fresh == again
        assert fresh[0]["title"] not in first_titles
        assert fresh[0]["title"].endswith(": Tutus for ponies")


def test_mock_combines_differentiators_in_order() -> None:
    generator = MockIdeaGenerator()
    selected = [
        Variation(id="1", title="A: x", differentiator="First edge", targetMarket="Riders"),
        Variation(id="2", title="B: x", differentiator="Second edge", targetMarket="Riders"),
    ]
    concepts = asyncio.run(generator.generate_combined_concepts("Tutus for ponies", selected))

    assert concepts[0]["sourceElements"] == ["First edge", "Second edge"]
    assert concepts[0]["targetMarket"] == "Riders"
    assert concepts[0]["title"] == "A + B Hybrid"


def test_build_generator_follows_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert isinstance(build_generator(RefinementSettings()), MockIdeaGenerator)
    ai = build_generator(RefinementSettings(generation_backend="ai", preferred_api="claude"))
    assert isinstance(ai, AIIdeaGenerator)
    assert ai.preferred_api == "claude"
