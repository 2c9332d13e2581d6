"""AI-powered idea generation using OpenAI and Claude APIs."""

import json
import logging
import os
import time
from typing import Any, Dict, List, Optional, Sequence

import anthropic
import openai

from refinement_engine.errors import GenerationError
from refinement_engine.models import SeedIdea, Variation

SYSTEM_PROMPT = "You are an experienced startup advisor helping founders refine business ideas. Respond only with valid JSON."


def get_logger():
    """Get configured logger."""
    return logging.getLogger(__name__)


class AIIdeaGenerator:
    """Idea generation service backed by hosted LLMs."""

    def __init__(
        self,
        preferred_api: str = "openai",
        openai_model: str = "gpt-4o-mini",
        claude_model: str = "claude-3-5-sonnet-latest",
        num_variations: int = 3,
    ):
        """Initialize the generator.

        Args:
            preferred_api: "openai" or "claude" (falls back to other if primary fails)
            openai_model: Chat model used for OpenAI calls
            claude_model: Model used for Claude calls
            num_variations: Number of variations requested per seed
        """
        self.preferred_api = preferred_api
        self.openai_model = openai_model
        self.claude_model = claude_model
        self.num_variations = num_variations
        self.logger = get_logger()
        self.last_error: Optional[str] = None

        # Initialize API clients
        self._init_openai()
        self._init_claude()

    def _init_openai(self):
        """Initialize OpenAI client."""
        try:
            self.openai_client = openai.AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))
            self.openai_available = True
            self.logger.info("OpenAI client initialized")
        except Exception as e:
            self.logger.warning(f"OpenAI initialization failed: {e}")
            self.openai_available = False

    def _init_claude(self):
        """Initialize Claude client."""
        try:
            self.claude_client = anthropic.AsyncAnthropic(api_key=os.getenv("ANTHROPIC_API_KEY"))
            self.claude_available = bool(os.getenv("ANTHROPIC_API_KEY"))
            if self.claude_available:
                self.logger.info("Claude client initialized")
        except Exception as e:
            self.logger.warning(f"Claude initialization failed: {e}")
            self.claude_available = False

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _get_variations_prompt(self, seed: SeedIdea) -> str:
        """Generate the prompt asking for variations of a seed idea."""
        inspiration = seed.inspiration.strip() or "Not provided"
        concept_type = seed.concept_type.strip() or "Not specified"

        return f"""A founder wants to explore this business idea:

IDEA: {seed.title}
INSPIRATION / CONTEXT: {inspiration}
CONCEPT TYPE: {concept_type}

Propose {self.num_variations} distinct variations of the idea. Each variation should take a
different angle (business model, audience, delivery) while staying true to the core idea.

Return a JSON array in this exact format:
[
  {{
    "id": "1",
    "title": "short name of the variation",
    "description": "two or three sentences describing the variation",
    "differentiator": "what makes this angle stand out",
    "targetMarket": "who would buy it",
    "revenueModel": "how it makes money"
  }}
]

If the context starts with "Original variation:", propose a fresh alternative to that
variation rather than a copy of it.

Return ONLY the JSON array, no other text."""

    def _get_combination_prompt(self, base_title: str, variations: Sequence[Variation]) -> str:
        """Generate the prompt asking to merge selected variations."""
        variations_text = ""
        for i, v in enumerate(variations, 1):
            liked = f"\n   The founder liked: {v.liked_aspects}" if v.liked_aspects.strip() else ""
            variations_text += (
                f"{i}. {v.title} - {v.description}\n"
                f"   Differentiator: {v.differentiator}\n"
                f"   Target market: {v.target_market}\n"
                f"   Revenue model: {v.revenue_model}{liked}\n"
            )

        return f"""A founder is refining the idea "{base_title}" and selected these variations:

{variations_text}
Combine the strongest elements of the selected variations into 2-3 refined concepts,
favouring the aspects the founder liked.

Return a JSON array in this exact format:
[
  {{
    "id": "1",
    "title": "name of the combined concept",
    "description": "two or three sentences describing it",
    "sourceElements": ["element taken from a variation", "..."],
    "targetMarket": "who would buy it",
    "revenueModel": "how it makes money",
    "valueProposition": "the core promise to customers"
  }}
]

Return ONLY the JSON array, no other text."""

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    def _parse_ai_response(self, response_text: str, key: str) -> List[Dict[str, Any]]:
        """Parse AI response into a list of raw item dicts."""
        try:
            # Clean the response (remove markdown code blocks if present)
            clean_response = response_text.strip()
            if clean_response.startswith("```json"):
                clean_response = clean_response[7:]
            elif clean_response.startswith("```"):
                clean_response = clean_response[3:]
            if clean_response.endswith("```"):
                clean_response = clean_response[:-3]

            data = json.loads(clean_response.strip())
        except json.JSONDecodeError as e:
            self.logger.error(f"Failed to parse AI response: {e}")
            self.logger.debug(f"Raw response: {response_text}")
            raise GenerationError(f"The AI returned an unreadable response for {key}") from e

        # Some models wrap the array in an object
        if isinstance(data, dict) and isinstance(data.get(key), list):
            data = data[key]
        if not isinstance(data, list):
            raise GenerationError(f"Invalid response format: {key} should be an array")

        items = []
        for i, item in enumerate(data, 1):
            if isinstance(item, dict):
                items.append({**item, "id": str(item.get("id") or i)})
            else:
                items.append(item)
        return items

    async def _call_openai(self, prompt: str) -> Optional[str]:
        """Call OpenAI API."""
        if not self.openai_available:
            return None

        try:
            response = await self.openai_client.chat.completions.create(
                model=self.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=2000,
                temperature=0.7,
            )
            return response.choices[0].message.content

        except Exception as e:
            self.logger.error(f"OpenAI API call failed: {e}")
            self.last_error = str(e)
            return None

    async def _call_claude(self, prompt: str) -> Optional[str]:
        """Call Claude API."""
        if not self.claude_available:
            return None

        try:
            response = await self.claude_client.messages.create(
                model=self.claude_model,
                max_tokens=2000,
                temperature=0.7,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": prompt},
                ],
            )
            return response.content[0].text

        except Exception as e:
            self.logger.error(f"Claude API call failed: {e}")
            self.last_error = str(e)
            return None

    async def _complete(self, prompt: str, key: str) -> List[Dict[str, Any]]:
        """Run *prompt* against the preferred API, then the fallback."""
        apis_to_try = [self.preferred_api]
        if self.preferred_api == "openai":
            apis_to_try.append("claude")
        else:
            apis_to_try.append("openai")

        if not (self.openai_available or self.claude_available):
            raise GenerationError("No AI backend available. Set OPENAI_API_KEY or ANTHROPIC_API_KEY")

        start_time = time.time()
        self.last_error = None
        response_text = None
        for api in apis_to_try:
            self.logger.info(f"Trying {api} API for {key}...")
            if api == "openai":
                response_text = await self._call_openai(prompt)
            else:
                response_text = await self._call_claude(prompt)

            if response_text:
                self.logger.info(f"Successfully got {key} from {api} in {time.time() - start_time:.1f}s")
                break

        if not response_text:
            raise GenerationError(self.last_error or f"Failed to generate {key}")

        return self._parse_ai_response(response_text, key)

    # ------------------------------------------------------------------
    # IdeaGenerationService
    # ------------------------------------------------------------------

    async def generate_variations(self, seed: SeedIdea) -> List[Dict[str, Any]]:
        """Generate variations of *seed*."""
        return await self._complete(self._get_variations_prompt(seed), "variations")

    async def generate_combined_concepts(
        self,
        base_title: str,
        selected_variations: Sequence[Variation],
    ) -> List[Dict[str, Any]]:
        """Combine *selected_variations* of *base_title* into refined concepts."""
        prompt = self._get_combination_prompt(base_title, selected_variations)
        return await self._complete(prompt, "combined_ideas")
