"""Deterministic stand-in for the idea-generation backend.

Returns the same three business-model angles for every seed and derives combined
concepts from the differentiators of the selected variations. Single-variation
regeneration requests draw from a separate pool of angles, rotated by a hash of the
request, so a regenerated card never repeats one of the first three.

Ids are derived from the seed so a new seed yields a fresh set of ids.
``fail_with`` simulates a service outage for the next calls.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Dict, List, Sequence

from refinement_engine.models import SeedIdea, Variation
from refinement_engine.services import REGENERATION_PREFIX

logger = logging.getLogger(__name__)

VARIATION_TEMPLATES: List[Dict[str, str]] = [
    {
        "title": "Premium SaaS Solution",
        "description": "Enterprise-grade software with advanced features",
        "differentiator": "AI-powered automation and analytics",
        "targetMarket": "Large enterprises",
        "revenueModel": "Annual subscription with tiered pricing",
    },
    {
        "title": "Freemium Model",
        "description": "Basic features free, premium features paid",
        "differentiator": "Easy onboarding and scalability",
        "targetMarket": "Small businesses and startups",
        "revenueModel": "Freemium with premium tiers",
    },
    {
        "title": "Marketplace Platform",
        "description": "Two-sided marketplace connecting providers and users",
        "differentiator": "Network effects and commission model",
        "targetMarket": "Service providers and consumers",
        "revenueModel": "Transaction fees and subscriptions",
    },
]

REGENERATION_TEMPLATES: List[Dict[str, str]] = [
    {
        "title": "Usage-Based Platform",
        "description": "Pay only for what you use, from the first day",
        "differentiator": "Low entry cost that grows with delivered value",
        "targetMarket": "Growing mid-market teams",
        "revenueModel": "Metered billing",
    },
    {
        "title": "Subscription Box Service",
        "description": "Curated recurring deliveries tailored to each customer",
        "differentiator": "Personalized curation and strong retention loops",
        "targetMarket": "Busy consumers",
        "revenueModel": "Monthly subscription",
    },
    {
        "title": "White-Label Licensing",
        "description": "License the core product to established brands",
        "differentiator": "Distribution through partner channels",
        "targetMarket": "Brands and resellers",
        "revenueModel": "Licensing fees and revenue share",
    },
    {
        "title": "Community Membership",
        "description": "Paid community built around the product",
        "differentiator": "Peer network and expert access",
        "targetMarket": "Enthusiasts and professionals",
        "revenueModel": "Membership dues and sponsorships",
    },
]


def _sha1(text: str) -> str:  # noqa: D401
    """Return SHA-1 hash of *text* (hex)."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


class MockIdeaGenerator:
    """In-process generator with canned, reproducible output."""

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.fail_with: str | None = None
        self.calls: List[tuple] = []

    async def _respond(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if self.fail_with is not None:
            raise RuntimeError(self.fail_with)

    async def generate_variations(self, seed: SeedIdea) -> List[dict]:
        self.calls.append(("variations", seed))
        await self._respond()

        digest = _sha1(f"{seed.title}|{seed.inspiration}|{seed.concept_type}")
        prefix = digest[:8]
        subject = seed.title.strip() or "your idea"
        variations = []
        for number, template in enumerate(self._templates_for(seed, digest), 1):
            variations.append(
                {
                    **template,
                    "id": f"{prefix}-{number}",
                    "title": f"{template['title']}: {subject}",
                },
            )
        logger.debug("Mock generated %d variations for '%s'", len(variations), seed.title)
        return variations

    @staticmethod
    def _templates_for(seed: SeedIdea, digest: str) -> List[Dict[str, str]]:
        if not seed.inspiration.startswith(REGENERATION_PREFIX):
            return VARIATION_TEMPLATES
        # Regeneration requests carry the previous content as inspiration
        original = seed.inspiration[len(REGENERATION_PREFIX):]
        pool = [t for t in REGENERATION_TEMPLATES if not original.startswith(t["title"])]
        offset = int(digest[8:16], 16) % len(pool)
        return (pool[offset:] + pool[:offset])[: len(VARIATION_TEMPLATES)]

    async def generate_combined_concepts(
        self,
        base_title: str,
        selected_variations: Sequence[Variation],
    ) -> List[dict]:
        self.calls.append(("combined", base_title, list(selected_variations)))
        await self._respond()

        differentiators = [v.differentiator for v in selected_variations]
        markets = ", ".join(dict.fromkeys(v.target_market for v in selected_variations if v.target_market))
        names = " + ".join(v.title.split(":")[0] for v in selected_variations)
        prefix = _sha1(base_title + "|" + "|".join(v.id for v in selected_variations))[:8]
        liked = "; ".join(v.liked_aspects for v in selected_variations if v.liked_aspects)

        return [
            {
                "id": f"{prefix}-1",
                "title": f"{names} Hybrid",
                "description": f"{base_title} combining {names.lower()} in one offering",
                "sourceElements": differentiators,
                "targetMarket": markets or "All business sizes",
                "revenueModel": "Hybrid subscription model",
                "valueProposition": liked or "Scalable solution for growing businesses",
            },
            {
                "id": f"{prefix}-2",
                "title": f"{base_title} Platform",
                "description": f"Platform approach to {base_title} built around its strongest elements",
                "sourceElements": list(reversed(differentiators)),
                "targetMarket": markets or "Enterprise and service providers",
                "revenueModel": "Mixed revenue streams",
                "valueProposition": "End-to-end solution platform",
            },
        ]
