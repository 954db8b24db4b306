"""
AI-assisted product filtering.

Given the catalog candidates for a query, asks the LLM which are actually
relevant ("G4 hair removal" should not surface a "G4 vacuum"). This is a
convenience filter: on any failure it fails open and returns every candidate.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from openai import OpenAI
from pydantic import BaseModel, Field

from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.core.errors import apply_failure_policy
from offerscope.offers.types import Offer
from offerscope.utils.logger import get_logger

logger = get_logger("assessor.product_filter")

DESCRIPTION_CHARS = 200


class ProductFilterResult(BaseModel):
    relevant_ids: List[str] = Field(
        default_factory=list,
        description="IDs of the candidate products that are actually relevant to the user query",
    )
    reasoning: Optional[str] = Field(default=None, description="Brief explanation of filtering decisions")


FILTER_RULES = """FILTERING RULES:
1. Only return products that are genuinely relevant to the user's search intent
2. Consider CONTEXT - "G4 hair removal" should NOT match "G4 vacuum cleaner"
3. Look at the full query, not just individual keywords
4. If the user mentions a specific category (hair removal, vacuum, gaming, etc.), filter by that context
5. Brand names are important - "IVISKIN G4" is different from "Dyson G4"
6. If in doubt, include the product (be slightly generous rather than overly restrictive)

Return ONLY the relevant product IDs and brief reasoning for your decisions."""


def build_filter_prompt(query: str, offers: Sequence[Offer]) -> str:
    lines = []
    for i, offer in enumerate(offers, 1):
        description = (offer.description or "")[:DESCRIPTION_CHARS]
        lines.append(f"{i}. ID: {offer.id}\n   Title: {offer.title}\n   Description: {description}")
    return (
        "You are a smart product recommendation filter. A user is searching for products, "
        "and you need to determine which candidates are actually relevant to their query.\n\n"
        f"USER QUERY: \"{query}\"\n\n"
        "CANDIDATE PRODUCTS:\n" + "\n\n".join(lines) + "\n\n" + FILTER_RULES
    )


class ProductFilter:
    """Context-aware LLM filter over catalog candidates."""

    def __init__(self, client: Optional[Any] = None, config: Optional[OfferScopeConfig] = None):
        self.config = config or get_config()
        self._client = client

    @property
    def enabled(self) -> bool:
        has_key = self._client is not None or bool(self.config.openai_api_key)
        return self.config.product_filter_enabled and has_key

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.config.openai_api_key,
                max_retries=0,
                timeout=self.config.product_filter_timeout,
            )
        return self._client

    def filter_offers(self, offers: Sequence[Offer], query: str) -> List[Offer]:
        offers = list(offers)
        if not self.enabled:
            logger.debug("AI filtering disabled or no API key, returning all candidates")
            return offers
        if not offers or not (query or "").strip():
            return []
        if len(offers) == 1:
            return offers

        try:
            response = self.client.beta.chat.completions.parse(
                model=self.config.product_filter_model,
                messages=[{"role": "user", "content": build_filter_prompt(query, offers)}],
                response_format=ProductFilterResult,
                temperature=self.config.product_filter_temperature,
                timeout=self.config.product_filter_timeout,
            )
            parsed = response.choices[0].message.parsed
            if parsed is None:
                raise ValueError("no parsed output")
        except Exception as e:
            logger.error(f"AI product filtering failed, applying {self.config.product_filter_failure_policy.value}: {e}")
            return apply_failure_policy(self.config.product_filter_failure_policy, offers, [])

        relevant = set(parsed.relevant_ids)
        filtered = [o for o in offers if o.id in relevant]
        logger.info(f"AI filtered {len(offers)} -> {len(filtered)} products")
        if parsed.reasoning:
            logger.debug(f"AI reasoning: {parsed.reasoning}")
        return filtered
