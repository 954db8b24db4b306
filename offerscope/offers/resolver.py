"""
Offer resolution: map a conversational query to catalog offers.

The decision is data, never an exception: 'single' anchors the turn to one
offer, 'multiple' asks the caller to clarify, 'none' means no catalog anchor.
Catalog lookup failures propagate as CatalogLookupError.
"""
from __future__ import annotations

import re
from typing import List, Optional, Sequence, Set

from offerscope.assessor.product_filter import ProductFilter
from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.data.catalog import CatalogStore
from offerscope.offers.types import Offer, ResolutionResult
from offerscope.parsing.model_refs import MODEL_TOKEN_RE, extract_model_references, extract_model_tokens
from offerscope.parsing.normalizer import normalize_text
from offerscope.utils.logger import get_logger

logger = get_logger("offers.resolver")


def _mentions(query_norm: str, tokens: Sequence[str], norm: Optional[str]) -> bool:
    """True if norm equals a token or occurs as a whole word in query_norm."""
    if not norm:
        return False
    if norm in tokens:
        return True
    return re.search(r"(?<![^\W_])" + re.escape(norm) + r"(?![^\W_])", query_norm) is not None


def _model_codes(offer: Offer) -> Set[str]:
    """Model codes an offer answers to, from its model and aliases."""
    codes: Set[str] = set()
    for norm in (offer.model_norm, *offer.alias_norms):
        if norm:
            codes.update(MODEL_TOKEN_RE.findall(norm))
    return codes


class OfferResolver:
    """Resolves queries against a site's catalog."""

    def __init__(
        self,
        catalog: CatalogStore,
        config: Optional[OfferScopeConfig] = None,
        product_filter: Optional[ProductFilter] = None,
    ):
        self.catalog = catalog
        self.config = config or get_config()
        self.product_filter = product_filter

    def resolve_offer_hint(self, query: str, site_id: str) -> ResolutionResult:
        query_norm = normalize_text(query)
        tokens = extract_model_references(query_norm)
        if not tokens:
            self._log_decision(site_id, query_norm, "none", [], reason="no_tokens")
            return ResolutionResult(type="none", query_norm=query_norm)

        candidates = self.catalog.find_offers(site_id, tokens)
        if self.product_filter is not None and len(candidates) > 1:
            # Context check ("g4 hair removal" vs a g4 vacuum) before deciding
            candidates = self.product_filter.filter_offers(candidates, query)

        model_matches: List[Offer] = []
        brand_matches: List[Offer] = []
        seen = set()
        for offer in candidates:
            if offer.id in seen:
                continue
            if _mentions(query_norm, tokens, offer.model_norm) or any(
                _mentions(query_norm, tokens, alias) for alias in offer.alias_norms
            ):
                model_matches.append(offer)
                seen.add(offer.id)
            elif _mentions(query_norm, tokens, offer.brand_norm):
                brand_matches.append(offer)
                seen.add(offer.id)

        query_codes = extract_model_tokens(query_norm)
        covered = set()
        for offer in model_matches:
            covered |= _model_codes(offer)
        unmatched_codes = [code for code in query_codes if code not in covered]

        if model_matches:
            matched = self._prefer_named_brand(query_norm, tokens, model_matches)
        elif query_codes:
            # A model code the catalog does not carry never falls back to the brand
            self._log_decision(site_id, query_norm, "none", [], reason=f"unmatched_model={unmatched_codes}")
            return ResolutionResult(type="none", query_norm=query_norm)
        else:
            matched = brand_matches

        if not matched:
            self._log_decision(site_id, query_norm, "none", [], reason="no_catalog_match")
            return ResolutionResult(type="none", query_norm=query_norm)

        if len(matched) == 1 and unmatched_codes:
            self._log_decision(site_id, query_norm, "none", matched, reason=f"unmatched_model={unmatched_codes}")
            return ResolutionResult(type="none", query_norm=query_norm)

        if len(matched) == 1:
            self._log_decision(site_id, query_norm, "single", matched)
            return ResolutionResult(type="single", query_norm=query_norm, offer=matched[0])

        # Stronger matches (brand also named) first, then catalog order
        ranked = sorted(
            matched,
            key=lambda o: not _mentions(query_norm, tokens, o.brand_norm),
        )
        limit = max(2, self.config.max_alternatives)
        alternatives = ranked[:limit]
        self._log_decision(site_id, query_norm, "multiple", alternatives)
        return ResolutionResult(type="multiple", query_norm=query_norm, alternatives=alternatives)

    def get_offer_by_id(self, offer_id: str, site_id: str) -> Optional[Offer]:
        """Fetch the offer a user picked from a clarification prompt."""
        offer = self.catalog.get_offer(site_id, offer_id)
        if offer is None:
            logger.info(f"Offer {offer_id} not found for site {site_id}")
        return offer

    @staticmethod
    def _prefer_named_brand(query_norm: str, tokens: Sequence[str], offers: List[Offer]) -> List[Offer]:
        brands = {o.brand_norm for o in offers}
        if len(brands) < 2:
            return offers
        named = [o for o in offers if _mentions(query_norm, tokens, o.brand_norm)]
        # Still tied (no brand named): keep everything and let the caller clarify
        return named or offers

    @staticmethod
    def _log_decision(site_id: str, query_norm: str, decision: str, offers: List[Offer], reason: str = "") -> None:
        ids = [o.id for o in offers]
        suffix = f" reason={reason}" if reason else ""
        logger.info(
            f"resolution site={site_id} query_norm={query_norm!r} decision={decision} candidates={ids}{suffix}"
        )


def resolve_offer_hint(query: str, site_id: str, catalog: CatalogStore) -> ResolutionResult:
    """Resolve with default configuration."""
    return OfferResolver(catalog).resolve_offer_hint(query, site_id)
