"""
OfferScope - query understanding and offer resolution for retrieval-augmented chat

Anchors a conversational turn to the right catalog offer with:
- Deterministic text normalization shared with the database
- single/multiple/none offer resolution
- Chunk filtering that keeps near-duplicate variants apart
- Intent-aware hybrid ranking and a fail-closed inference gate
"""

from offerscope.core.controller import TurnController, TurnResult
from offerscope.core.config import OfferScopeConfig, get_config, set_config
from offerscope.offers.resolver import OfferResolver, resolve_offer_hint

__all__ = [
    'TurnController',
    'TurnResult',
    'OfferScopeConfig',
    'get_config',
    'set_config',
    'OfferResolver',
    'resolve_offer_hint',
]

__version__ = '0.1.0'
