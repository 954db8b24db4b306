"""
API module for OfferScope.

Provides REST API endpoints for the answer-generation service.
"""
from offerscope.api.models import (
    ResolveRequest,
    TurnRequest,
    IntentRequest,
    IntentResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "ResolveRequest",
    "TurnRequest",
    "IntentRequest",
    "IntentResponse",
    "ErrorResponse",
    "HealthResponse",
]
