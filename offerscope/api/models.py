"""
Pydantic models for OfferScope API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List


class ResolveRequest(BaseModel):
    """Request model for offer resolution."""
    query: str = Field(min_length=1, description="User's query")
    site_id: str = Field(min_length=1, description="Site whose catalog is searched")


class TurnRequest(BaseModel):
    """Request model for a full conversational turn."""
    query: str = Field(min_length=1, description="User's current message")
    site_id: str = Field(min_length=1, description="Site whose catalog and content are searched")
    session_id: Optional[str] = Field(default=None, description="Chat session, used for rate limiting")
    messages: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Conversation so far, current message last ({role, content} or {role, parts})",
    )
    query_embedding: Optional[List[float]] = Field(default=None, description="Precomputed query embedding")
    assess: bool = Field(default=True, description="Run the soft-inference assessor")
    previous_display_intent: Optional[str] = Field(default=None, description="Display intent of the previous turn")
    language: Optional[str] = Field(default=None, description="Detected language code for the session")
    language_confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class IntentRequest(BaseModel):
    """Request model for query intent analysis."""
    query: str = Field(min_length=1)
    previous_intent: Optional[str] = None


class IntentResponse(BaseModel):
    query_analysis: Dict[str, Any]
    display_intent: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Body returned when an upstream lookup fails."""
    error: str
    operation: str
    detail: str


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any] = Field(default_factory=dict)
