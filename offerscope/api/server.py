"""
FastAPI server for OfferScope.

Exposes offer resolution, clarification pick-up, full turn processing and
intent analysis to the answer-generation service.

Usage:
    uvicorn offerscope.api.server:app --reload --port 8000
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dotenv import load_dotenv
load_dotenv()

from offerscope import __version__
from offerscope.api.models import (
    ErrorResponse,
    HealthResponse,
    IntentRequest,
    IntentResponse,
    ResolveRequest,
    TurnRequest,
)
from offerscope.assessor.product_filter import ProductFilter
from offerscope.assessor.soft_inference import SoftInferenceAssessor
from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.core.controller import TurnController
from offerscope.core.errors import LookupFailedError
from offerscope.data.catalog import CatalogStore, ContentCorpus, InMemoryCatalog, InMemoryCorpus
from offerscope.data.supabase_store import SupabaseCatalog, SupabaseClient, SupabaseCorpus
from offerscope.parsing.display_intent import detect_display_intent_advanced
from offerscope.parsing.query_intent import analyze_query_intent
from offerscope.utils.logger import get_logger
from offerscope.utils.rate_limiter import RateLimiter
from offerscope.utils.session_language import SessionLanguageCache
from offerscope.utils.ttl_cache import TTLCache

logger = get_logger("api.server")


def _default_stores(config: OfferScopeConfig):
    if config.supabase_url and config.supabase_key:
        client = SupabaseClient(config.supabase_url, config.supabase_key, timeout=config.catalog_timeout)
        return SupabaseCatalog(client, config), SupabaseCorpus(client, config)
    logger.warning("Supabase not configured; serving from an empty in-memory catalog")
    return InMemoryCatalog(), InMemoryCorpus()


def create_app(
    config: Optional[OfferScopeConfig] = None,
    catalog: Optional[CatalogStore] = None,
    corpus: Optional[ContentCorpus] = None,
    assessor: Optional[SoftInferenceAssessor] = None,
    product_filter: Optional[ProductFilter] = None,
) -> FastAPI:
    """Build the app with its per-process services (controller, caches, limiter)."""
    config = config or get_config()
    if catalog is None or corpus is None:
        default_catalog, default_corpus = _default_stores(config)
        catalog = catalog or default_catalog
        corpus = corpus or default_corpus

    app = FastAPI(
        title="OfferScope API",
        description="Query understanding and offer resolution for retrieval-augmented chat",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    cache = TTLCache(
        default_ttl=config.language_cache_ttl,
        max_entries=config.cache_max_entries,
        sweep_interval=config.cache_sweep_interval,
    )
    app.state.config = config
    app.state.cache = cache
    app.state.controller = TurnController(
        catalog, corpus, config, assessor or SoftInferenceAssessor(config=config), product_filter
    )
    app.state.rate_limiter = RateLimiter(
        cache,
        requests=config.rate_limit_requests,
        window_seconds=config.rate_limit_window,
        burst=config.rate_limit_burst,
        enabled=config.rate_limit_enabled,
    )
    app.state.languages = SessionLanguageCache(cache, ttl=config.language_cache_ttl)

    @app.on_event("startup")
    async def start_cache_sweep():
        cache.start()

    @app.on_event("shutdown")
    async def stop_cache_sweep():
        cache.stop()

    @app.exception_handler(LookupFailedError)
    async def lookup_failed(request: Request, exc: LookupFailedError):
        logger.error(f"Lookup failed on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=502,
            content=ErrorResponse(error="lookup_failed", operation=exc.operation, detail=str(exc)).model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return HealthResponse(
            status="online",
            service="OfferScope API",
            version=__version__,
            config={
                "vector_weight": config.vector_weight,
                "similarity_threshold": config.similarity_threshold,
                "max_alternatives": config.max_alternatives,
                "rate_limit_enabled": config.rate_limit_enabled,
            },
        )

    @app.post("/resolve")
    def resolve(request: ResolveRequest) -> Dict[str, Any]:
        """Resolve a query to single/multiple/none catalog offers."""
        controller: TurnController = app.state.controller
        return controller.resolver.resolve_offer_hint(request.query, request.site_id).to_dict()

    @app.get("/offers/{offer_id}")
    def get_offer(offer_id: str, site_id: str) -> Dict[str, Any]:
        """Fetch the offer a user picked from a 'multiple' clarification."""
        controller: TurnController = app.state.controller
        offer = controller.resolver.get_offer_by_id(offer_id, site_id)
        if offer is None:
            raise HTTPException(status_code=404, detail=f"Offer {offer_id} not found")
        return offer.to_dict()

    @app.post("/turn")
    def turn(request: TurnRequest) -> Dict[str, Any]:
        """
        Full turn: resolution, filtered and ranked chunks, query analysis,
        context keywords and (optionally) the soft-inference assessment.
        """
        limit_key = f"{request.site_id}:{request.session_id or 'anonymous'}"
        limit = app.state.rate_limiter.check(limit_key)
        if not limit.success:
            raise HTTPException(
                status_code=429,
                detail="Rate limit exceeded",
                headers={"Retry-After": str(limit.retry_after)},
            )

        controller: TurnController = app.state.controller
        result = controller.process_turn(
            request.query,
            request.site_id,
            messages=request.messages,
            query_embedding=request.query_embedding,
            assess=request.assess,
            previous_display_intent=request.previous_display_intent,
        )
        payload = result.to_payload()

        if request.session_id:
            languages: SessionLanguageCache = app.state.languages
            if request.language:
                languages.remember(request.session_id, request.language, request.language_confidence)
            session_language = languages.get(request.session_id)
            if session_language is not None:
                payload["sessionLanguage"] = {
                    "code": session_language.code,
                    "confidence": session_language.confidence,
                    "messageCount": session_language.message_count,
                }
        payload["rateLimit"] = {"limit": limit.limit, "remaining": limit.remaining}
        return payload

    @app.post("/intent", response_model=IntentResponse)
    def intent(request: IntentRequest):
        """Retrieval intent and display-gating intent for a query."""
        return IntentResponse(
            query_analysis=analyze_query_intent(request.query).to_dict(),
            display_intent=detect_display_intent_advanced(request.query, request.previous_intent).to_dict(),
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
