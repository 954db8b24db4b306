"""
Supabase-backed catalog and content corpus.

Thin httpx client over the Supabase REST API. Unlike a best-effort client,
every failure is raised: an unreachable catalog must not look like "no match".
Catalog reads are idempotent and get one bounded retry.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.core.errors import CatalogLookupError, CorpusLookupError
from offerscope.offers.types import ContentChunk, Offer, ScoredChunk
from offerscope.utils.logger import get_logger

logger = get_logger("data.supabase_store")


class SupabaseClient:
    """
    Lightweight client for interacting with Supabase REST API.
    """
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None,
                 timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self.url = url
        self.key = key

        if not self.url or not self.key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")

        self.headers = {
            "apikey": self.key or "",
            "Authorization": f"Bearer {self.key or ''}",
            "Content-Type": "application/json",
        }
        self.client = httpx.Client(
            base_url=self.url or "http://localhost",
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    def select(self, table: str, filters: Optional[Dict[str, str]] = None, select: str = "*",
               limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Query a Supabase table. Raises httpx.HTTPError on failure.
        """
        params = {"select": select}
        if filters:
            for key, val in filters.items():
                if isinstance(val, str) and "." in val and val.split(".")[0] in (
                    "eq", "neq", "gt", "lt", "gte", "lte", "like", "ilike", "in", "is", "wfts(simple)"
                ):
                    params[key] = val
                else:
                    params[key] = f"eq.{val}"

        if limit:
            params["limit"] = str(limit)

        response = self.client.get(f"/rest/v1/{table}", params=params)
        response.raise_for_status()
        return response.json()

    def rpc(self, function: str, params: Dict[str, Any]) -> Any:
        """
        Call a Supabase RPC function. Raises httpx.HTTPError on failure.
        """
        response = self.client.post(f"/rest/v1/rpc/{function}", json=params)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self.client.close()


def _is_retryable(error: httpx.HTTPError) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return isinstance(error, httpx.TransportError)


def _with_retry(operation: str, call, retries: int, error_cls: type) -> Any:
    """Run call(), retrying transport errors and 5xx up to `retries` times."""
    attempt = 0
    while True:
        try:
            return call()
        except httpx.HTTPError as e:
            if attempt < retries and _is_retryable(e):
                attempt += 1
                logger.warning(f"{operation} failed ({e}); retry {attempt}/{retries}")
                continue
            logger.error(f"{operation} failed: {e}")
            raise error_cls(operation, str(e), cause=e) from e
        except ValueError as e:
            # Malformed JSON body
            logger.error(f"{operation} returned an unreadable body: {e}")
            raise error_cls(operation, f"invalid response: {e}", cause=e) from e


def _client_from_config(config: OfferScopeConfig) -> SupabaseClient:
    return SupabaseClient(url=config.supabase_url, key=config.supabase_key, timeout=config.catalog_timeout)


class SupabaseCatalog:
    """Offer catalog backed by the `offers` table and the search_offers_by_tokens
    RPC (sql/search_offers_by_tokens.sql)."""

    def __init__(self, client: Optional[SupabaseClient] = None, config: Optional[OfferScopeConfig] = None):
        self.config = config or get_config()
        self.client = client or _client_from_config(self.config)

    def find_offers(self, site_id: str, tokens: Sequence[str]) -> List[Offer]:
        if not tokens:
            return []
        rows = _with_retry(
            "search_offers_by_tokens",
            lambda: self.client.rpc("search_offers_by_tokens", {"p_site_id": site_id, "p_tokens": list(tokens)}),
            self.config.catalog_retries,
            CatalogLookupError,
        )
        offers = [Offer.from_row(row, site_id=site_id) for row in rows or []]
        logger.debug(f"Catalog returned {len(offers)} offer(s) for tokens {list(tokens)}")
        return offers

    def get_offer(self, site_id: str, offer_id: str) -> Optional[Offer]:
        rows = _with_retry(
            "get_offer",
            lambda: self.client.select("offers", filters={"id": offer_id, "site_id": site_id}, limit=1),
            self.config.catalog_retries,
            CatalogLookupError,
        )
        if not rows:
            return None
        return Offer.from_row(rows[0], site_id=site_id)


class SupabaseCorpus:
    """Content corpus: vector search RPC plus full-text keyword hits."""

    def __init__(self, client: Optional[SupabaseClient] = None, config: Optional[OfferScopeConfig] = None):
        self.config = config or get_config()
        self.client = client or _client_from_config(self.config)

    def search_chunks(
        self,
        site_id: str,
        query: str,
        query_embedding: Optional[Sequence[float]] = None,
        limit: int = 20,
    ) -> List[ScoredChunk]:
        results: Dict[str, ScoredChunk] = {}

        if query_embedding is not None:
            rows = _with_retry(
                "search_similar_chunks",
                lambda: self.client.rpc("search_similar_chunks", {
                    "query_embedding": "[" + ",".join(str(v) for v in query_embedding) + "]",
                    "site_id_param": site_id,
                    "match_limit": limit,
                }),
                self.config.catalog_retries,
                CorpusLookupError,
            )
            for row in rows or []:
                chunk = ContentChunk.from_row(row)
                results[chunk.chunk_id] = ScoredChunk(chunk=chunk)

        if query.strip():
            for chunk in self._keyword_search(site_id, query, limit):
                existing = results.get(chunk.chunk_id)
                base = existing.chunk if existing else chunk
                results[chunk.chunk_id] = ScoredChunk(chunk=base, keyword_score=1.0)

        ranked = sorted(results.values(), key=lambda s: (s.chunk.similarity, s.keyword_score), reverse=True)
        return ranked[:limit]

    def _keyword_search(self, site_id: str, query: str, limit: int) -> List[ContentChunk]:
        rows = _with_retry(
            "keyword_search",
            lambda: self.client.select(
                "training_material_chunks",
                filters={
                    "training_materials.site_id": site_id,
                    "content": f"wfts(simple).{query}",
                },
                select="id,content,metadata,training_material_id,training_materials!inner(id,title,site_id)",
                limit=limit,
            ),
            self.config.catalog_retries,
            CorpusLookupError,
        )
        chunks = []
        for row in rows or []:
            material = row.get("training_materials") or {}
            chunks.append(ContentChunk(
                chunk_id=str(row.get("id")),
                material_id=str(row.get("training_material_id") or material.get("id") or ""),
                material_title=material.get("title") or "",
                content=row.get("content") or "",
                similarity=0.0,
                metadata=dict(row.get("metadata") or {}),
            ))
        return chunks


