"""
Core records for offer resolution and chunk filtering.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Optional

from offerscope.parsing.content_type import detect_content_type
from offerscope.parsing.normalizer import normalize_text

ResolutionType = Literal["single", "multiple", "none"]


@dataclass
class Offer:
    """A catalog entry (product or service) with brand/model identifiers.

    brand_norm/model_norm are derived from brand/model when not supplied.
    Use with_identity() to change brand or model so they are recomputed.
    """
    id: str
    site_id: str
    title: str
    brand: Optional[str] = None
    model: Optional[str] = None
    brand_norm: Optional[str] = None
    model_norm: Optional[str] = None
    url: str = ""
    description: Optional[str] = None
    aliases: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.brand_norm is None and self.brand:
            self.brand_norm = normalize_text(self.brand)
        if self.model_norm is None and self.model:
            self.model_norm = normalize_text(self.model)

    def with_identity(self, brand: Optional[str] = None, model: Optional[str] = None) -> "Offer":
        """Return a copy with new brand/model and freshly normalized forms."""
        new_brand = brand if brand is not None else self.brand
        new_model = model if model is not None else self.model
        return replace(
            self,
            brand=new_brand,
            model=new_model,
            brand_norm=normalize_text(new_brand) or None,
            model_norm=normalize_text(new_model) or None,
        )

    @property
    def alias_norms(self) -> List[str]:
        return [n for n in (normalize_text(a) for a in self.aliases) if n]

    @classmethod
    def from_row(cls, row: Dict[str, Any], site_id: Optional[str] = None) -> "Offer":
        """Build an offer from a catalog row (REST table or RPC result)."""
        return cls(
            id=str(row.get("offer_id") or row.get("id")),
            site_id=str(row.get("site_id") or site_id or ""),
            title=row.get("title") or "",
            brand=row.get("brand"),
            model=row.get("model"),
            brand_norm=row.get("brand_norm"),
            model_norm=row.get("model_norm"),
            url=row.get("url") or "",
            description=row.get("description"),
            aliases=list(row.get("aliases") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "siteId": self.site_id,
            "title": self.title,
            "brand": self.brand,
            "model": self.model,
            "brandNorm": self.brand_norm,
            "modelNorm": self.model_norm,
            "url": self.url,
            "description": self.description,
            "aliases": list(self.aliases),
        }


@dataclass(frozen=True)
class ContentChunk:
    """A unit of ingested content with its retrieval similarity."""
    chunk_id: str
    material_id: str
    material_title: str
    content: str
    similarity: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        """Content category used for intent boosts (metadata first, then detection)."""
        declared = self.metadata.get("contentType") or self.metadata.get("content_type")
        if declared:
            return str(declared)
        return detect_content_type(self.material_title, self.content)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ContentChunk":
        return cls(
            chunk_id=str(row.get("chunk_id") or row.get("id")),
            material_id=str(row.get("material_id") or ""),
            material_title=row.get("material_title") or row.get("title") or "",
            content=row.get("content") or "",
            similarity=float(row.get("similarity") or 0.0),
            metadata=dict(row.get("metadata") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunkId": self.chunk_id,
            "materialId": self.material_id,
            "materialTitle": self.material_title,
            "content": self.content,
            "similarity": self.similarity,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class ScoredChunk:
    """A corpus candidate with an optional keyword-match score."""
    chunk: ContentChunk
    keyword_score: float = 0.0


@dataclass
class ResolutionResult:
    """Outcome of resolving a query against the catalog.

    offer is set iff type == "single"; alternatives (more than one) iff
    type == "multiple"; neither for "none".
    """
    type: ResolutionType
    query_norm: str
    offer: Optional[Offer] = None
    alternatives: Optional[List[Offer]] = None

    def __post_init__(self):
        if self.type == "single":
            if self.offer is None or self.alternatives is not None:
                raise ValueError("single resolution requires exactly one offer and no alternatives")
        elif self.type == "multiple":
            if self.offer is not None or not self.alternatives or len(self.alternatives) < 2:
                raise ValueError("multiple resolution requires at least two alternatives and no offer")
        elif self.type == "none":
            if self.offer is not None or self.alternatives is not None:
                raise ValueError("none resolution must not carry an offer or alternatives")
        else:
            raise ValueError(f"unknown resolution type: {self.type!r}")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type, "queryNorm": self.query_norm}
        if self.offer is not None:
            payload["offer"] = self.offer.to_dict()
        if self.alternatives is not None:
            payload["alternatives"] = [o.to_dict() for o in self.alternatives]
        return payload
