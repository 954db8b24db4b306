"""
Soft-inference assessor.

Decides whether a cautious, qualified answer is reasonable from the retrieved
texts without inventing facts. One structured LLM call, never retried. Any
failure resolves through the configured FailurePolicy (fail closed by
default), and a deterministic risk guard always has the last word.
"""
from __future__ import annotations

from typing import Any, Literal, Optional, Sequence

from openai import OpenAI
from pydantic import BaseModel, Field

from offerscope.assessor.risk import detect_risk
from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.core.errors import apply_failure_policy
from offerscope.offers.types import Offer
from offerscope.utils.logger import get_logger

logger = get_logger("assessor.soft_inference")

MAX_CHUNKS = 5
EXCERPT_CHARS = 300


class AssessorResult(BaseModel):
    """Structured assessor verdict."""
    confidence: Literal["high", "medium", "low"] = Field(
        description="Confidence that a cautious inference is appropriate"
    )
    safe_inference: bool = Field(
        description="True only if a cautious inference is considered safe and reasonable"
    )
    reason: Optional[str] = Field(default=None, description="Short justification")


ASSESSOR_ERROR = AssessorResult(confidence="low", safe_inference=False, reason="assessor_error")
ASSESSOR_ERROR_OPEN = AssessorResult(confidence="medium", safe_inference=True, reason="assessor_error")

SYSTEM_PROMPT = """You are a cautious assessor for a retrieval-augmented chat system.
Decide if a cautious, qualified answer is reasonable without inventing facts.

Rules:
- Do NOT assume specifics not supported by the texts.
- If the question asks about applicability to a similar context and the texts provide general principles, safe_inference can be true with medium confidence.
- If safety/health/financial risk is implied, set safe_inference=false.
- Output only the JSON object."""


def _chunk_line(index: int, chunk: Any) -> str:
    chunk = getattr(chunk, "chunk", chunk)
    title = getattr(chunk, "material_title", "") or ""
    excerpt = (getattr(chunk, "content", "") or "")[:EXCERPT_CHARS]
    return f"{index}. {title}: {excerpt}"


def build_assessor_prompt(
    query: str,
    context_terms: Sequence[str],
    chunks: Sequence[Any],
    offer_anchor: Optional[Offer] = None,
) -> str:
    chunk_text = "\n".join(_chunk_line(i + 1, c) for i, c in enumerate(chunks[:MAX_CHUNKS]))
    anchor = ""
    if offer_anchor is not None:
        anchor = " ".join(p for p in (offer_anchor.brand, offer_anchor.model, offer_anchor.title) if p).strip()
    return (
        f"User query: {query}\n"
        f"Context terms (recent): {', '.join(context_terms) or 'none'}\n"
        f"Offer anchor: {anchor or 'none'}\n"
        f"Top texts (title: excerpt):\n{chunk_text or 'none'}\n"
    )


class SoftInferenceAssessor:
    """LLM gate for cautious answers, failing closed."""

    def __init__(self, client: Optional[Any] = None, config: Optional[OfferScopeConfig] = None):
        self.config = config or get_config()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.config.openai_api_key,
                max_retries=0,
                timeout=self.config.assessor_timeout,
            )
        return self._client

    def _fallback(self) -> AssessorResult:
        return apply_failure_policy(
            self.config.assessor_failure_policy,
            fail_open_value=ASSESSOR_ERROR_OPEN,
            fail_closed_value=ASSESSOR_ERROR,
        )

    def assess(
        self,
        query: str,
        context_terms: Sequence[str],
        chunks: Sequence[Any],
        offer_anchor: Optional[Offer] = None,
    ) -> AssessorResult:
        risk = detect_risk(query)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_assessor_prompt(query, context_terms, chunks, offer_anchor)},
        ]

        try:
            response = self.client.beta.chat.completions.parse(
                model=self.config.assessor_model,
                messages=messages,
                response_format=AssessorResult,
                temperature=self.config.assessor_temperature,
                max_tokens=self.config.assessor_max_tokens,
                timeout=self.config.assessor_timeout,
            )
            parsed = response.choices[0].message.parsed
            if parsed is None:
                logger.warning("Assessor returned no parsed output (refusal or truncation)")
                result = self._fallback()
            else:
                result = parsed
        except Exception as e:
            logger.error(f"Soft-inference assessment failed: {e}")
            result = self._fallback()

        if risk.is_risky and result.safe_inference:
            logger.info(f"Risk guard overrides assessor: categories={risk.categories}")
            result = result.model_copy(update={"safe_inference": False, "reason": f"risk:{','.join(risk.categories)}"})

        logger.info(f"Assessment confidence={result.confidence} safe_inference={result.safe_inference}")
        return result
