"""
LLM-backed gates for OfferScope.

- soft_inference: cautious-answer assessor (fails closed)
- product_filter: context-aware candidate filter (fails open)
"""
from offerscope.assessor.product_filter import ProductFilter
from offerscope.assessor.risk import RiskAssessment, detect_risk
from offerscope.assessor.soft_inference import AssessorResult, SoftInferenceAssessor

__all__ = [
    "AssessorResult",
    "ProductFilter",
    "RiskAssessment",
    "SoftInferenceAssessor",
    "detect_risk",
]
