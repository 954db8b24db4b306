"""
Configuration management for OfferScope.

Loads settings from YAML config file and provides typed access.
Credentials and feature switches come from the environment (.env supported).
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from offerscope.core.errors import FailurePolicy


def _project_root() -> Path:
    """Return project root (parent of offerscope package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class OfferScopeConfig:
    """Configuration for the offer-resolution pipeline."""

    # Hybrid retrieval
    vector_weight: float = 0.7              # Weight of vector similarity vs keyword score
    similarity_threshold: float = 0.3       # Minimum fused score kept
    retrieval_limit: int = 10               # Ranked chunks returned
    candidate_pool: int = 20                # Chunks requested from the corpus
    context_term_boost: float = 0.1         # Additive boost per matched context keyword
    max_context_boost: float = 0.25         # Cap on the total context boost

    # Conversation context
    context_last_turns: int = 2             # Prior user+assistant turns considered
    context_max_terms: int = 5              # Terms kept from conversation history
    context_keywords_max: int = 15          # Keywords kept from retrieved chunks

    # Offer resolution
    max_alternatives: int = 3               # Offers returned for a 'multiple' decision

    # Soft-inference assessor
    assessor_model: str = "gpt-4o-mini"
    assessor_temperature: float = 0.1
    assessor_max_tokens: int = 140
    assessor_timeout: float = 8.0
    assessor_failure_policy: FailurePolicy = FailurePolicy.FAIL_CLOSED

    # AI product filter
    product_filter_enabled: bool = False
    product_filter_model: str = "gpt-4o-mini"
    product_filter_temperature: float = 0.1
    product_filter_timeout: float = 8.0
    product_filter_failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN

    # Catalog / corpus lookups
    catalog_timeout: float = 5.0
    catalog_retries: int = 1                # Bounded retry for idempotent reads
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Rate limiting
    rate_limit_enabled: bool = False
    rate_limit_requests: int = 100
    rate_limit_window: int = 3600
    rate_limit_burst: int = 10

    # Bounded caches
    cache_max_entries: int = 10000
    cache_sweep_interval: float = 60.0
    language_cache_ttl: int = 300

    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "OfferScopeConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        if not path.exists():
            return cls().with_environment()

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        retrieval = data.get('retrieval', {})
        context = data.get('context', {})
        resolution = data.get('resolution', {})
        assessor = data.get('assessor', {})
        product_filter = data.get('product_filter', {})
        catalog = data.get('catalog', {})
        rate_limit = data.get('rate_limit', {})
        cache = data.get('cache', {})

        config = cls(
            vector_weight=retrieval.get('vector_weight', 0.7),
            similarity_threshold=retrieval.get('similarity_threshold', 0.3),
            retrieval_limit=retrieval.get('limit', 10),
            candidate_pool=retrieval.get('candidate_pool', 20),
            context_term_boost=retrieval.get('context_term_boost', 0.1),
            max_context_boost=retrieval.get('max_context_boost', 0.25),
            context_last_turns=context.get('last_turns', 2),
            context_max_terms=context.get('max_terms', 5),
            context_keywords_max=context.get('max_keywords', 15),
            max_alternatives=resolution.get('max_alternatives', 3),
            assessor_model=assessor.get('model', 'gpt-4o-mini'),
            assessor_temperature=assessor.get('temperature', 0.1),
            assessor_max_tokens=assessor.get('max_tokens', 140),
            assessor_timeout=assessor.get('timeout', 8.0),
            assessor_failure_policy=FailurePolicy(assessor.get('failure_policy', 'fail_closed')),
            product_filter_enabled=product_filter.get('enabled', False),
            product_filter_model=product_filter.get('model', 'gpt-4o-mini'),
            product_filter_temperature=product_filter.get('temperature', 0.1),
            product_filter_timeout=product_filter.get('timeout', 8.0),
            product_filter_failure_policy=FailurePolicy(product_filter.get('failure_policy', 'fail_open')),
            catalog_timeout=catalog.get('timeout', 5.0),
            catalog_retries=catalog.get('retries', 1),
            rate_limit_enabled=rate_limit.get('enabled', False),
            rate_limit_requests=rate_limit.get('requests', 100),
            rate_limit_window=rate_limit.get('window', 3600),
            rate_limit_burst=rate_limit.get('burst', 10),
            cache_max_entries=cache.get('max_entries', 10000),
            cache_sweep_interval=cache.get('sweep_interval', 60.0),
            language_cache_ttl=cache.get('language_ttl', 300),
        )
        return config.with_environment()

    def with_environment(self) -> "OfferScopeConfig":
        """Overlay credentials and feature switches from environment variables."""
        self.supabase_url = os.getenv("SUPABASE_URL", self.supabase_url)
        self.supabase_key = os.getenv("SUPABASE_KEY", self.supabase_key)
        self.openai_api_key = os.getenv("OPENAI_API_KEY", self.openai_api_key)
        self.product_filter_enabled = _env_flag("ENABLE_AI_PRODUCT_FILTERING", self.product_filter_enabled)
        self.rate_limit_enabled = _env_flag("RATE_LIMIT_ENABLED", self.rate_limit_enabled)
        if os.getenv("AI_FILTER_MODEL"):
            self.product_filter_model = os.environ["AI_FILTER_MODEL"]
        return self


# Global config instance
_config: Optional[OfferScopeConfig] = None


def get_config() -> OfferScopeConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = OfferScopeConfig.from_yaml()
    return _config


def set_config(config: OfferScopeConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
