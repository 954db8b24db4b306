"""
Error taxonomy and failure policies for OfferScope.

Lookup errors (catalog, corpus) are raised to the caller. Degraded LLM
components never raise; they resolve their failure through a FailurePolicy:
safety gates fail closed, convenience filters fail open.
"""
from enum import Enum
from typing import Optional, TypeVar

T = TypeVar("T")


class OfferScopeError(Exception):
    """Base class for errors raised by the pipeline."""


class LookupFailedError(OfferScopeError):
    """Raised when an external read (catalog or corpus) fails."""

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.cause = cause


class CatalogLookupError(LookupFailedError):
    """Raised when the offer catalog cannot be queried."""


class CorpusLookupError(LookupFailedError):
    """Raised when the content corpus cannot be queried."""


class FailurePolicy(str, Enum):
    """How a degraded component answers when its external call fails."""
    FAIL_OPEN = "fail_open"      # Return everything / do not filter
    FAIL_CLOSED = "fail_closed"  # Return the most conservative answer


def apply_failure_policy(policy: FailurePolicy, fail_open_value: T, fail_closed_value: T) -> T:
    """Pick the fallback value that matches the configured policy."""
    if policy == FailurePolicy.FAIL_OPEN:
        return fail_open_value
    return fail_closed_value
