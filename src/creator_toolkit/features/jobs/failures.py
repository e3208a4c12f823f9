"""Vendor failure classification.

Vendors report failures as free text. The keyword heuristics that turn that
text into a ``FailureCategory`` live only here; retry policy is expressed
against the category.
"""

from creator_toolkit.features.jobs.models import FailureCategory

# Checked in order; the first matching category wins.
_KEYWORDS: tuple[tuple[FailureCategory, tuple[str, ...]], ...] = (
    (
        FailureCategory.CONTENT_POLICY,
        ("content policy", "sensitive", "nsfw", "safety", "flagged", "moderation"),
    ),
    (
        FailureCategory.RATE_LIMITED,
        ("rate limit", "rate-limit", "too many requests", "429", "throttl"),
    ),
    (
        FailureCategory.INVALID_INPUT,
        ("invalid", "validation", "unprocessable", "422", "must be", "required"),
    ),
)


def classify_failure(message: str | None) -> FailureCategory:
    """Map a vendor error message to a failure category."""
    if not message:
        return FailureCategory.UNKNOWN
    lowered = message.lower()
    for category, keywords in _KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return FailureCategory.UNKNOWN


def is_safety_retryable(category: FailureCategory) -> bool:
    """Only content-safety rejections earn a sanitized second attempt."""
    return category == FailureCategory.CONTENT_POLICY
