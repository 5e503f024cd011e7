"""
Capability tags for supplementary instruction selection.

Pure keyword detection over the latest user message. Choosing which
instructions to inject for a tag happens outside this service.
"""

import re

UI_UX_TAG = "ui-ux"
DOMAIN_TAG = "domain"

UI_UX_INTENT_PATTERN = re.compile(
    r"\b(landing page|landingpage|ui|ux|design|desain|website|web app|homepage|hero|cta"
    r"|layout|wireframe|mockup|responsive|responsif)\b",
    re.IGNORECASE,
)
DOMAIN_INTENT_PATTERN = re.compile(
    r"\b(landing page|donasi|donation|saas|startup|fintech|ecommerce|edtech|seo|copywriting"
    r"|campaign|conversion|homepage|product launch)\b",
    re.IGNORECASE,
)


def detect_capability_tags(latest_user_text: str) -> frozenset:
    """Return the capability tags the latest user message calls for."""
    tags = set()
    if UI_UX_INTENT_PATTERN.search(latest_user_text or ""):
        tags.add(UI_UX_TAG)
    if DOMAIN_INTENT_PATTERN.search(latest_user_text or ""):
        tags.add(DOMAIN_TAG)
    return frozenset(tags)
