"""Optional enrichment of normalized emails: category labels and key facts."""

from mailbridge.enrichment.categorizer import categorize_email
from mailbridge.enrichment.key_facts import extract_key_facts
from mailbridge.enrichment.models import EmailCategory, EmailEnrichment, KeyFacts
from mailbridge.enrichment.pipeline import enrich_email

__all__ = [
    "EmailCategory",
    "EmailEnrichment",
    "KeyFacts",
    "categorize_email",
    "enrich_email",
    "extract_key_facts",
]
