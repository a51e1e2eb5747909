"""Enrichment value types attached alongside a ``NormalizedEmail``."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EmailCategory(StrEnum):
    """Coarse topic label assigned to an email by keyword heuristics."""

    SECURITY = "security"
    SOCIAL = "social"
    WORK = "work"
    MARKETING = "marketing"
    GENERAL = "general"


class KeyFacts(BaseModel):
    """Quick-glance facts pulled from an email's subject and body.

    ``codes`` and ``links`` are deduplicated in first-seen order; ``links``
    holds at most three entries.
    """

    model_config = ConfigDict(frozen=True)

    codes: tuple[str, ...] = ()
    links: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()


class EmailEnrichment(BaseModel):
    """Category and key facts computed for one normalized email."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    category: EmailCategory
    key_facts: KeyFacts = Field(default_factory=KeyFacts)
