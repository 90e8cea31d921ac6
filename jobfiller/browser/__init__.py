"""
Form discovery, matching and filling.

Usage:
    from jobfiller.browser import FormFiller, HtmlDocument

    doc = HtmlDocument(html, hostname="jobs.example.com")
    result = FormFiller().fill(doc, resume)
"""

from .ai_mapper import AIAssistedMatcher
from .dom import ControlSnapshot, FormControl, FormDocument
from .form_filler import (
    FieldMatcher,
    FillResult,
    FormFiller,
    HeuristicMatcher,
    PageFieldSnapshot,
)
from .html_dom import HtmlDocument
from .identifier import identify_field, is_eligible
from .mappings import DEFAULT_MAPPINGS, MappingSet, match_field

__all__ = [
    "AIAssistedMatcher",
    "ControlSnapshot",
    "FormControl",
    "FormDocument",
    "FieldMatcher",
    "FillResult",
    "FormFiller",
    "HeuristicMatcher",
    "PageFieldSnapshot",
    "HtmlDocument",
    "identify_field",
    "is_eligible",
    "DEFAULT_MAPPINGS",
    "MappingSet",
    "match_field",
]
