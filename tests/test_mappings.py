"""
Tests for the mapping table and field matcher.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from jobfiller.browser.mappings import (
    DEFAULT_MAPPINGS,
    MappingSet,
    compile_candidate,
    exact_pattern,
    match_field,
    normalize_domain_mapping,
)


class TestDefaultMatching:
    """Default keyword table plus fallbacks."""

    @pytest.mark.parametrize("identifier, path", [
        ("id:firstName", "personal.firstName"),
        ("name:last_name", "personal.lastName"),
        ("id:email", "personal.email"),
        ("label:Phone Number", "personal.phone"),
        ("id:linkedin-url", "personal.linkedin"),
        ("id:full-name", "personal.name"),
        ("id:name", "personal.name"),
        ("id:school", "education[0].school"),
        ("id:major", "education[0].field"),
        ("id:company", "experience[0].company"),
        ("id:job-title", "experience[0].title"),
        ("id:skills", "skills"),
    ])
    def test_defaults(self, identifier, path):
        assert match_field(identifier, MappingSet()) == path

    def test_firstname_resolves_via_fallback_alone(self):
        assert match_field("id:firstName", MappingSet(defaults=[])) == "personal.firstName"

    @pytest.mark.parametrize("identifier, path", [
        ("id:city", "personal.city"),
        ("id:province", "personal.state"),
        ("id:postal_code", "personal.zip"),
    ])
    def test_fallbacks(self, identifier, path):
        assert match_field(identifier, MappingSet()) == path

    def test_no_match(self):
        assert match_field("id:shoe-size", MappingSet()) is None

    def test_empty_value(self):
        assert match_field("id:", MappingSet()) is None

    def test_case_insensitive(self):
        assert match_field("id:EMAIL", MappingSet()) == "personal.email"

    def test_personal_name_is_last_default(self):
        assert DEFAULT_MAPPINGS[-1][0] == "personal.name"


class TestDomainMappings:
    """Domain entries beat the defaults."""

    def test_domain_beats_default(self):
        mapping_set = MappingSet({"personal.website": ["email"]})
        assert match_field("id:email", mapping_set) == "personal.website"

    def test_identifier_shape(self):
        mapping_set = MappingSet({"id:q_17": "personal.phone"})
        assert match_field("id:q_17", mapping_set) == "personal.phone"
        # Exact match only
        assert match_field("id:q_170", mapping_set) is None

    def test_regex_candidates(self):
        mapping_set = MappingSet({"summary": ["re:^cover.*letter$"]})
        assert match_field("id:cover_letter", mapping_set) == "summary"
        assert match_field("id:my_cover_letter", mapping_set) is None

    def test_overrides_beat_domain(self):
        base = MappingSet({"personal.website": ["email"]})
        merged = base.with_overrides({"id:email": "personal.email"})
        assert match_field("id:email", merged) == "personal.email"
        assert match_field("id:email", base) == "personal.website"


class TestNormalization:
    """Stored mapping shapes."""

    def test_both_shapes(self):
        mapping = {
            "personal.email": ["applicant-mail"],
            "id:mail2": "personal.email",
            "name:q1": "summary",
        }
        assert normalize_domain_mapping(mapping) == [
            ("personal.email", ["applicant-mail", exact_pattern("mail2")]),
            ("summary", [exact_pattern("q1")]),
        ]

    def test_invalid_entries_dropped(self):
        mapping = {
            "not a path": ["x"],
            "id:q1": "personal.",
            "bogus:q2": "summary",
            "skills": "not-a-list",
        }
        assert normalize_domain_mapping(mapping) == []

    def test_empty(self):
        assert normalize_domain_mapping(None) == []
        assert normalize_domain_mapping({}) == []

    def test_exact_pattern_escapes(self):
        assert exact_pattern("Q.1") == r"re:^q\.1$"

    def test_compile_candidate(self):
        assert compile_candidate("FirstName") == "firstname"
        assert compile_candidate("re:^a+$").search("AAA")
        assert compile_candidate("re:(") is None
        assert compile_candidate("") is None
