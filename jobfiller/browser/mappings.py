"""
Mapping table and matcher.

A mapping table is an ordered list of (résumé path, candidates). A
candidate is either a plain string, which hits when it is a substring
of the lower-cased identifier value, or a compiled regex, which hits
when it searches successfully. The first path with a hit wins, so
layers are checked most-specific first:

    AI overrides > domain mappings > DEFAULT_MAPPINGS > FALLBACK_PATTERNS

Stored domain mappings are JSON. Regex candidates are stored as
strings prefixed with "re:".
"""

import logging
import re
from typing import Dict, List, Optional, Tuple, Union

from ..utils.resume_paths import is_valid_path
from .identifier import split_identifier

logger = logging.getLogger(__name__)

Candidate = Union[str, re.Pattern]
MappingTable = List[Tuple[str, List[Candidate]]]

REGEX_PREFIX = "re:"

IDENTIFIER_SOURCES = {"id", "name", "label", "placeholder", "aria", "parent", "xpath", "position"}

# Ordered specific -> generic. personal.name goes last among personal
# entries because "name" is a substring of "firstname"/"lastname".
DEFAULT_MAPPINGS: List[Tuple[str, List[str]]] = [
    ("personal.firstName", ["first-name", "firstname", "first_name", "fname", "first"]),
    ("personal.lastName", ["last-name", "lastname", "last_name", "lname", "surname", "last"]),
    ("personal.email", ["email", "email-address", "emailaddress", "email_address"]),
    ("personal.phone", ["phone", "phonenumber", "phone-number", "phone_number", "mobile", "cell"]),
    ("personal.linkedin", ["linkedin", "linkedin-url", "linkedin_url", "sociallinkedin"]),
    ("personal.website", ["website", "personal-website", "personal_website", "portfolio"]),
    ("personal.address", ["address", "street-address", "streetaddress", "street_address"]),

    ("summary", ["summary", "professional-summary", "professional_summary", "about", "about-me", "about_me"]),

    ("education[0].school", ["education", "school", "university", "college", "institution"]),
    ("education[0].degree", ["degree", "degree-type", "degree_type"]),
    ("education[0].field", ["field-of-study", "field_of_study", "major"]),
    ("education[0].graduationDate", ["graduation-date", "graduation_date", "grad-date", "grad_date"]),
    ("education[0].gpa", ["gpa", "grade-point-average", "grade_point_average"]),

    ("experience[0].company", ["company", "employer", "organization"]),
    ("experience[0].title", ["job-title", "job_title", "title", "position"]),
    ("experience[0].startDate", ["start-date", "start_date", "employment-start-date", "employment_start_date"]),
    ("experience[0].endDate", ["end-date", "end_date", "employment-end-date", "employment_end_date"]),
    ("experience[0].description", ["job-description", "job_description", "description", "responsibilities"]),

    ("skills", ["skills", "skill-list", "skill_list", "key-skills", "key_skills"]),

    ("personal.name", ["name", "fullname", "full-name", "full_name"]),
]

FALLBACK_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"first.*name|fname|first$", re.I), "personal.firstName"),
    (re.compile(r"last.*name|lname|surname|last$", re.I), "personal.lastName"),
    (re.compile(r"city", re.I), "personal.city"),
    (re.compile(r"state|province", re.I), "personal.state"),
    (re.compile(r"zip|postal", re.I), "personal.zip"),
]


# ============ Candidates ============

def compile_candidate(candidate: str) -> Optional[Candidate]:
    """'re:^foo$' -> compiled regex, anything else -> lower-cased string."""
    if not isinstance(candidate, str) or not candidate:
        return None
    if candidate.startswith(REGEX_PREFIX):
        try:
            return re.compile(candidate[len(REGEX_PREFIX):], re.I)
        except re.error as e:
            logger.warning(f"Ignoring invalid mapping pattern {candidate!r}: {e}")
            return None
    return candidate.lower()


def compile_patterns(candidates: List[str]) -> List[Candidate]:
    compiled = []
    for candidate in candidates:
        c = compile_candidate(candidate)
        if c is not None:
            compiled.append(c)
    return compiled


def exact_pattern(field_value: str) -> str:
    """Stored pattern matching one identifier value exactly."""
    return f"{REGEX_PREFIX}^{re.escape(field_value.lower())}$"


def candidate_hits(candidate: Candidate, needle: str) -> bool:
    if isinstance(candidate, str):
        return candidate in needle
    return candidate.search(needle) is not None


def is_field_identifier(key: str) -> bool:
    source, value = split_identifier(key)
    return bool(value) and source in IDENTIFIER_SOURCES


# ============ Tables ============

def build_table(entries: List[Tuple[str, List[str]]]) -> MappingTable:
    return [(path, compile_patterns(candidates)) for path, candidates in entries]


def normalize_domain_mapping(mapping: Optional[Dict]) -> List[Tuple[str, List[str]]]:
    """
    Bring a stored domain mapping into path -> patterns shape.

    Accepts both shapes:
      {"personal.email": ["applicant-mail", "re:^mail$"]}   path -> patterns
      {"id:applicant_mail": "personal.email"}               identifier -> path

    An identifier entry becomes an exact pattern for that field. Entries
    in neither shape are dropped with a warning. Key order is kept.
    """
    if not mapping:
        return []

    grouped: Dict[str, List[str]] = {}
    for key, value in mapping.items():
        if isinstance(value, list) and is_valid_path(key):
            grouped.setdefault(key, []).extend(v for v in value if isinstance(v, str))
        elif isinstance(value, str) and is_field_identifier(key) and is_valid_path(value):
            _, field_value = split_identifier(key)
            grouped.setdefault(value, []).append(exact_pattern(field_value))
        else:
            logger.warning(f"Skipping unrecognized mapping entry {key!r} -> {value!r}")
    return list(grouped.items())


class MappingSet:
    """
    Layered mapping table for one page.

    Args:
        domain_mapping: stored mapping for the page's hostname (either shape)
        overrides: field identifier -> path pairs that beat everything else
        defaults: default keyword table
    """

    def __init__(
        self,
        domain_mapping: Optional[Dict] = None,
        overrides: Optional[Dict[str, str]] = None,
        defaults: Optional[List[Tuple[str, List[str]]]] = None,
    ):
        self.overrides = build_table(normalize_domain_mapping(overrides))
        self.domain = build_table(normalize_domain_mapping(domain_mapping))
        self.defaults = build_table(DEFAULT_MAPPINGS if defaults is None else defaults)
        self.fallbacks = FALLBACK_PATTERNS

    def entries(self) -> MappingTable:
        return self.overrides + self.domain + self.defaults

    def with_overrides(self, overrides: Dict[str, str]) -> "MappingSet":
        merged = MappingSet(defaults=[])
        merged.overrides = build_table(normalize_domain_mapping(overrides))
        merged.domain = self.domain
        merged.defaults = self.defaults
        return merged

    def match(self, identifier: str) -> Optional[str]:
        return match_field(identifier, self)


def match_field(identifier: str, mapping_set: MappingSet) -> Optional[str]:
    """
    Résumé path for a field identifier, or None when nothing matches.

    Examples:
        >>> match_field("id:email", MappingSet())
        'personal.email'
        >>> match_field("id:shoe-size", MappingSet()) is None
        True
    """
    _, value = split_identifier(identifier)
    needle = value.lower()
    if not needle:
        return None

    for path, candidates in mapping_set.entries():
        if any(candidate_hits(c, needle) for c in candidates):
            return path

    for pattern, path in mapping_set.fallbacks:
        if pattern.search(needle):
            return path

    logger.debug(f"No mapping for {identifier}")
    return None
