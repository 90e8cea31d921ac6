"""
Form filler.

One fill pass: discover eligible controls, identify each one, match the
identifier to a résumé path, resolve the value and write it through the
FormControl sink. Misses are counted, never raised.

Usage:
    filler = FormFiller(HeuristicMatcher(MappingSet(domain_mapping)))
    result = filler.fill(HtmlDocument(html, "jobs.example.com"), resume)
    print(result.to_dict())
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, List, Optional, Tuple

from ..utils.names import split_name
from ..utils.resume_paths import get_value
from .dom import CHECKBOX, RADIO, SELECT, ControlSnapshot, FormControl, FormDocument
from .identifier import field_label, field_type, identify_field, is_eligible
from .mappings import MappingSet

logger = logging.getLogger(__name__)

WRITE_EVENTS = ("input", "change")

NAME_PART_PATHS = {"personal.firstName": "first", "personal.lastName": "last"}


@dataclass
class FillResult:
    total: int = 0
    filled: int = 0
    skipped: int = 0
    failed: int = 0
    message: str = ""

    @property
    def success(self) -> bool:
        return self.filled > 0

    def counts(self) -> Tuple[int, int, int, int]:
        return self.total, self.filled, self.skipped, self.failed

    def to_dict(self) -> dict:
        result = {
            "success": self.success,
            "total": self.total,
            "filled": self.filled,
            "skipped": self.skipped,
            "failed": self.failed,
        }
        if self.message:
            result["message"] = self.message
        return result


@dataclass
class PageFieldSnapshot:
    """One row of the analysis view. Rebuilt on every analysis."""

    id: str
    type: str
    label: str
    mapped: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DiscoveredField:
    identifier: str
    control: FormControl
    snapshot: ControlSnapshot


# ============ Matchers ============

class FieldMatcher(ABC):
    """Maps field identifiers to résumé paths for one fill pass."""

    message: str = ""

    def prepare(self, fields: List[PageFieldSnapshot], resume: dict) -> None:
        """Called once per pass before any match()."""

    @abstractmethod
    def match(self, identifier: str) -> Optional[str]:
        ...


class HeuristicMatcher(FieldMatcher):

    def __init__(self, mapping_set: Optional[MappingSet] = None):
        self.mapping_set = mapping_set or MappingSet()

    def match(self, identifier: str) -> Optional[str]:
        return self.mapping_set.match(identifier)


# ============ Value coercion ============

def resolve_value(resume: dict, path: str, identifier: str) -> Any:
    """
    Value for a matched field.

    Name parts missing from the document are derived from personal.name,
    and a full-name match on a "first"/"last" field is narrowed.
    """
    value = get_value(resume, path)

    if path in NAME_PART_PATHS and not value:
        value = split_name(get_value(resume, "personal.name"))[NAME_PART_PATHS[path]]

    if path == "personal.name":
        lowered = identifier.lower()
        if "first" in lowered:
            value = split_name(value)["first"]
        elif "last" in lowered:
            value = split_name(value)["last"]

    return value


def find_option(options: List[Tuple[str, str]], value: Any) -> Optional[str]:
    """Option value to select: exact value/text match first, then containment."""
    target = str(value).strip().lower()

    for opt_value, opt_text in options:
        if opt_value.lower() == target or opt_text.lower() == target:
            return opt_value

    if not target:
        return None

    for opt_value, opt_text in options:
        for candidate in (opt_value.lower(), opt_text.strip().lower()):
            if candidate and (target in candidate or candidate in target):
                return opt_value
    return None


def find_radio(group: List[FormControl], value: Any) -> Optional[FormControl]:
    """First radio whose value or label equals or contains the target (either way)."""
    target = str(value).strip().lower()
    if not target:
        return None

    for radio in group:
        snap = radio.snapshot()
        for candidate in (snap.value.lower(), snap.label_text.strip().lower()):
            if candidate and (candidate == target or candidate in target or target in candidate):
                return radio
    return None


def set_field_value(control: FormControl, snap: ControlSnapshot, value: Any) -> bool:
    """
    Write a value by control kind and fire input/change on success.

    Returns False when no option/radio matches or the write raised.
    """
    kind = snap.kind
    target = control
    try:
        if kind == SELECT:
            option_value = find_option(snap.options, value)
            if option_value is None:
                logger.debug(f"No option matches {value!r}")
                return False
            control.select_option(option_value)
        elif kind == CHECKBOX:
            control.set_checked(bool(value))
        elif kind == RADIO:
            target = find_radio(control.radio_group(), value)
            if target is None:
                logger.debug(f"No radio matches {value!r}")
                return False
            target.set_checked(True)
        else:
            control.set_value("" if value is None else str(value))

        for event_type in WRITE_EVENTS:
            target.dispatch_event(event_type)
        return True
    except Exception as e:
        logger.warning(f"Error setting field value: {e}")
        return False


# ============ Filler ============

class FormFiller:
    """
    Fills every eligible control on a page from a résumé document.

    Args:
        matcher: FieldMatcher used for identifier -> path (heuristic by default)
    """

    def __init__(self, matcher: Optional[FieldMatcher] = None):
        self.matcher = matcher or HeuristicMatcher()

    def discover(self, document: FormDocument) -> List[DiscoveredField]:
        """Eligible controls in document order. The first control wins a duplicate identifier."""
        fields = []
        seen = set()
        for control in document.form_controls():
            snap = control.snapshot()
            if not is_eligible(snap):
                continue
            identifier = identify_field(snap)
            if not identifier or identifier in seen:
                continue
            seen.add(identifier)
            fields.append(DiscoveredField(identifier, control, snap))
        return fields

    @staticmethod
    def describe(field: DiscoveredField, mapped: Optional[str] = None) -> PageFieldSnapshot:
        return PageFieldSnapshot(
            id=field.identifier,
            type=field_type(field.snapshot),
            label=field_label(field.snapshot, field.identifier),
            mapped=mapped,
        )

    def analyze(self, document: FormDocument) -> List[PageFieldSnapshot]:
        fields = self.discover(document)
        return [self.describe(f, self.matcher.match(f.identifier)) for f in fields]

    def fill(self, document: FormDocument, resume: dict) -> FillResult:
        fields = self.discover(document)
        self.matcher.prepare([self.describe(f) for f in fields], resume)

        result = FillResult(total=len(fields))
        for f in fields:
            if not f.control.is_attached():
                result.skipped += 1
                continue

            path = self.matcher.match(f.identifier)
            if not path:
                result.skipped += 1
                continue

            value = resolve_value(resume, path, f.identifier)
            if set_field_value(f.control, f.snapshot, value):
                result.filled += 1
            else:
                result.failed += 1

        result.message = self.matcher.message
        logger.info(
            f"Filled {result.filled}/{result.total} fields on {document.hostname or 'page'} "
            f"({result.skipped} skipped, {result.failed} failed)"
        )
        return result
