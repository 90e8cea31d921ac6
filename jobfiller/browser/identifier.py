"""
Field identification.

A field identifier is "<source>:<value>" where source is the first of
id, name, label, placeholder, aria, parent, xpath, position that yields
a non-empty value. Identifiers are read from a ControlSnapshot, so they
describe the page at snapshot time only.
"""

from typing import Optional, Tuple

from .dom import ControlSnapshot

# ============ Eligibility ============

EXCLUDED_TYPES = {"hidden", "submit", "button", "file", "password"}

DENYLIST = [
    "captcha",
    "security",
    "verification",
    "consent",
    "agreement",
    "terms",
    "subscribe",
]

PARENT_TEXT_LIMIT = 50


def is_excluded(snap: ControlSnapshot) -> bool:
    """Excluded type, or a denylisted keyword in id/name/placeholder/class."""
    if snap.dom_type in EXCLUDED_TYPES or snap.type_attr in EXCLUDED_TYPES:
        return True
    attributes = [a.lower() for a in (snap.element_id, snap.name, snap.placeholder, snap.class_name) if a]
    return any(keyword in attr for keyword in DENYLIST for attr in attributes)


def is_eligible(snap: ControlSnapshot) -> bool:
    return snap.visible and not snap.disabled and not is_excluded(snap)


# ============ Identification ============

def identify_field(snap: ControlSnapshot) -> Optional[str]:
    """Build the field identifier for a control, or None if nothing distinguishes it."""
    candidates = [
        ("id", snap.element_id),
        ("name", snap.name),
        ("label", snap.label_text.strip()),
        ("placeholder", snap.placeholder),
        ("aria", snap.aria_label),
        ("parent", snap.parent_text.strip()[:PARENT_TEXT_LIMIT]),
        ("xpath", snap.xpath),
    ]
    for source, value in candidates:
        if value:
            return f"{source}:{value}"
    if snap.position is not None and snap.position >= 0:
        return f"position:{snap.position}"
    return None


def split_identifier(identifier: str) -> Tuple[str, str]:
    """'id:first:name' -> ('id', 'first:name')"""
    source, _, value = identifier.partition(":")
    return source, value


def strip_source(identifier: str) -> str:
    return split_identifier(identifier)[1]


# ============ Analysis helpers ============

def field_type(snap: ControlSnapshot) -> str:
    """
    Probable field type for the analysis view.

    The explicit type attribute wins; selects and textareas report their
    element type; otherwise email/tel/date are guessed from attributes.
    """
    if snap.type_attr:
        return snap.type_attr
    if snap.tag in ("select", "textarea"):
        return snap.dom_type or snap.tag

    attributes = [a.lower() for a in (snap.element_id, snap.name, snap.placeholder, snap.aria_label) if a]
    if any("email" in a for a in attributes):
        return "email"
    if any("phone" in a or "mobile" in a for a in attributes):
        return "tel"
    if any("date" in a for a in attributes):
        return "date"
    return "text"


def field_label(snap: ControlSnapshot, identifier: str) -> str:
    return (
        snap.label_text.strip()
        or snap.placeholder
        or snap.aria_label
        or strip_source(identifier)
    )
