"""
Résumé text structurer.

Turns plain text (already extracted from a PDF or pasted) into a
ResumeDocument in two passes:

1. Whole-text regexes for contact details (email, phone, LinkedIn,
   website, name, address). Each one is independent and optional.
2. Section segmentation: header lines switch the current section and
   every other line is body text. Each section is routed to a
   sub-parser by keyword; unknown sections are dropped.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from ..utils.names import split_name
from .schema import ResumeDocument, empty_resume
from .sections import (
    parse_certifications,
    parse_education,
    parse_experience,
    parse_projects,
    parse_skills,
    parse_summary,
)

logger = logging.getLogger(__name__)

RE_EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
RE_PHONE = re.compile(r"(\+\d{1,2}\s?)?(\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4})")
RE_BARE_PHONE_LINE = re.compile(r"^\d{3}[-.\s]?\d{3}[-.\s]?\d{4}$")
RE_LINKEDIN = re.compile(r"linkedin\.com/in/[a-zA-Z0-9-]+")
RE_WEBSITE = re.compile(r"https?://[^\s]+|www\.[^\s]+")
RE_ADDRESS = re.compile(r"[A-Za-z\s]+,\s*[A-Z]{2}\s*\d{5}")
RE_CITY_STATE_ZIP = re.compile(
    r"(?P<city>[A-Za-z][A-Za-z\s]*?),\s*(?P<state>[A-Z]{2})\s*(?P<zip>\d{5}(?:-\d{4})?)"
)

SECTION_HEADERS = [
    "summary", "objective", "profile",
    "experience", "work", "employment",
    "education", "academic",
    "skills", "abilities", "competencies",
    "certifications", "certificates", "licenses",
    "projects", "portfolio",
    "awards", "honors", "achievements",
]
RE_SECTION_HEADER = re.compile(rf"^\s*({'|'.join(SECTION_HEADERS)}):?\s*$", re.IGNORECASE)

# Checked in order: "professional summary" is a summary, not experience
SECTION_KINDS: List[Tuple[str, re.Pattern]] = [
    ("summary", re.compile(r"summary|objective|profile|about", re.I)),
    ("experience", re.compile(r"experience|work|employment|history|professional", re.I)),
    ("education", re.compile(r"education|academic|degree|university|college|school", re.I)),
    ("skills", re.compile(r"skills|abilities|competencies|expertise", re.I)),
    ("certifications", re.compile(r"certifications|certificates|licenses", re.I)),
    ("projects", re.compile(r"projects|portfolio", re.I)),
]

SECTION_PARSERS: Dict[str, Callable[[List[str]], object]] = {
    "summary": parse_summary,
    "experience": parse_experience,
    "education": parse_education,
    "skills": parse_skills,
    "certifications": parse_certifications,
    "projects": parse_projects,
}

DEFAULT_SECTION = "header"


# ============ Contact details ============

def extract_email(text: str) -> str:
    m = RE_EMAIL.search(text)
    return m.group(0) if m else ""


def extract_phone(text: str) -> str:
    m = RE_PHONE.search(text)
    return m.group(0).strip() if m else ""


def extract_linkedin(text: str) -> str:
    m = RE_LINKEDIN.search(text)
    return f"https://www.{m.group(0)}" if m else ""


def extract_website(text: str) -> str:
    """First URL that is not a LinkedIn profile, with a scheme."""
    for m in RE_WEBSITE.finditer(text):
        url = m.group(0).rstrip(".,;)")
        if "linkedin.com" in url:
            continue
        return url if url.startswith("http") else f"https://{url}"
    return ""


def extract_name(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    for line in lines[:5]:
        if (
            "@" not in line
            and not RE_BARE_PHONE_LINE.match(line)
            and "http" not in line
            and "www." not in line
        ):
            return line
    return ""


def extract_address(text: str) -> str:
    for line in text.splitlines():
        trimmed = line.strip()
        if RE_ADDRESS.search(trimmed):
            return trimmed
    return ""


def parse_address(address: str) -> Dict[str, str]:
    m = RE_CITY_STATE_ZIP.search(address or "")
    if not m:
        return {}
    return {
        "city": m.group("city").strip(),
        "state": m.group("state"),
        "zip": m.group("zip"),
    }


# ============ Sections ============

def is_section_header(line: str) -> bool:
    """
    ALL-CAPS lines longer than 3 chars, or a known header word
    (optionally followed by a colon). Comma lists and bullets in caps
    ("AWS, GCP, SQL") stay body text.
    """
    trimmed = line.strip()
    if (
        trimmed.isupper()
        and len(trimmed) > 3
        and "," not in trimmed
        and not trimmed.startswith(("•", "-", "*"))
    ):
        return True
    return bool(RE_SECTION_HEADER.match(trimmed))


def split_into_sections(text: str) -> List[Tuple[str, List[str]]]:
    """
    Returns [(title, body lines)] in document order.
    Lines before the first header belong to "header".
    """
    sections = [(DEFAULT_SECTION, [])]
    for line in text.splitlines():
        if is_section_header(line):
            title = line.strip().lower().replace(":", "").strip()
            sections.append((title, []))
        else:
            sections[-1][1].append(line)
    return sections


def classify_section(title: str) -> Optional[str]:
    for kind, pattern in SECTION_KINDS:
        if pattern.search(title):
            return kind
    return None


# ============ Structurer ============

def structure_resume(text: str) -> ResumeDocument:
    """Parse résumé text into a ResumeDocument."""
    text = text or ""
    resume = empty_resume()
    personal = resume["personal"]

    personal["name"] = extract_name(text)
    personal["email"] = extract_email(text)
    personal["phone"] = extract_phone(text)
    personal["address"] = extract_address(text)
    personal["linkedin"] = extract_linkedin(text)
    personal["website"] = extract_website(text)

    if personal["name"]:
        parts = split_name(personal["name"])
        personal["firstName"] = parts["first"]
        personal["lastName"] = parts["last"]
    personal.update(parse_address(personal["address"]))

    for title, lines in split_into_sections(text):
        if title == DEFAULT_SECTION:
            continue
        kind = classify_section(title)
        if kind is None:
            logger.debug(f"Dropping unrecognized section '{title}'")
            continue

        parsed = SECTION_PARSERS[kind](lines)
        # Repeated sections of one kind accumulate
        if kind == "summary":
            resume["summary"] = "\n".join(s for s in (resume["summary"], parsed) if s)
        else:
            resume[kind].extend(parsed)

    logger.info(
        f"Structured résumé: {len(resume['experience'])} jobs, "
        f"{len(resume['education'])} schools, {len(resume['skills'])} skills"
    )
    return resume
