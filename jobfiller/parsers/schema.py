# parsers/schema.py
"""
Résumé Data Contract - the document shape shared by the structurer,
the AI parser, storage and the form filler.

Every field is optional. A missing key is not the same as "".
Lists keep encounter order (most-recent-first is only a convention).
"""

import copy
import json
from typing import List, Tuple, TypedDict


class PersonalInfo(TypedDict, total=False):
    name: str
    firstName: str
    lastName: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip: str
    country: str
    linkedin: str
    website: str


class ExperienceEntry(TypedDict, total=False):
    company: str
    title: str
    startDate: str
    endDate: str
    location: str
    description: str
    bullets: List[str]


class EducationEntry(TypedDict, total=False):
    school: str
    degree: str
    field: str
    graduationDate: str
    gpa: str
    location: str
    achievements: List[str]


class CertificationEntry(TypedDict, total=False):
    name: str
    issuer: str
    date: str
    details: str


class ProjectEntry(TypedDict, total=False):
    name: str
    date: str
    technologies: str
    details: str
    bullets: List[str]


class ResumeDocument(TypedDict, total=False):
    personal: PersonalInfo
    summary: str
    experience: List[ExperienceEntry]
    education: List[EducationEntry]
    skills: List[str]
    certifications: List[CertificationEntry]
    projects: List[ProjectEntry]


# Shape produced by the text structurer
EMPTY_RESUME: ResumeDocument = {
    "personal": {
        "name": "",
        "email": "",
        "phone": "",
        "address": "",
        "linkedin": "",
        "website": "",
    },
    "summary": "",
    "experience": [],
    "education": [],
    "skills": [],
    "certifications": [],
    "projects": [],
}

LIST_SECTIONS = ["experience", "education", "certifications", "projects"]


def empty_resume() -> ResumeDocument:
    return copy.deepcopy(EMPTY_RESUME)


class InvalidResumeError(ValueError):
    """Résumé upload rejected before storing."""


# === VALIDATION ===

def validate_resume(doc) -> Tuple[bool, List[str]]:
    """
    Check the top-level shape of a résumé document.
    Returns: (is_valid, list of problems)
    """
    if not isinstance(doc, dict):
        return False, [f"Résumé must be a JSON object, got {type(doc).__name__}"]

    errors = []

    personal = doc.get("personal")
    if personal is not None and not isinstance(personal, dict):
        errors.append("'personal' must be an object")

    summary = doc.get("summary")
    if summary is not None and not isinstance(summary, str):
        errors.append("'summary' must be a string")

    skills = doc.get("skills")
    if skills is not None:
        if not isinstance(skills, list):
            errors.append("'skills' must be a list")
        elif not all(isinstance(s, str) for s in skills):
            errors.append("'skills' must contain only strings")

    for section in LIST_SECTIONS:
        entries = doc.get(section)
        if entries is None:
            continue
        if not isinstance(entries, list):
            errors.append(f"'{section}' must be a list")
            continue
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                errors.append(f"'{section}[{i}]' must be an object")

    return len(errors) == 0, errors


def load_resume_json(text: str) -> ResumeDocument:
    """
    Parse an uploaded JSON résumé.

    Raises InvalidResumeError with a readable message; nothing is stored
    by the caller in that case.
    """
    try:
        doc = json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidResumeError(f"Invalid JSON format: {e}") from e

    ok, errors = validate_resume(doc)
    if not ok:
        raise InvalidResumeError("Invalid résumé: " + "; ".join(errors))
    return doc
