"""
Section sub-parsers for résumé text.

Each parser walks the lines of one section with the same small state
machine: no entry -> in entry -> in entry collecting bullets. Lines are
classified by an ordered table of Rule(predicate, handler) pairs; the
first rule whose predicate holds handles the line. Lines no rule
accepts are dropped. The in-progress entry is flushed at the end.

The predicates below are module-level so they can be tested alone.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

# ============ Line patterns ============

MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"

RE_DATE_TOKEN = re.compile(
    rf"\b{MONTH} \d{{4}}\b|\b\d{{1,2}}/\d{{4}}\b|\b\d{{4}}\b",
    re.IGNORECASE,
)
RE_MONTH_YEAR_OR_YEAR = re.compile(rf"{MONTH} \d{{4}}|\d{{4}}", re.IGNORECASE)
RE_RANGE_WORD = re.compile(r"\bto\b", re.IGNORECASE)
RE_DATE_LINE_NOISE = re.compile(r"\b(?:present|current|now|to)\b|[\s,./()\-–—]+", re.IGNORECASE)

# "1." is an ordinal, "3.85" is a number
RE_BULLET = re.compile(r"^(?:[•\-*]|\d+\.(?!\d))\s*")
RE_LOCATION = re.compile(r"\b[A-Z][a-z]+(?:[\s-][A-Z][a-z]+)*,\s*[A-Z]{2}\b")
RE_CAPITALIZED = re.compile(r"[A-Z][a-z]+(?:[\s-][A-Z][a-z]+)*")
RE_ACRONYM = re.compile(r"[A-Z]{2,}")
RE_GPA = re.compile(r"\b\d\.\d\d?\b")
RE_FIELD_OF_STUDY = re.compile(r"\bin\s+([^,.]+)", re.IGNORECASE)
RE_GRADUATION = re.compile(r"graduated|graduation|class of|completed", re.IGNORECASE)
RE_ISSUER_LABEL = re.compile(r"^(?:issuer|issued by|authority)\s*:\s*", re.IGNORECASE)
RE_PROPER_NOUN_LINE = re.compile(r"^[A-Z][a-z]+(?:[\s-][A-Z][a-z]+)*$")
RE_TITLE_CASE_LINE = re.compile(r"^[A-Z][a-zA-Z0-9\s]+$")
RE_PROJECT_LABEL = re.compile(r"^project\s*:\s*", re.IGNORECASE)
RE_TECH_LABEL = re.compile(r"^(?:technologies|tech stack|tools)\s*:?\s*", re.IGNORECASE)

COMPANY_MARKERS = ["Inc.", "LLC", "Ltd", "Company"]

JOB_TITLE_KEYWORDS = [
    "manager", "developer", "engineer", "director", "assistant",
    "specialist", "coordinator", "analyst", "associate", "consultant",
    "supervisor", "lead", "head", "chief", "officer",
]

SCHOOL_KEYWORDS = ["university", "college", "school", "institute", "academy"]

DEGREE_KEYWORDS = ["bachelor", "master", "phd", "doctorate", "associate", "certificate"]
# Short abbreviations only count as whole words ("ma" is inside "management")
RE_DEGREE_ABBREVIATION = re.compile(
    r"(?<![A-Za-z])(?:b\.s\.|b\.a\.|m\.s\.|m\.a\.|ph\.d\.|bs|ba|ms|ma)(?![A-Za-z])",
    re.IGNORECASE,
)

CERT_KEYWORDS = ["certification", "certificate", "certified", "license", "credential"]

TECH_LABELS = ["technologies:", "tech stack:", "tools:"]
TECH_NAMES = ["JavaScript", "Python", "Java", "C++", "HTML", "React"]


# ============ Shared predicates ============

def is_bullet(line: str) -> bool:
    return bool(RE_BULLET.match(line))


def strip_bullet(line: str) -> str:
    return RE_BULLET.sub("", line, count=1).strip()


def has_date_token(line: str) -> bool:
    return bool(RE_DATE_TOKEN.search(line))


def is_date_line(line: str) -> bool:
    """Line holds only dates, range separators and 'present'."""
    if not has_date_token(line):
        return False
    residue = RE_DATE_LINE_NOISE.sub("", RE_DATE_TOKEN.sub("", line))
    return residue == ""


def looks_like_date_range(line: str) -> bool:
    return has_date_token(line) and (
        "-" in line or "–" in line or "—" in line or bool(RE_RANGE_WORD.search(line))
    )


def extract_dates(line: str) -> Optional[Tuple[str, str]]:
    """Returns (start, end) or None. A lone date with 'present' ends at Present."""
    dates = RE_DATE_TOKEN.findall(line)
    if not dates:
        return None
    if len(dates) > 1:
        return dates[0], dates[1]
    return dates[0], "Present" if "present" in line.lower() else ""


def extract_location(line: str) -> str:
    m = RE_LOCATION.search(line)
    return m.group(0) if m else ""


# ============ Experience predicates ============

def looks_like_job_header(line: str) -> bool:
    return (
        any(marker in line for marker in COMPANY_MARKERS) or bool(RE_ACRONYM.search(line))
    ) and len(line) < 100


def looks_like_job_title(line: str) -> bool:
    lower = line.lower()
    return any(title in lower for title in JOB_TITLE_KEYWORDS) and len(line) < 100


def split_company_and_title(line: str) -> Optional[Dict[str, str]]:
    """
    "Title at Company", "Company - Title", "Title | Company".
    Returns None when the line has none of those shapes.
    """
    if " at " in line:
        title, company = line.split(" at ", 1)
        return {"title": title.strip(), "company": company.strip()}
    if " - " in line:
        company, title = line.split(" - ", 1)
        return {"company": company.strip(), "title": title.strip()}
    if " | " in line:
        title, company = line.split(" | ", 1)
        return {"title": title.strip(), "company": company.strip()}
    return None


# ============ Education predicates ============

def looks_like_school(line: str) -> bool:
    lower = line.lower()
    return (
        any(keyword in lower for keyword in SCHOOL_KEYWORDS)
        and "degree" not in lower
        and len(line) < 100
    )


def looks_like_degree(line: str) -> bool:
    lower = line.lower()
    return (
        any(keyword in lower for keyword in DEGREE_KEYWORDS)
        or bool(RE_DEGREE_ABBREVIATION.search(line))
        or "degree" in lower
    )


def looks_like_graduation_date(line: str) -> bool:
    return bool(RE_GRADUATION.search(line)) or bool(RE_MONTH_YEAR_OR_YEAR.search(line))


def looks_like_location(line: str) -> bool:
    return bool(RE_LOCATION.search(line)) or (bool(RE_CAPITALIZED.search(line)) and len(line) < 30)


# ============ Certification / project predicates ============

def looks_like_certification_name(line: str) -> bool:
    lower = line.lower()
    named = (
        any(keyword in lower for keyword in CERT_KEYWORDS)
        or bool(RE_ACRONYM.search(line))
        or (len(line) < 60 and "," not in line)
    )
    return named and not is_date_line(line) and not RE_ISSUER_LABEL.match(line)


def looks_like_issuer(line: str) -> bool:
    return bool(RE_ISSUER_LABEL.match(line)) or bool(RE_PROPER_NOUN_LINE.match(line))


def looks_like_date(line: str) -> bool:
    return has_date_token(line) and (is_date_line(line) or not looks_like_certification_name(line))


def looks_like_technologies(line: str) -> bool:
    lower = line.lower()
    if any(label in lower for label in TECH_LABELS):
        return True
    return "," in line and any(name in line for name in TECH_NAMES)


def looks_like_project_name(line: str) -> bool:
    if is_bullet(line) or line[:1].islower():
        return False
    named = (
        "Project:" in line
        or bool(RE_TITLE_CASE_LINE.match(line))
        or (len(line) < 50 and "," not in line)
    )
    return named and not looks_like_date(line) and not looks_like_technologies(line)


# ============ State machine ============

@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[["SectionParser", str], bool]
    handle: Callable[["SectionParser", str], None]


class SectionParser(ABC):
    """Base for the entry-based section parsers."""

    rules: Tuple[Rule, ...] = ()
    bullet_key = "bullets"

    def __init__(self):
        self.entries: List[dict] = []
        self.current: Optional[dict] = None
        self.collecting_bullets = False

    @abstractmethod
    def new_entry(self, line: str) -> dict:
        pass

    def parse(self, lines: List[str]) -> List[dict]:
        self.entries = []
        self.current = None
        self.collecting_bullets = False

        for raw in lines:
            line = raw.strip()
            if not line:
                continue
            rule = self.classify(line)
            if rule:
                rule.handle(self, line)

        self.flush()
        return self.entries

    def classify(self, line: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.applies(self, line):
                return rule
        return None

    def flush(self):
        if self.current is not None:
            self.entries.append(self.current)
        self.current = None
        self.collecting_bullets = False

    # -- shared handlers --

    def start_entry(self, line: str):
        self.flush()
        self.current = self.new_entry(line)

    def add_bullet(self, line: str):
        if self.current is None:
            return
        self.collecting_bullets = True
        self.current[self.bullet_key].append(strip_bullet(line))

    def continue_bullet(self, line: str):
        bullets = self.current[self.bullet_key]
        bullets[-1] = f"{bullets[-1]} {line}"

    def append_text(self, key: str, line: str):
        self.current[key] = f"{self.current[key]} {line}" if self.current[key] else line

    def in_entry(self) -> bool:
        return self.current is not None

    def continuing_bullets(self) -> bool:
        return self.collecting_bullets and self.current is not None and bool(self.current[self.bullet_key])


# ============ Experience ============

class ExperienceParser(SectionParser):

    def new_entry(self, line: str) -> dict:
        entry = {
            "company": "",
            "title": "",
            "startDate": "",
            "endDate": "",
            "location": "",
            "description": "",
            "bullets": [],
        }
        split = split_company_and_title(line)
        if split:
            entry.update(split)
        else:
            entry["company"] = line
        return entry

    def set_dates(self, line: str):
        dates = extract_dates(line)
        if dates:
            self.current["startDate"], self.current["endDate"] = dates
        self.current["location"] = extract_location(line)

    def set_title(self, line: str):
        self.current["title"] = line

    rules = (
        Rule("bullet", lambda p, line: is_bullet(line), SectionParser.add_bullet),
        Rule("job_header", lambda p, line: looks_like_job_header(line), SectionParser.start_entry),
        Rule("date_range", lambda p, line: p.in_entry() and looks_like_date_range(line), set_dates),
        Rule("bullet_continuation", lambda p, line: p.continuing_bullets(), SectionParser.continue_bullet),
        Rule(
            "job_title",
            lambda p, line: p.in_entry() and not p.current["title"] and looks_like_job_title(line),
            set_title,
        ),
        Rule(
            "description",
            lambda p, line: p.in_entry() and not p.collecting_bullets,
            lambda p, line: p.append_text("description", line),
        ),
    )


# ============ Education ============

class EducationParser(SectionParser):

    bullet_key = "achievements"

    def new_entry(self, line: str) -> dict:
        return {
            "school": line,
            "degree": "",
            "field": "",
            "graduationDate": "",
            "gpa": "",
            "location": "",
            "achievements": [],
        }

    def set_degree(self, line: str):
        self.current["degree"] = line
        m = RE_FIELD_OF_STUDY.search(line)
        if m:
            self.current["field"] = m.group(1).strip()

    def set_gpa(self, line: str):
        m = RE_GPA.search(line)
        if m:
            self.current["gpa"] = m.group(0)

    def set_graduation_date(self, line: str):
        m = RE_MONTH_YEAR_OR_YEAR.search(line)
        if m:
            self.current["graduationDate"] = m.group(0)

    def set_detail(self, line: str):
        if not self.current["location"] and looks_like_location(line):
            self.current["location"] = line
        elif not self.current["field"] and line not in self.current["degree"]:
            self.current["field"] = line

    rules = (
        Rule("achievement", lambda p, line: p.in_entry() and is_bullet(line), SectionParser.add_bullet),
        Rule("school", lambda p, line: looks_like_school(line), SectionParser.start_entry),
        Rule("degree", lambda p, line: p.in_entry() and looks_like_degree(line), set_degree),
        Rule("gpa", lambda p, line: p.in_entry() and "gpa" in line.lower(), set_gpa),
        Rule(
            "graduation_date",
            lambda p, line: p.in_entry() and looks_like_graduation_date(line),
            set_graduation_date,
        ),
        Rule("detail", lambda p, line: p.in_entry(), set_detail),
    )


# ============ Certifications ============

class CertificationsParser(SectionParser):

    def new_entry(self, line: str) -> dict:
        return {
            "name": strip_bullet(line) if is_bullet(line) else line,
            "issuer": "",
            "date": "",
            "details": "",
        }

    def set_issuer(self, line: str):
        self.current["issuer"] = RE_ISSUER_LABEL.sub("", line).strip()

    def set_date(self, line: str):
        self.current["date"] = line

    rules = (
        Rule("certification", lambda p, line: looks_like_certification_name(line), SectionParser.start_entry),
        Rule("issuer", lambda p, line: p.in_entry() and looks_like_issuer(line), set_issuer),
        Rule("date", lambda p, line: p.in_entry() and looks_like_date(line), set_date),
        Rule(
            "details",
            lambda p, line: p.in_entry(),
            lambda p, line: p.append_text("details", line),
        ),
    )


# ============ Projects ============

class ProjectsParser(SectionParser):

    def new_entry(self, line: str) -> dict:
        return {
            "name": RE_PROJECT_LABEL.sub("", line).strip(),
            "date": "",
            "technologies": "",
            "details": "",
            "bullets": [],
        }

    def set_date(self, line: str):
        self.current["date"] = line

    def set_technologies(self, line: str):
        self.current["technologies"] = RE_TECH_LABEL.sub("", line).strip()

    rules = (
        Rule("bullet", lambda p, line: is_bullet(line), SectionParser.add_bullet),
        Rule("project", lambda p, line: looks_like_project_name(line), SectionParser.start_entry),
        Rule("date", lambda p, line: p.in_entry() and looks_like_date(line), set_date),
        Rule(
            "technologies",
            lambda p, line: p.in_entry() and looks_like_technologies(line),
            set_technologies,
        ),
        Rule("bullet_continuation", lambda p, line: p.continuing_bullets(), SectionParser.continue_bullet),
        Rule(
            "details",
            lambda p, line: p.in_entry() and not p.collecting_bullets,
            lambda p, line: p.append_text("details", line),
        ),
    )


# ============ Flat sections ============

def parse_skills(lines: List[str]) -> List[str]:
    """
    Comma lines split into several skills, bullet lines give one skill,
    other lines under 50 chars are one skill. Longer prose is dropped.
    """
    skills = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if "," in line:
            skills.extend(s.strip() for s in line.split(",") if s.strip())
        elif line.startswith(("•", "-", "*")):
            skill = strip_bullet(line)
            if skill:
                skills.append(skill)
        elif len(line) < 50:
            skills.append(line)
    return skills


def parse_summary(lines: List[str]) -> str:
    return "\n".join(line.strip() for line in lines if line.strip())


def parse_experience(lines: List[str]) -> List[dict]:
    return ExperienceParser().parse(lines)


def parse_education(lines: List[str]) -> List[dict]:
    return EducationParser().parse(lines)


def parse_certifications(lines: List[str]) -> List[dict]:
    return CertificationsParser().parse(lines)


def parse_projects(lines: List[str]) -> List[dict]:
    return ProjectsParser().parse(lines)
