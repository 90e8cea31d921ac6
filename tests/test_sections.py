"""
Tests for the résumé section sub-parsers.

Predicates are tested alone; the parsers are tested on small sections.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from jobfiller.parsers.sections import (
    ExperienceParser,
    SectionParser,
    extract_dates,
    extract_location,
    is_bullet,
    looks_like_certification_name,
    looks_like_date_range,
    looks_like_degree,
    looks_like_job_header,
    looks_like_job_title,
    looks_like_project_name,
    looks_like_school,
    looks_like_technologies,
    parse_certifications,
    parse_education,
    parse_experience,
    parse_projects,
    parse_skills,
    parse_summary,
    split_company_and_title,
    strip_bullet,
)


# ============ Predicates ============

class TestLinePredicates:
    """Tests for the shared line predicates."""

    @pytest.mark.parametrize("line", ["• Built things", "- Led team", "* Shipped", "1. Did it", "12. Twelfth"])
    def test_bullets(self, line):
        assert is_bullet(line)

    @pytest.mark.parametrize("line", ["Built things", "3.85 GPA", "2.5x throughput on the ingest path"])
    def test_not_bullet(self, line):
        assert not is_bullet(line)

    def test_decimal_kept_whole(self):
        assert strip_bullet("2.5x throughput") == "2.5x throughput"

    def test_strip_bullet(self):
        assert strip_bullet("• Built things") == "Built things"
        assert strip_bullet("1. Did it") == "Did it"
        assert strip_bullet("-Tight") == "Tight"

    @pytest.mark.parametrize("line", ["Jan 2020 - Present", "2018 – 2020", "March 2017 to June 2019", "01/2019 - 03/2021"])
    def test_date_ranges(self, line):
        assert looks_like_date_range(line)

    @pytest.mark.parametrize("line", ["Jan 2020", "Built a thing - fast", "Present"])
    def test_not_date_ranges(self, line):
        assert not looks_like_date_range(line)

    def test_extract_dates(self):
        assert extract_dates("Jan 2020 - Present") == ("Jan 2020", "Present")
        assert extract_dates("Mar 2018 - Dec 2019") == ("Mar 2018", "Dec 2019")
        assert extract_dates("2018 – 2020") == ("2018", "2020")
        assert extract_dates("Since 2015") == ("2015", "")
        assert extract_dates("no dates") is None

    def test_extract_location(self):
        assert extract_location("Remote | Austin, TX") == "Austin, TX"
        assert extract_location("New York, NY 2019") == "New York, NY"
        assert extract_location("Remote") == ""


class TestExperiencePredicates:
    """Tests for job header / title detection."""

    @pytest.mark.parametrize("line", ["Acme Inc.", "Globex LLC", "Initech Ltd", "The Paper Company", "IBM"])
    def test_job_headers(self, line):
        assert looks_like_job_header(line)

    def test_title_case_is_not_a_header(self):
        """Needs two consecutive capitals, not two capitalized words."""
        assert not looks_like_job_header("Software Engineer")

    def test_long_line_is_not_a_header(self):
        assert not looks_like_job_header("Acme Inc. " + "x" * 100)

    def test_job_titles(self):
        assert looks_like_job_title("Software Engineer")
        assert looks_like_job_title("Product Manager")
        assert not looks_like_job_title("Built dashboards")

    def test_split_company_and_title(self):
        assert split_company_and_title("Engineer at Acme") == {"title": "Engineer", "company": "Acme"}
        assert split_company_and_title("Acme Inc. - Engineer") == {"company": "Acme Inc.", "title": "Engineer"}
        assert split_company_and_title("Engineer | Acme") == {"title": "Engineer", "company": "Acme"}
        assert split_company_and_title("Acme Inc.") is None

    def test_at_wins_over_dash(self):
        assert split_company_and_title("Lead at Acme - Remote") == {"title": "Lead", "company": "Acme - Remote"}


class TestEducationPredicates:
    """Tests for school / degree detection."""

    def test_school(self):
        assert looks_like_school("State University")
        assert looks_like_school("Hillside High School")
        assert not looks_like_school("University degree in Art")

    def test_degree(self):
        assert looks_like_degree("Bachelor of Science in Computer Science")
        assert looks_like_degree("B.S. Computer Science")
        assert looks_like_degree("MS in Statistics")
        assert looks_like_degree("Associate degree")

    def test_abbreviation_inside_word_is_not_a_degree(self):
        assert not looks_like_degree("Management")
        assert not looks_like_degree("Boston, Massachusetts")


class TestCertificationAndProjectPredicates:
    """Tests for certification / project / technology detection."""

    def test_certification_names(self):
        assert looks_like_certification_name("AWS Certified Solutions Architect")
        assert looks_like_certification_name("Google Cloud Certified, Professional Data Engineer")
        assert looks_like_certification_name("Scrum Master")

    def test_date_and_issuer_lines_are_not_names(self):
        assert not looks_like_certification_name("Jan 2021")
        assert not looks_like_certification_name("Issued by: Amazon")

    def test_technologies(self):
        assert looks_like_technologies("Technologies: Go, gRPC")
        assert looks_like_technologies("Tools: Figma")
        assert looks_like_technologies("Python, Django, Postgres")
        assert not looks_like_technologies("Rust, Zig")

    def test_project_names(self):
        assert looks_like_project_name("Project: Route Planner")
        assert looks_like_project_name("Budget App")
        assert not looks_like_project_name("2023")
        assert not looks_like_project_name("- Built it")
        assert not looks_like_project_name("with Playwright")
        assert not looks_like_project_name("Technologies: Python, FastAPI")


# ============ Parsers ============

class TestExperienceParser:
    """Tests for the experience state machine."""

    def test_base_needs_new_entry(self):
        with pytest.raises(TypeError):
            SectionParser()

    def test_rule_order(self):
        names = [rule.name for rule in ExperienceParser.rules]
        assert names == ["bullet", "job_header", "date_range", "bullet_continuation", "job_title", "description"]

    def test_two_jobs_with_wrapped_bullet(self):
        lines = [
            "Senior Engineer at Globex LLC",
            "Mar 2018 - Dec 2019",
            "- Led migration",
            "to the cloud",
            "Initech Ltd",
            "Developer",
            "Worked on reports.",
        ]
        jobs = parse_experience(lines)

        assert len(jobs) == 2
        assert jobs[0]["title"] == "Senior Engineer"
        assert jobs[0]["company"] == "Globex LLC"
        assert jobs[0]["startDate"] == "Mar 2018"
        assert jobs[0]["endDate"] == "Dec 2019"
        assert jobs[0]["bullets"] == ["Led migration to the cloud"]
        assert jobs[1]["company"] == "Initech Ltd"
        assert jobs[1]["title"] == "Developer"
        assert jobs[1]["description"] == "Worked on reports."
        assert jobs[1]["bullets"] == []

    def test_bullet_with_acronym_stays_a_bullet(self):
        jobs = parse_experience(["Acme Inc.", "• Migrated to AWS"])
        assert len(jobs) == 1
        assert jobs[0]["bullets"] == ["Migrated to AWS"]

    def test_lines_before_first_entry_dropped(self):
        assert parse_experience(["some intro text", "- orphan bullet"]) == []

    def test_blank_lines_ignored(self):
        jobs = parse_experience(["", "Acme Inc.", "   ", "Software Engineer"])
        assert jobs[0]["title"] == "Software Engineer"


class TestEducationParser:
    """Tests for the education state machine."""

    def test_full_entry(self):
        lines = [
            "State University",
            "Bachelor of Science in Computer Science",
            "GPA: 3.8",
            "May 2019",
            "Austin, TX",
            "• Dean's List",
        ]
        schools = parse_education(lines)

        assert len(schools) == 1
        school = schools[0]
        assert school["school"] == "State University"
        assert school["degree"] == "Bachelor of Science in Computer Science"
        assert school["field"] == "Computer Science"
        assert school["gpa"] == "3.8"
        assert school["graduationDate"] == "May 2019"
        assert school["location"] == "Austin, TX"
        assert school["achievements"] == ["Dean's List"]

    def test_two_schools(self):
        schools = parse_education(["Tech Institute", "MS in Robotics", "City College", "BA"])
        assert [s["school"] for s in schools] == ["Tech Institute", "City College"]
        assert schools[0]["field"] == "Robotics"
        assert schools[1]["degree"] == "BA"

    def test_gpa_leading_number(self):
        schools = parse_education(["State University", "Bachelor of Science", "3.85 GPA"])
        assert schools[0]["gpa"] == "3.85"
        assert schools[0]["achievements"] == []

    def test_gpa_out_of_scale(self):
        schools = parse_education(["State University", "3.9/4.0 GPA"])
        assert schools[0]["gpa"] == "3.9"
        assert schools[0]["achievements"] == []


class TestCertificationsParser:
    """Tests for the certifications state machine."""

    def test_entries(self):
        lines = [
            "AWS Certified Solutions Architect",
            "Issued by: Amazon Web Services",
            "Jan 2021",
            "Google Cloud Certified, Professional Data Engineer",
        ]
        certs = parse_certifications(lines)

        assert len(certs) == 2
        assert certs[0]["name"] == "AWS Certified Solutions Architect"
        assert certs[0]["issuer"] == "Amazon Web Services"
        assert certs[0]["date"] == "Jan 2021"
        assert certs[1]["name"] == "Google Cloud Certified, Professional Data Engineer"

    def test_date_first_does_not_start_entry(self):
        assert parse_certifications(["2021"]) == []


class TestProjectsParser:
    """Tests for the projects state machine."""

    def test_entries(self):
        lines = [
            "Project: Route Planner",
            "Technologies: Python, FastAPI",
            "2023",
            "- Scraped ATS boards",
            "with Playwright",
            "Budget App",
            "A small app for tracking budgets, built over a weekend.",
        ]
        projects = parse_projects(lines)

        assert len(projects) == 2
        assert projects[0]["name"] == "Route Planner"
        assert projects[0]["technologies"] == "Python, FastAPI"
        assert projects[0]["date"] == "2023"
        assert projects[0]["bullets"] == ["Scraped ATS boards with Playwright"]
        assert projects[1]["name"] == "Budget App"
        assert projects[1]["details"] == "A small app for tracking budgets, built over a weekend."


class TestFlatSections:
    """Tests for skills and summary."""

    def test_skills(self):
        lines = ["JavaScript, Python, SQL", "• Docker", "Kubernetes", "x" * 60]
        assert parse_skills(lines) == ["JavaScript", "Python", "SQL", "Docker", "Kubernetes"]

    def test_long_prose_dropped(self):
        prose = "I enjoy working on distributed systems and teaching others"
        assert len(prose) >= 50
        assert parse_skills([prose]) == []

    def test_summary_joins_lines(self):
        assert parse_summary(["Engineer with", "", "ten years"]) == "Engineer with\nten years"
