"""Shared fixtures."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from jobfiller.storage.backends import MemoryBackend


@pytest.fixture
def sample_resume():
    """A small but complete résumé document."""
    return {
        "personal": {
            "name": "Jane Q Public",
            "email": "jane@example.com",
            "phone": "(555) 123-4567",
            "address": "Austin, TX 78701",
            "city": "Austin",
            "state": "TX",
            "zip": "78701",
            "linkedin": "https://www.linkedin.com/in/janeqp",
            "website": "https://jane.dev",
        },
        "summary": "Product-minded engineer.",
        "experience": [
            {
                "company": "Acme Inc.",
                "title": "Software Engineer",
                "startDate": "Jan 2020",
                "endDate": "Present",
                "location": "Austin, TX",
                "description": "",
                "bullets": ["Built things"],
            }
        ],
        "education": [
            {
                "school": "State University",
                "degree": "Bachelor of Science in Computer Science",
                "field": "Computer Science",
                "graduationDate": "May 2019",
                "gpa": "3.8",
                "location": "",
                "achievements": [],
            }
        ],
        "skills": ["Python", "SQL", "React"],
        "certifications": [],
        "projects": [],
    }


@pytest.fixture
def memory_backend():
    return MemoryBackend()
