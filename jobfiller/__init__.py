"""
JobFiller - fills job application forms from a stored résumé profile.

Usage:
    from jobfiller.browser import HtmlDocument
    from jobfiller.service import JobFiller

    filler = JobFiller()
    filler.import_resume_text("main", open("resume.txt").read())
    result = filler.fill_form(HtmlDocument(html, hostname="jobs.example.com"))
"""

__version__ = "0.3.0"
