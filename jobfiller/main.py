# jobfiller/main.py
"""
HTTP API over the JobFiller service.

Run:
    uvicorn jobfiller.main:app --reload
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .browser.html_dom import HtmlDocument
from .service import JobFiller

logger = logging.getLogger(__name__)

app = FastAPI(
    title="JobFiller",
    description="Fill job application forms from a stored résumé",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[JobFiller] = None


def get_service() -> JobFiller:
    global _service
    if _service is None:
        _service = JobFiller()
    return _service


def _ok(result: dict, not_found: bool = False) -> dict:
    """Raise for a failed service result, pass it through otherwise."""
    if not result.get("success"):
        raise HTTPException(status_code=404 if not_found else 400, detail=result.get("message", "Request failed"))
    return result


# -----------------------------
# Request models
# -----------------------------

class ResumeJsonImport(BaseModel):
    name: str
    content: str  # raw JSON text, validated before storing


class ResumeTextImport(BaseModel):
    name: str
    text: str


class ResumeText(BaseModel):
    text: str


class ActiveResume(BaseModel):
    name: str


class MappingsUpdate(BaseModel):
    mappings: dict


class SettingsUpdate(BaseModel):
    autofillOnLoad: Optional[bool] = None
    autofillDelay: Optional[int] = None
    darkMode: Optional[bool] = None
    analyticsEnabled: Optional[bool] = None


class ApiSettingsUpdate(BaseModel):
    apiKey: str
    model: Optional[str] = None
    useForFieldMapping: bool = False


class ApiConnectionTest(BaseModel):
    apiKey: Optional[str] = None
    model: Optional[str] = None


class HtmlPage(BaseModel):
    html: str
    hostname: str = ""


class HtmlFill(HtmlPage):
    resume_name: Optional[str] = None
    resume: Optional[dict] = None


# -----------------------------
# Endpoints
# -----------------------------

@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/resumes")
def list_resumes(service: JobFiller = Depends(get_service)):
    return service.list_resumes()


@app.post("/resumes/json")
def import_resume_json(payload: ResumeJsonImport, service: JobFiller = Depends(get_service)):
    return _ok(service.import_resume_json(payload.name, payload.content))


@app.post("/resumes/text")
def import_resume_text(payload: ResumeTextImport, service: JobFiller = Depends(get_service)):
    return _ok(service.import_resume_text(payload.name, payload.text))


@app.get("/resumes/active")
def get_active_resume(service: JobFiller = Depends(get_service)):
    return _ok(service.get_active_resume(), not_found=True)


@app.post("/resumes/active")
def set_active_resume(payload: ActiveResume, service: JobFiller = Depends(get_service)):
    return _ok(service.set_active_resume(payload.name), not_found=True)


@app.get("/resumes/{name}")
def get_resume(name: str, service: JobFiller = Depends(get_service)):
    return _ok(service.get_resume(name), not_found=True)


@app.delete("/resumes/{name}")
def delete_resume(name: str, service: JobFiller = Depends(get_service)):
    return _ok(service.delete_resume(name), not_found=True)


@app.get("/mappings")
def list_mappings(service: JobFiller = Depends(get_service)):
    return service.list_mappings()


@app.get("/mappings/{hostname}")
def get_mappings(hostname: str, service: JobFiller = Depends(get_service)):
    return service.get_mappings_for_domain(hostname)


@app.put("/mappings/{hostname}")
def save_mappings(hostname: str, payload: MappingsUpdate, service: JobFiller = Depends(get_service)):
    return _ok(service.save_mappings_for_domain(hostname, payload.mappings))


@app.delete("/mappings/{hostname}")
def delete_mappings(hostname: str, service: JobFiller = Depends(get_service)):
    return _ok(service.delete_mappings_for_domain(hostname), not_found=True)


@app.get("/settings")
def get_settings(service: JobFiller = Depends(get_service)):
    return service.get_settings()


@app.put("/settings")
def save_settings(payload: SettingsUpdate, service: JobFiller = Depends(get_service)):
    updates = payload.model_dump(exclude_none=True)
    return _ok(service.save_settings(updates))


@app.get("/api-settings")
def get_api_settings(service: JobFiller = Depends(get_service)):
    """API settings with the key masked."""
    return service.get_api_settings()


@app.put("/api-settings")
def save_api_settings(payload: ApiSettingsUpdate, service: JobFiller = Depends(get_service)):
    return _ok(service.save_api_settings(payload.apiKey, payload.model, payload.useForFieldMapping))


@app.post("/api-settings/test")
def test_api_settings(payload: ApiConnectionTest, service: JobFiller = Depends(get_service)):
    # Connection outcome is data, not an HTTP error
    return service.test_api_connection(payload.apiKey, payload.model)


@app.post("/parse")
def parse_resume(payload: ResumeText, service: JobFiller = Depends(get_service)):
    """Structure résumé text without storing it."""
    return _ok(service.parse_resume_text(payload.text))


@app.post("/analyze-html")
def analyze_html(payload: HtmlPage, service: JobFiller = Depends(get_service)):
    return _ok(service.analyze_page(HtmlDocument(payload.html, payload.hostname)))


@app.post("/fill-html")
def fill_html(payload: HtmlFill, service: JobFiller = Depends(get_service)):
    """
    Dry-run fill of an HTML snapshot.

    Returns the fill counts plus the filled markup and the events that
    would have fired. success is False when nothing was filled; that is
    a normal outcome, not an HTTP error.
    """
    document = HtmlDocument(payload.html, payload.hostname)
    result = service.fill_form(document, resume_name=payload.resume_name, resume=payload.resume)
    if "total" not in result:
        raise HTTPException(status_code=400, detail=result.get("message", "Fill failed"))
    result["html"] = document.to_html()
    result["events"] = [list(event) for event in document.events]
    return result
