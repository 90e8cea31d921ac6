"""
JobFiller service: the operations the HTTP API and the CLI call.

Every public method returns a dict with "success" and, on failure,
"message". Collaborator failures (storage, AI, browser) are caught
here and reported, never raised to the caller.

Usage:
    service = JobFiller()
    service.import_resume_text("main", text)
    service.fill_form(PlaywrightDocument(page))
"""

import logging
import time
from typing import Callable, Optional

from .browser.ai_mapper import AIAssistedMatcher
from .browser.dom import FormDocument
from .browser.form_filler import FieldMatcher, FormFiller, HeuristicMatcher
from .browser.mappings import MappingSet, normalize_domain_mapping
from .config import API_STATUS_UNKNOWN
from .parsers.ai_parser import ResumeParser, create_resume_parser
from .parsers.schema import InvalidResumeError, load_resume_json, validate_resume
from .storage.backends import StorageBackend, create_storage_backend
from .storage.resume_storage import ResumeStorage, SettingsStore
from .utils.ai_client import AIClient, check_connection, create_ai_client

logger = logging.getLogger(__name__)


def _failure(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


class JobFiller:
    """
    Args:
        backend: storage backend (JSON file under DATA_DIR by default)
        client_factory: builds an AIClient from the API settings record
        sleep: used by autofill_on_load to wait out the configured delay
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        client_factory: Callable[[dict], Optional[AIClient]] = create_ai_client,
        sleep: Callable[[float], None] = time.sleep,
    ):
        backend = backend or create_storage_backend()
        self.resumes = ResumeStorage(backend)
        self.settings = SettingsStore(backend)
        self._client_factory = client_factory
        self._sleep = sleep

    # ============ AI plumbing ============

    def _ai_client(self, api_settings: dict = None) -> Optional[AIClient]:
        try:
            return self._client_factory(api_settings or self.settings.get_api_settings())
        except ValueError as e:
            logger.warning(f"AI client unavailable: {e}")
            return None

    def build_matcher(self, hostname: str) -> FieldMatcher:
        """AI-assisted when enabled and a client is available, heuristic otherwise."""
        mapping_set = MappingSet(self.resumes.get_field_mappings(hostname))
        api_settings = self.settings.get_api_settings()
        if api_settings.get("useForFieldMapping"):
            client = self._ai_client(api_settings)
            if client is not None:
                return AIAssistedMatcher(client, mapping_set, on_usage=self.settings.add_token_usage)
            logger.info("AI field mapping enabled but no client configured")
        return HeuristicMatcher(mapping_set)

    def resume_parser(self) -> ResumeParser:
        return create_resume_parser(self._ai_client(), on_usage=self.settings.add_token_usage)

    # ============ Page operations ============

    def analyze_page(self, document: FormDocument) -> dict:
        hostname = document.hostname
        filler = FormFiller(HeuristicMatcher(MappingSet(self.resumes.get_field_mappings(hostname))))
        try:
            fields = filler.analyze(document)
        except Exception as e:
            logger.error(f"Error analyzing page {hostname}: {e}")
            return _failure(f"Error analyzing page: {e}")
        return {
            "success": True,
            "domain": hostname,
            "fields": {f.id: f.to_dict() for f in fields},
        }

    def fill_form(
        self,
        document: FormDocument,
        resume_name: Optional[str] = None,
        resume: Optional[dict] = None,
    ) -> dict:
        """Fill a page with the named résumé, an explicit document, or the active résumé."""
        if resume is None:
            if resume_name:
                resume = self.resumes.get_resume(resume_name)
                if resume is None:
                    return _failure(f"Résumé '{resume_name}' not found")
            else:
                resume = self.resumes.get_active_resume()
                if resume is None:
                    return _failure("No active résumé found")

        try:
            result = FormFiller(self.build_matcher(document.hostname)).fill(document, resume)
        except Exception as e:
            logger.error(f"Error filling form on {document.hostname}: {e}")
            return _failure(f"Error filling form: {e}")

        response = result.to_dict()
        if not result.success and "message" not in response:
            response["message"] = "No fields were filled"
        return response

    def autofill_on_load(self, document: FormDocument) -> Optional[dict]:
        """Fill with the active résumé after the configured delay. None when disabled."""
        settings = self.settings.get_settings()
        if not settings.get("autofillOnLoad"):
            return None
        if not self.resumes.get_active_resume_name():
            return None
        self._sleep(max(int(settings.get("autofillDelay") or 0), 0) / 1000)
        return self.fill_form(document)

    # ============ Mappings ============

    def get_mappings_for_domain(self, hostname: str) -> dict:
        return {
            "success": True,
            "domain": hostname,
            "mappings": self.resumes.get_field_mappings(hostname) or {},
        }

    def save_mappings_for_domain(self, hostname: str, mappings: dict) -> dict:
        if not hostname:
            return _failure("Hostname is required")
        if not isinstance(mappings, dict):
            return _failure("Mappings must be an object")
        if mappings and not normalize_domain_mapping(mappings):
            return _failure("No valid mapping entries")
        if not self.resumes.save_field_mappings(hostname, mappings):
            return _failure(f"Error saving field mappings for {hostname}")
        return {"success": True, "domain": hostname}

    def delete_mappings_for_domain(self, hostname: str) -> dict:
        if not self.resumes.delete_field_mappings(hostname):
            return _failure(f"No field mappings for {hostname}")
        return {"success": True, "domain": hostname}

    def list_mappings(self) -> dict:
        mappings = self.resumes.get_all_field_mappings()
        return {
            "success": True,
            "domains": {domain: len(entries) for domain, entries in mappings.items()},
        }

    # ============ Résumés ============

    def import_resume_json(self, name: str, text: str) -> dict:
        if not name:
            return _failure("Résumé name is required")
        try:
            resume = load_resume_json(text)
        except InvalidResumeError as e:
            return _failure(str(e))
        if not self.resumes.save_resume(name, resume):
            return _failure(f"Error saving résumé '{name}'")
        return {"success": True, "name": name}

    def parse_resume_text(self, text: str) -> dict:
        if not (text or "").strip():
            return _failure("Résumé text is empty")
        parser = self.resume_parser()
        resume = parser.parse(text)
        response = {"success": True, "resume": resume}
        last_error = getattr(parser, "last_error", None)
        if last_error:
            response["message"] = f"AI parsing failed ({last_error}); used heuristic parser"
        return response

    def import_resume_text(self, name: str, text: str) -> dict:
        if not name:
            return _failure("Résumé name is required")
        parsed = self.parse_resume_text(text)
        if not parsed["success"]:
            return parsed
        ok, errors = validate_resume(parsed["resume"])
        if not ok:
            return _failure("Invalid résumé: " + "; ".join(errors))
        if not self.resumes.save_resume(name, parsed["resume"]):
            return _failure(f"Error saving résumé '{name}'")
        parsed["name"] = name
        return parsed

    def list_resumes(self) -> dict:
        return {"success": True, "resumes": self.resumes.list_resumes()}

    def get_resume(self, name: str) -> dict:
        resume = self.resumes.get_resume(name)
        if resume is None:
            return _failure(f"Résumé '{name}' not found")
        return {"success": True, "name": name, "resume": resume}

    def delete_resume(self, name: str) -> dict:
        if not self.resumes.delete_resume(name):
            return _failure(f"Résumé '{name}' not found")
        return {"success": True, "active": self.resumes.get_active_resume_name()}

    def set_active_resume(self, name: str) -> dict:
        if not self.resumes.set_active_resume(name):
            return _failure(f"Résumé '{name}' not found")
        return {"success": True, "active": name}

    def get_active_resume(self) -> dict:
        name = self.resumes.get_active_resume_name()
        if not name:
            return _failure("No active résumé found")
        return {"success": True, "name": name, "resume": self.resumes.get_resume(name)}

    # ============ Settings ============

    def get_settings(self) -> dict:
        return {"success": True, "settings": self.settings.get_settings()}

    def save_settings(self, updates: dict) -> dict:
        if not self.settings.save_settings(updates):
            return _failure("Error saving settings")
        return self.get_settings()

    def get_api_settings(self) -> dict:
        record = self.settings.get_api_settings()
        key = record.get("apiKey") or ""
        record["apiKey"] = f"{key[:3]}..." if key else ""
        return {"success": True, "apiSettings": record}

    def test_api_connection(self, api_key: str = None, model: str = None) -> dict:
        """Classify a connection as connected / invalid / error and remember the status."""
        api_settings = self.settings.get_api_settings()
        if api_key:
            api_settings["apiKey"] = api_key
        if model:
            api_settings["model"] = model
        try:
            client = self._client_factory(api_settings)
        except ValueError as e:
            logger.warning(f"AI client unavailable: {e}")
            return _failure(str(e), status="error")
        if client is None:
            return _failure("No API key configured", status="invalid")
        status = check_connection(client)
        if not api_key:
            self.settings.set_api_status(status)
        return {"success": status == "connected", "status": status}

    def save_api_settings(self, api_key: str, model: str = None, use_for_field_mapping: bool = False) -> dict:
        """Test the connection, then store the record with token usage reset."""
        if not (api_key or "").strip():
            return _failure("Please enter an API key")
        api_key = api_key.strip()
        tested = self.test_api_connection(api_key, model)
        status = tested.get("status", API_STATUS_UNKNOWN)
        if not self.settings.save_api_settings(api_key, model, use_for_field_mapping, status):
            return _failure("Error saving API settings")
        return {"success": True, "status": status}
