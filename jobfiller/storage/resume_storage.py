# jobfiller/storage/resume_storage.py
"""
Résumé, field-mapping and settings records.

Layout (one backend key each):
    jobfiller_resumes          {name: {data, updatedAt}}
    jobfiller_active_resume    name
    jobfiller_field_mappings   {hostname: mapping}
    jobfiller_settings         DEFAULT_SETTINGS shape
    jobfiller_api_settings     DEFAULT_API_SETTINGS shape

Backend errors are logged and reported as False / None / {}.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..config import (
    ACTIVE_RESUME_KEY,
    API_SETTINGS_KEY,
    API_STATUS_UNKNOWN,
    API_STATUSES,
    DEFAULT_API_SETTINGS,
    DEFAULT_SETTINGS,
    FIELD_MAPPINGS_KEY,
    RESUMES_KEY,
    SETTINGS_KEY,
)
from .backends import StorageBackend, create_storage_backend

logger = logging.getLogger(__name__)

STORAGE_ERRORS = (OSError, ValueError, TypeError)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResumeStorage:
    """Named résumés, the active résumé and per-hostname field mappings."""

    def __init__(self, backend: Optional[StorageBackend] = None):
        self.backend = backend or create_storage_backend()

    # ============ Résumés ============

    def get_all_resumes(self) -> Dict[str, dict]:
        try:
            return self.backend.get(RESUMES_KEY) or {}
        except STORAGE_ERRORS as e:
            logger.error(f"Error retrieving résumés: {e}")
            return {}

    def list_resumes(self) -> List[dict]:
        active = self.get_active_resume_name()
        return [
            {"name": name, "updatedAt": entry.get("updatedAt", ""), "active": name == active}
            for name, entry in self.get_all_resumes().items()
        ]

    def save_resume(self, name: str, resume: dict) -> bool:
        """Add or replace a résumé. The first one saved becomes active."""
        try:
            resumes = self.get_all_resumes()
            resumes[name] = {"data": resume, "updatedAt": _now_iso()}
            self.backend.set(RESUMES_KEY, resumes)
            if not self.get_active_resume_name():
                self.set_active_resume(name)
            logger.info(f"Saved résumé '{name}'")
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving résumé '{name}': {e}")
            return False

    def get_resume(self, name: str) -> Optional[dict]:
        entry = self.get_all_resumes().get(name)
        return entry.get("data") if entry else None

    def delete_resume(self, name: str) -> bool:
        try:
            resumes = self.get_all_resumes()
            if name not in resumes:
                return False
            del resumes[name]
            self.backend.set(RESUMES_KEY, resumes)

            if self.get_active_resume_name() == name:
                remaining = list(resumes)
                if remaining:
                    self.backend.set(ACTIVE_RESUME_KEY, remaining[0])
                else:
                    self.backend.remove(ACTIVE_RESUME_KEY)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error deleting résumé '{name}': {e}")
            return False

    def set_active_resume(self, name: str) -> bool:
        try:
            if name not in self.get_all_resumes():
                return False
            self.backend.set(ACTIVE_RESUME_KEY, name)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error setting active résumé to '{name}': {e}")
            return False

    def get_active_resume_name(self) -> Optional[str]:
        try:
            return self.backend.get(ACTIVE_RESUME_KEY) or None
        except STORAGE_ERRORS as e:
            logger.error(f"Error getting active résumé: {e}")
            return None

    def get_active_resume(self) -> Optional[dict]:
        name = self.get_active_resume_name()
        if not name:
            return None
        return self.get_resume(name)

    # ============ Field mappings ============

    def get_all_field_mappings(self) -> Dict[str, dict]:
        try:
            return self.backend.get(FIELD_MAPPINGS_KEY) or {}
        except STORAGE_ERRORS as e:
            logger.error(f"Error retrieving field mappings: {e}")
            return {}

    def get_field_mappings(self, hostname: str) -> Optional[dict]:
        return self.get_all_field_mappings().get(hostname)

    def save_field_mappings(self, hostname: str, mappings: dict) -> bool:
        try:
            existing = self.get_all_field_mappings()
            existing[hostname] = mappings
            self.backend.set(FIELD_MAPPINGS_KEY, existing)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving field mappings for '{hostname}': {e}")
            return False

    def delete_field_mappings(self, hostname: str) -> bool:
        try:
            existing = self.get_all_field_mappings()
            if hostname not in existing:
                return False
            del existing[hostname]
            self.backend.set(FIELD_MAPPINGS_KEY, existing)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error deleting field mappings for '{hostname}': {e}")
            return False


class SettingsStore:
    """General settings and the API settings record."""

    def __init__(self, backend: Optional[StorageBackend] = None):
        self.backend = backend or create_storage_backend()

    def get_settings(self) -> dict:
        try:
            stored = self.backend.get(SETTINGS_KEY) or {}
        except STORAGE_ERRORS as e:
            logger.error(f"Error loading settings: {e}")
            stored = {}
        return {**DEFAULT_SETTINGS, **stored}

    def save_settings(self, updates: dict) -> bool:
        settings = self.get_settings()
        settings.update({k: v for k, v in updates.items() if k in DEFAULT_SETTINGS})
        try:
            self.backend.set(SETTINGS_KEY, settings)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving settings: {e}")
            return False

    def get_api_settings(self) -> dict:
        try:
            stored = self.backend.get(API_SETTINGS_KEY) or {}
        except STORAGE_ERRORS as e:
            logger.error(f"Error loading API settings: {e}")
            stored = {}
        return {**DEFAULT_API_SETTINGS, **stored}

    def save_api_settings(
        self,
        api_key: str,
        model: str = None,
        use_for_field_mapping: bool = False,
        status: str = API_STATUS_UNKNOWN,
    ) -> bool:
        """Replace the API record. Token usage restarts at zero."""
        record = {
            "apiKey": api_key,
            "model": model or DEFAULT_API_SETTINGS["model"],
            "useForFieldMapping": bool(use_for_field_mapping),
            "tokenUsage": 0,
            "apiStatus": status if status in API_STATUSES else API_STATUS_UNKNOWN,
            "lastUpdated": _now_iso(),
        }
        try:
            self.backend.set(API_SETTINGS_KEY, record)
            logger.info(f"Saved API settings (key {api_key[:3]}..., status {record['apiStatus']})")
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving API settings: {e}")
            return False

    def set_api_status(self, status: str) -> bool:
        if status not in API_STATUSES:
            return False
        record = self.get_api_settings()
        record["apiStatus"] = status
        try:
            self.backend.set(API_SETTINGS_KEY, record)
            return True
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving API status: {e}")
            return False

    def add_token_usage(self, tokens: int) -> int:
        """Add to the cumulative counter and return the new total."""
        record = self.get_api_settings()
        record["tokenUsage"] = int(record.get("tokenUsage") or 0) + max(int(tokens or 0), 0)
        try:
            self.backend.set(API_SETTINGS_KEY, record)
        except STORAGE_ERRORS as e:
            logger.error(f"Error saving token usage: {e}")
        return record["tokenUsage"]
