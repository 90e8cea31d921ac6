"""
AI-assisted field matching.

Sends the page's field list and the résumé to the AI collaborator,
which returns a field id -> résumé path object. Valid pairs are layered
over the heuristic mapping set. Any failure leaves the heuristic set in
place and records why in `message`.
"""

import json
import logging
from typing import Callable, Dict, List, Optional

from ..config import AI_CONFIG
from ..parsers.json_extract import JSONExtractionError, extract_json
from ..utils.ai_client import AIClient, AIClientError
from ..utils.resume_paths import is_valid_path
from .form_filler import FieldMatcher, PageFieldSnapshot
from .mappings import DEFAULT_MAPPINGS, MappingSet

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You map job application form fields to résumé data. "
    "Return only a JSON object mapping form field ids to résumé paths, "
    'for example {"id:applicant_email": "personal.email", '
    '"name:employer": "experience[0].company"}. '
    "Use dotted paths with [index] for list entries. "
    "Leave out fields that have no sensible résumé value."
)


def known_paths() -> List[str]:
    paths = [path for path, _ in DEFAULT_MAPPINGS]
    paths += ["personal.city", "personal.state", "personal.zip", "personal.country"]
    return paths


class AIAssistedMatcher(FieldMatcher):
    """
    Args:
        client: AI completion client
        mapping_set: heuristic layers (domain + defaults) to fall back on
        on_usage: called with the token count of each successful call
    """

    def __init__(
        self,
        client: AIClient,
        mapping_set: Optional[MappingSet] = None,
        on_usage: Optional[Callable[[int], None]] = None,
    ):
        self.client = client
        self.base = mapping_set or MappingSet()
        self.mapping_set = self.base
        self.on_usage = on_usage
        self.ai_mapping: Dict[str, str] = {}
        self.ai_error: Optional[str] = None

    @property
    def message(self) -> str:
        if self.ai_error:
            return f"AI field mapping unavailable ({self.ai_error}); used heuristic matching"
        return ""

    def build_messages(self, fields: List[PageFieldSnapshot], resume: dict) -> list:
        payload = {
            "fields": [{"id": f.id, "type": f.type, "label": f.label} for f in fields],
            "paths": known_paths(),
            "resume": resume,
        }
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
        ]

    def prepare(self, fields: List[PageFieldSnapshot], resume: dict) -> None:
        self.ai_mapping = {}
        self.ai_error = None
        self.mapping_set = self.base
        if not fields:
            return

        try:
            completion = self.client.complete(
                self.build_messages(fields, resume),
                temperature=AI_CONFIG["mapping_temperature"],
                max_tokens=AI_CONFIG["mapping_max_tokens"],
            )
        except AIClientError as e:
            self._fail(f"{e.error_type}: {e.message}")
            return

        if self.on_usage and completion.tokens_used:
            self.on_usage(completion.tokens_used)

        try:
            data = extract_json(completion.text)
        except JSONExtractionError as e:
            self._fail(str(e))
            return

        field_ids = {f.id for f in fields}
        self.ai_mapping = {
            field_id: path
            for field_id, path in data.items()
            if field_id in field_ids and isinstance(path, str) and is_valid_path(path)
        }
        logger.info(f"AI mapped {len(self.ai_mapping)}/{len(fields)} fields")
        self.mapping_set = self.base.with_overrides(self.ai_mapping)

    def _fail(self, reason: str) -> None:
        self.ai_error = reason
        logger.warning(f"AI field mapping failed: {reason}")

    def match(self, identifier: str) -> Optional[str]:
        return self.mapping_set.match(identifier)
