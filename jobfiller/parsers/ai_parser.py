"""
Résumé parsers.

- RuleResumeParser: the heuristic text structurer, no network.
- AIResumeParser: asks the AI collaborator for résumé JSON and falls
  back to the rule parser when the call fails or no usable JSON comes
  back.
"""

import json
import logging
import textwrap
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..config import AI_CONFIG
from ..utils.ai_client import AIClient, AIClientError
from .json_extract import JSONExtractionError, extract_json
from .resume_text import structure_resume
from .schema import ResumeDocument, validate_resume

logger = logging.getLogger(__name__)

RESUME_SHAPE = {
    "personal": {
        "name": "", "firstName": "", "lastName": "", "email": "", "phone": "",
        "address": "", "city": "", "state": "", "zip": "", "country": "",
        "linkedin": "", "website": "",
    },
    "summary": "",
    "experience": [{
        "company": "", "title": "", "startDate": "", "endDate": "",
        "location": "", "description": "", "bullets": [],
    }],
    "education": [{
        "school": "", "degree": "", "field": "", "graduationDate": "",
        "gpa": "", "location": "", "achievements": [],
    }],
    "skills": [],
    "certifications": [{"name": "", "issuer": "", "date": "", "details": ""}],
    "projects": [{"name": "", "date": "", "technologies": "", "details": "", "bullets": []}],
}

SYSTEM_PROMPT = textwrap.dedent(
    f"""
    You are an expert résumé parser. Extract structured information from the
    résumé text and return ONLY a JSON object with this shape (omit nothing,
    use "" or [] when a value is missing):

    {json.dumps(RESUME_SHAPE, indent=2)}

    NOTE: The résumé may have been truncated due to length limitations, so
    work with the available content.
    """
).strip()


class ResumeParser(ABC):
    """Turns résumé text into a ResumeDocument."""

    @abstractmethod
    def parse(self, text: str) -> ResumeDocument:
        ...


class RuleResumeParser(ResumeParser):

    def parse(self, text: str) -> ResumeDocument:
        return structure_resume(text)


class AIResumeParser(ResumeParser):
    """
    AI-backed parser with a heuristic fallback.

    Args:
        client: AI completion client
        fallback: parser used when the AI result is unusable
        on_usage: called with the token count of each successful call
    """

    def __init__(
        self,
        client: AIClient,
        fallback: Optional[ResumeParser] = None,
        on_usage: Optional[Callable[[int], None]] = None,
    ):
        self.client = client
        self.fallback = fallback or RuleResumeParser()
        self.on_usage = on_usage
        self.last_error: Optional[str] = None

    def build_messages(self, text: str) -> list:
        truncated = (text or "")[:AI_CONFIG["max_resume_chars"]]
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Parse this résumé into structured JSON. "
                    f"This may be incomplete due to truncation:\n\n{truncated}"
                ),
            },
        ]

    def parse(self, text: str) -> ResumeDocument:
        self.last_error = None
        try:
            completion = self.client.complete(
                self.build_messages(text),
                temperature=AI_CONFIG["parse_temperature"],
                max_tokens=AI_CONFIG["parse_max_tokens"],
            )
        except AIClientError as e:
            return self._fall_back(f"AI call failed: {e.message}", text)

        if self.on_usage and completion.tokens_used:
            self.on_usage(completion.tokens_used)

        try:
            data = extract_json(completion.text)
        except JSONExtractionError as e:
            return self._fall_back(str(e), text)

        ok, errors = validate_resume(data)
        if not ok:
            return self._fall_back("AI returned an invalid résumé: " + "; ".join(errors), text)

        return data

    def _fall_back(self, reason: str, text: str) -> ResumeDocument:
        self.last_error = reason
        logger.warning(f"{reason}; using heuristic parser")
        return self.fallback.parse(text)


def create_resume_parser(
    client: Optional[AIClient] = None,
    on_usage: Optional[Callable[[int], None]] = None,
) -> ResumeParser:
    """AI parser when a client is available, rule parser otherwise."""
    if client is None:
        return RuleResumeParser()
    return AIResumeParser(client, on_usage=on_usage)
