# JobFiller configuration

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Directories
PACKAGE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("JOBFILLER_DATA_DIR", PACKAGE_DIR.parent / "data"))
STORAGE_FILE = DATA_DIR / "jobfiller_storage.json"

# Storage keys
RESUMES_KEY = "jobfiller_resumes"
ACTIVE_RESUME_KEY = "jobfiller_active_resume"
FIELD_MAPPINGS_KEY = "jobfiller_field_mappings"
SETTINGS_KEY = "jobfiller_settings"
API_SETTINGS_KEY = "jobfiller_api_settings"

# Connection statuses for the API settings record
API_STATUS_CONNECTED = "connected"
API_STATUS_INVALID = "invalid"
API_STATUS_ERROR = "error"
API_STATUS_UNKNOWN = "unknown"
API_STATUSES = {API_STATUS_CONNECTED, API_STATUS_INVALID, API_STATUS_ERROR, API_STATUS_UNKNOWN}

DEFAULT_SETTINGS = {
    "autofillOnLoad": False,
    "autofillDelay": 2000,  # ms
    "darkMode": False,
    "analyticsEnabled": False,
}

# AI Configuration
AI_CONFIG = {
    "provider": os.getenv("JOBFILLER_AI_PROVIDER", "anthropic"),  # anthropic or ollama
    "anthropic_model": "claude-sonnet-4-20250514",
    "ollama_model": "llama3.2:3b",
    "ollama_url": os.getenv("OLLAMA_URL", "http://localhost:11434"),
    "request_budget": 60,  # seconds, applied by callers
    "max_resume_chars": 6000,
    "parse_temperature": 0.1,
    "parse_max_tokens": 1000,
    "mapping_temperature": 0.1,
    "mapping_max_tokens": 800,
    "test_max_tokens": 10,
}

DEFAULT_API_SETTINGS = {
    "apiKey": "",
    "model": AI_CONFIG["anthropic_model"],
    "useForFieldMapping": False,
    "tokenUsage": 0,
    "apiStatus": API_STATUS_UNKNOWN,
}


def get_model_for_provider(provider: str = None) -> str:
    """Get the default model for the given provider."""
    provider = provider or AI_CONFIG["provider"]
    return AI_CONFIG.get(f"{provider}_model", AI_CONFIG["anthropic_model"])


def get_api_key(api_settings: dict = None) -> str:
    """
    Get the AI API key.

    Environment wins over the stored API settings record.
    """
    key = os.environ.get("ANTHROPIC_API_KEY")
    if key:
        return key
    if api_settings:
        return api_settings.get("apiKey") or ""
    return ""
