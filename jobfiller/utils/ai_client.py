"""
AI completion clients.

The rest of the package only sees AIClient.complete(): a list of
{role, content} messages in, a Completion (text + token usage) out.
Provider failures are raised as AIClientError so callers can fall
back to heuristics.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

import anthropic
import requests

from ..config import (
    AI_CONFIG,
    API_STATUS_CONNECTED,
    API_STATUS_ERROR,
    API_STATUS_INVALID,
    get_api_key,
    get_model_for_provider,
)

logger = logging.getLogger(__name__)

INVALID_ERROR_TYPES = {"authentication_error", "invalid_request_error"}


@dataclass
class Completion:
    text: str
    tokens_used: int = 0


class AIClientError(Exception):
    """AI call failed. error_type follows the provider's error payload."""

    def __init__(self, message: str, error_type: str = "api_error"):
        super().__init__(message)
        self.message = message
        self.error_type = error_type


class AIClient(ABC):
    """Abstract base class for AI completion clients."""

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.1,
        max_tokens: int = 1000,
    ) -> Completion:
        """Send a chat request and return the completion."""


class AnthropicClient(AIClient):
    """Claude via the anthropic SDK."""

    def __init__(self, api_key: str, model: str = None, timeout: float = None):
        super().__init__(model or AI_CONFIG["anthropic_model"])
        if not api_key:
            raise ValueError("Anthropic API key is required")
        self._client = anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout or AI_CONFIG["request_budget"],
        )

    def complete(self, messages, temperature=0.1, max_tokens=1000) -> Completion:
        # Anthropic takes the system prompt separately
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = [m for m in messages if m["role"] != "system"]

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": chat,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        try:
            response = self._client.messages.create(**kwargs)
        except anthropic.AuthenticationError as e:
            raise AIClientError(str(e), "authentication_error") from e
        except anthropic.BadRequestError as e:
            raise AIClientError(str(e), "invalid_request_error") from e
        except anthropic.APIConnectionError as e:
            raise AIClientError(str(e), "connection_error") from e
        except anthropic.APIError as e:
            raise AIClientError(str(e), "api_error") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        usage = getattr(response, "usage", None)
        tokens = (usage.input_tokens + usage.output_tokens) if usage else 0
        return Completion(text=text.strip(), tokens_used=tokens)


class OllamaClient(AIClient):
    """Local Ollama server over its /api/chat endpoint."""

    def __init__(self, model: str = None, url: str = None, timeout: float = None):
        super().__init__(model or AI_CONFIG["ollama_model"])
        self.url = (url or AI_CONFIG["ollama_url"]).rstrip("/")
        self.timeout = timeout or AI_CONFIG["request_budget"]

    def complete(self, messages, temperature=0.1, max_tokens=1000) -> Completion:
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        try:
            resp = requests.post(f"{self.url}/api/chat", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AIClientError(f"Ollama connection error: {e}", "connection_error") from e

        if resp.status_code != 200:
            error_type = "invalid_request_error" if resp.status_code in (400, 404) else "api_error"
            raise AIClientError(f"Ollama error: {resp.status_code} {resp.text[:200]}", error_type)

        try:
            data = resp.json()
        except ValueError as e:
            raise AIClientError(f"Ollama returned invalid JSON: {e}", "api_error") from e

        text = (data.get("message") or {}).get("content", "")
        tokens = (data.get("prompt_eval_count") or 0) + (data.get("eval_count") or 0)
        return Completion(text=text.strip(), tokens_used=tokens)


def create_ai_client(api_settings: dict = None, provider: str = None) -> Optional[AIClient]:
    """
    Factory: pick the AI client for the configured provider.

    Returns None when the provider needs a key and none is configured.
    """
    api_settings = api_settings or {}
    provider = provider or AI_CONFIG["provider"]
    model = api_settings.get("model") or get_model_for_provider(provider)

    if provider == "ollama":
        return OllamaClient(model=model)
    if provider == "anthropic":
        api_key = get_api_key(api_settings)
        if not api_key:
            return None
        return AnthropicClient(api_key=api_key, model=model)

    raise ValueError(f"Unsupported AI provider: {provider}")


def check_connection(client: AIClient) -> str:
    """
    Send a tiny prompt and classify the outcome.

    Returns: "connected", "invalid" or "error".
    """
    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "Test connection. Respond with 'connected'."},
    ]
    try:
        client.complete(messages, temperature=0, max_tokens=AI_CONFIG["test_max_tokens"])
    except AIClientError as e:
        logger.warning(f"AI connection test failed ({e.error_type}): {e.message}")
        if e.error_type in INVALID_ERROR_TYPES:
            return API_STATUS_INVALID
        return API_STATUS_ERROR

    return API_STATUS_CONNECTED
