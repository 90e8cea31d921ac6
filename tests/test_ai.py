"""
Tests for the AI clients, the AI résumé parser and AI-assisted matching.

No network: the anthropic SDK and requests.post are patched, and the
parser/matcher tests use an in-process fake client.
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import anthropic
import httpx
import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from jobfiller.browser.ai_mapper import AIAssistedMatcher
from jobfiller.browser.form_filler import FormFiller
from jobfiller.browser.html_dom import HtmlDocument
from jobfiller.browser.mappings import MappingSet
from jobfiller.config import AI_CONFIG
from jobfiller.parsers.ai_parser import (
    AIResumeParser,
    RuleResumeParser,
    create_resume_parser,
)
from jobfiller.utils.ai_client import (
    AIClient,
    AIClientError,
    AnthropicClient,
    Completion,
    OllamaClient,
    check_connection,
    create_ai_client,
)

# ============ Fixtures ============


class FakeClient(AIClient):
    """Returns canned text, or raises the given error."""

    def __init__(self, text="", tokens=0, error=None):
        super().__init__("fake-model")
        self.text = text
        self.tokens = tokens
        self.error = error
        self.calls = []

    def complete(self, messages, temperature=0.1, max_tokens=1000):
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        if self.error:
            raise self.error
        return Completion(self.text, self.tokens)


RESUME_TEXT = "John Smith\njohn@x.com\nEXPERIENCE\nAcme Inc.\nSoftware Engineer\nJan 2020 - Present"


@pytest.fixture
def no_env_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


def _anthropic_response(text, input_tokens=3, output_tokens=4):
    block = MagicMock(type="text", text=text)
    return MagicMock(content=[block], usage=MagicMock(input_tokens=input_tokens, output_tokens=output_tokens))


# ============ Clients ============

class TestAnthropicClient:
    """Claude client over the SDK."""

    @patch("jobfiller.utils.ai_client.anthropic.Anthropic")
    def test_complete(self, mock_sdk):
        mock_sdk.return_value.messages.create.return_value = _anthropic_response("  hello ")
        client = AnthropicClient(api_key="sk-test", model="claude-test")

        completion = client.complete(
            [{"role": "system", "content": "be brief"}, {"role": "user", "content": "hi"}],
            temperature=0,
            max_tokens=5,
        )

        assert completion == Completion("hello", 7)
        kwargs = mock_sdk.return_value.messages.create.call_args.kwargs
        assert kwargs["system"] == "be brief"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 5

    @patch("jobfiller.utils.ai_client.anthropic.Anthropic")
    def test_authentication_error(self, mock_sdk):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        response = httpx.Response(401, request=request)
        mock_sdk.return_value.messages.create.side_effect = anthropic.AuthenticationError(
            "invalid x-api-key", response=response, body=None
        )
        client = AnthropicClient(api_key="sk-bad")

        with pytest.raises(AIClientError) as exc_info:
            client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.error_type == "authentication_error"

    @patch("jobfiller.utils.ai_client.anthropic.Anthropic")
    def test_connection_error(self, mock_sdk):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        mock_sdk.return_value.messages.create.side_effect = anthropic.APIConnectionError(request=request)
        client = AnthropicClient(api_key="sk-test")

        with pytest.raises(AIClientError) as exc_info:
            client.complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.error_type == "connection_error"

    def test_key_required(self):
        with pytest.raises(ValueError):
            AnthropicClient(api_key="")


class TestOllamaClient:
    """Local Ollama over HTTP."""

    @patch("jobfiller.utils.ai_client.requests.post")
    def test_complete(self, mock_post):
        mock_post.return_value = MagicMock(
            status_code=200,
            json=lambda: {"message": {"content": " {} "}, "prompt_eval_count": 10, "eval_count": 2},
        )
        client = OllamaClient(model="llama-test", url="http://ollama:11434/")

        completion = client.complete([{"role": "user", "content": "hi"}], max_tokens=50)

        assert completion == Completion("{}", 12)
        url = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        assert url == "http://ollama:11434/api/chat"
        assert payload["stream"] is False
        assert payload["options"]["num_predict"] == 50

    @patch("jobfiller.utils.ai_client.requests.post")
    def test_http_errors(self, mock_post):
        mock_post.return_value = MagicMock(status_code=404, text="model not found")
        with pytest.raises(AIClientError) as exc_info:
            OllamaClient().complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.error_type == "invalid_request_error"

        mock_post.return_value = MagicMock(status_code=500, text="boom")
        with pytest.raises(AIClientError) as exc_info:
            OllamaClient().complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.error_type == "api_error"

    @patch("jobfiller.utils.ai_client.requests.post")
    def test_connection_refused(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(AIClientError) as exc_info:
            OllamaClient().complete([{"role": "user", "content": "hi"}])
        assert exc_info.value.error_type == "connection_error"


class TestClientFactory:
    """create_ai_client()"""

    def test_no_key_gives_none(self, no_env_key):
        assert create_ai_client({"apiKey": ""}, provider="anthropic") is None

    @patch("jobfiller.utils.ai_client.anthropic.Anthropic")
    def test_stored_key(self, mock_sdk, no_env_key):
        client = create_ai_client({"apiKey": "sk-stored", "model": "claude-x"}, provider="anthropic")
        assert isinstance(client, AnthropicClient)
        assert client.model == "claude-x"
        assert mock_sdk.call_args.kwargs["api_key"] == "sk-stored"

    @patch("jobfiller.utils.ai_client.anthropic.Anthropic")
    def test_env_key_wins(self, mock_sdk, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-env")
        create_ai_client({"apiKey": "sk-stored"}, provider="anthropic")
        assert mock_sdk.call_args.kwargs["api_key"] == "sk-env"

    def test_ollama(self):
        client = create_ai_client({}, provider="ollama")
        assert isinstance(client, OllamaClient)
        assert client.model == AI_CONFIG["ollama_model"]

    def test_unsupported_provider(self):
        with pytest.raises(ValueError):
            create_ai_client({}, provider="nope")


class TestCheckConnection:
    """Connection status classification."""

    def test_connected(self):
        client = FakeClient("connected")
        assert check_connection(client) == "connected"
        assert client.calls[0]["max_tokens"] == AI_CONFIG["test_max_tokens"]

    def test_any_reply_counts(self):
        assert check_connection(FakeClient("Connected!")) == "connected"

    def test_invalid(self):
        client = FakeClient(error=AIClientError("bad key", "authentication_error"))
        assert check_connection(client) == "invalid"

    def test_error(self):
        client = FakeClient(error=AIClientError("timeout", "connection_error"))
        assert check_connection(client) == "error"


# ============ Résumé parsing ============

class TestAIResumeParser:
    """AI parser with heuristic fallback."""

    def test_uses_ai_json(self):
        doc = {"personal": {"name": "John Smith", "email": "john@x.com"}, "skills": ["Go"]}
        usage = []
        client = FakeClient(f"Here you go:\n```json\n{json.dumps(doc)}\n```", tokens=120)
        parser = AIResumeParser(client, on_usage=usage.append)

        assert parser.parse(RESUME_TEXT) == doc
        assert parser.last_error is None
        assert usage == [120]

    def test_truncates_input(self):
        client = FakeClient("{}")
        AIResumeParser(client).parse("x" * 10000)
        user_message = client.calls[0]["messages"][1]["content"]
        assert user_message.count("x") == AI_CONFIG["max_resume_chars"]

    def test_falls_back_on_client_error(self):
        parser = AIResumeParser(FakeClient(error=AIClientError("rate limited", "rate_limit_error")))
        resume = parser.parse(RESUME_TEXT)

        assert resume["experience"][0]["company"] == "Acme Inc."
        assert "rate limited" in parser.last_error

    def test_falls_back_on_unusable_text(self):
        parser = AIResumeParser(FakeClient("Sorry, I cannot help with that."))
        resume = parser.parse(RESUME_TEXT)

        assert resume["personal"]["email"] == "john@x.com"
        assert parser.last_error

    def test_falls_back_on_invalid_document(self):
        parser = AIResumeParser(FakeClient('{"skills": "Go, Rust"}'))
        resume = parser.parse(RESUME_TEXT)

        assert resume["personal"]["name"] == "John Smith"
        assert "invalid" in parser.last_error

    def test_last_error_reset(self):
        client = FakeClient(error=AIClientError("down"))
        parser = AIResumeParser(client)
        parser.parse(RESUME_TEXT)
        client.error = None
        client.text = "{}"
        parser.parse(RESUME_TEXT)
        assert parser.last_error is None

    def test_factory(self):
        assert isinstance(create_resume_parser(None), RuleResumeParser)
        assert isinstance(create_resume_parser(FakeClient()), AIResumeParser)


# ============ Field mapping ============

FORM = '<input id="q_17"><input id="q_18"><input id="email">'


class TestAIAssistedMatcher:
    """AI mapping layered over heuristics."""

    def test_ai_mapping_applied(self, sample_resume):
        reply = json.dumps({
            "id:q_17": "personal.phone",
            "id:not_on_page": "personal.email",
            "id:q_18": "not a path[",
        })
        usage = []
        matcher = AIAssistedMatcher(FakeClient(reply, tokens=50), on_usage=usage.append)
        doc = HtmlDocument(FORM)

        result = FormFiller(matcher).fill(doc, sample_resume)

        assert matcher.ai_mapping == {"id:q_17": "personal.phone"}
        assert result.counts() == (3, 2, 1, 0)
        assert doc.control("#q_17").value == "(555) 123-4567"
        assert matcher.message == ""
        assert usage == [50]

    def test_ai_beats_domain_mapping(self, sample_resume):
        matcher = AIAssistedMatcher(
            FakeClient('{"id:email": "personal.website"}'),
            MappingSet({"id:email": "personal.email"}),
        )
        doc = HtmlDocument('<input id="email">')
        FormFiller(matcher).fill(doc, sample_resume)
        assert doc.control("#email").value == "https://jane.dev"

    def test_failure_falls_back_to_heuristics(self, sample_resume):
        matcher = AIAssistedMatcher(FakeClient(error=AIClientError("overloaded", "api_error")))
        doc = HtmlDocument(FORM)

        result = FormFiller(matcher).fill(doc, sample_resume)

        assert result.counts() == (3, 1, 2, 0)
        assert doc.control("#email").value == "jane@example.com"
        assert result.message == "AI field mapping unavailable (api_error: overloaded); used heuristic matching"

    def test_unparseable_reply(self, sample_resume):
        matcher = AIAssistedMatcher(FakeClient("no idea"))
        FormFiller(matcher).fill(HtmlDocument(FORM), sample_resume)
        assert matcher.message.startswith("AI field mapping unavailable")

    def test_no_fields_no_call(self, sample_resume):
        client = FakeClient("{}")
        FormFiller(AIAssistedMatcher(client)).fill(HtmlDocument("<p></p>"), sample_resume)
        assert client.calls == []

    def test_prompt_lists_fields(self, sample_resume):
        client = FakeClient("{}")
        FormFiller(AIAssistedMatcher(client)).fill(HtmlDocument(FORM), sample_resume)

        payload = json.loads(client.calls[0]["messages"][1]["content"])
        assert [f["id"] for f in payload["fields"]] == ["id:q_17", "id:q_18", "id:email"]
        assert "personal.email" in payload["paths"]
        assert client.calls[0]["max_tokens"] == AI_CONFIG["mapping_max_tokens"]
