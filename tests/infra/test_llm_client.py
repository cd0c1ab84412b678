"""
Tests for infra/llm/ (client, transport, retry policy, response parser).

The HTTP layer is replaced with a fake requests session; retry sleeps
are recorded instead of slept.
"""

import pytest
import requests
from PIL import Image

from infra.llm import LLMClient, MalformedResponseError, MissingAPIKeyError
from infra.llm.openrouter import (
    OpenRouterTransport,
    ResponseParser,
    RetryPolicy,
    add_images_to_messages,
)
from infra.pipeline.logger import PipelineLogger


class FakeResponse:
    def __init__(self, status_code=200, body=None, json_error=False):
        self.status_code = status_code
        self.ok = status_code < 400
        self._body = body
        self._json_error = json_error

    def raise_for_status(self):
        if not self.ok:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self._json_error:
            raise ValueError("Expecting value")
        return self._body


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def completion(content="hello", model="google/gemini-2.0-flash-001"):
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }


@pytest.fixture
def logger():
    return PipelineLogger("test", "llm")


def make_client(session, logger, api_key="sk-test", max_retries=3):
    sleeps = []
    client = LLMClient(
        transport=OpenRouterTransport(logger=logger, api_key=api_key, session=session),
        retry=RetryPolicy(logger=logger, max_retries=max_retries, sleep=sleeps.append),
        logger=logger,
    )
    return client, sleeps


class TestLLMClientCall:

    def test_successful_call(self, logger):
        session = FakeSession([FakeResponse(body=completion("[]"))])
        client, sleeps = make_client(session, logger)

        response = client.call(
            "google/gemini-2.0-flash-001",
            [{"role": "user", "content": "hi"}],
            temperature=0.1,
            max_tokens=4000,
            timeout=30,
        )

        assert response.content == "[]"
        assert response.prompt_tokens == 12
        assert response.completion_tokens == 3
        assert sleeps == []

        sent = session.requests[0]
        assert sent["headers"]["Authorization"] == "Bearer sk-test"
        assert sent["json"]["max_tokens"] == 4000
        assert sent["json"]["temperature"] == 0.1
        assert sent["timeout"] == 30

    def test_images_attached_to_user_message(self, logger):
        session = FakeSession([FakeResponse(body=completion())])
        client, _ = make_client(session, logger)

        client.call("m", [{"role": "user", "content": "scan"}], images=[Image.new("RGB", (20, 10))])

        content = session.requests[0]["json"]["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "scan"}
        assert content[1]["type"] == "image_url"
        assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_simple_call_with_system_prompt(self, logger):
        session = FakeSession([FakeResponse(body=completion())])
        client, _ = make_client(session, logger)

        client.simple_call("m", "question", system_prompt="be brief")

        roles = [m["role"] for m in session.requests[0]["json"]["messages"]]
        assert roles == ["system", "user"]

    def test_missing_api_key(self, logger, monkeypatch):
        monkeypatch.setattr(
            "infra.llm.openrouter.transport.Config",
            type("NoKeyConfig", (), {"openrouter_api_key": "", "openrouter_site_url": "", "openrouter_site_name": ""})(),
        )
        session = FakeSession([])
        client, _ = make_client(session, logger, api_key=None)

        with pytest.raises(MissingAPIKeyError):
            client.call("m", [{"role": "user", "content": "hi"}])
        assert session.requests == []


class TestRetries:

    def test_retries_server_error_then_succeeds(self, logger):
        session = FakeSession([
            FakeResponse(status_code=503),
            FakeResponse(body=completion("ok")),
        ])
        client, sleeps = make_client(session, logger)

        assert client.call("m", [{"role": "user", "content": "hi"}]).content == "ok"
        assert len(session.requests) == 2
        assert len(sleeps) == 1

    def test_client_error_not_retried(self, logger):
        session = FakeSession([FakeResponse(status_code=401)])
        client, sleeps = make_client(session, logger)

        with pytest.raises(requests.exceptions.HTTPError):
            client.call("m", [{"role": "user", "content": "hi"}])
        assert len(session.requests) == 1
        assert sleeps == []

    def test_gives_up_after_max_retries(self, logger):
        session = FakeSession([requests.exceptions.Timeout("slow")] * 3)
        client, sleeps = make_client(session, logger, max_retries=3)

        with pytest.raises(requests.exceptions.Timeout):
            client.call("m", [{"role": "user", "content": "hi"}])
        assert len(session.requests) == 3
        assert len(sleeps) == 2

    def test_malformed_envelope_retried(self, logger):
        session = FakeSession([
            FakeResponse(body={"error": "overloaded"}),
            FakeResponse(body=completion("fine")),
        ])
        client, _ = make_client(session, logger)

        assert client.call("m", [{"role": "user", "content": "hi"}]).content == "fine"

    def test_non_json_body_is_malformed(self, logger):
        session = FakeSession([FakeResponse(json_error=True)])
        client, _ = make_client(session, logger, max_retries=1)

        with pytest.raises(MalformedResponseError):
            client.call("m", [{"role": "user", "content": "hi"}])

    def test_nonce_injected_on_422(self, logger):
        session = FakeSession([
            FakeResponse(status_code=422),
            FakeResponse(body=completion()),
        ])
        client, _ = make_client(session, logger)

        client.call("m", [{"role": "user", "content": "hi"}])

        retried_text = session.requests[1]["json"]["messages"][0]["content"]
        assert retried_text.startswith("hi")
        assert "retry_0_id" in retried_text


class TestResponseParser:

    def test_empty_content_is_malformed(self, logger):
        with pytest.raises(MalformedResponseError):
            ResponseParser(logger).parse_chat_completion(completion("   "), "m")

    def test_list_content_joined(self, logger):
        result = completion()
        result["choices"][0]["message"]["content"] = [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]
        assert ResponseParser(logger).parse_chat_completion(result, "m").content == "ab"

    def test_provider_from_model(self, logger):
        parsed = ResponseParser(logger).parse_chat_completion(completion(), "openai/gpt-4o")
        assert parsed.provider == "openai"
        assert parsed.total_tokens == 15


def test_add_images_requires_user_message():
    with pytest.raises(ValueError):
        add_images_to_messages([{"role": "system", "content": "x"}], [Image.new("RGB", (4, 4))])
