"""
Shared fixtures for the test suite.

Remote model calls are replaced by FakeLLMClient, which returns scripted
replies and records every call. Everything else (images, config files,
library.json) uses the real filesystem under tmp_path.
"""

import pytest
from PIL import Image

from infra.llm import LLMResponse
from infra.pipeline.logger import PipelineLogger


class FakeLLMClient:
    """
    Stand-in for LLMClient.

    `replies` are consumed in order; an Exception instance is raised
    instead of returned. When replies run out, `default` is returned.
    """

    def __init__(self, replies=None, default="[]"):
        self.replies = list(replies or [])
        self.default = default
        self.calls = []

    def call(self, model, messages, **kwargs):
        self.calls.append({"model": model, "messages": messages, **kwargs})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=model, usage={"prompt_tokens": 10, "completion_tokens": 5})

    def simple_call(self, model, user_prompt, system_prompt=None, **kwargs):
        messages = [{"role": "user", "content": user_prompt}]
        return self.call(model, messages, **kwargs)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def quiet_logger():
    """Logger that writes nowhere."""
    return PipelineLogger("test-scan", "test")


@pytest.fixture
def shelf_image():
    return Image.new("RGB", (400, 300), color="white")


@pytest.fixture
def shelf_photo(tmp_path):
    """A shelf photo on disk."""
    path = tmp_path / "shelf.jpg"
    Image.new("RGB", (800, 600), color="white").save(path, format="JPEG")
    return path


@pytest.fixture
def tmp_storage(tmp_path):
    """Create a temporary storage root directory."""
    storage = tmp_path / "shelf"
    storage.mkdir()
    return storage


@pytest.fixture
def make_llm():
    """Build a FakeLLMClient with scripted replies."""
    def _make(replies=None, default="[]"):
        return FakeLLMClient(replies=replies, default=default)
    return _make
