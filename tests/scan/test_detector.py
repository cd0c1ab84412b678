"""
Tests for pipeline/scan/detector.py and parsing.py

Detection replies come from a model, so they are often wrapped in code
fences or prose. Anything unreadable must become an empty list.
"""

import pytest
import requests

from infra.llm import MalformedResponseError, MissingAPIKeyError, RateLimiter
from pipeline.scan import DetectionClient, parse_detection_reply, Confidence, plan_sections
from pipeline.scan.parsing import strip_code_fences, extract_balanced, load_json_reply
from pipeline.scan import detector as detector_module


class FakeClock:
    def __init__(self):
        self.now = 10.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestParsing:

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n[1, 2]\n```') == '[1, 2]'
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_extract_balanced_ignores_brackets_in_strings(self):
        text = 'Here you go: [{"title": "Odd ] Title"}] hope that helps [x]'
        assert extract_balanced(text) == '[{"title": "Odd ] Title"}]'

    def test_extract_balanced_object(self):
        assert extract_balanced('verdict: {"isValid": true, "n": {"x": 1}} done', '{') == '{"isValid": true, "n": {"x": 1}}'

    def test_extract_balanced_none(self):
        assert extract_balanced("no json here") is None
        assert extract_balanced("[unclosed") is None

    def test_load_json_reply_errors(self):
        with pytest.raises(ValueError):
            load_json_reply("nothing to see")
        with pytest.raises(ValueError):
            load_json_reply("[not json]")


class TestParseDetectionReply:

    def test_plain_array(self):
        books = parse_detection_reply('[{"title": "Dune", "author": "Frank Herbert", "confidence": "high"}]')
        assert len(books) == 1
        assert books[0].title == "Dune"
        assert books[0].author == "Frank Herbert"
        assert books[0].confidence == Confidence.HIGH

    def test_fenced_array(self):
        reply = '```json\n[{"title": "Emma", "author": "Jane Austen", "confidence": "medium"}]\n```'
        assert [b.title for b in parse_detection_reply(reply)] == ["Emma"]

    def test_prose_wrapped_array(self):
        reply = 'Sure! I found these books:\n[{"title": "Beloved", "author": "Toni Morrison", "confidence": "high"}]\nLet me know.'
        assert [b.title for b in parse_detection_reply(reply)] == ["Beloved"]

    def test_books_object_unwrapped(self):
        reply = '{"books": [{"title": "Ulysses", "author": "James Joyce", "confidence": "low"}]}'
        assert [b.title for b in parse_detection_reply(reply)] == ["Ulysses"]

    def test_other_object_is_empty(self):
        assert parse_detection_reply('{"title": "Ulysses"}') == []

    @pytest.mark.parametrize("reply", ["", "I cannot see any books.", "[{broken", "null", '"just a string"'])
    def test_garbage_is_empty(self, reply):
        assert parse_detection_reply(reply) == []

    def test_bad_items_skipped(self):
        reply = '[{"title": ""}, "Dune", {"author": "Nobody"}, {"title": "Emma", "confidence": "very sure"}]'
        books = parse_detection_reply(reply)
        assert [b.title for b in books] == ["Emma"]
        assert books[0].confidence == Confidence.LOW

    def test_missing_author_is_unknown(self):
        books = parse_detection_reply('[{"title": "Emma", "author": null, "confidence": "high"}, {"title": "Dune", "author": "Unknown Author"}]')
        assert [b.author for b in books] == ["Unknown", "Unknown"]


class TestDetectionClient:

    def test_detect_whole_image(self, make_llm, shelf_image, quiet_logger):
        llm = make_llm(['[{"title": "Dune", "author": "Frank Herbert", "confidence": "high"}]'])
        client = DetectionClient(llm, model="vision-model", logger=quiet_logger)

        books = client.detect(shelf_image)

        assert [b.title for b in books] == ["Dune"]
        call = llm.calls[0]
        assert call["model"] == "vision-model"
        assert call["images"] == [shelf_image]
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 4000
        prompt = call["messages"][0]["content"]
        assert "JSON" in prompt
        assert "section" not in prompt.lower()

    def test_section_context_in_prompt(self, make_llm, shelf_image, quiet_logger):
        llm = make_llm()
        client = DetectionClient(llm, model="m", logger=quiet_logger)
        sections = plan_sections(4, 3)

        client.detect(shelf_image, sections[0], index=0, total=12)
        client.detect(shelf_image, sections[-1], index=11, total=12)

        first = llm.calls[0]["messages"][0]["content"]
        last = llm.calls[1]["messages"][0]["content"]
        assert "section 1 of 12" in first
        assert f"row {sections[0].row + 1}, column {sections[0].col + 1}" in first
        assert f"priority {sections[0].priority:.2f}" in first
        assert "HIGH PRIORITY" in first
        assert "section 12 of 12" in last
        assert "HIGH PRIORITY" not in last
        assert "10% overlap" in last

    def test_whole_image_sent_by_default(self, make_llm, shelf_image, quiet_logger):
        llm = make_llm()
        client = DetectionClient(llm, model="m", logger=quiet_logger)

        client.detect(shelf_image, plan_sections(2, 2)[0], index=0, total=4)

        assert llm.calls[0]["images"][0].size == shelf_image.size

    def test_crop_sections(self, make_llm, shelf_image, quiet_logger):
        llm = make_llm()
        client = DetectionClient(llm, model="m", logger=quiet_logger, crop_sections=True)
        region = plan_sections(2, 2)[0]

        client.detect(shelf_image, region, index=0, total=4)

        sent = llm.calls[0]["images"][0]
        assert sent.size[0] < shelf_image.size[0]
        assert sent.size[1] < shelf_image.size[1]

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectionError("down"),
        requests.exceptions.Timeout("slow"),
        requests.exceptions.HTTPError("500"),
        MalformedResponseError("bad envelope"),
        MissingAPIKeyError("no key"),
        OSError("cannot write mode RGBA as JPEG"),
    ])
    def test_transport_errors_yield_empty(self, make_llm, shelf_image, quiet_logger, error):
        client = DetectionClient(make_llm([error]), model="m", logger=quiet_logger)
        assert client.detect(shelf_image) == []

    def test_garbage_reply_yields_empty(self, make_llm, shelf_image, quiet_logger):
        client = DetectionClient(make_llm(["The image is too blurry."]), model="m", logger=quiet_logger)
        assert client.detect(shelf_image) == []

    def test_crop_failure_yields_empty(self, make_llm, shelf_image, quiet_logger, monkeypatch):
        def broken_crop(image, region):
            raise OSError("image file is truncated")

        monkeypatch.setattr(detector_module, "crop_to_region", broken_crop)
        llm = make_llm()
        client = DetectionClient(llm, model="m", logger=quiet_logger, crop_sections=True)

        assert client.detect(shelf_image, plan_sections(2, 2)[0], index=0, total=4) == []
        assert llm.calls == []

    def test_calls_are_paced(self, make_llm, shelf_image, quiet_logger):
        clock = FakeClock()
        limiter = RateLimiter(requests_per_minute=120, burst=1, clock=clock, sleep=clock.sleep)
        llm = make_llm()
        client = DetectionClient(llm, model="m", logger=quiet_logger, rate_limiter=limiter)

        for i, region in enumerate(plan_sections(3, 1)):
            client.detect(shelf_image, region, index=i, total=3)

        assert len(llm.calls) == 3
        assert clock.sleeps == [pytest.approx(0.5), pytest.approx(0.5)]
