"""Unit tests for topic generation and reply cleanup."""

import importlib
import json

import pytest

from processes.topic_gen.generate_topics import (
    STRICT_JSON_SUFFIX,
    build_prompt,
    extract_json,
    generate_topics,
    parse_topics,
    sanitize_dataset,
)

topics_module = importlib.import_module("processes.topic_gen.generate_topics")

VALID_REPLY = json.dumps([
    {
        "topic": "  Early Years ",
        "summary": "**Origins** of the sport\n• First races",
        "quantifiable": False,
    },
    {
        "topic": "Growth",
        "summary": "Attendance over time",
        "quantifiable": True,
        "dataset": {
            "title": "Attendance",
            "unit": "people",
            "type": "timeseries",
            "points": [{"label": "1990s", "value": 100}, {"label": "2000s", "value": 250.5}],
        },
    },
])


class TestBuildPrompt:
    """Test build_prompt."""

    def test_contains_rules_and_inputs(self):
        prompt = build_prompt("Formula 1", "fans", "upbeat", 3)
        assert "Max 3 items" in prompt
        assert "Use **text** to mark key information" in prompt
        assert "Use   ◦ for sub-bullets" in prompt
        assert "Subject: Formula 1" in prompt
        assert "\nAudience: fans" in prompt
        assert "\nTone: upbeat" in prompt

    def test_omits_empty_optional_inputs(self):
        prompt = build_prompt("Formula 1", "", "", 5)
        assert "Audience:" not in prompt
        assert "Tone:" not in prompt


class TestExtractJson:
    """Test extract_json."""

    def test_code_fence(self):
        assert extract_json('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_surrounding_chatter(self):
        assert extract_json('Sure! Here: [{"a": 1}] Hope this helps') == '[{"a": 1}]'

    def test_object(self):
        assert extract_json('note {"a": [1]} end') == '{"a": [1]}'

    def test_array_before_object(self):
        assert extract_json('x [{"a": 1}]') == '[{"a": 1}]'

    def test_no_json(self):
        assert extract_json("  nothing here ") == "nothing here"


class TestParseTopics:
    """Test parse_topics."""

    def test_parses_list(self):
        assert len(parse_topics("```\n" + VALID_REPLY + "\n```")) == 2

    @pytest.mark.parametrize("raw", ["not json", '{"topic": "x"}', '["x", "y"]'])
    def test_rejects_non_topic_payloads(self, raw):
        with pytest.raises(ValueError):
            parse_topics(raw)


class TestSanitizeDataset:
    """Test sanitize_dataset."""

    def test_drops_invalid_points(self):
        topic = {"dataset": {"type": "category", "points": [
            {"label": " A ", "value": 1},
            {"label": "", "value": 2},
            {"label": "NaN", "value": float("nan")},
            {"label": "Inf", "value": float("inf")},
            {"label": "Text", "value": "12"},
            {"label": "Bool", "value": True},
            "junk",
        ]}}
        sanitize_dataset(topic)
        assert topic["dataset"]["points"] == [{"label": "A", "value": 1.0}]
        assert topic["quantifiable"] is True

    def test_caps_point_count(self):
        points = [{"label": str(i), "value": i} for i in range(30)]
        topic = {"dataset": {"type": "category", "points": points}}
        sanitize_dataset(topic)
        assert len(topic["dataset"]["points"]) == 20

    def test_no_valid_points_removes_dataset(self):
        topic = {"quantifiable": True, "dataset": {"points": [{"label": "", "value": 1}]}}
        sanitize_dataset(topic)
        assert "dataset" not in topic
        assert "quantifiable" not in topic

    @pytest.mark.parametrize("raw_type,expected", [
        ("timeseries", "timeseries"),
        (" Comparison ", "comparison"),
        ("pie", "category"),
        (None, "category"),
    ])
    def test_type_normalization(self, raw_type, expected):
        topic = {"dataset": {"type": raw_type, "points": [{"label": "a", "value": 1}]}}
        sanitize_dataset(topic)
        assert topic["dataset"]["type"] == expected

    def test_keeps_title_and_unit(self):
        topic = {"dataset": {"title": "T", "unit": "%", "type": "category",
                             "points": [{"label": "a", "value": 1}]}}
        sanitize_dataset(topic)
        assert topic["dataset"]["title"] == "T"
        assert topic["dataset"]["unit"] == "%"

    def test_without_dataset(self):
        topic = {"topic": "x"}
        sanitize_dataset(topic)
        assert topic == {"topic": "x"}

    def test_quantifiable_kept_without_dataset(self):
        topic = {"topic": "x", "quantifiable": True}
        sanitize_dataset(topic)
        assert topic == {"topic": "x", "quantifiable": True}

    def test_integer_values_stay_integers(self):
        topic = {"dataset": {"points": [{"label": "1990", "value": 1990}, {"label": "2000", "value": 2.5}]}}
        sanitize_dataset(topic)
        values = [p["value"] for p in topic["dataset"]["points"]]
        assert values == [1990, 2.5]
        assert isinstance(values[0], int)
        assert json.dumps(values) == "[1990, 2.5]"


class TestGenerateTopics:
    """Test generate_topics with a fake model."""

    def _fake_replies(self, monkeypatch, replies):
        prompts = []

        def fake_generate_text(prompt, model):
            prompts.append(prompt)
            return replies.pop(0)

        monkeypatch.setattr(topics_module, "generate_text", fake_generate_text)
        return prompts

    def test_happy_path(self, monkeypatch):
        usage = {"prompt_tokens": 10, "output_tokens": 20, "total_tokens": 30}
        self._fake_replies(monkeypatch, [(VALID_REPLY, usage)])

        result = generate_topics("Formula 1", model="gemini-2.0-flash")

        first, second = result["topics"]
        assert first == {"topic": "Early Years", "summary": "**Origins** of the sport\n• First races"}
        assert second["quantifiable"] is True
        assert second["dataset"]["points"][1] == {"label": "2000s", "value": 250.5}

        meta = result["meta"]
        assert meta["model"] == "gemini-2.0-flash"
        assert meta["prompt_tokens"] == 10
        assert meta["total_tokens"] == 30
        assert isinstance(meta["latency_ms"], int)

    def test_truncates_to_max_topics(self, monkeypatch):
        self._fake_replies(monkeypatch, [(VALID_REPLY, {})])
        result = generate_topics("Formula 1", max_topics=1)
        assert len(result["topics"]) == 1

    def test_zero_token_counts_are_omitted(self, monkeypatch):
        self._fake_replies(monkeypatch, [(VALID_REPLY, {"prompt_tokens": 0})])
        meta = generate_topics("Formula 1")["meta"]
        assert set(meta) == {"model", "latency_ms"}

    def test_retries_with_strict_suffix(self, monkeypatch):
        prompts = self._fake_replies(monkeypatch, [
            ("I cannot produce JSON", {"total_tokens": 5}),
            (VALID_REPLY, {"total_tokens": 7}),
        ])
        result = generate_topics("Formula 1")

        assert len(prompts) == 2
        assert prompts[1] == prompts[0] + STRICT_JSON_SUFFIX
        assert result["meta"]["total_tokens"] == 7

    def test_fails_after_retry(self, monkeypatch):
        self._fake_replies(monkeypatch, [("nope", {}), ("still nope", {})])
        with pytest.raises(ValueError, match="invalid JSON from model"):
            generate_topics("Formula 1")
