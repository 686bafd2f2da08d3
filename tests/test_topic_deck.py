"""Tests for the topic_deck command-line pipeline."""

import json
from types import SimpleNamespace

import pytest

import topic_deck
from topic_deck import build_deck_topics, build_parser, clamp_max_topics, main, run_topic_pipeline

RESULT = {
    "topics": [{"topic": "Origins", "summary": "How it started"}],
    "meta": {"model": "gemini-2.0-flash", "latency_ms": 12},
}


def _args(*extra):
    return build_parser().parse_args(["--subject", "History of Formula 1", *extra])


@pytest.fixture
def pipeline(monkeypatch):
    """Replace model-backed steps with fakes and record what they receive."""
    calls = {"generate": [], "deck": []}

    def fake_generate(subject, audience, tone, max_topics, model):
        calls["generate"].append((subject, audience, tone, max_topics, model))
        return RESULT

    monkeypatch.setattr(topic_deck, "classify_inputs", lambda *a: False)
    monkeypatch.setattr(topic_deck, "generate_topics", fake_generate)
    monkeypatch.setattr(topic_deck, "write_deck", lambda topics, args: calls["deck"].append(topics))
    return calls


class TestClampMaxTopics:
    @pytest.mark.parametrize("value,expected", [(0, 5), (-1, 5), (9, 5), (1, 1), (5, 5)])
    def test_clamp(self, value, expected):
        assert clamp_max_topics(value) == expected


class TestRunTopicPipeline:
    """Test run_topic_pipeline."""

    def test_prints_json_result(self, pipeline, capsys):
        result = run_topic_pipeline(_args("--audience", "students"))

        assert result == RESULT
        assert json.loads(capsys.readouterr().out) == RESULT
        subject, audience, _, max_topics, model = pipeline["generate"][0]
        assert (subject, audience, max_topics, model) == ("History of Formula 1", "students", 5, "gemini-2.0-flash")
        assert pipeline["deck"] == []

    def test_writes_deck_when_presentation_given(self, pipeline):
        run_topic_pipeline(_args("--presentation-id", "pres", "--sheet-id", "ss"))
        assert pipeline["deck"] == [RESULT["topics"]]

    def test_invalid_inputs_exit(self, pipeline):
        with pytest.raises(SystemExit, match="gibberish"):
            run_topic_pipeline(build_parser().parse_args(["--subject", "qwrtzp"]))
        assert pipeline["generate"] == []

    def test_flagged_inputs_exit(self, pipeline, monkeypatch):
        monkeypatch.setattr(topic_deck, "classify_inputs", lambda *a: True)
        with pytest.raises(SystemExit, match="flagged"):
            run_topic_pipeline(_args())
        assert pipeline["generate"] == []

    def test_classifier_error_is_only_a_warning(self, pipeline, monkeypatch, capsys):
        def broken_classifier(*args):
            raise ValueError("unexpected classifier output: maybe")

        monkeypatch.setattr(topic_deck, "classify_inputs", broken_classifier)
        run_topic_pipeline(_args())

        assert "classifier error" in capsys.readouterr().err
        assert len(pipeline["generate"]) == 1

    def test_model_failure_exits(self, pipeline, monkeypatch):
        def failing_generate(*args, **kwargs):
            raise ValueError("invalid JSON from model: nope")

        monkeypatch.setattr(topic_deck, "generate_topics", failing_generate)
        with pytest.raises(SystemExit, match="invalid JSON"):
            run_topic_pipeline(_args())

    def test_provider_error_exits(self, pipeline, monkeypatch):
        def unavailable(*args, **kwargs):
            raise RuntimeError("503 UNAVAILABLE")

        monkeypatch.setattr(topic_deck, "generate_topics", unavailable)
        with pytest.raises(SystemExit, match="503 UNAVAILABLE"):
            run_topic_pipeline(_args())
        assert pipeline["deck"] == []


class TestWriteDeck:
    """Test write_deck and image attachment."""

    def test_missing_credentials_skip(self, monkeypatch, capsys):
        def no_credentials():
            raise FileNotFoundError("Missing credentials.json")

        monkeypatch.setattr(topic_deck, "get_google_services", no_credentials)
        topic_deck.write_deck(RESULT["topics"], _args("--presentation-id", "pres", "--sheet-id", "ss"))
        assert "skipping Slides editing" in capsys.readouterr().err

    def test_requires_sheet_id(self, monkeypatch, capsys):
        written = []
        monkeypatch.setattr(topic_deck, "get_google_services", lambda: ("slides", "sheets"))
        monkeypatch.setattr(topic_deck, "write_topics_with_charts", lambda *a: written.append(a))

        topic_deck.write_deck(RESULT["topics"], _args("--presentation-id", "pres"))

        assert written == []
        assert "--sheet-id is required" in capsys.readouterr().err

    def test_writes_with_images(self, monkeypatch):
        written = []
        monkeypatch.setattr(topic_deck, "get_google_services", lambda: ("slides", "sheets"))
        monkeypatch.setattr(topic_deck, "write_topics_with_charts", lambda *a: written.append(a))
        monkeypatch.setattr(topic_deck, "search_best_image", lambda key, cx, query, **kw: "https://x/found.jpg")
        monkeypatch.setattr(topic_deck, "validate_image_url", lambda url, default: url)

        args = _args("--presentation-id", "pres", "--sheet-id", "ss", "--cse-key", "k", "--cse-cx", "c")
        topic_deck.write_deck(RESULT["topics"], args)

        slides, sheets, sheet_id, presentation_id, topics = written[0]
        assert (slides, sheets, sheet_id, presentation_id) == ("slides", "sheets", "ss", "pres")
        assert topics[0]["image_url"] == "https://x/found.jpg"
        assert "image_url" not in RESULT["topics"][0]

    def test_no_search_config_means_no_images(self, monkeypatch):
        monkeypatch.delenv("CSE_API_KEY", raising=False)
        monkeypatch.delenv("CSE_CX", raising=False)
        topics = build_deck_topics(RESULT["topics"], _args())
        assert "image_url" not in topics[0]

    def test_search_failure_uses_default_image(self, monkeypatch):
        def failing_search(*args, **kwargs):
            raise ValueError("no results")

        monkeypatch.setattr(topic_deck, "search_best_image", failing_search)
        monkeypatch.setattr(topic_deck, "validate_image_url", lambda url, default: url or default)

        args = SimpleNamespace(
            img_size="large", img_type="photo", img_color_type="color", img_dominant="",
            img_rights="", img_safe="active", default_image_url="https://x/default.jpg",
        )
        assert topic_deck.find_topic_image("Origins", args, "k", "c") == "https://x/default.jpg"


class TestMain:
    def test_clamps_max(self, monkeypatch):
        seen = []
        monkeypatch.setattr(topic_deck, "run_topic_pipeline", lambda args: seen.append(args))
        main(["--subject", "Cloud security", "--max", "9"])
        assert seen[0].max == 5

    def test_subject_is_required(self):
        with pytest.raises(SystemExit):
            main([])
