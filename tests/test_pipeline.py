"""Tests for the refinement pipeline and the LLM classifier."""

import json

import httpx
import pytest

from manuscript_kb.config import get_settings
from manuscript_kb.extract.candidates import Candidate, ExtractionResult
from manuscript_kb.extract.llm_classifier import (
    LLMEntityClassifier,
    build_prompt,
    clamp_confidence,
    validate_type,
)
from manuscript_kb.extract.pipeline import (
    classify_candidate,
    noise_reason,
    refine_candidates,
    to_extraction_result,
)
from manuscript_kb.llm import LLMClient
from manuscript_kb.models.entities import EntityType


class FakeClient(LLMClient):
    """LLMClient that returns canned responses and records prompts."""

    def __init__(self, responses):
        super().__init__()
        self.responses = list(responses)
        self.prompts = []

    def generate(self, prompt, system=None, **kwargs):
        self.prompts.append(prompt)
        return self.responses.pop(0) if self.responses else ""


def candidate(text, band="high", entity_type=EntityType.CHARACTER, contexts=None):
    return Candidate(
        text=text,
        suggested_type=entity_type,
        confidence=band,
        score={"high": 70.0, "medium": 45.0, "low": 30.0}[band],
        occurrences=4,
        chapter_spread=2,
        sample_contexts=contexts or [],
    )


def llm_answer(*items):
    return "```json\n" + json.dumps(list(items)) + "\n```"


@pytest.fixture
def extraction():
    return ExtractionResult(
        candidates=[
            candidate("Knox"),
            candidate("Monday", "medium"),
            candidate("Zenthra", "low", contexts=["...flew to Zenthra..."]),
            candidate("Blackwood", "low"),
        ],
        existing_entities=["Vex"],
    )


class TestNoiseRefilter:
    """Test the pipeline's second noise pass."""

    def test_reasons(self):
        """Each noise rule reports its own reason."""
        assert noise_reason("Monday") == "noise_word"
        assert noise_reason("Saginaw Street") == "street_address"
        assert noise_reason("DAMN") == "caps_noise"
        assert noise_reason("Knox") is None
        assert noise_reason("MSS") is None


class TestGazetteerOverride:
    """Test numeric confidence and gazetteer overrides."""

    def test_band_to_number(self):
        """Bands map to 80/50/30 and a name with no evidence is classified by default."""
        item = classify_candidate(candidate("Knox", "medium"), 5)
        assert item.confidence == 50
        assert item.classified_by == "default"
        assert item.total_chapters == 5

    def test_stronger_hit_wins(self):
        """A gazetteer hit above the band confidence replaces type and confidence."""
        item = classify_candidate(candidate("Shanghai", "medium"), 5)
        assert item.type == EntityType.LOCATION
        assert item.confidence == 90
        assert item.classified_by == "gazetteer"

    def test_weaker_hit_ignored(self):
        """A keyword hit no stronger than the band leaves the confidence alone."""
        item = classify_candidate(candidate("Hart Plaza", "high", EntityType.LOCATION), 5)
        assert item.type == EntityType.LOCATION
        assert item.confidence == 80
        assert item.classified_by == "gazetteer"

    def test_acronym_classified_by_shape(self):
        """Acronyms are typed by their shape."""
        item = classify_candidate(candidate("MSS", "medium", EntityType.ORGANIZATION), 5)
        assert item.classified_by == "shape"

    def test_context_source(self):
        """Names typed from their surrounding text report context."""
        item = classify_candidate(candidate("Zenthra", "low", contexts=["...flew to Zenthra..."]), 5)
        assert item.classified_by == "context"


class TestRefine:
    """Test deterministic refinement."""

    def test_lists_and_stats(self, extraction):
        """Candidates split into entities, filtered and review lists with matching stats."""
        result = refine_candidates(extraction, total_chapters=3)

        assert [c.name for c in result.entities] == ["Knox", "Zenthra", "Blackwood"]
        assert [c.name for c in result.filtered] == ["Monday"]
        assert result.filtered[0].filter_reason == "noise_word"
        assert [c.name for c in result.needs_review] == ["Zenthra", "Blackwood"]

        stats = result.stats
        assert stats.total_candidates == 4
        assert stats.filtered_as_noise == 1
        assert stats.auto_classified == 1
        assert stats.needs_review == 2
        assert stats.llm_enhanced == 0

    def test_threshold(self, extraction):
        """A higher review threshold widens the review queue."""
        result = refine_candidates(extraction, total_chapters=3, review_threshold=90)
        assert len(result.needs_review) == 3

    def test_llm_not_called_without_review_queue(self):
        """The LLM is not called when nothing needs review."""
        client = FakeClient([])
        result = refine_candidates(
            ExtractionResult(candidates=[candidate("Knox")]),
            total_chapters=1,
            use_llm=True,
            classifier=LLMEntityClassifier(client=client),
        )
        assert client.prompts == []
        assert result.stats.auto_classified == 1

    def test_to_extraction_result(self, extraction):
        """Refined entities convert back to banded candidates."""
        result = refine_candidates(extraction, total_chapters=3)
        plain = to_extraction_result(result, extraction.existing_entities)
        assert [c.text for c in plain.candidates] == ["Knox", "Zenthra", "Blackwood"]
        assert plain.candidates[0].confidence == "high"
        assert plain.existing_entities == ["Vex"]

    def test_to_dict(self, extraction):
        """Pipeline results serialize with plain values."""
        data = refine_candidates(extraction, total_chapters=3).to_dict()
        assert data["stats"]["needs_review"] == 2
        assert data["filtered"][0]["type"] == "character"


class TestLLMRefinement:
    """Test LLM verdicts flowing through the pipeline."""

    def test_verdicts_applied(self, extraction):
        """LLM verdicts retype candidates or filter them as noise."""
        client = FakeClient([
            llm_answer(
                {"name": "Zenthra", "type": "location", "isNoise": False, "confidence": 88, "reasoning": "a city"},
                {"name": "Blackwod", "type": "character", "isNoise": True, "confidence": 70, "reasoning": "a tree"},
            )
        ])
        result = refine_candidates(
            extraction,
            total_chapters=3,
            use_llm=True,
            classifier=LLMEntityClassifier(client=client),
            book_title="Dark Tide",
            genre="Thriller",
        )

        zenthra = next(c for c in result.entities if c.name == "Zenthra")
        assert zenthra.type == EntityType.LOCATION
        assert zenthra.confidence == 88
        assert zenthra.classified_by == "llm"

        blackwood = next(c for c in result.filtered if c.name == "Blackwood")
        assert blackwood.filter_reason == "llm_noise: a tree"

        assert result.needs_review == []
        assert result.stats.llm_enhanced == 1
        assert result.stats.filtered_as_noise == 2
        assert 'Book: "Dark Tide" (Thriller)' in client.prompts[0]

    def test_empty_response_keeps_base_results(self, extraction, caplog):
        """An empty model response leaves the deterministic results."""
        client = FakeClient([""])
        with caplog.at_level("WARNING"):
            result = refine_candidates(
                extraction,
                total_chapters=3,
                use_llm=True,
                classifier=LLMEntityClassifier(client=client),
            )
        assert [c.name for c in result.needs_review] == ["Zenthra", "Blackwood"]
        assert result.stats.llm_enhanced == 0
        assert "LLM classification unavailable" in caplog.text

    def test_unreachable_backend(self, extraction, monkeypatch):
        """An unreachable backend leaves the deterministic results."""
        def refuse(*args, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(httpx, "post", refuse)
        result = refine_candidates(extraction, total_chapters=3, use_llm=True)
        assert [c.name for c in result.needs_review] == ["Zenthra", "Blackwood"]

    @pytest.mark.parametrize("body", [{"response": None}, ["not", "a", "dict"], {"response": 42}])
    def test_malformed_backend_body(self, extraction, monkeypatch, body):
        """A 200 response without generated text keeps the base results."""
        monkeypatch.setattr(httpx, "post", lambda *a, **k: httpx.Response(200, json=body))
        result = refine_candidates(extraction, total_chapters=3, use_llm=True)
        assert [c.name for c in result.needs_review] == ["Zenthra", "Blackwood"]
        assert result.stats.llm_enhanced == 0

    def test_classifier_error_keeps_base_results(self, extraction, caplog):
        """Any exception from the classifier is logged and the base results are kept."""

        class BrokenClassifier(LLMEntityClassifier):
            def classify(self, candidates, book_title="Unknown", genre="Fiction"):
                raise RuntimeError("model exploded")

        with caplog.at_level("WARNING"):
            result = refine_candidates(
                extraction,
                total_chapters=3,
                use_llm=True,
                classifier=BrokenClassifier(client=FakeClient([])),
            )
        assert [c.name for c in result.needs_review] == ["Zenthra", "Blackwood"]
        assert "LLM classification failed: model exploded" in caplog.text

    def test_overflowing_confidence(self, extraction):
        """A confidence too large for an int falls back to the default."""
        client = FakeClient(['[{"name": "Zenthra", "type": "location", "isNoise": false, "confidence": 1e999}]'])
        result = refine_candidates(
            extraction,
            total_chapters=3,
            use_llm=True,
            classifier=LLMEntityClassifier(client=client),
        )
        zenthra = next(c for c in result.entities if c.name == "Zenthra")
        assert zenthra.type == EntityType.LOCATION
        assert zenthra.confidence == 50
        assert zenthra.classified_by == "llm"

    def test_string_noise_flag_ignored(self, extraction):
        """An isNoise value that is not a real boolean never filters a candidate."""
        client = FakeClient([
            llm_answer({"name": "Zenthra", "type": "event", "isNoise": "false", "confidence": 90}),
        ])
        result = refine_candidates(
            extraction,
            total_chapters=3,
            use_llm=True,
            classifier=LLMEntityClassifier(client=client),
        )
        zenthra = next(c for c in result.entities if c.name == "Zenthra")
        assert zenthra.type == EntityType.CHARACTER
        assert zenthra.confidence == 30
        assert zenthra.classified_by == "context"
        assert "Zenthra" not in [c.name for c in result.filtered]


class TestLLMClassifier:
    """Test batching, parsing and name matching."""

    def review(self, *names):
        result = refine_candidates(
            ExtractionResult(candidates=[candidate(n, "low") for n in names]),
            total_chapters=1,
        )
        return result.needs_review

    def test_batches(self):
        """Candidates are sent in batches of the configured size."""
        client = FakeClient([])
        LLMEntityClassifier(client=client, batch_size=2).classify(self.review("Aa", "Bb", "Cc", "Dd", "Ee"))
        assert len(client.prompts) == 3

    def test_single_object_response(self):
        """A lone JSON object is treated as a one-item array."""
        client = FakeClient(['{"name": "Zenthra", "type": "LOCATION", "is_noise": false, "confidence": 75}'])
        (verdict,) = LLMEntityClassifier(client=client).classify(self.review("Zenthra"))
        assert verdict.type == EntityType.LOCATION
        assert verdict.confidence == 75
        assert not verdict.is_noise

    def test_skipped_candidates_omitted(self):
        """Candidates the model skips get no verdict."""
        client = FakeClient([llm_answer({"name": "Zenthra", "type": "location", "confidence": 80})])
        results = LLMEntityClassifier(client=client).classify(self.review("Zenthra", "Morrow"))
        assert [r.name for r in results] == ["Zenthra"]

    def test_fuzzy_match_uses_candidate_name(self):
        """Near-miss answer names match and keep the candidate's spelling."""
        client = FakeClient([llm_answer({"name": "Blackwod", "type": "character", "confidence": 60})])
        (verdict,) = LLMEntityClassifier(client=client).classify(self.review("Blackwood"))
        assert verdict.name == "Blackwood"

    def test_distant_names_not_matched(self):
        """Answer names below the match threshold are ignored."""
        client = FakeClient([llm_answer({"name": "Someone Else", "type": "character", "confidence": 60})])
        assert LLMEntityClassifier(client=client).classify(self.review("Blackwood")) == []

    @pytest.mark.parametrize("flag", ["false", "true", 0, None])
    def test_non_boolean_noise_flag_skipped(self, flag):
        """Answers whose isNoise is not a real boolean produce no verdict."""
        client = FakeClient([llm_answer({"name": "Zenthra", "type": "location", "isNoise": flag})])
        assert LLMEntityClassifier(client=client).classify(self.review("Zenthra")) == []

    def test_garbage_response(self):
        """Prose without JSON yields no verdicts."""
        client = FakeClient(["I cannot help with that."])
        assert LLMEntityClassifier(client=client).classify(self.review("Blackwood")) == []

    def test_prompt_contexts_capped(self):
        """The prompt shows at most three contexts per candidate."""
        items = self.review("Zenthra")
        items[0].contexts = ["one", "two", "three", "four"]
        prompt = build_prompt(items, "Dark Tide", "Fiction")
        assert '"Zenthra" (appears 4x across 2 chapters)' in prompt
        assert '"three"' in prompt
        assert '"four"' not in prompt


class TestValidation:
    """Test LLM field validation."""

    def test_validate_type(self):
        """Unknown or missing types become character."""
        assert validate_type("Location") == EntityType.LOCATION
        assert validate_type("event") == EntityType.EVENT
        assert validate_type("spaceship") == EntityType.CHARACTER
        assert validate_type(None) == EntityType.CHARACTER

    @pytest.mark.parametrize(
        "value, expected",
        [(150, 100), (-5, 0), (0, 50), (None, 50), ("abc", 50), ("77.9", 77), (42, 42), (float("inf"), 50)],
    )
    def test_clamp_confidence(self, value, expected):
        """Confidence is clamped to 0-100 with 50 for missing values."""
        assert clamp_confidence(value) == expected


class TestLLMClient:
    """Test the HTTP client against a patched transport."""

    def test_ollama_payload(self, monkeypatch):
        """Ollama requests carry the system prompt and configured timeout."""
        calls = []

        def fake_post(url, json=None, timeout=None, **kwargs):
            calls.append((url, json, timeout))
            return httpx.Response(200, json={"response": "  [] "})

        monkeypatch.setattr(httpx, "post", fake_post)
        client = LLMClient(provider="ollama")
        assert client.generate("Classify", system="Be terse") == "[]"

        url, payload, timeout = calls[0]
        assert url.endswith("/api/generate")
        assert payload["system"] == "Be terse"
        assert payload["stream"] is False
        assert timeout == 60.0

    def test_error_status(self, monkeypatch):
        """Error statuses yield an empty string."""
        monkeypatch.setattr(httpx, "post", lambda *a, **k: httpx.Response(500, text="boom"))
        assert LLMClient(provider="ollama").generate("Classify") == ""

    def test_huggingface_without_key_falls_back(self, monkeypatch):
        """Without an API key the HF provider uses Ollama."""
        urls = []

        def fake_post(url, **kwargs):
            urls.append(url)
            return httpx.Response(200, json={"response": "ok"})

        monkeypatch.setattr(httpx, "post", fake_post)
        assert LLMClient(provider="huggingface").generate("Classify") == "ok"
        assert urls[0].endswith("/api/generate")

    def test_huggingface_chat_format(self, monkeypatch):
        """Chat-completion responses are unwrapped and stripped."""
        monkeypatch.setenv("MKB_HF_API_KEY", "secret")
        response = {"choices": [{"message": {"content": " [1] "}}]}
        monkeypatch.setattr(httpx, "post", lambda *a, **k: httpx.Response(200, json=response))

        get_settings.cache_clear()
        assert LLMClient(provider="huggingface").generate("Classify") == "[1]"

    @pytest.mark.parametrize(
        "body",
        [
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": None}]},
            {"choices": ["text"]},
            [{"generated_text": None}],
            ["text"],
            {"unexpected": True},
        ],
    )
    def test_huggingface_malformed_body(self, monkeypatch, body):
        """HF bodies without generated text yield an empty string."""
        monkeypatch.setenv("MKB_HF_API_KEY", "secret")
        monkeypatch.setattr(httpx, "post", lambda *a, **k: httpx.Response(200, json=body))

        get_settings.cache_clear()
        assert LLMClient(provider="huggingface").generate("Classify") == ""

    def test_ollama_non_text_response(self, monkeypatch):
        """A null Ollama response field yields an empty string."""
        monkeypatch.setattr(httpx, "post", lambda *a, **k: httpx.Response(200, json={"response": None}))
        assert LLMClient(provider="ollama").generate("Classify") == ""

    def test_extract_json(self):
        """JSON is found in code fences, surrounding prose or bare text."""
        client = LLMClient()
        assert client.extract_json('```json\n[{"a": 1}]\n```') == [{"a": 1}]
        assert client.extract_json('Sure! [{"a": 1}] Hope that helps.') == [{"a": 1}]
        assert client.extract_json('Result: {"a": 1}') == {"a": 1}
        assert client.extract_json("no json here") is None
        assert client.extract_json("") is None
