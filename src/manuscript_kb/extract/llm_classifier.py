"""Optional LLM classification for ambiguous extraction candidates.

Best-effort only: any failure yields no classifications, and candidates the
model skips keep their deterministic type.
"""

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Optional

from rapidfuzz import fuzz, process

from ..config import get_settings
from ..llm import LLMClient
from ..models.entities import EntityType

if TYPE_CHECKING:
    from .pipeline import ClassifiedCandidate

logger = logging.getLogger(__name__)

NAME_MATCH_THRESHOLD = 90
DEFAULT_CONFIDENCE = 50
PROMPT_CONTEXTS = 3

SYSTEM_PROMPT = """You are a literary entity classifier. Classify entity candidates extracted from a novel.

For each candidate, determine:
- type: one of "character", "location", "organization", "artifact", "concept", "event"
- isNoise: true if this is a common word, not a real entity
- confidence: 0-100 how certain you are
- reasoning: brief explanation (10 words max)

Respond with a JSON array. Example:
[{"name":"Knox","type":"character","isNoise":false,"confidence":95,"reasoning":"protagonist name, appears with dialogue verbs"}]"""


@dataclass
class LLMClassification:
    """The model's verdict on one candidate."""

    name: str
    type: EntityType
    confidence: int
    is_noise: bool
    reasoning: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        return data


def validate_type(value: object) -> EntityType:
    """Map the model's type string onto EntityType; unknown values become character."""
    try:
        return EntityType(str(value).lower())
    except ValueError:
        return EntityType.CHARACTER


def clamp_confidence(value: object) -> int:
    try:
        confidence = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CONFIDENCE
    # A zero confidence counts as missing
    if confidence == 0:
        return DEFAULT_CONFIDENCE
    return max(0, min(100, confidence))


def build_prompt(candidates: list["ClassifiedCandidate"], book_title: str, genre: str) -> str:
    """Build the user prompt listing each candidate with up to three contexts."""
    entries = []
    for i, cand in enumerate(candidates, start=1):
        contexts = "\n".join(f'  "{ctx}"' for ctx in cand.contexts[:PROMPT_CONTEXTS])
        header = f'{i}. "{cand.name}" (appears {cand.frequency}x across {cand.chapter_spread} chapters)'
        entries.append(f"{header}\n{contexts}" if contexts else header)

    candidate_list = "\n\n".join(entries)
    return (
        f'Book: "{book_title}" ({genre})\n\n'
        f"Classify these entity candidates:\n\n"
        f"{candidate_list}\n\n"
        f"Respond ONLY with a JSON array. No other text."
    )


class LLMEntityClassifier:
    """Classify candidates in batches through an LLMClient.

    Usage:
        classifier = LLMEntityClassifier()
        results = classifier.classify(review_candidates, book_title="Dark Tide")
    """

    def __init__(self, client: Optional[LLMClient] = None, batch_size: Optional[int] = None):
        self.settings = get_settings()
        self.client = client or LLMClient()
        self.batch_size = batch_size or self.settings.llm_batch_size

    def classify(
        self,
        candidates: list["ClassifiedCandidate"],
        book_title: str = "Unknown",
        genre: str = "Fiction",
    ) -> list[LLMClassification]:
        """Classify candidates, batch by batch.

        Args:
            candidates: Candidates to send, typically the review queue
            book_title: Title given to the model for context
            genre: Genre given to the model for context

        Returns:
            One classification per candidate the model answered for
        """
        results: list[LLMClassification] = []
        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start : start + self.batch_size]
            results.extend(self._classify_batch(batch, book_title, genre))
            logger.debug(
                "LLM classified %d/%d candidates",
                min(start + self.batch_size, len(candidates)),
                len(candidates),
            )
        return results

    def _classify_batch(
        self,
        batch: list["ClassifiedCandidate"],
        book_title: str,
        genre: str,
    ) -> list[LLMClassification]:
        response = self.client.generate(build_prompt(batch, book_title, genre), system=SYSTEM_PROMPT)
        parsed = self.client.extract_json(response)

        if isinstance(parsed, dict):
            parsed = [parsed]
        if not isinstance(parsed, list):
            if response:
                logger.warning("Could not parse LLM response: %s", response[:200])
            return []

        answers: dict[str, dict] = {}
        for item in parsed:
            if isinstance(item, dict) and isinstance(item.get("name"), str):
                answers.setdefault(item["name"], item)

        results = []
        for cand in batch:
            item = self._match(cand.name, answers)
            if item is None:
                logger.debug("LLM did not classify %r", cand.name)
                continue
            is_noise = item.get("isNoise", item.get("is_noise", False))
            if not isinstance(is_noise, bool):
                logger.debug("Ignoring LLM answer for %r with non-boolean isNoise %r", cand.name, is_noise)
                continue
            results.append(
                LLMClassification(
                    name=cand.name,
                    type=validate_type(item.get("type")),
                    confidence=clamp_confidence(item.get("confidence")),
                    is_noise=is_noise,
                    reasoning=str(item.get("reasoning") or ""),
                )
            )
        return results

    @staticmethod
    def _match(name: str, answers: dict[str, dict]) -> dict | None:
        """Find the model's answer for a name: exact first, then fuzzy."""
        if name in answers:
            return answers[name]
        if not answers:
            return None

        result = process.extractOne(
            name,
            answers.keys(),
            scorer=fuzz.ratio,
            score_cutoff=NAME_MATCH_THRESHOLD,
        )
        if result:
            return answers[result[0]]
        return None
