"""Mention Detector: did an AI response recommend the business, and at what rank?

Three stages:
  1. Deterministic string match on the normalized business name
     (direct containment, then a word-proximity fallback)
  2. AI verification, only when stage 1 finds nothing
  3. Position extraction from the sentence structure, when appeared

The detector never raises: any unexpected error degrades to "not appeared".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol

from app.gateway.types import AiBackend, QueryResult

logger = logging.getLogger(__name__)

# Applied in order, each to the result of the previous one
_SUFFIX_PATTERNS = [
    re.compile(r",?\s+llc\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+inc\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+co\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+ltd\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+company\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+corp\.?\s*$", re.IGNORECASE),
    re.compile(r",?\s+corporation\.?\s*$", re.IGNORECASE),
]

# Max distance (chars) between first and last significant word for a proximity match
_PROXIMITY_WINDOW = 50
_MIN_SIGNIFICANT_WORD_LEN = 3

_SENTENCE_SPLIT = re.compile(r"[.!?]\s+")
_NUMBERED_ITEM = re.compile(r"^\d+[.)]\s")
_ORDINAL_ITEM = re.compile(
    r"^(first|second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth)[,.]?\s",
    re.IGNORECASE,
)
_BULLET_ITEM = re.compile(r"^[•\-*]\s")
_LEADING_NUMBER = re.compile(r"^(\d+)[.)]\s")
_SUBSTANTIAL_SENTENCE_LEN = 20
_MAX_LIST_POSITION = 10

VERIFICATION_PROMPT = (
    "Does this response mention the business '{business_name}'? Answer only: YES or NO.\n\n"
    "Response: {response_text}"
)


class SupportsQuery(Protocol):
    async def query(self, prompt_text: str, backend: AiBackend | str) -> QueryResult: ...


@dataclass
class DetectionResult:
    appeared: bool
    position: int | None = None


def normalize_business_name(name: str) -> str:
    """Lowercase, trim and drop trailing corporate suffixes.

    >>> normalize_business_name("Acme Plumbing, LLC")
    'acme plumbing'
    """
    normalized = name.lower().strip()
    for pattern in _SUFFIX_PATTERNS:
        normalized = pattern.sub("", normalized)
    return normalized.strip()


def fuzzy_match(business_name: str, response_text: str) -> bool:
    """Stage 1: deterministic match of the business name in the response."""
    normalized_name = normalize_business_name(business_name)
    haystack = response_text.lower()

    if normalized_name and normalized_name in haystack:
        return True

    words = [w for w in normalized_name.split() if len(w) >= _MIN_SIGNIFICANT_WORD_LEN]
    if len(words) <= 1:
        return False
    if not all(w in haystack for w in words):
        return False

    first_index = haystack.find(words[0])
    if first_index == -1:
        return False
    last_index = haystack.find(words[-1], first_index)
    return last_index != -1 and last_index - first_index < _PROXIMITY_WINDOW


def _counts_as_recommendation(sentence: str) -> bool:
    return bool(
        _NUMBERED_ITEM.match(sentence)
        or _ORDINAL_ITEM.match(sentence)
        or _BULLET_ITEM.match(sentence)
        or len(sentence) > _SUBSTANTIAL_SENTENCE_LEN
    )


def extract_position(business_name: str, response_text: str) -> int | None:
    """1-based rank of the first sentence mentioning the business.

    Returns None when no sentence contains the normalized name (e.g. the match
    came from the proximity fallback or from AI verification).
    """
    normalized_name = normalize_business_name(business_name)
    sentences = [s for s in _SENTENCE_SPLIT.split(response_text) if s.strip()]

    mention_index = next(
        (i for i, s in enumerate(sentences) if normalized_name in s.lower()),
        None,
    )
    if mention_index is None:
        return None

    position = 1
    for sentence in sentences[:mention_index]:
        if _counts_as_recommendation(sentence.strip()):
            position += 1

    # An explicit list number on the mention sentence wins
    number = _LEADING_NUMBER.match(sentences[mention_index])
    if number:
        listed = int(number.group(1))
        if 1 <= listed <= _MAX_LIST_POSITION:
            return listed

    return max(1, position)


class MentionDetector:
    """Decides whether a business appears in an AI response."""

    verification_backend = AiBackend.CHATGPT

    def __init__(self, client: SupportsQuery):
        self.client = client

    async def _verify_with_ai(self, business_name: str, response_text: str) -> bool:
        prompt = VERIFICATION_PROMPT.format(business_name=business_name, response_text=response_text)
        result = await self.client.query(prompt, self.verification_backend)
        if not result.success or not result.response_text:
            logger.warning("AI verification failed for %r: %s", business_name, result.error_message)
            return False
        return "YES" in result.response_text.strip().upper()

    async def detect(
        self,
        business_name: str,
        response_text: str,
        backend: AiBackend | str,
    ) -> DetectionResult:
        backend_name = getattr(backend, "value", backend)
        try:
            if fuzzy_match(business_name, response_text):
                position = extract_position(business_name, response_text)
                logger.info(
                    "Business %r found via string match in %s response (position=%s)",
                    business_name,
                    backend_name,
                    position,
                )
                return DetectionResult(appeared=True, position=position)

            logger.debug("No string match for %r in %s response, asking AI", business_name, backend_name)
            if not await self._verify_with_ai(business_name, response_text):
                return DetectionResult(appeared=False, position=None)

            position = extract_position(business_name, response_text)
            logger.info(
                "Business %r verified via AI in %s response (position=%s)",
                business_name,
                backend_name,
                position,
            )
            return DetectionResult(appeared=True, position=position)
        except Exception:
            logger.exception("Mention detection failed for %r (%s)", business_name, backend_name)
            return DetectionResult(appeared=False, position=None)
