"""Keyword tagging backed by an OpenAI-compatible generative model."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

import orjson
from openai import OpenAI, OpenAIError

from doc_registry.core.config import Settings
from doc_registry.core.errors import TaggingError
from doc_registry.core.logging import get_logger
from doc_registry.utils.text import normalize

logger = get_logger(__name__)

MAX_KEYWORDS = 7

PROMPT_TEMPLATE = (
    "จากเรื่องของหนังสือและหมายเหตุต่อไปนี้ ช่วยสกัดคำสำคัญ (keywords) ที่เกี่ยวข้องมา 5-7 คำในภาษาไทย\n"
    'ตอบกลับเป็น JSON รูปแบบ {{"keywords": ["..."]}} เท่านั้น\n\n'
    "เรื่องของหนังสือ: {subject}\n"
    "หมายเหตุ: {notes}\n"
    "---"
)


class Tagger(Protocol):
    def suggest(self, subject: str, notes: str) -> list[str]: ...


class KeywordTagger:
    """Ask the model for 5-7 keywords describing a document."""

    def __init__(self, model: str, client: Any) -> None:
        self.model = model
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "KeywordTagger":
        client = OpenAI(api_key=settings.tagging_api_key, base_url=settings.tagging_base_url)
        return cls(settings.tagging_model, client)

    def suggest(self, subject: str, notes: str) -> list[str]:
        prompt = PROMPT_TEMPLATE.format(subject=subject, notes=notes)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            logger.error("Keyword request failed: %s", exc)
            raise TaggingError(f"Keyword generation failed: {exc}") from exc
        content = response.choices[0].message.content or ""
        return parse_keywords(content)


class NullTagger:
    """Tagger used when keyword generation is switched off."""

    def suggest(self, subject: str, notes: str) -> list[str]:
        return []


def parse_keywords(content: str) -> list[str]:
    """Extract the ``keywords`` list from a model reply."""
    try:
        payload = orjson.loads(_strip_fences(content))
    except orjson.JSONDecodeError as exc:
        raise TaggingError("Keyword response was not valid JSON") from exc
    raw = payload.get("keywords") if isinstance(payload, dict) else None
    if not isinstance(raw, list):
        return []
    return clean_keywords(raw)


def clean_keywords(raw: Sequence[Any]) -> list[str]:
    seen: set[str] = set()
    keywords: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            continue
        keyword = normalize(item)
        if not keyword or keyword.casefold() in seen:
            continue
        seen.add(keyword.casefold())
        keywords.append(keyword)
    return keywords[:MAX_KEYWORDS]


def _strip_fences(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text


__all__ = ["Tagger", "KeywordTagger", "NullTagger", "parse_keywords", "clean_keywords"]
