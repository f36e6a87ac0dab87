from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from quizchat.models import Language


class Translator(Protocol):
    def translate(self, key: str, language: Language) -> str: ...


@dataclass(frozen=True, slots=True)
class CatalogTranslator:
    """Dictionary-backed translator.

    Missing (or empty) translations fall back to the key itself; callers treat
    that as ordinary display text.
    """

    catalog: Mapping[Language, Mapping[str, str]] = field(default_factory=dict)

    def translate(self, key: str, language: Language) -> str:
        return self.catalog.get(language, {}).get(key) or key

    def languages(self) -> tuple[Language, ...]:
        return tuple(self.catalog.keys())
