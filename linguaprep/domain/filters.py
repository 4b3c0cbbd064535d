from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from urllib.parse import quote

from .errors import InvalidFilter


class FilterField(str, Enum):
    LANGUAGE = "language"
    DIFFICULTY = "difficulty"
    MODULE = "module"
    SECTION = "section"
    STANDARD_SECTION = "standard_section"


@dataclass(frozen=True)
class FilterClause:
    field: FilterField
    value: str

    def key(self) -> str:
        # Percent-encoded: "=" and "|" are the key separators
        return f"{self.field.value}={quote(self.value, safe='')}"


@dataclass(frozen=True)
class PracticeQuery:
    """
    Validated practice-draw request: at least one tag filter and a bounded limit.

    Clauses are kept sorted by field so equal queries share a cache key.
    """

    clauses: Tuple[FilterClause, ...]
    limit: int

    @classmethod
    def build(
        cls,
        *,
        limit: int,
        max_limit: int,
        language: Optional[str] = None,
        difficulty: Optional[str] = None,
        module: Optional[str] = None,
        section: Optional[str] = None,
        standard_section: Optional[str] = None,
    ) -> "PracticeQuery":
        raw = {
            FilterField.LANGUAGE: language,
            FilterField.DIFFICULTY: difficulty,
            FilterField.MODULE: module,
            FilterField.SECTION: section,
            FilterField.STANDARD_SECTION: standard_section,
        }
        clauses = tuple(
            FilterClause(field=f, value=v.strip())
            for f, v in sorted(raw.items(), key=lambda item: item[0].value)
            if v is not None and v.strip()
        )
        if not clauses:
            raise InvalidFilter(
                "At least one filter parameter (language, difficulty, module, "
                "section, or standard_section) is required"
            )
        if limit < 1 or limit > max_limit:
            raise InvalidFilter(f"limit must be between 1 and {max_limit}")
        return cls(clauses=clauses, limit=limit)

    def cache_key(self) -> str:
        return "|".join(c.key() for c in self.clauses)

    def as_dict(self):
        return {c.field.value: c.value for c in self.clauses}
