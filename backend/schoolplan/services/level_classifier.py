"""Single source of truth for turning a class's free-text level label into a SchoolLevel.

The keyword table is data: institutions rename their levels, so the table is versioned
and can be replaced from a JSON file (``Settings.level_keywords_file``) without touching
the matching logic. Rules are evaluated in order and the first matching keyword wins.
A keyword matches as a whole token: it may sit next to a digit ("cp1") but never
inside a longer word ("ci" does not match "spéciale"), and a keyword edge that is a
digit never touches another digit.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from schoolplan.core.config import get_settings
from schoolplan.core.exceptions import ConfigurationError
from schoolplan.models.school_class import SchoolLevel

logger = logging.getLogger(__name__)


class LevelRule(BaseModel):
    level: SchoolLevel
    keywords: list[str] = Field(min_length=1)

    @field_validator("keywords")
    @classmethod
    def normalize_keywords(cls, value: list[str]) -> list[str]:
        keywords = [item.strip().lower() for item in value if item.strip()]
        if not keywords:
            raise ValueError("A level rule needs at least one non-blank keyword")
        return keywords


class LevelKeywordTable(BaseModel):
    version: str = Field(min_length=1)
    rules: list[LevelRule] = Field(min_length=1)


DEFAULT_LEVEL_KEYWORDS = LevelKeywordTable(
    version="2026.2",
    rules=[
        LevelRule(
            level=SchoolLevel.early_childhood,
            keywords=["maternelle", "petite section", "moyenne section", "grande section"],
        ),
        LevelRule(level=SchoolLevel.primary, keywords=["primaire"]),
        LevelRule(
            level=SchoolLevel.upper_secondary,
            keywords=["2nd-cycle-secondaire", "2nd_cycle", "lycée", "lycee"],
        ),
        LevelRule(
            level=SchoolLevel.lower_secondary,
            keywords=["1er-cycle-secondaire", "1er_cycle", "collège", "college"],
        ),
        LevelRule(
            level=SchoolLevel.upper_secondary,
            keywords=["2nde", "seconde", "1ère", "1ere", "première", "premiere", "tle", "terminale"],
        ),
        LevelRule(
            level=SchoolLevel.lower_secondary,
            keywords=[
                "6e", "6ème", "6eme", "sixième",
                "5e", "5ème", "5eme", "cinquième",
                "4e", "4ème", "4eme", "quatrième",
                "3e", "3ème", "3eme", "troisième",
            ],
        ),
        LevelRule(level=SchoolLevel.primary, keywords=["ci", "cp", "ce1", "ce2", "cm1", "cm2"]),
        LevelRule(level=SchoolLevel.lower_secondary, keywords=["secondaire"]),
    ],
)


def load_keyword_table(path: str | Path) -> LevelKeywordTable:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
        return LevelKeywordTable.model_validate_json(raw)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Level keyword file not found: {path}") from exc
    except (ValidationError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid level keyword file {path}: {exc}") from exc


@lru_cache(maxsize=512)
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    # [^\W\d_] is a letter, [^\W_] a letter or digit.
    before = r"(?<![^\W_])" if keyword[0].isdigit() else r"(?<![^\W\d_])"
    after = r"(?![^\W_])" if keyword[-1].isdigit() else r"(?![^\W\d_])"
    return re.compile(before + re.escape(keyword) + after)


@lru_cache
def get_keyword_table() -> LevelKeywordTable:
    settings = get_settings()
    if settings.level_keywords_file:
        table = load_keyword_table(settings.level_keywords_file)
        logger.info("Loaded level keyword table %s from %s", table.version, settings.level_keywords_file)
        return table
    return DEFAULT_LEVEL_KEYWORDS


def classify_level(
    raw_label: str | None,
    table: LevelKeywordTable | None = None,
    fallback: SchoolLevel | None = None,
) -> SchoolLevel:
    """Map a raw level label to a SchoolLevel. Never fails."""
    table = table or get_keyword_table()
    normalized = (raw_label or "").strip().lower()
    if normalized:
        for rule in table.rules:
            for keyword in rule.keywords:
                if _keyword_pattern(keyword).search(normalized):
                    logger.debug("Level label %r matched %r -> %s", raw_label, keyword, rule.level.value)
                    return rule.level
    level = fallback or get_settings().unknown_level_fallback
    logger.debug("Level label %r matched no keyword, falling back to %s", raw_label, level.value)
    return level
