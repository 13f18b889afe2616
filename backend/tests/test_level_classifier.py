import json

import pytest

from schoolplan.core.exceptions import ConfigurationError
from schoolplan.models.school_class import SchoolLevel
from schoolplan.services.level_classifier import (
    DEFAULT_LEVEL_KEYWORDS,
    LevelKeywordTable,
    LevelRule,
    classify_level,
    load_keyword_table,
)


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Maternelle", SchoolLevel.early_childhood),
        ("Grande Section", SchoolLevel.early_childhood),
        ("primaire", SchoolLevel.primary),
        ("CP1", SchoolLevel.primary),
        ("CM2", SchoolLevel.primary),
        ("6ème", SchoolLevel.lower_secondary),
        ("3eme B", SchoolLevel.lower_secondary),
        ("Collège", SchoolLevel.lower_secondary),
        ("1er-cycle-secondaire", SchoolLevel.lower_secondary),
        ("2nde A", SchoolLevel.upper_secondary),
        ("1ère S", SchoolLevel.upper_secondary),
        ("Tle D", SchoolLevel.upper_secondary),
        ("Terminale", SchoolLevel.upper_secondary),
        ("2nd-cycle-secondaire", SchoolLevel.upper_secondary),
    ],
)
def test_classify_known_labels(label, expected):
    assert classify_level(label) == expected


def test_classify_is_case_and_whitespace_insensitive():
    assert classify_level("  MATERNELLE  ") == SchoolLevel.early_childhood
    assert classify_level("  maternelle") == classify_level("Maternelle")


def test_first_matching_rule_wins():
    # "primaire" comes before the grade tokens.
    assert classify_level("Primaire 6e") == SchoolLevel.primary
    # The cycle token is checked before the grade tokens.
    assert classify_level("2nd-cycle-secondaire 3e") == SchoolLevel.upper_secondary


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("CM2 groupe 3", SchoolLevel.primary),
        ("CE1 - 4", SchoolLevel.primary),
        ("CI", SchoolLevel.primary),
        ("6e", SchoolLevel.lower_secondary),
        ("Troisième C", SchoolLevel.lower_secondary),
    ],
)
def test_keywords_match_whole_tokens(label, expected):
    assert classify_level(label, fallback=SchoolLevel.early_childhood) == expected


@pytest.mark.parametrize("label", ["Spéciale", "Classe 5", "16e promotion", "Cpe"])
def test_keywords_do_not_match_inside_longer_tokens(label):
    assert classify_level(label, fallback=SchoolLevel.early_childhood) == SchoolLevel.early_childhood


@pytest.mark.parametrize("label", ["", None, "   ", "Atelier libre"])
def test_unknown_labels_fall_back_without_failing(label):
    assert classify_level(label) == SchoolLevel.lower_secondary
    assert classify_level(label, fallback=SchoolLevel.primary) == SchoolLevel.primary


def test_every_default_keyword_classifies_deterministically():
    for rule in DEFAULT_LEVEL_KEYWORDS.rules:
        for keyword in rule.keywords:
            first = classify_level(keyword)
            assert first == classify_level(keyword)
            assert isinstance(first, SchoolLevel)


def test_custom_table_replaces_vocabulary():
    table = LevelKeywordTable(
        version="custom-1",
        rules=[
            LevelRule(level=SchoolLevel.upper_secondary, keywords=["Lycée"]),
            LevelRule(level=SchoolLevel.primary, keywords=["Grade"]),
        ],
    )
    assert table.rules[0].keywords == ["lycée"]
    assert classify_level("Grade 3", table=table) == SchoolLevel.primary
    assert classify_level("Maternelle", table=table, fallback=SchoolLevel.early_childhood) == SchoolLevel.early_childhood


def test_load_keyword_table_from_file(tmp_path):
    path = tmp_path / "levels.json"
    path.write_text(
        json.dumps({"version": "2027.1", "rules": [{"level": "primary", "keywords": ["Elementary"]}]}),
        encoding="utf-8",
    )
    table = load_keyword_table(path)
    assert table.version == "2027.1"
    assert classify_level("elementary school", table=table) == SchoolLevel.primary


def test_load_keyword_table_rejects_missing_and_invalid_files(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_keyword_table(tmp_path / "missing.json")

    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"version": "x", "rules": [{"level": "college", "keywords": ["a"]}]}), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid level keyword file"):
        load_keyword_table(path)
