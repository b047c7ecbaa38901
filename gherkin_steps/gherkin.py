"""Gherkin step keywords and step-line matching."""

from __future__ import annotations

import enum
import functools
import re

from behave.i18n import languages as i18n_languages

DEFAULT_LANGUAGES = ("en",)


class StepType(enum.Enum):
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"
    AND = "And"
    BUT = "But"
    OTHER = "Other"


PRIMARY_STEP_TYPES = (StepType.GIVEN, StepType.WHEN, StepType.THEN)

_CATEGORY_KEYS = (
    ("given", StepType.GIVEN),
    ("when", StepType.WHEN),
    ("then", StepType.THEN),
    ("and", StepType.AND),
    ("but", StepType.BUT),
)


def _words(language: str, key: str) -> list[str]:
    try:
        words = i18n_languages[language][key]
    except KeyError:
        msg = f"unknown gherkin language: {language}"
        raise ValueError(msg) from None
    return [w.strip() for w in words if w.strip() and w.strip() != "*"]


@functools.lru_cache(maxsize=None)
def keyword_table(languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> dict[str, StepType]:
    """
    Map the step keywords of the given behave languages to their category.
    The generic '*' keyword is left out; a word listed under several
    categories keeps the first one.
    """
    table: dict[str, StepType] = {}
    for language in languages:
        for key, step_type in _CATEGORY_KEYS:
            for word in _words(language, key):
                table.setdefault(word.lower(), step_type)
    return table


@functools.lru_cache(maxsize=None)
def all_gherkin_words(languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> str:
    """Regex alternation of every step keyword, longest first."""
    words = {w for language in languages for key, _ in _CATEGORY_KEYS for w in _words(language, key)}
    return "|".join(re.escape(w) for w in sorted(words, key=lambda w: (-len(w), w)))


@functools.lru_cache(maxsize=None)
def examples_re(languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> re.Pattern[str]:
    words = {w for language in languages for w in _words(language, "examples")}
    alternation = "|".join(re.escape(w) for w in sorted(words, key=lambda w: (-len(w), w)))
    return re.compile(rf"^\s*({alternation}):.*$")


@functools.lru_cache(maxsize=None)
def gherkin_line_re(languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> re.Pattern[str]:
    # groups: indent, keyword, separator, step text
    return re.compile(rf"^(\s*)({all_gherkin_words(languages)})(\s+)(.*)")


def match_gherkin(line: str, languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> re.Match[str] | None:
    return gherkin_line_re(languages).match(line)


def get_step_type(word: str, languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> StepType:
    return keyword_table(languages).get(word.strip().lower(), StepType.OTHER)


def definition_step_type(word: str, languages: tuple[str, ...] = DEFAULT_LANGUAGES) -> StepType:
    """
    Category of a step definition, decided by the keyword it is declared
    with. Continuations and generic helpers (And, But, Step, defineStep)
    are not tied to any primary category.
    """
    step_type = get_step_type(word, languages)
    if step_type in PRIMARY_STEP_TYPES:
        return step_type
    return StepType.OTHER


def is_known_language(language: str) -> bool:
    return language in i18n_languages
