"""Settings for step discovery, validation and completion."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .gherkin import DEFAULT_LANGUAGES, is_known_language

SETTINGS_PREFIX = "gherkinSteps."
DEFAULT_STEPS = ("features/steps/**/*.py",)
DEFAULT_FEATURES = "**/*.feature"

_KEYS = {
    "steps": "steps",
    "syncfeatures": "syncfeatures",
    "strictGherkinCompletion": "strict_gherkin_completion",
    "strictGherkinValidation": "strict_gherkin_validation",
    "smartSnippets": "smart_snippets",
    "stepsInvariants": "steps_invariants",
    "pureTextSteps": "pure_text_steps",
    "customParameters": "custom_parameters",
    "gherkinDefinitionPart": "gherkin_definition_part",
    "stepRegExSymbol": "step_regex_symbol",
    "gherkinLanguages": "languages",
}


@dataclass(frozen=True)
class CustomParameter:
    """Text replaced verbatim in every step definition line."""

    parameter: str
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.parameter, str) or not isinstance(self.value, str):
            msg = "custom parameters must map a string to a string"
            raise TypeError(msg)
        if not self.parameter:
            msg = "custom parameter must not be empty"
            raise ValueError(msg)


@dataclass(frozen=True)
class Settings:
    """
    steps
        Globs (relative to the workspace root) of step definition files.
    syncfeatures
        ``True`` to count step usages in every ``*.feature`` file, a glob
        to restrict them, ``False`` to skip usage counting.
    strict_gherkin_completion / strict_gherkin_validation
        Only offer / accept steps declared with the same keyword as the
        line (``And`` / ``But`` take the keyword of the line above).
    smart_snippets
        Turn parameters of completed steps into numbered tab stops.
    steps_invariants
        Register one step per alternative of ``(a|b)`` groups.
    pure_text_steps
        Step bodies are plain text with parameters rather than regexes.
    custom_parameters
        Aliases substituted before anything else.
    gherkin_definition_part / step_regex_symbol
        Override the keyword and the opening delimiter of definitions.
    languages
        behave language codes whose step keywords are recognised.
    """

    steps: tuple[str, ...] = DEFAULT_STEPS
    syncfeatures: bool | str = True
    strict_gherkin_completion: bool = False
    strict_gherkin_validation: bool = False
    smart_snippets: bool = False
    steps_invariants: bool = False
    pure_text_steps: bool = False
    custom_parameters: tuple[CustomParameter, ...] = field(default_factory=tuple)
    gherkin_definition_part: str | None = None
    step_regex_symbol: str | None = None
    languages: tuple[str, ...] = DEFAULT_LANGUAGES

    def __post_init__(self) -> None:
        if isinstance(self.steps, str):
            object.__setattr__(self, "steps", (self.steps,))
        for pattern in self.steps:
            if not isinstance(pattern, str) or not pattern.strip():
                msg = "steps must not contain empty globs"
                raise ValueError(msg)
        if not isinstance(self.syncfeatures, (bool, str)):
            msg = "syncfeatures must be a boolean or a glob"
            raise TypeError(msg)
        if isinstance(self.syncfeatures, str) and not self.syncfeatures.strip():
            msg = "syncfeatures glob must not be empty"
            raise ValueError(msg)
        for name in ("gherkin_definition_part", "step_regex_symbol"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                msg = f"{name} must be a string"
                raise TypeError(msg)
        if isinstance(self.languages, str):
            object.__setattr__(self, "languages", (self.languages,))
        for language in self.languages:
            if not is_known_language(language):
                msg = f"unknown gherkin language: {language}"
                raise ValueError(msg)
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "languages", tuple(self.languages))
        object.__setattr__(self, "custom_parameters", tuple(self.custom_parameters))

    @property
    def features_glob(self) -> str | None:
        if self.syncfeatures is True:
            return DEFAULT_FEATURES
        if isinstance(self.syncfeatures, str):
            return self.syncfeatures
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from camelCase keys, bare or ``gherkinSteps.``-prefixed."""
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key.startswith(SETTINGS_PREFIX):
                key = key[len(SETTINGS_PREFIX):]
            name = _KEYS.get(key)
            if name is None:
                continue
            if name == "custom_parameters":
                value = tuple(
                    CustomParameter(p.get("parameter"), p.get("value")) for p in value
                )
            elif name in ("steps", "languages") and isinstance(value, list):
                value = tuple(value)
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Path) -> Settings:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            msg = f"{path}: settings must be a JSON object"
            raise ValueError(msg)
        return cls.from_dict(data)
