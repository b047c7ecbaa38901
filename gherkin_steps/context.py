"""Reading step lines in the context of their feature file."""

from __future__ import annotations

import re
import typing as typ

from .gherkin import (
    DEFAULT_LANGUAGES,
    PRIMARY_STEP_TYPES,
    StepType,
    examples_re,
    get_step_type,
    match_gherkin,
)
from .sources import split_lines

if typ.TYPE_CHECKING:
    from .registry import StepRegistry

Document = typ.Union[str, typ.Sequence[str]]

OUTLINE_VAR_RE = re.compile(r"<(.*?)>")
TABLE_CELL_SPLIT_RE = re.compile(r"\s*\|\s*")


def document_lines(document: Document) -> typ.Sequence[str]:
    return split_lines(document) if isinstance(document, str) else document


def outline_bindings(
    document: Document,
    line_number: int = 0,
    languages: tuple[str, ...] = DEFAULT_LANGUAGES,
) -> dict[str, str]:
    """
    Values for ``<name>`` placeholders, taken from the first Examples
    table at or after line_number: header row for the names, first data
    row for the values.
    """
    lines = document_lines(document)
    examples = examples_re(languages)
    for i in range(max(line_number, 0), len(lines) - 2):
        if not examples.match(lines[i]):
            continue
        names = TABLE_CELL_SPLIT_RE.split(lines[i + 1])[1:-1]
        values = TABLE_CELL_SPLIT_RE.split(lines[i + 2])[1:-1]
        return {name: value for name, value in zip(names, values) if value}
    return {}


def match_step_line(
    registry: StepRegistry,
    line: str,
    document: Document,
    line_number: int = 0,
) -> re.Match[str] | None:
    """
    Match a step line, filling in scenario outline placeholders first.

    Outline values are tried quoted (``"value"``) and bare; the quoted
    line wins when it matches a known step.
    """
    languages = registry.settings.languages
    names = OUTLINE_VAR_RE.findall(line)
    if not names:
        return match_gherkin(line, languages)

    bindings = outline_bindings(document, line_number, languages)
    bare_line = quoted_line = line
    for name in names:
        value = bindings.get(name)
        if value:
            bare_line = bare_line.replace(f"<{name}>", value, 1)
            quoted_line = quoted_line.replace(f"<{name}>", f'"{value}"', 1)

    quoted_match = match_gherkin(quoted_line, languages)
    if quoted_match and quoted_match.group(4) and registry.find_by_text(quoted_match.group(4)):
        return quoted_match
    return match_gherkin(bare_line, languages)


def resolve_step_type(
    keyword: str,
    line_number: int,
    document: Document,
    languages: tuple[str, ...] = DEFAULT_LANGUAGES,
) -> StepType:
    """
    Category a step line belongs to. ``And`` / ``But`` take the category
    of the closest Given/When/Then line above them, or OTHER when there
    is none.
    """
    step_type = get_step_type(keyword, languages)
    if step_type not in (StepType.AND, StepType.BUT):
        return step_type
    lines = document_lines(document)
    for line in reversed(lines[:line_number]):
        match = match_gherkin(line, languages)
        if not match:
            continue
        previous = get_step_type(match.group(2), languages)
        if previous in PRIMARY_STEP_TYPES:
            return previous
    return StepType.OTHER
