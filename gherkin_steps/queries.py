"""Validation, go-to-definition and completion for feature file lines."""

from __future__ import annotations

import itertools
import re

from lsprotocol import types as lsp

from .context import Document, match_step_line, resolve_step_type
from .gherkin import StepType
from .patterns import regex_text, split_step_parts
from .registry import DIAGNOSTIC_SOURCE, StepRegistry
from .settings import Settings

SORT_LETTERS = 26
SORT_WIDTH = 5

# (optional brace) any char / escaped char / char class, a quantifier, (optional brace)
SNIPPET_RE = re.compile(
    r"\(?(?:\\.|\.|\[[^\]]+\])(?:\*|\+|\{[^}]+\})\)?"
    r"|\{(?![\d,])[^{}]*\}"
)
QUOTED_CLASS_RE = re.compile(r'"\(?\[\^"\][+*]\)?"')
LAST_WORD_RE = re.compile(r"[^\s]+$")


def sort_prefix(count: int, width: int = SORT_WIDTH) -> str:
    """
    Fixed-width letters that sort higher counts first: 0 -> 'ZZZZZ',
    1 -> 'ZZZZY', 26 -> 'ZZZYZ'.
    """
    count = min(max(count, 0), SORT_LETTERS ** width - 1)
    letters = []
    for power in reversed(range(width)):
        digit, count = divmod(count, SORT_LETTERS ** power)
        letters.append(chr(ord("Z") - digit))
    return "".join(letters)


def _strict_type(
    enabled: bool, registry: StepRegistry, keyword: str, line_number: int, document: Document
) -> StepType | None:
    if not enabled:
        return None
    return resolve_step_type(keyword, line_number, document, registry.settings.languages)


def validate(
    registry: StepRegistry, line: str, line_number: int, document: Document
) -> lsp.Diagnostic | None:
    """Warning for a step line no definition matches, None otherwise."""
    line = line.rstrip()
    match = match_step_line(registry, line, document, line_number)
    if not match:
        return None
    indent, keyword = match.group(1), match.group(2)
    step_type = _strict_type(
        registry.settings.strict_gherkin_validation, registry, keyword, line_number, document
    )
    if registry.find_by_text(match.group(4), step_type):
        return None
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=line_number, character=len(indent)),
            end=lsp.Position(line=line_number, character=len(line)),
        ),
        message=f'Was unable to find step for "{line.strip()}"',
        severity=lsp.DiagnosticSeverity.Warning,
        source=DIAGNOSTIC_SOURCE,
    )


def find_definition(
    registry: StepRegistry, line: str, document: Document, line_number: int = 0
) -> lsp.Location | None:
    match = match_step_line(registry, line, document, line_number)
    if not match:
        return None
    step = registry.find_by_text(match.group(4))
    return step.location if step else None


def completion_insert_text(step_text: str, step_part: str, settings: Settings) -> str:
    """
    The part of step_text still to be typed after step_part, with
    parameters turned into snippets (or tidied up).
    """
    result = step_text
    parts = split_step_parts(step_text)
    for i in range(1, len(parts) + 1):
        try:
            typed = re.compile(regex_text(" ".join(parts[:i]), settings.pure_text_steps, anchored=False))
        except re.error:
            continue
        if not typed.match(step_part):
            result = " ".join(parts[i - 1:])
            break

    if settings.smart_snippets:
        numbers = itertools.count(1)
        result = SNIPPET_RE.sub(lambda m: "${%d:}" % next(numbers), result)
    else:
        result = QUOTED_CLASS_RE.sub('""', result)

    if settings.pure_text_steps:
        result = result.replace("\\", "")
        result = re.sub(r"^\^|\$$", "", result)
    return result


def complete(
    registry: StepRegistry, line: str, line_number: int, document: Document
) -> list[lsp.CompletionItem] | None:
    """Completion items for the step being typed on line, best used first."""
    match = match_step_line(registry, line, document, line_number)
    if not match:
        return None
    # the last word may still be incomplete
    step_part = LAST_WORD_RE.sub("", match.group(4))
    settings = registry.settings
    step_type = _strict_type(
        settings.strict_gherkin_completion, registry, match.group(2), line_number, document
    )
    items = []
    for step in registry:
        if step_type is not None and step.step_type is not step_type:
            continue
        if not step.partial_pattern.search(step_part):
            continue
        items.append(
            lsp.CompletionItem(
                label=step.text,
                kind=lsp.CompletionItemKind.Snippet,
                data=step.id,
                detail=step.detail,
                documentation=step.documentation,
                sort_text=f"{sort_prefix(step.count)}_{step.text}",
                insert_text=completion_insert_text(step.text, step_part, settings),
                insert_text_format=lsp.InsertTextFormat.Snippet,
            )
        )
    items.sort(key=lambda item: item.sort_text)
    return items or None


def resolve_completion(registry: StepRegistry, item: lsp.CompletionItem) -> lsp.CompletionItem:
    """An accepted completion counts as one more use of its step."""
    if item.data:
        registry.increment_count(item.data)
    return item
