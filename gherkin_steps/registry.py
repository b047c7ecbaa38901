"""
Registry of step definitions collected from a source tree.

Definition lines look like any of::

    Given(/^I have (\\d+) cukes$/, function (count) {
    When('I open the {string} door', async (name) => {
    @then('the door is open')

The registry is rebuilt wholesale by ``build``; usage counts live next to
it and are rebuilt by ``gherkin_steps.usage.recount``.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Sequence
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from lsprotocol import types as lsp

from .gherkin import StepType, all_gherkin_words, definition_step_type
from .patterns import StepCompilationError, compile_step, detail_text, step_text_invariants
from .settings import Settings
from .sources import (
    block_comments,
    clear_comments,
    comment_documentation,
    find_files,
    function_docstrings,
    read_file,
    split_lines,
)

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "gherkin-steps"


@dataclass
class StepDefinition:
    id: str
    pattern: re.Pattern[str]
    partial_pattern: re.Pattern[str]
    text: str
    detail: str
    documentation: str
    location: lsp.Location
    step_type: StepType
    count: int = field(default=0, compare=False)

    @property
    def path(self) -> Path:
        return Path(url2pathname(unquote(urlparse(self.location.uri).path)))

    @property
    def line(self) -> int:
        return self.location.range.start.line


def step_id(text: str) -> str:
    return "step" + hashlib.md5(text.encode("utf-8")).hexdigest()


def definition_regex(settings: Settings) -> re.Pattern[str]:
    """
    keyword, opening delimiter, body, the same delimiter again, then the
    next argument or the end of the call.
    """
    keyword = settings.gherkin_definition_part or (
        f"({all_gherkin_words(settings.languages)}|defineStep|Step|StepDefinition)"
    )
    if not keyword.startswith("("):
        keyword = f"({keyword})"
    opening = f"([{settings.step_regex_symbol}])" if settings.step_regex_symbol else "([/\"'])"
    return re.compile(
        rf"(?P<keyword>{keyword})\(\s*?[rRuU]?(?P<open>{opening})(?P<body>[\s\S]*?)(?P=open)\s*[,)]",
        re.I,
    )


class StepRegistry:
    """Step definitions in scan order, deduplicated by display text."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._definition_re = definition_regex(self.settings)
        self._steps: list[StepDefinition] = []
        self._counts: dict[str, int] = {}
        self._by_id: dict[str, StepDefinition] = {}

    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def steps(self) -> list[StepDefinition]:
        return list(self._steps)

    def build(self, root: Path, step_globs: Sequence[str] | None = None) -> None:
        """Replace the registry content with the steps found under root."""
        root = Path(root)
        globs = self.settings.steps if step_globs is None else step_globs
        steps: list[StepDefinition] = []
        seen: set[str] = set()
        for pattern in globs:
            files = find_files(root, pattern)
            if not files:
                logger.warning("No step files match %r under %s", pattern, root)
            for path in files:
                for step in self.file_steps(path):
                    if step.id in seen:
                        continue
                    seen.add(step.id)
                    step.count = self._counts.get(step.id, 0)
                    steps.append(step)
        self._steps = steps
        self._by_id = {step.id: step for step in steps}
        logger.debug("Registered %d steps from %s", len(steps), root)

    def apply_custom_parameters(self, line: str) -> str:
        for custom in self.settings.custom_parameters:
            line = line.replace(custom.parameter, custom.value)
        return line

    def match_definition(self, line: str) -> re.Match[str] | None:
        return self._definition_re.search(line)

    def file_steps(self, path: Path) -> list[StepDefinition]:
        content = read_file(path)
        if content is None:
            return []
        comments = block_comments(content)
        docstrings = function_docstrings(content) if path.suffix == ".py" else {}
        lines = split_lines(clear_comments(content))
        steps: list[StepDefinition] = []
        for i, raw_line in enumerate(lines):
            line = self.apply_custom_parameters(raw_line)
            match = self.match_definition(line)
            full_line = line
            if not match and i + 1 < len(lines):
                # definitions split over two lines
                next_line = self.apply_custom_parameters(lines[i + 1])
                if next_line and not self.match_definition(next_line):
                    full_line = line + next_line
                    match = self.match_definition(full_line)
            if not match:
                continue
            location = lsp.Location(
                uri=path.as_uri(),
                range=lsp.Range(
                    start=lsp.Position(line=i, character=0),
                    end=lsp.Position(line=i, character=0),
                ),
            )
            comment = comments.get(i)
            if i in docstrings:
                documentation = docstrings[i]
            elif comment:
                documentation = comment_documentation(comment)
            else:
                documentation = full_line.strip()
            steps.extend(
                self.make_steps(
                    full_line,
                    match.group("body"),
                    location,
                    definition_step_type(match.group("keyword"), self.settings.languages),
                    documentation,
                )
            )
        logger.debug("%s: %d steps", path, len(steps))
        return steps

    def make_steps(
        self,
        full_line: str,
        body: str,
        location: lsp.Location,
        step_type: StepType,
        documentation: str,
    ) -> list[StepDefinition]:
        pure_text = self.settings.pure_text_steps
        variants = step_text_invariants(body) if self.settings.steps_invariants else [body]
        detail = detail_text(full_line)
        steps = []
        for variant in variants:
            try:
                compiled = compile_step(variant, pure_text)
            except StepCompilationError as exc:
                logger.debug("Dropping step at %s:%d: %s", location.uri, location.range.start.line, exc)
                continue
            steps.append(
                StepDefinition(
                    id=step_id(compiled.text),
                    pattern=compiled.pattern,
                    partial_pattern=compiled.partial_pattern,
                    text=compiled.text,
                    detail=detail,
                    documentation=documentation,
                    location=location,
                    step_type=step_type,
                )
            )
        return steps

    def find_by_text(self, text: str, step_type: StepType | None = None) -> StepDefinition | None:
        """First step, in scan order, whose full regex matches text."""
        for step in self._steps:
            if step_type is not None and step.step_type is not step_type:
                continue
            if step.pattern.search(text):
                return step
        return None

    def get_count(self, id: str) -> int:
        return self._counts.get(id, 0)

    def increment_count(self, id: str) -> None:
        self._counts[id] = self._counts.get(id, 0) + 1
        step = self._by_id.get(id)
        if step is not None:
            step.count = self._counts[id]

    def reset_counts(self) -> None:
        self._counts = {}

    def refresh_counts(self) -> None:
        for step in self._steps:
            step.count = self.get_count(step.id)


def _text_range(path: Path, text: str) -> lsp.Range:
    content = read_file(path) if path.is_file() else None
    if content:
        for i, line in enumerate(split_lines(content)):
            index = line.find(text)
            if index != -1:
                return lsp.Range(
                    start=lsp.Position(line=i, character=index),
                    end=lsp.Position(line=i, character=index + len(text)),
                )
    return lsp.Range(start=lsp.Position(line=0, character=0), end=lsp.Position(line=0, character=0))


def validate_configuration(
    settings_file: Path, step_globs: Iterable[str], root: Path
) -> list[lsp.Diagnostic]:
    """One warning per steps glob that matches no file."""
    root = Path(root)
    settings_file = Path(settings_file)
    if not settings_file.is_absolute():
        settings_file = root / settings_file
    diagnostics = []
    for pattern in step_globs:
        if find_files(root, pattern):
            continue
        search_term = pattern
        prefix = f"{root.as_posix()}/"
        if search_term.startswith(prefix):
            search_term = search_term[len(prefix):]
        diagnostics.append(
            lsp.Diagnostic(
                range=_text_range(settings_file, f'"{search_term}"'),
                message="No steps files found",
                severity=lsp.DiagnosticSeverity.Warning,
                source=DIAGNOSTIC_SOURCE,
            )
        )
    return diagnostics
