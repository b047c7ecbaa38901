"""
Compile step definition patterns into regular expressions.

Two kinds of definitions are supported:

  - pattern text: the definition body already is a regular expression
    (``/^I have (\\d+) cukes$/``), optionally mixed with Cucumber
    expression parameters, optional text and alternatives;
  - pure text: the definition body is literal text with parameters
    (``I have {int} cukes``), everything else must match itself.

Each definition yields a full regex, a partial regex that accepts any
whitespace-delimited prefix of the step (used while a line is still
being typed) and a display text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class StepCompilationError(ValueError):
    """A step definition did not produce a valid regular expression."""

    def __init__(self, step: str, reason: str) -> None:
        super().__init__(f"cannot compile step {step!r}: {reason}")
        self.step = step
        self.reason = reason


# Order matters: every entry is applied to the whole text before the next.
SPECIAL_PARAMETERS = (
    # Ruby interpolation, e.g. #{count}
    (re.compile(r"#\{(.*?)\}"), r".*"),
    (re.compile(r"\{float\}"), r"-?\d*\.?\d+"),
    (re.compile(r"\{int\}"), r"-?\d+"),
    (re.compile(r"\{stringInDoubleQuotes\}"), r'"[^"]+"'),
    (re.compile(r"\{word\}"), r"[^\s]+"),
    (re.compile(r"\{string\}"), r"""(?:"[^"]*"|'[^']*')"""),
    (re.compile(r"\{\}"), r".*"),
)

OPTIONAL_TEXT_RE = re.compile(r"\(([a-z]+)\)")
ALTERNATIVE_TEXT_RE = re.compile(r"[a-zA-Z]+(?:/[a-zA-Z]+)+")
CUSTOM_PARAMETER_RE = re.compile(r"(?<!\\)\{(?![\d,])(.*?)\}")
ALTERNATION_GROUP_RE = re.compile(r"(\([^)()]+\|[^()]+\))")

PURE_TEXT_SPECIALS_RE = re.compile(r"[-\[\]/{}()*+?.\\^$|]")
# a slash the author already escaped is left alone
PATTERN_TEXT_SPECIALS_RE = re.compile(r"(?<!\\)/")

# Injected fragments are parked behind these while the text is escaped.
_SENTINEL = "\x00"
_SENTINEL_RE = re.compile(_SENTINEL + r"(\d+)" + _SENTINEL)


def escape_pure_text(text: str) -> str:
    return PURE_TEXT_SPECIALS_RE.sub(r"\\\g<0>", text)


def escape_pattern_text(text: str) -> str:
    return PATTERN_TEXT_SPECIALS_RE.sub(r"\\\g<0>", text)


class _Fragments:
    """Keeps regex fragments out of the way of the escaping pass."""

    def __init__(self) -> None:
        self.items: list[str] = []

    def park(self, fragment: str) -> str:
        self.items.append(fragment)
        return f"{_SENTINEL}{len(self.items) - 1}{_SENTINEL}"

    def restore(self, text: str) -> str:
        return _SENTINEL_RE.sub(lambda m: self.items[int(m.group(1))], text)


def _rewrite(step: str, fragments: _Fragments) -> str:
    for parameter, change in SPECIAL_PARAMETERS:
        step = parameter.sub(lambda m, change=change: fragments.park(change), step)

    # optional text: (s) -> (s)?
    step = OPTIONAL_TEXT_RE.sub(lambda m: fragments.park(f"({m.group(1)})?"), step)

    # alternative text: a/b/c -> (a|b|c)
    step = ALTERNATIVE_TEXT_RE.sub(
        lambda m: fragments.park("({})".format(m.group(0).replace("/", "|"))), step
    )

    # any other {name} is a custom parameter type
    step = CUSTOM_PARAMETER_RE.sub(lambda m: fragments.park(".*"), step)
    return step


def regex_text(step: str, pure_text: bool = False, anchored: bool = True) -> str:
    """
    Regex source for a step body.

    Pure text is anchored on both sides; pattern text keeps whatever
    anchors the author wrote.
    """
    fragments = _Fragments()
    step = _rewrite(step, fragments)
    escape = escape_pure_text if pure_text else escape_pattern_text
    step = fragments.restore(escape(step))
    if pure_text:
        return f"^{step}$" if anchored else f"^{step}"
    return step


def split_step_parts(text: str) -> list[str]:
    """
    Split on spaces, but keep a parenthesised group (with any nesting) in
    one part even when it contains spaces.
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    escaped = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
            continue
        if char == "\\":
            current.append(char)
            escaped = True
        elif depth:
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
            current.append(char)
        elif char == " ":
            parts.append("".join(current))
            current = []
        else:
            if char == "(":
                depth = 1
            current.append(char)
    parts.append("".join(current))
    return parts


def partial_regex_text(step: str, pure_text: bool = False) -> str:
    """
    Same as the full regex, but any string that is a leading run of the
    step's space-separated parts (including the empty string) matches.
    """
    parts = split_step_parts(regex_text(step, pure_text))
    return "^" + "( |$)".join(f"({part}|$)" for part in parts)


def step_text_invariants(step: str) -> list[str]:
    """
    Expand every ``(a|b|c)`` group into one step per alternative. Several
    groups give the cross product, in left-to-right order.
    """
    result: list[str] = []
    pending = [step]
    while pending:
        current = pending.pop(0)
        match = ALTERNATION_GROUP_RE.search(current)
        if not match:
            result.append(current)
            continue
        group = match.group(1)
        inner = group[3:] if group.startswith("(?:") else group[1:]
        variants = inner[:-1].split("|")
        pending[0:0] = [
            current[: match.start()] + variant + current[match.end():]
            for variant in variants
        ]
    return result


def display_text(step: str) -> str:
    """Text shown for a regex step: no backslashes, no ^ / $ anchors."""
    step = step.replace("\\", "")
    return re.sub(r"^\^|\$$", "", step)


def detail_text(line: str) -> str:
    """Definition line without its function body."""
    # the body opens at the first brace with no quote after it
    return re.sub(r"\s*(?:=>\s*)?\{[^'\"`]*$", "", line, flags=re.S).strip()


@dataclass(frozen=True)
class CompiledStep:
    text: str
    pattern: re.Pattern[str]
    partial_pattern: re.Pattern[str]


def compile_step(step: str, pure_text: bool = False) -> CompiledStep:
    """Pure text steps are shown as written; regex steps through display_text."""
    try:
        pattern = re.compile(regex_text(step, pure_text))
    except re.error as exc:
        raise StepCompilationError(step, str(exc)) from exc
    try:
        partial_pattern = re.compile(partial_regex_text(step, pure_text))
    except re.error as exc:
        logger.debug("Partial regex for %r failed (%s), using full regex", step, exc)
        partial_pattern = pattern
    return CompiledStep(
        text=step if pure_text else display_text(step),
        pattern=pattern,
        partial_pattern=partial_pattern,
    )
