"""Finding, reading and cleaning the files steps are collected from."""

from __future__ import annotations

import ast
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r"\r?\n")
BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
LINE_COMMENT_RE = re.compile(r"^\s*(//|#).*$", re.M)
DOC_TAG_RE = re.compile(r"^@(description|desc)\b\s*(.*)")


def split_lines(text: str) -> list[str]:
    return LINE_SPLIT_RE.split(text)


def find_files(root: Path, pattern: str) -> list[Path]:
    """
    Resolve a glob (``features/steps/**/*.py``) against root. Absolute
    globs are resolved against their own anchor.
    """
    if Path(pattern).is_absolute():
        base = Path(Path(pattern).anchor)
        pattern = str(Path(pattern).relative_to(base))
    else:
        base = root
    return sorted(p.resolve() for p in base.glob(pattern) if p.is_file())


def read_file(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable file %s: %s", path, exc)
        return None


def clear_comments(text: str) -> str:
    """
    Blank out comments so nothing inside them looks like a step
    definition. Line numbers are kept: block comments keep their newlines.
    """
    text = BLOCK_COMMENT_RE.sub(lambda m: "\n" * m.group(0).count("\n"), text)
    return LINE_COMMENT_RE.sub("", text)


def block_comments(text: str) -> dict[int, str]:
    """
    Raw block comments keyed by the index of the line right after the
    comment's closing line.
    """
    comments: dict[int, str] = {}
    current: list[str] = []
    in_comment = False
    for i, line in enumerate(split_lines(text)):
        if not in_comment and re.match(r"^\s*/\*", line):
            current = [line]
            in_comment = True
        elif in_comment:
            current.append(line)
        if in_comment and "*/" in line:
            comments[i + 1] = "\n".join(current) + "\n"
            in_comment = False
    return comments


def function_docstrings(text: str) -> dict[int, str]:
    """
    Docstrings of decorated Python functions (behave step implementations),
    keyed by the 0-based line of each decorator.
    """
    try:
        tree = ast.parse(text)
    except (SyntaxError, ValueError) as exc:
        logger.debug("Cannot parse step module for docstrings: %s", exc)
        return {}
    docstrings: dict[int, str] = {}
    for node in ast.walk(tree):
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        doc = ast.get_docstring(node)
        if not doc:
            continue
        for decorator in node.decorator_list:
            docstrings[decorator.lineno - 1] = doc
    return docstrings


def comment_documentation(raw: str) -> str:
    """
    Documentation text of a JSDoc-style comment: the free text, or the
    ``@description`` / ``@desc`` tag when there is no free text.
    """
    body = raw.strip()
    body = re.sub(r"^/\*+", "", body)
    body = re.sub(r"\*+/$", "", body)
    lines = [re.sub(r"^\s*\*?\s?", "", line).rstrip() for line in body.splitlines()]
    free: list[str] = []
    tags: list[str] = []
    for line in lines:
        if line.startswith("@"):
            tags.append(line)
        elif tags:
            tags[-1] += " " + line.strip()
        else:
            free.append(line)

    description = "\n".join(free).strip()
    if description:
        return description
    for tag in tags:
        match = DOC_TAG_RE.match(tag)
        if match and match.group(2).strip():
            return match.group(2).strip()
    return raw
