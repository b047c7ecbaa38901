#!/usr/bin/env python3
"""
Usage:
  find-step --index
  find-step --line 'When the user sends a "GET" request'
  find-step --complete 'When the user sends a '
  find-step --undefined

Outputs JSON to stdout.

Assumes workspace root = current working directory (or --root) with
step definitions under the configured ``steps`` globs
(features/steps/**/*.py by default) and features/**/*.feature.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from lsprotocol.converters import get_converter

from .queries import complete, find_definition, validate
from .registry import StepRegistry, validate_configuration
from .settings import Settings
from .sources import find_files, read_file, split_lines
from .usage import recount

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path(".vscode") / "settings.json"

_converter = get_converter()


def load_settings(root: Path, settings_file: Path | None) -> tuple[Settings, Path | None]:
    if settings_file is None:
        candidate = root / DEFAULT_SETTINGS_FILE
        if not candidate.is_file():
            return Settings(), None
        settings_file = candidate
    return Settings.load(settings_file), settings_file


def build_registry(root: Path, settings: Settings) -> StepRegistry:
    registry = StepRegistry(settings)
    registry.build(root)
    recount(registry, root)
    return registry


def build_index(registry: StepRegistry):
    return [
        {
            "id": step.id,
            "text": step.text,
            "file": str(step.path),
            "line": step.line + 1,
            "keyword": step.step_type.value,
            "count": step.count,
        }
        for step in registry
    ]


def find_match(registry: StepRegistry, gherkin_line: str):
    location = find_definition(registry, gherkin_line, [gherkin_line])
    return _converter.unstructure(location) if location else None


def complete_line(registry: StepRegistry, gherkin_line: str):
    items = complete(registry, gherkin_line, 0, [gherkin_line]) or []
    return _converter.unstructure(items)


def list_undefined(registry: StepRegistry, root: Path):
    missing = []
    for f in find_files(root, registry.settings.features_glob or "**/*.feature"):
        text = read_file(f)
        if text is None:
            continue
        lines = split_lines(text)
        for i, line in enumerate(lines):
            diagnostic = validate(registry, line, i, lines)
            if diagnostic:
                missing.append({
                    "feature_file": str(f),
                    "line": i + 1,
                    "text": line.strip(),
                    "message": diagnostic.message,
                })
    return missing


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="find-step")
    parser.add_argument("--index", action="store_true")
    parser.add_argument("--line", type=str)
    parser.add_argument("--complete", type=str)
    parser.add_argument("--undefined", action="store_true")
    parser.add_argument("--root", type=Path, default=Path.cwd())
    parser.add_argument("--settings", type=Path)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = args.root.resolve()
    settings, settings_file = load_settings(root, args.settings)
    if settings_file is not None:
        for diagnostic in validate_configuration(settings_file, settings.steps, root):
            logger.warning(
                "%s:%d: %s",
                settings_file,
                diagnostic.range.start.line + 1,
                diagnostic.message,
            )
    registry = build_registry(root, settings)

    if args.index:
        result = build_index(registry)
    elif args.line:
        result = find_match(registry, args.line)
    elif args.complete:
        result = complete_line(registry, args.complete)
    elif args.undefined:
        result = list_undefined(registry, root)
    else:
        parser.print_help()
        return 0
    print(json.dumps(result, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
