"""Count how often each registered step is used by feature files."""

from __future__ import annotations

import logging
from pathlib import Path

from .context import match_step_line
from .registry import StepRegistry
from .sources import find_files, read_file, split_lines

logger = logging.getLogger(__name__)


def count_document(registry: StepRegistry, text: str) -> int:
    """Add the step usages of one feature file; returns how many matched."""
    lines = split_lines(text)
    matched = 0
    for i, line in enumerate(lines):
        match = match_step_line(registry, line, lines, i)
        if not match:
            continue
        step = registry.find_by_text(match.group(4))
        if step:
            registry.increment_count(step.id)
            matched += 1
    return matched


def recount(registry: StepRegistry, root: Path, feature_glob: str | None = None) -> None:
    """
    Recompute usage counts from scratch over every feature file matching
    feature_glob (the configured ``syncfeatures`` glob by default).
    """
    if feature_glob is None:
        feature_glob = registry.settings.features_glob
    registry.reset_counts()
    if feature_glob:
        for path in find_files(Path(root), feature_glob):
            text = read_file(path)
            if text is None:
                continue
            matched = count_document(registry, text)
            logger.debug("%s: %d step usages", path, matched)
    registry.refresh_counts()
