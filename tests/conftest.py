"""Shared pytest fixtures for gherkin-step-support tests."""

from __future__ import annotations

import textwrap
import typing as typ
from pathlib import Path

import pytest

from gherkin_steps import Settings, StepRegistry


@pytest.fixture
def make_workspace(tmp_path: Path) -> typ.Callable[[dict[str, str]], Path]:
    """Write ``{relative path: content}`` under tmp_path and return the root."""

    def _make(files: dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def make_registry(
    make_workspace: typ.Callable[[dict[str, str]], Path],
) -> typ.Callable[..., StepRegistry]:
    """Build a registry over the given files; steps default to ``steps/*``."""

    def _make(files: dict[str, str], **settings: typ.Any) -> StepRegistry:
        settings.setdefault("steps", ("steps/*",))
        root = make_workspace(files)
        registry = StepRegistry(Settings(**settings))
        registry.build(root)
        return registry

    return _make
