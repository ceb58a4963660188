"""Shared fixtures for mathfix tests."""

from __future__ import annotations

from html import escape

import pytest

from mathfix.config import ProcessConfig, reset_process_config
from mathfix.renderer import set_renderer


def fake_render(notation: str, display: bool) -> str:
    """Deterministic stand-in renderer. Notation containing \\fail raises."""
    if "\\fail" in notation:
        raise ValueError(f"cannot render {notation!r}")
    mode = "block" if display else "inline"
    return f'<math display="{mode}"><mi>{escape(notation)}</mi></math>'


class ManualClock:
    """Clock advanced by hand, for deterministic idle deadlines."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset the global renderer and config around every test."""
    set_renderer(None)
    reset_process_config()
    yield
    set_renderer(None)
    reset_process_config()


@pytest.fixture
def renderer():
    return fake_render


@pytest.fixture
def config() -> ProcessConfig:
    return ProcessConfig(inject_styles=False)
