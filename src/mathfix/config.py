"""ContextVar-based processing configuration for mathfix.

Provides context-local configuration using Python's ContextVars (PEP 567).
A MathProcessor carries its own config; the module functions and the
lower-level components fall back to the config active in the current
context.

Usage:
    # Explicit config on the processor
    processor = MathProcessor(doc, config=ProcessConfig(reclassify_brackets=False))

    # Direct component usage (advanced)
    from mathfix.config import set_process_config, reset_process_config, ProcessConfig

    set_process_config(ProcessConfig(verbatim_tags=frozenset({"pre"})))
    try:
        html = process_html(source)
    finally:
        reset_process_config()

    # Or use the context manager
    with process_config_context(ProcessConfig(reclassify_brackets=False)):
        html = process_html(source)

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mathfix.classifier import Classifier


DEFAULT_BREAK_TAGS: frozenset[str] = frozenset({"br", "div", "p"})
DEFAULT_VERBATIM_TAGS: frozenset[str] = frozenset(
    {"pre", "code", "script", "style", "textarea"}
)


@dataclass(frozen=True, slots=True)
class ProcessConfig:
    """Immutable processing configuration.

    Attributes:
        marker_class: Class placed on every container the reconciler
            produces. Anything under it is never scanned again.
        wrapper_class: Extra class on the wrapper that replaces a run
        container_class: Extra class on each rendered math container
        display_attr: Attribute set to "block" on display math containers
        source_attr: Attribute holding the original delimited text
        break_tags: Empty elements that count as a newline inside a run
        verbatim_tags: Elements whose text is never scanned
        classifier: Math heuristic (None uses the default PatternClassifier)
        reclassify_brackets: Promote math-looking (...) and [...] groups
        inject_styles: Add the presentation stylesheet on initialize
        idle_budget: Seconds of work per idle period

    """

    marker_class: str = "math-processed"
    wrapper_class: str = "math-processed-wrapper"
    container_class: str = "math-container"
    display_attr: str = "data-display"
    source_attr: str = "data-source"
    break_tags: frozenset[str] = DEFAULT_BREAK_TAGS
    verbatim_tags: frozenset[str] = DEFAULT_VERBATIM_TAGS
    classifier: Classifier | None = None
    reclassify_brackets: bool = True
    inject_styles: bool = True
    idle_budget: float = 0.05

    @classmethod
    def from_dict(cls, config_dict: dict) -> "ProcessConfig":
        """Create ProcessConfig from dictionary.

        Only includes keys that are valid ProcessConfig fields; unknown keys
        are silently ignored. Tag collections are converted to frozensets.

        Args:
            config_dict: Dictionary with config values. Keys should match
                ProcessConfig attribute names.

        Returns:
            New ProcessConfig instance with values from dict.

        Example:
            >>> config = ProcessConfig.from_dict({
            ...     "reclassify_brackets": False,
            ...     "verbatim_tags": ["pre", "code", "kbd"],
            ...     "unknown_key": "ignored",
            ... })
            >>> config.reclassify_brackets
            False

        """
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        for key in ("break_tags", "verbatim_tags"):
            if key in filtered:
                filtered[key] = frozenset(tag.lower() for tag in filtered[key])
        return cls(**filtered)


_DEFAULT_CONFIG: ProcessConfig = ProcessConfig()

_process_config: ContextVar[ProcessConfig] = ContextVar(
    "process_config",
    default=_DEFAULT_CONFIG,
)


def get_process_config() -> ProcessConfig:
    """Get the processing configuration active in this context."""
    return _process_config.get()


def set_process_config(config: ProcessConfig) -> None:
    """Set processing configuration for the current context.

    Args:
        config: ProcessConfig instance to use for this context.

    """
    _process_config.set(config)


def reset_process_config() -> None:
    """Reset to the module-level default configuration."""
    _process_config.set(_DEFAULT_CONFIG)


@contextmanager
def process_config_context(config: ProcessConfig) -> Iterator[None]:
    """Context manager for temporary config changes.

    Args:
        config: ProcessConfig to use within the context.

    Yields:
        None

    Example:
        >>> with process_config_context(ProcessConfig(reclassify_brackets=False)):
        ...     html = process_html("Area (x^2)")
        >>> # Automatically reset to previous config

    """
    previous = _process_config.get()
    _process_config.set(config)
    try:
        yield
    finally:
        _process_config.set(previous)


__all__ = [
    "DEFAULT_BREAK_TAGS",
    "DEFAULT_VERBATIM_TAGS",
    "ProcessConfig",
    "get_process_config",
    "process_config_context",
    "reset_process_config",
    "set_process_config",
]
