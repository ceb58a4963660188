"""
mathfix: Render math notation embedded in live document text

Finds ``$$...$$``, ``$...$``, ``\\[...\\]`` and ``\\(...\\)`` spans in the
text of a mutable document tree, renders each through a formula renderer,
and splices the result back in place. Rendered output is marked and never
scanned again; code and other verbatim regions are never touched; content
added later is picked up incrementally in idle time.

Quick Start:
    >>> from mathfix import process_html
    >>> html = process_html("<p>Compute $x^2$ please.</p>")

    >>> # Or keep a live document up to date
    >>> from mathfix import MathProcessor, parse_html
    >>> doc = parse_html("<p>Compute $x^2$ please.</p>")
    >>> processor = MathProcessor(doc)
    >>> processor.initialize()
    True
    >>> _ = processor.run_until_idle()

Custom Renderers:
    >>> from mathfix import set_renderer
    >>> set_renderer(lambda notation, display: f"<tex>{notation}</tex>")

Installation:
    pip install mathfix              # Includes latex2mathml for MathML output
"""

from mathfix.classifier import Classifier, PatternClassifier, looks_like_math
from mathfix.config import (
    ProcessConfig,
    get_process_config,
    process_config_context,
    reset_process_config,
    set_process_config,
)
from mathfix.delimiters import (
    DELIMITERS,
    DISPLAY_BRACKETS,
    DISPLAY_DOLLARS,
    INLINE_DOLLARS,
    INLINE_PARENS,
    DelimiterSpec,
    has_delimiter,
)
from mathfix.dom import (
    Comment,
    Document,
    Element,
    MutationObserver,
    MutationRecord,
    Node,
    Text,
)
from mathfix.errors import (
    MathfixError,
    RenderFailure,
    RendererUnavailable,
    TreeError,
)
from mathfix.htmltree import parse_fragment, parse_html, to_html
from mathfix.processor import MathProcessor, process_html, recover_html
from mathfix.profiling import (
    ReconcileAccumulator,
    get_reconcile_accumulator,
    profiled_reconcile,
)
from mathfix.reclassify import reclassify
from mathfix.reconcile import ReconcileOutcome, Reconciler, reconcile, recover_original
from mathfix.renderer import (
    Renderer,
    is_renderer_loaded,
    load_renderer,
    render_math,
    set_renderer,
)
from mathfix.runs import Run, merge_run
from mathfix.scanner import MathSegment, Segment, TextSegment, scan
from mathfix.scheduler import IdleDeadline, IdleScheduler, process_in_slices
from mathfix.watcher import ChangeWatcher

__version__ = "0.1.0"


__all__ = [  # noqa: RUF022: grouped by category for maintainability
    # Version
    "__version__",
    # High-level
    "MathProcessor",
    "process_html",
    "recover_html",
    # Core pipeline
    "scan",
    "reclassify",
    "merge_run",
    "reconcile",
    "recover_original",
    "Reconciler",
    "ReconcileOutcome",
    "Run",
    "Segment",
    "TextSegment",
    "MathSegment",
    # Delimiters
    "DelimiterSpec",
    "DELIMITERS",
    "DISPLAY_DOLLARS",
    "INLINE_DOLLARS",
    "DISPLAY_BRACKETS",
    "INLINE_PARENS",
    "has_delimiter",
    # Classification
    "Classifier",
    "PatternClassifier",
    "looks_like_math",
    # Renderer
    "Renderer",
    "set_renderer",
    "load_renderer",
    "render_math",
    "is_renderer_loaded",
    # Document tree
    "Node",
    "Text",
    "Comment",
    "Element",
    "Document",
    "MutationObserver",
    "MutationRecord",
    "parse_html",
    "parse_fragment",
    "to_html",
    # Scheduling
    "IdleScheduler",
    "IdleDeadline",
    "process_in_slices",
    "ChangeWatcher",
    # Errors
    "MathfixError",
    "RendererUnavailable",
    "RenderFailure",
    "TreeError",
    # Profiling
    "ReconcileAccumulator",
    "profiled_reconcile",
    "get_reconcile_accumulator",
    # Configuration (ContextVar-based)
    "ProcessConfig",
    "get_process_config",
    "set_process_config",
    "reset_process_config",
    "process_config_context",
]
