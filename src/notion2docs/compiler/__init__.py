"""Pure block-tree to positional-edit compiler.

Nothing in this package performs I/O.  External data is reached only
through the optional capabilities on :class:`CompileContext`.
"""

from .blocks import (
    BULLET_PRESETS,
    INDENT_MARKER,
    BlockCompiler,
    dispatch,
    supported_kinds,
)
from .context import CompileContext
from .page import PageCompiler, property_table
from .rich_text import flatten, span_styles, text_style_for
from .tables import compile_table, pipe_table

__all__ = [
    "BULLET_PRESETS",
    "INDENT_MARKER",
    "BlockCompiler",
    "CompileContext",
    "PageCompiler",
    "compile_table",
    "dispatch",
    "flatten",
    "pipe_table",
    "property_table",
    "span_styles",
    "supported_kinds",
    "text_style_for",
]
