"""
Bracer - Inline Assembly Fragment Generator for ARM
===================================================

This package generates blocks of ARM (a32/t32) assembly text from small
macro invocations, for splicing into inline assembly. Every expansion
yields a single concatenation expression whose fragments are guaranteed
to join into well-formed text, one instruction per line.

Main Components
---------------
- **tokens**: Classifies raw syntax tokens into four tagged variants
- **conditions**: Maps comparison operators to inverted branch conditions
- **concat**: Splices comma-separated expression lists into one
  concatenation, one item per line
- **labels**: Process-wide unique local label allocation
- **fragments**: The macros themselves (`when`, `a32_within_t32`,
  `read_spsr`, `write_spsr`, `put_fn_in_section`, `set_cpu_control`,
  `a32_fake_blx`)
- **expander**: Parses an invocation, dispatches it and evaluates the
  result to text

Quick Start
-----------
    >>> from bracer import render
    >>> render('read_spsr!("r0")')
    'mrs r0, SPSR'
    >>> print(render('when!(("r0" != "#0") { "add r1, r2, r3" })'), end="")
    cmp r0, #0
    beq .L_bracer_local_label_0
    add r1, r2, r3
    .L_bracer_local_label_0:

Or use the command-line tool:
    $ bracer expand -e 'a32_within_t32!("mov r0, #0")'
"""

__version__ = "0.1.0"

# =============================================================================
# Public API Exports
# =============================================================================

from bracer.config import BracerConfig
from bracer.errors import (
    BracerError,
    ExpansionError,
    MacroSyntaxError,
    ShapeError,
    PatternError,
    UnknownMacroError,
    OutOfRangeError,
    SourceLocation,
)
from bracer.tokens import (
    Group,
    Identifier,
    Punctuation,
    Literal,
    Token,
    classify,
    classify_all,
    materialize,
    materialize_all,
    to_source,
)
from bracer.trees import Delimiter, Spacing, parse_trees
from bracer.conditions import CONDITIONS, Comparison, Condition, match_comparison
from bracer.concat import concat_expression, extend_concat_as_lines
from bracer.labels import LabelAllocator, next_local_label
from bracer.expander import MacroExpander, expand, render

__all__ = [
    "__version__",
    # Configuration
    "BracerConfig",
    # Exception hierarchy
    "BracerError",
    "ExpansionError",
    "MacroSyntaxError",
    "ShapeError",
    "PatternError",
    "UnknownMacroError",
    "OutOfRangeError",
    "SourceLocation",
    # Tokens
    "Group",
    "Identifier",
    "Punctuation",
    "Literal",
    "Token",
    "Delimiter",
    "Spacing",
    "classify",
    "classify_all",
    "materialize",
    "materialize_all",
    "parse_trees",
    "to_source",
    # Comparison matcher
    "CONDITIONS",
    "Comparison",
    "Condition",
    "match_comparison",
    # Normalizer
    "concat_expression",
    "extend_concat_as_lines",
    # Labels
    "LabelAllocator",
    "next_local_label",
    # Expansion
    "MacroExpander",
    "expand",
    "render",
]
