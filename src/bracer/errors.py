"""
Bracer Error Hierarchy
======================

This module defines the exception hierarchy for the whole package. All
exceptions inherit from BracerError, so callers can catch every
expansion failure with a single except clause.

Exception Hierarchy
-------------------
BracerError (base)
└── ExpansionError (anything that aborts a macro expansion)
    ├── MacroSyntaxError - source text cannot be tokenized
    ├── ShapeError - wrong token arity or a missing group
    ├── PatternError - tokens match no recognised pattern or literal value
    │   └── UnknownMacroError - no macro registered under that name
    └── OutOfRangeError - register or mode name not in its validity list

Design Philosophy
-----------------
Expansion is all-or-nothing. A generated fragment that is only partly
right cannot be embedded safely in the surrounding program, so every error
aborts the expansion at the point of detection. Nothing is retried and
nothing is degraded.

Error messages follow this format:
    filename:line:column: error: argument N: description
    source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class BracerError(Exception):
    """
    Base exception for all bracer errors.

        try:
            expander.render('read_spsr!("r15")')
        except BracerError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in macro source text.

    Attributes:
        filename: Name of the source (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Expansion Exceptions
# =============================================================================

class ExpansionError(BracerError):
    """
    Base exception for errors that abort a macro expansion.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
        argument: 1-indexed argument position that failed (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        argument: Optional[int] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        self.argument = argument
        super().__init__(self._format_message())

    def attach_location(
        self,
        location: Optional[SourceLocation],
        source_line: Optional[str] = None,
    ) -> "ExpansionError":
        """
        Fill in a location for an error raised without one.

        Fragment assemblers work on tokens that may carry no position, so
        the expander attaches the position of the macro invocation before
        the error propagates. An existing location is kept.

        Returns:
            self, for use in a raise statement
        """
        if self.location is None and location is not None:
            self.location = location
            self.source_line = source_line
            self.args = (self._format_message(),)
        return self

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            <input>:1:14: error: argument 1: register name `r15` is not on the permitted list
                read_spsr!("r15")
                           ^
            hint: allowed registers: r0, R0, r1, ...
        """
        message = self.message
        if self.argument is not None:
            message = f"argument {self.argument}: {message}"

        parts = []
        if self.location:
            parts.append(f"{self.location}: error: {message}")
        else:
            parts.append(f"error: {message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class MacroSyntaxError(ExpansionError):
    """
    Syntax error in macro source text.

    Raised by the lexer and tree builder.

    Examples:
        - Unexpected character
        - Unterminated string or character literal
        - Unbalanced or mismatched delimiters
    """
    pass


class ShapeError(ExpansionError):
    """
    Wrong token arity or a missing required group.

    Examples:
        - `when!` without a body group
        - `read_spsr!` given two literals
        - Two separators in a row inside `concat!`
    """
    pass


class PatternError(ExpansionError):
    """
    The tokens match no entry of a closed pattern table.

    Raised for unrecognised comparison shapes and for literal values that
    are not in the allowed set (such as `irq_masked = maybe`). The
    offending shape is stored on `shape` when one was matched against.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        argument: Optional[int] = None,
        shape: Optional[str] = None,
    ):
        self.shape = shape
        if shape is not None:
            message = f"{message}: `{shape}`"
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
            argument=argument,
        )


class UnknownMacroError(PatternError):
    """
    No macro is registered under the requested name.

    The expander suggests similarly-named macros when it can, which helps
    catch typos such as `read_sprs!`.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        similar_names: Optional[list[str]] = None,
    ):
        self.name = name
        self.similar_names = similar_names or []

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown macro '{name}'",
            location=location,
            hint=hint,
        )


class OutOfRangeError(ExpansionError):
    """
    A register or mode name is not present in its validity list.

    Attributes:
        value: The rejected value
        allowed: The values that would have been accepted
    """

    def __init__(
        self,
        what: str,
        value: str,
        allowed: tuple[str, ...] | list[str],
        location: Optional[SourceLocation] = None,
        argument: Optional[int] = None,
    ):
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f"{what} `{value}` is not on the permitted list",
            location=location,
            hint=f"allowed: {', '.join(self.allowed)}",
            argument=argument,
        )
