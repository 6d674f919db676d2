"""
Raw Token Trees
===============

The lexer produces a flat token stream. This module nests it into token
trees, which mirror the host's syntax tokens: a bracketed group owning its
inner trees, an identifier, a single punctuation character with its
spacing, or a literal. Every tree records where it came from in the
source.

Raw trees are what bracer.tokens classifies into the tagged variants that
the rest of the package matches on, and what those variants materialize
back into.

Example
-------
>>> from bracer.trees import parse_trees
>>> [tree] = parse_trees('("r0" == "r1")')
>>> tree.delimiter
<Delimiter.PARENTHESIS: '()'>
>>> len(tree.stream)
4
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from bracer.errors import MacroSyntaxError, SourceLocation
from bracer.lexer import Lexer, Token, TokenType


# =============================================================================
# Delimiters and Spacing
# =============================================================================

class Delimiter(Enum):
    """Bracket kind of a group. The value is the open/close pair."""

    PARENTHESIS = "()"
    BRACKET = "[]"
    BRACE = "{}"

    @property
    def open(self) -> str:
        return self.value[0]

    @property
    def close(self) -> str:
        return self.value[1]

    @classmethod
    def from_open(cls, char: str) -> "Delimiter":
        for delimiter in cls:
            if delimiter.open == char:
                return delimiter
        raise ValueError(f"not an opening delimiter: {char!r}")


class Spacing(Enum):
    """
    Whether a punctuation character is glued to the following one.

    Multi-character operators are sequences of JOINT characters ended by
    an ALONE one: `!=` is '!' (JOINT) followed by '=' (ALONE).
    """

    JOINT = "joint"
    ALONE = "alone"


# =============================================================================
# Tree Types
# =============================================================================

@dataclass(frozen=True)
class GroupTree:
    """A delimited group owning its inner token trees."""
    delimiter: Delimiter
    stream: tuple["TokenTree", ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True)
class IdentTree:
    """A bare identifier."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True)
class PunctTree:
    """A single punctuation character."""
    char: str
    spacing: Spacing = Spacing.ALONE
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True)
class LiteralTree:
    """A literal, kept as raw source text (quotes and suffixes included)."""
    text: str
    location: Optional[SourceLocation] = field(default=None, compare=False)


TokenTree = Union[GroupTree, IdentTree, PunctTree, LiteralTree]


# =============================================================================
# Tree Builder
# =============================================================================

class TreeBuilder:
    """
    Nests a flat token stream into token trees.

    Usage:
        builder = TreeBuilder(Lexer(source).tokenize(), source)
        trees = builder.build()
    """

    def __init__(self, tokens, source: str = ""):
        """
        Args:
            tokens: Iterable of lexer tokens, ending with EOF
            source: The original text, used to quote lines in errors
        """
        self._tokens: list[Token] = list(tokens)
        self._lines = source.split("\n")
        self._pos = 0

    def build(self) -> list[TokenTree]:
        """
        Build the top-level token trees.

        Raises:
            MacroSyntaxError: On unbalanced or mismatched delimiters
        """
        trees = self._build_stream(closing=None)
        token = self._peek()
        if token.type == TokenType.CLOSE:
            raise self._error(f"unexpected closing delimiter '{token.value}'", token)
        return trees

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _error(self, message: str, token: Token) -> MacroSyntaxError:
        source_line = None
        if 0 < token.line <= len(self._lines):
            source_line = self._lines[token.line - 1]
        return MacroSyntaxError(message, token.location, source_line=source_line)

    def _build_stream(self, closing: Optional[Token]) -> list[TokenTree]:
        """Collect trees until EOF or a closing delimiter."""
        trees: list[TokenTree] = []

        while True:
            token = self._peek()

            if token.type == TokenType.EOF:
                if closing is not None:
                    raise self._error(f"unclosed delimiter '{closing.value}'", closing)
                return trees

            if token.type == TokenType.CLOSE:
                return trees

            self._advance()

            if token.type == TokenType.OPEN:
                trees.append(self._build_group(token))
            elif token.type == TokenType.IDENTIFIER:
                trees.append(IdentTree(token.value, token.location))
            elif token.type == TokenType.PUNCT:
                spacing = Spacing.JOINT if token.joint else Spacing.ALONE
                trees.append(PunctTree(token.value, spacing, token.location))
            else:
                trees.append(LiteralTree(token.value, token.location))

    def _build_group(self, opener: Token) -> GroupTree:
        delimiter = Delimiter.from_open(opener.value)
        stream = self._build_stream(closing=opener)

        closer = self._advance()
        if closer.value != delimiter.close:
            raise self._error(
                f"mismatched closing delimiter '{closer.value}', "
                f"expected '{delimiter.close}'",
                closer,
            )

        return GroupTree(delimiter, tuple(stream), opener.location)


def parse_trees(source: str, filename: str = "<input>") -> list[TokenTree]:
    """
    Tokenize and nest macro source text.

    Args:
        source: The macro text
        filename: Name reported in error locations

    Returns:
        The top-level token trees

    Raises:
        MacroSyntaxError: If the text cannot be tokenized or is unbalanced
    """
    lexer = Lexer(source, filename)
    return TreeBuilder(lexer.tokenize(), source).build()
