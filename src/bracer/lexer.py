"""
Macro Argument Lexer
====================

This module implements the lexer (tokenizer) for macro invocation text
such as `when!(("r0" != "#0") { "add r1, r2, r3" })`. It turns source text
into a flat stream of tokens, which the tree builder in bracer.trees
nests into token trees.

Token Types
-----------
- IDENTIFIER: Macro names, keywords (true, false, u, i), setting names
- LITERAL: String ("text"), character ('\\n') and numeric (42, 0x1F) literals,
  kept as raw source text including quotes and suffixes
- PUNCT: A single punctuation character, flagged as joint when the next
  character is also punctuation (so `>=` is two tokens: '>' joint, '=')
- OPEN / CLOSE: Delimiters ( ) [ ] { }
- EOF: End of input

Comments
--------
Line comments (`// ...`) and block comments (`/* ... */`) are skipped, as
is all whitespace including newlines.

Example
-------
>>> from bracer.lexer import Lexer
>>> for token in Lexer('"r0" >= u "r1"').tokenize():
...     print(token)
Token(LITERAL, '"r0"', 1:1)
Token(PUNCT, '>', 1:6, joint)
Token(PUNCT, '=', 1:7)
Token(IDENTIFIER, 'u', 1:9)
Token(LITERAL, '"r1"', 1:11)
Token(EOF, 1:15)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from bracer.errors import MacroSyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Lexical categories of macro argument text."""

    EOF = auto()

    IDENTIFIER = auto()
    LITERAL = auto()
    PUNCT = auto()

    OPEN = auto()        # ( [ {
    CLOSE = auto()       # ) ] }


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexical token.

    Attributes:
        type: The TokenType classification
        value: Raw source text of the token (None for EOF)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source
        joint: For PUNCT tokens, True when the next character is also
            punctuation with no whitespace in between
    """
    type: TokenType
    value: str | None
    line: int
    column: int
    filename: str
    joint: bool = False

    def __repr__(self) -> str:
        suffix = ", joint" if self.joint else ""
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column}{suffix})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes macro invocation text.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The text being tokenized
        filename: Name of the source (for error reporting)
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    # Characters that form punctuation tokens, one token per character
    PUNCT_CHARS = "+-*/%^!&|=<>@.,;:#$?~\\"

    OPEN_DELIMITERS = "([{"
    CLOSE_DELIMITERS = ")]}"

    def __init__(self, source: str, filename: str = "<input>", line_number: int = 1):
        """
        Initialize the lexer with source text.

        Args:
            source: The macro text to tokenize
            filename: Name of the source (for error messages)
            line_number: Starting line number (default 1)
        """
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = line_number
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source text.

        Yields:
            Token objects, always ending with an EOF token

        Raises:
            MacroSyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue

            if self._skip_comment():
                continue

            yield self._scan_token()

        yield self._make_token(TokenType.EOF, None)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look ahead without advancing. Returns "" past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str | None,
        start_line: Optional[int] = None,
        start_column: Optional[int] = None,
        joint: bool = False,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=start_line or self._line,
            column=start_column or self._column,
            filename=self.filename,
            joint=joint,
        )

    def _error(self, message: str) -> MacroSyntaxError:
        """Create a syntax error at the current location."""
        location = SourceLocation(self.filename, self._line, self._column)
        return MacroSyntaxError(message, location, source_line=self.get_current_line())

    # =========================================================================
    # Whitespace and Comment Handling
    # =========================================================================

    def _skip_whitespace(self) -> bool:
        skipped = False
        # '' in string.whitespace is True, so check for end of input first
        while self._peek() and self._peek() in string.whitespace:
            self._advance()
            skipped = True
        return skipped

    def _skip_comment(self) -> bool:
        """Skip a // line comment or a /* block comment */."""
        if self._peek() != "/":
            return False

        if self._peek(1) == "/":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return True

        if self._peek(1) == "*":
            self._advance()
            self._advance()
            while not self._at_end():
                if self._peek() == "*" and self._peek(1) == "/":
                    self._advance()
                    self._advance()
                    return True
                self._advance()
            raise self._error("unterminated block comment")

        return False

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        start_line = self._line
        start_column = self._column

        char = self._peek()

        if char in self.IDENT_START:
            return self._scan_identifier(start_line, start_column)

        if char.isdigit():
            return self._scan_number(start_line, start_column)

        if char == '"':
            return self._scan_string(start_line, start_column)

        if char == "'":
            return self._scan_char(start_line, start_column)

        if char in self.OPEN_DELIMITERS:
            self._advance()
            return self._make_token(TokenType.OPEN, char, start_line, start_column)

        if char in self.CLOSE_DELIMITERS:
            self._advance()
            return self._make_token(TokenType.CLOSE, char, start_line, start_column)

        if char in self.PUNCT_CHARS:
            self._advance()
            # '' in PUNCT_CHARS is True, so the end of input must be excluded
            next_char = self._peek()
            joint = bool(next_char) and next_char in self.PUNCT_CHARS
            return self._make_token(
                TokenType.PUNCT, char, start_line, start_column, joint=joint
            )

        raise self._error(f"unexpected character '{char}'")

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())
        return self._make_token(TokenType.IDENTIFIER, "".join(chars), start_line, start_column)

    def _scan_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan a numeric literal, keeping its raw text.

        Prefixes (0x, 0b, 0o), digit separators and type suffixes (5u8)
        are all identifier characters, so they are collected as-is. A '.'
        is part of the number only when a digit follows it.
        """
        chars = []
        while self._peek():
            char = self._peek()
            if char in self.IDENT_CHARS:
                chars.append(self._advance())
            elif char == "." and self._peek(1).isdigit():
                chars.append(self._advance())
            else:
                break
        return self._make_token(TokenType.LITERAL, "".join(chars), start_line, start_column)

    def _scan_string(self, start_line: int, start_column: int) -> Token:
        """
        Scan a double-quoted string literal.

        The raw text (quotes and escape sequences included) becomes the
        token value. Strings may span lines.
        """
        chars = [self._advance()]  # opening "

        while not self._at_end():
            char = self._advance()
            chars.append(char)

            if char == "\\":
                if self._at_end():
                    break
                chars.append(self._advance())
            elif char == '"':
                return self._make_token(TokenType.LITERAL, "".join(chars), start_line, start_column)

        raise self._error("unterminated string literal")

    def _scan_char(self, start_line: int, start_column: int) -> Token:
        """Scan a single-quoted character literal such as 'a' or '\\n'."""
        chars = [self._advance()]  # opening '

        if self._at_end() or self._peek() in "\n'":
            raise self._error("empty or unterminated character literal")

        if self._peek() == "\\":
            chars.append(self._advance())
            escape = self._advance()
            chars.append(escape)
            if escape == "x":
                for _ in range(2):
                    if self._peek() and self._peek() in string.hexdigits:
                        chars.append(self._advance())
            elif escape == "u" and self._peek() == "{":
                while not self._at_end() and self._peek() != "}":
                    chars.append(self._advance())
                chars.append(self._advance())
        else:
            chars.append(self._advance())

        if self._peek() != "'":
            raise self._error("expected closing quote for character literal")
        chars.append(self._advance())

        return self._make_token(TokenType.LITERAL, "".join(chars), start_line, start_column)

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_current_line(self) -> str:
        """Get the current line of source text, for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]
