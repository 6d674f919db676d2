"""
Token Classifier
================

Converts raw token trees into a closed set of four tagged variants that
the pattern matcher, the normalizer and the fragment assemblers match on
structurally:

| Variant       | Fields                    | Example source |
|---------------|---------------------------|----------------|
| Group         | delimiter, tokens         | ("r0" == "r1") |
| Identifier    | text, location            | u, true, when  |
| Punctuation   | char, spacing             | ! (joint)      |
| Literal       | text (raw, with quotes)   | "mrs r0, SPSR" |

There is no catch-all variant. Every match over a Token handles all four.
Source positions are kept on identifiers only, and never take part in
equality.

classify() and materialize() are inverses:

    materialize(classify(tree)) == tree

Example
-------
>>> from bracer.trees import parse_trees
>>> from bracer.tokens import classify_all
>>> classify_all(parse_trees('"r0" != "#0"'))
[Literal(text='"r0"'), Punctuation(char='!', spacing=<Spacing.JOINT: 'joint'>), \
Punctuation(char='=', spacing=<Spacing.ALONE: 'alone'>), Literal(text='"#0"')]
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

from bracer.errors import MacroSyntaxError, SourceLocation
from bracer.trees import (
    Delimiter,
    GroupTree,
    IdentTree,
    LiteralTree,
    PunctTree,
    Spacing,
    TokenTree,
)


# =============================================================================
# Escape Handling
# =============================================================================

# Escape sequences in string and character literals
ESCAPE_SEQUENCES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "0": "\0",
}

MAX_CODE_POINT = 0x10FFFF
SURROGATES = (0xD800, 0xDFFF)

_ESCAPE_OUT = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\\": "\\\\",
    "\0": "\\0",
}


def escape_text(value: str, quote: str) -> str:
    """Escape `value` for use between `quote` characters."""
    chars = []
    for char in value:
        if char in _ESCAPE_OUT:
            chars.append(_ESCAPE_OUT[char])
        elif char == quote:
            chars.append("\\" + quote)
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            chars.append(f"\\x{ord(char):02x}")
        else:
            chars.append(char)
    return "".join(chars)


def _is_hex(digits: str) -> bool:
    return bool(digits) and all(char in "0123456789abcdefABCDEF" for char in digits)


def unescape_text(body: str) -> str:
    """
    Decode the escape sequences in the body of a string or char literal.

    Supports \\n \\r \\t \\\\ \\" \\' \\0, \\xNN, \\u{NNNN}, and a backslash
    before a newline, which skips the newline and the next line's leading
    whitespace. Unknown escapes are kept as the escaped character.

    Raises:
        MacroSyntaxError: If a \\u{...} escape is not a Unicode scalar value
    """
    chars = []
    pos = 0
    while pos < len(body):
        char = body[pos]
        pos += 1
        if char != "\\" or pos >= len(body):
            chars.append(char)
            continue

        escape = body[pos]
        pos += 1

        if escape in ESCAPE_SEQUENCES:
            chars.append(ESCAPE_SEQUENCES[escape])
        elif escape == "x" and _is_hex(body[pos:pos + 2]):
            chars.append(chr(int(body[pos:pos + 2], 16)))
            pos += 2
        elif escape == "u" and body[pos:pos + 1] == "{" and "}" in body[pos:]:
            end = body.index("}", pos)
            digits = body[pos + 1:end]
            if not _is_hex(digits):
                chars.append(escape)
                continue
            code_point = int(digits, 16)
            if code_point > MAX_CODE_POINT or SURROGATES[0] <= code_point <= SURROGATES[1]:
                raise MacroSyntaxError(
                    f"invalid unicode escape '\\u{{{digits}}}'",
                    hint="escapes name a code point up to 10FFFF, excluding D800-DFFF",
                )
            chars.append(chr(code_point))
            pos = end + 1
        elif escape == "\n":
            while pos < len(body) and body[pos] in " \t\r\n":
                pos += 1
        else:
            chars.append(escape)

    return "".join(chars)


# =============================================================================
# Token Variants
# =============================================================================

@dataclass(frozen=True)
class Group:
    """A delimited group exclusively owning its inner tokens."""
    delimiter: Delimiter
    tokens: tuple["Token", ...] = ()

    def describe(self) -> str:
        inner = " ".join(token.describe() for token in self.tokens)
        return f"Group{self.delimiter.open}{inner}{self.delimiter.close}"


@dataclass(frozen=True)
class Identifier:
    """A bare name such as `true`, `u` or a macro name."""
    text: str
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def describe(self) -> str:
        return f"Ident({self.text})"


@dataclass(frozen=True)
class Punctuation:
    """A single punctuation character and its spacing."""
    char: str
    spacing: Spacing = Spacing.ALONE

    def describe(self) -> str:
        return f"Punct('{self.char}', {self.spacing.name.capitalize()})"


@dataclass(frozen=True)
class Literal:
    """
    A string, character or numeric literal kept as raw text.

    The text includes its delimiting quotes, so `Literal('"r0"')` is the
    string literal r0 and `Literal("'\\\\n'")` is the newline character.
    """
    text: str

    @classmethod
    def string(cls, value: str) -> "Literal":
        """Build a string literal whose decoded value is `value`."""
        return cls('"' + escape_text(value, '"') + '"')

    @classmethod
    def character(cls, value: str) -> "Literal":
        """Build a character literal for a single character."""
        if len(value) != 1:
            raise ValueError(f"character literal needs exactly one character, got {value!r}")
        return cls("'" + escape_text(value, "'") + "'")

    @property
    def is_string(self) -> bool:
        return len(self.text) >= 2 and self.text[0] == '"' and self.text[-1] == '"'

    @property
    def is_character(self) -> bool:
        return len(self.text) >= 3 and self.text[0] == "'" and self.text[-1] == "'"

    @property
    def value(self) -> str:
        """
        The literal's contribution to a concatenated string.

        String and character literals are unescaped. Numbers are returned as
        written.
        """
        if self.is_string or self.is_character:
            return unescape_text(self.text[1:-1])
        return self.text

    def describe(self) -> str:
        return f"Literal({self.text})"


Token = Union[Group, Identifier, Punctuation, Literal]


def describe_shape(tokens: Iterable[Token]) -> str:
    """Describe a token sequence for error messages."""
    return " ".join(token.describe() for token in tokens) or "<empty>"


def token_location(token: Token) -> Optional[SourceLocation]:
    """Best-effort source location of a token (identifiers only)."""
    if isinstance(token, Identifier):
        return token.location
    if isinstance(token, Group):
        for inner in token.tokens:
            location = token_location(inner)
            if location is not None:
                return location
    return None


# =============================================================================
# Classification
# =============================================================================

def classify(tree: TokenTree) -> Token:
    """
    Classify a raw token tree.

    Groups are classified recursively, each owning its classified contents.
    """
    match tree:
        case GroupTree(delimiter, stream):
            return Group(delimiter, tuple(classify(inner) for inner in stream))
        case IdentTree(name, location):
            return Identifier(name, location)
        case PunctTree(char, spacing):
            return Punctuation(char, spacing)
        case LiteralTree(text):
            return Literal(text)
        case _:
            raise TypeError(f"not a token tree: {tree!r}")


def materialize(token: Token) -> TokenTree:
    """
    Turn a classified token back into a raw token tree.

    A Group materializes its contents first, then wraps them in its
    delimiter.
    """
    match token:
        case Group(delimiter, tokens):
            return GroupTree(delimiter, tuple(materialize(inner) for inner in tokens))
        case Identifier(text, location):
            return IdentTree(text, location)
        case Punctuation(char, spacing):
            return PunctTree(char, spacing)
        case Literal(text):
            return LiteralTree(text)
        case _:
            raise TypeError(f"not a token: {token!r}")


def classify_all(trees: Iterable[TokenTree]) -> list[Token]:
    return [classify(tree) for tree in trees]


def materialize_all(tokens: Iterable[Token]) -> list[TokenTree]:
    return [materialize(token) for token in tokens]


# =============================================================================
# Rendering
# =============================================================================

def _needs_space(previous: Token, token: Token) -> bool:
    if isinstance(previous, Punctuation) and previous.spacing == Spacing.JOINT:
        return False
    if isinstance(token, Punctuation) and token.char in ",;" and not isinstance(previous, Punctuation):
        return False
    if isinstance(previous, Identifier) and token == Punctuation("!"):
        return False
    if previous == Punctuation("!") and isinstance(token, Group):
        return False
    return True


def to_source(tokens: Sequence[Token]) -> str:
    """
    Render tokens back to source text.

    The result lexes back to the same tokens: joint punctuation is glued to
    its successor and everything else is separated by a single space,
    except before commas and around a macro's '!'.
    """
    parts: list[str] = []
    previous: Optional[Token] = None

    for token in tokens:
        if previous is not None and _needs_space(previous, token):
            parts.append(" ")

        match token:
            case Group(delimiter, inner):
                parts.append(f"{delimiter.open}{to_source(inner)}{delimiter.close}")
            case Identifier(text):
                parts.append(text)
            case Punctuation(char):
                parts.append(char)
            case Literal(text):
                parts.append(text)

        previous = token

    return "".join(parts)
