# =============================================================================
# test_lexer.py - Lexer and Tree Builder Unit Tests
# =============================================================================
# Tests for the macro argument lexer and the token tree builder.
#
# Test coverage includes:
#   - Identifiers, string/char/numeric literals kept as raw text
#   - Punctuation spacing (joint vs alone)
#   - Delimiters, comments and whitespace
#   - Source positions
#   - Tree nesting and delimiter errors
# =============================================================================

import pytest
from bracer.lexer import Lexer, TokenType
from bracer.trees import (
    Delimiter,
    GroupTree,
    IdentTree,
    LiteralTree,
    PunctTree,
    Spacing,
    parse_trees,
)
from bracer.errors import MacroSyntaxError


# =============================================================================
# Helper Function
# =============================================================================

def tokenize(source: str) -> list:
    """Tokenize and drop the trailing EOF token."""
    lexer = Lexer(source, "<test>")
    return [t for t in lexer.tokenize() if t.type != TokenType.EOF]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition."""

    def test_empty_input(self):
        assert tokenize("") == []

    def test_whitespace_only(self):
        """Whitespace, newlines included, produces no tokens."""
        assert tokenize("  \t\n  \n") == []

    def test_eof_always_last(self):
        tokens = list(Lexer("when").tokenize())
        assert tokens[-1].type == TokenType.EOF

    def test_identifier(self):
        tokens = tokenize("irq_masked")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "irq_masked"

    def test_identifier_with_digits(self):
        tokens = tokenize("a32_within_t32")
        assert tokens[0].value == "a32_within_t32"

    def test_delimiters(self):
        tokens = tokenize("( [ { } ] )")
        assert [t.type for t in tokens] == [TokenType.OPEN] * 3 + [TokenType.CLOSE] * 3
        assert [t.value for t in tokens] == ["(", "[", "{", "}", "]", ")"]


# =============================================================================
# Literal Tests
# =============================================================================

class TestLiterals:
    """Literals keep their raw source text."""

    def test_string_keeps_quotes(self):
        tokens = tokenize('"add r1, r2, r3"')
        assert tokens[0].type == TokenType.LITERAL
        assert tokens[0].value == '"add r1, r2, r3"'

    def test_string_keeps_escapes(self):
        tokens = tokenize(r'".code 32\n"')
        assert tokens[0].value == r'".code 32\n"'

    def test_string_with_escaped_quote(self):
        tokens = tokenize(r'".section .text,\"ax\""')
        assert len(tokens) == 1
        assert tokens[0].value == r'".section .text,\"ax\""'

    def test_multiline_string(self):
        tokens = tokenize('"mov r0, r1\nbx lr"')
        assert len(tokens) == 1
        assert tokens[0].value == '"mov r0, r1\nbx lr"'

    def test_char_literal(self):
        tokens = tokenize("'a'")
        assert tokens[0].type == TokenType.LITERAL
        assert tokens[0].value == "'a'"

    def test_char_escape(self):
        tokens = tokenize(r"'\n'")
        assert tokens[0].value == r"'\n'"

    def test_char_hex_escape(self):
        tokens = tokenize(r"'\x41'")
        assert tokens[0].value == r"'\x41'"

    def test_decimal_number(self):
        tokens = tokenize("42")
        assert tokens[0].type == TokenType.LITERAL
        assert tokens[0].value == "42"

    def test_hex_number(self):
        tokens = tokenize("0x1F")
        assert tokens[0].value == "0x1F"

    def test_number_with_suffix(self):
        tokens = tokenize("5u8")
        assert len(tokens) == 1
        assert tokens[0].value == "5u8"

    def test_float_number(self):
        tokens = tokenize("1.5")
        assert len(tokens) == 1
        assert tokens[0].value == "1.5"

    def test_number_then_dot(self):
        """A dot not followed by a digit is punctuation."""
        tokens = tokenize("1.x")
        assert [t.value for t in tokens] == ["1", ".", "x"]


# =============================================================================
# Punctuation Spacing Tests
# =============================================================================

class TestPunctuation:
    """Each punctuation character is one token; spacing is recorded."""

    def test_not_equal_is_two_tokens(self):
        tokens = tokenize("!=")
        assert [t.value for t in tokens] == ["!", "="]
        assert tokens[0].joint is True
        assert tokens[1].joint is False

    def test_greater_equal_before_identifier(self):
        tokens = tokenize(">=u")
        assert [t.value for t in tokens] == [">", "=", "u"]
        assert tokens[0].joint is True
        assert tokens[1].joint is False

    def test_single_before_identifier(self):
        tokens = tokenize("<i")
        assert tokens[0].value == "<"
        assert tokens[0].joint is False

    def test_space_breaks_joint(self):
        tokens = tokenize("! =")
        assert tokens[0].joint is False

    def test_punct_at_end_of_input(self):
        tokens = tokenize(",")
        assert tokens[0].type == TokenType.PUNCT
        assert tokens[0].joint is False

    def test_macro_bang_before_group(self):
        tokens = tokenize("read_spsr!(")
        assert tokens[1].value == "!"
        assert tokens[1].joint is False


# =============================================================================
# Comment Tests
# =============================================================================

class TestComments:

    def test_line_comment(self):
        tokens = tokenize('"nop" // do nothing\n"bx lr"')
        assert [t.value for t in tokens] == ['"nop"', '"bx lr"']

    def test_block_comment(self):
        tokens = tokenize('"nop" /* , */ "bx lr"')
        assert [t.value for t in tokens] == ['"nop"', '"bx lr"']

    def test_slash_is_punctuation(self):
        tokens = tokenize("a / b")
        assert tokens[1].type == TokenType.PUNCT


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:

    def test_columns(self):
        tokens = tokenize('"r0" != "#0"')
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[1].line, tokens[1].column) == (1, 6)
        assert (tokens[2].line, tokens[2].column) == (1, 7)
        assert (tokens[3].line, tokens[3].column) == (1, 9)

    def test_lines(self):
        tokens = tokenize('when!(\n  ("r0" == "r1")\n)')
        literal = tokens[4]
        assert literal.value == '"r0"'
        assert (literal.line, literal.column) == (2, 4)

    def test_location_uses_filename(self):
        tokens = tokenize("x")
        assert str(tokens[0].location) == "<test>:1:1"


# =============================================================================
# Lexer Error Tests
# =============================================================================

class TestLexerErrors:

    def test_unterminated_string(self):
        with pytest.raises(MacroSyntaxError, match="unterminated string"):
            tokenize('"mrs r0, SPSR')

    def test_unterminated_block_comment(self):
        with pytest.raises(MacroSyntaxError, match="unterminated block comment"):
            tokenize("/* never closed")

    def test_empty_char_literal(self):
        with pytest.raises(MacroSyntaxError):
            tokenize("''")

    def test_unclosed_char_literal(self):
        with pytest.raises(MacroSyntaxError, match="closing quote"):
            tokenize("'ab'")

    def test_unexpected_character(self):
        with pytest.raises(MacroSyntaxError, match="unexpected character"):
            tokenize("`")

    def test_error_has_location(self):
        with pytest.raises(MacroSyntaxError) as exc_info:
            tokenize('ok\n  "open')
        assert exc_info.value.location.line == 2
        assert '"open' in str(exc_info.value)


# =============================================================================
# Tree Builder Tests
# =============================================================================

class TestTreeBuilder:
    """Flat tokens are nested into groups."""

    def test_flat_sequence(self):
        trees = parse_trees('"r0" == "r1"')
        assert trees == [
            LiteralTree('"r0"'),
            PunctTree("=", Spacing.JOINT),
            PunctTree("=", Spacing.ALONE),
            LiteralTree('"r1"'),
        ]

    def test_group_delimiters(self):
        trees = parse_trees("() [] {}")
        assert [tree.delimiter for tree in trees] == [
            Delimiter.PARENTHESIS,
            Delimiter.BRACKET,
            Delimiter.BRACE,
        ]
        assert all(tree.stream == () for tree in trees)

    def test_nested_groups(self):
        trees = parse_trees('when!(("r0" == "r1") { "nop" })')
        assert trees[0] == IdentTree("when")
        assert trees[1] == PunctTree("!")
        outer = trees[2]
        assert isinstance(outer, GroupTree)
        test_group, body_group = outer.stream
        assert test_group.delimiter == Delimiter.PARENTHESIS
        assert len(test_group.stream) == 4
        assert body_group.delimiter == Delimiter.BRACE
        assert body_group.stream == (LiteralTree('"nop"'),)

    def test_locations_ignored_for_equality(self):
        assert parse_trees("x") == parse_trees("   x")
        assert parse_trees("x")[0].location != parse_trees("   x")[0].location

    def test_unclosed_group(self):
        with pytest.raises(MacroSyntaxError, match="unclosed delimiter"):
            parse_trees('when!(("r0" == "r1")')

    def test_mismatched_group(self):
        with pytest.raises(MacroSyntaxError, match="mismatched closing delimiter"):
            parse_trees('{ "nop" )')

    def test_unexpected_close(self):
        with pytest.raises(MacroSyntaxError, match="unexpected closing delimiter"):
            parse_trees('"nop" }')
