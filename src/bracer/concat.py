"""
Expression-List Normalizer
==========================

Generated assembly is returned as one concatenation expression, such as

    concat!(".code 32\\n", "mov r0, #0", '\\n', ".code 16\\n")

The commas are the separator marks. The host grammar rejects two
separators in a row and two fragments with no separator between them.
The helpers in this module are the only place
that splices user-supplied, comma-separated expression lists into such an
argument list, and they keep these invariants:

- every top-level comma of the input becomes separator, newline,
  separator, so each input item ends up on its own line
- other tokens pass through untouched, nested groups included
- a non-empty result always ends with a separator, whether or not the
  input had a trailing comma

The same helpers split a finished argument list back into its items, for
the evaluator in bracer.expander.
"""

from typing import Iterable, MutableSequence, Sequence

from bracer.errors import ShapeError
from bracer.tokens import Group, Identifier, Literal, Punctuation, Token, describe_shape
from bracer.trees import Delimiter, Spacing

# Separator mark between fragments of an expression list
SEPARATOR = Punctuation(",", Spacing.ALONE)

# Fragment that ends a line of assembly
NEWLINE = Literal.character("\n")

LINE_BREAK: tuple[Token, ...] = (SEPARATOR, NEWLINE, SEPARATOR)


def ends_with_separator(tokens: Sequence[Token]) -> bool:
    return bool(tokens) and tokens[-1] == SEPARATOR


def extend_concat_as_lines(
    accumulator: MutableSequence[Token],
    tokens: Iterable[Token],
) -> MutableSequence[Token]:
    """
    Append an expression list to a concatenation argument list, one item per line.

    Calling this with A and then with B gives the same result as calling
    it once with the comma-joined list `A, B`.

    Args:
        accumulator: The argument list under construction (modified in place)
        tokens: Comma-separated sub-expressions, trailing comma optional

    Returns:
        The accumulator
    """
    if accumulator and not ends_with_separator(accumulator):
        accumulator.extend(LINE_BREAK)

    for token in tokens:
        if isinstance(token, Punctuation) and token.char == ",":
            accumulator.extend(LINE_BREAK)
        else:
            accumulator.append(token)

    if accumulator and not ends_with_separator(accumulator):
        accumulator.extend(LINE_BREAK)

    return accumulator


def concat_expression(fragments: Iterable[Token], concat_macro: str = "concat") -> list[Token]:
    """Wrap an argument list as `concat!( fragments )`."""
    return [
        Identifier(concat_macro),
        Punctuation("!", Spacing.ALONE),
        Group(Delimiter.PARENTHESIS, tuple(fragments)),
    ]


def split_top_level(tokens: Sequence[Token], what: str = "expression list") -> list[list[Token]]:
    """
    Split a comma-separated list into its items.

    One trailing comma is allowed. An empty item (a leading comma or two
    commas in a row) is rejected, as the host grammar would.

    Raises:
        ShapeError: If the list contains an empty item
    """
    items: list[list[Token]] = []
    current: list[Token] = []

    for token in tokens:
        if isinstance(token, Punctuation) and token.char == ",":
            if not current:
                raise ShapeError(
                    f"empty item in {what}",
                    hint=f"unexpected ',' in `{describe_shape(tokens)}`",
                )
            items.append(current)
            current = []
        else:
            current.append(token)

    if current:
        items.append(current)

    return items
