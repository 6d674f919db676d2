"""
Comparison Pattern Matcher
==========================

Resolves the test of a conditional block, `<lhs> <op> <rhs>`, to the ARM
condition code that skips the guarded block. The generated code branches
past the block when the test fails, so every operator maps to its
inverse:

| Source | Meaning      | Skip condition |
|--------|--------------|----------------|
| ==     | equal        | ne             |
| !=     | not equal    | eq             |
| >= u   | unsigned >=  | lo             |
| <= u   | unsigned <=  | hi             |
| < u    | unsigned <   | hs             |
| > u    | unsigned >   | ls             |
| >= i   | signed >=    | lt             |
| <= i   | signed <=    | gt             |
| < i    | signed <     | ge             |
| > i    | signed >     | le             |

Equality has no signedness. The ordering operators require a `u` or `i`
identifier straight after the operator.

Matching is purely structural over classified tokens. Two-character
operators are a joint punctuation character followed by '=', so the
spacing of the source text never matters beyond what the lexer records.
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

from bracer.errors import PatternError
from bracer.tokens import (
    Identifier,
    Literal,
    Punctuation,
    Token,
    describe_shape,
    token_location,
)
from bracer.trees import Spacing

logger = logging.getLogger(__name__)


# =============================================================================
# Condition Table
# =============================================================================

@dataclass(frozen=True)
class Condition:
    """
    One row of the comparison table.

    Attributes:
        operator: Operator characters as written ("==", "<", ">=", ...)
        signedness: "u", "i", or None for equality operators
        meaning: Human-readable meaning of the test
        skip: Condition mnemonic that branches when the test fails
    """
    operator: str
    signedness: Optional[str]
    meaning: str
    skip: str

    @property
    def source(self) -> str:
        """The operator as written in a test, signedness included."""
        return self.operator + (self.signedness or "")


CONDITIONS: tuple[Condition, ...] = (
    Condition("==", None, "equal", "ne"),
    Condition("!=", None, "not equal", "eq"),
    # unsigned
    Condition(">=", "u", "unsigned greater or equal", "lo"),
    Condition("<=", "u", "unsigned less or equal", "hi"),
    Condition("<", "u", "unsigned less than", "hs"),
    Condition(">", "u", "unsigned greater than", "ls"),
    # signed
    Condition(">=", "i", "signed greater or equal", "lt"),
    Condition("<=", "i", "signed less or equal", "gt"),
    Condition("<", "i", "signed less than", "ge"),
    Condition(">", "i", "signed greater than", "le"),
)

CONDITION_TABLE: dict[tuple[str, Optional[str]], Condition] = {
    (condition.operator, condition.signedness): condition
    for condition in CONDITIONS
}


# =============================================================================
# Matcher
# =============================================================================

@dataclass(frozen=True)
class Comparison:
    """
    A matched test.

    Attributes:
        condition: The table row that matched
        lhs: Text of the left operand (register name)
        rhs: Text of the right operand (register or immediate)
    """
    condition: Condition
    lhs: str
    rhs: str

    @property
    def skip(self) -> str:
        return self.condition.skip


def match_comparison(tokens: Sequence[Token], argument: Optional[int] = None) -> Comparison:
    """
    Match a test expression against the condition table.

    Args:
        tokens: 4 or 5 classified tokens, `<Literal> <op> <Literal>`
        argument: Argument position to report in errors

    Returns:
        The matched Comparison

    Raises:
        PatternError: If the tokens match no table entry. The message
            includes the unmatched shape.
    """
    match list(tokens):
        case [Literal() as lhs, Punctuation(first, Spacing.JOINT), Punctuation("="), Literal() as rhs]:
            key = (first + "=", None)
        case [
            Literal() as lhs,
            Punctuation(first, Spacing.JOINT),
            Punctuation("="),
            Identifier(signedness),
            Literal() as rhs,
        ]:
            key = (first + "=", signedness)
        case [Literal() as lhs, Punctuation(first, Spacing.ALONE), Identifier(signedness), Literal() as rhs]:
            key = (first, signedness)
        case _:
            key = None

    condition = CONDITION_TABLE.get(key) if key is not None else None
    if condition is None:
        raise PatternError(
            "malformed comparison expression",
            location=next(filter(None, map(token_location, tokens)), None),
            hint="expected `\"lhs\" <op> \"rhs\"` with op one of "
                 + ", ".join(entry.source for entry in CONDITIONS),
            argument=argument,
            shape=describe_shape(tokens),
        )

    comparison = Comparison(condition, lhs.value, rhs.value)
    logger.debug(
        f"Matched `{comparison.lhs} {condition.source} {comparison.rhs}`, "
        f"skip condition '{condition.skip}'"
    )
    return comparison
