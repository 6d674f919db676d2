"""
Macro Expander
==============

Front end for the fragment assemblers. It ties the pipeline together:

1. **Parsing**: macro text is lexed and nested into token trees
   (bracer.lexer, bracer.trees), then classified (bracer.tokens).
2. **Dispatch**: the invocation `name!( args )` is looked up by name and
   its arguments are handed to the matching fragment assembler.
3. **Evaluation**: the output tokens are reduced to the final assembly
   text, the way the host would evaluate `concat!`. Nested macro
   invocations inside the body of a macro are expanded and evaluated
   recursively.

Example Usage
-------------
>>> from bracer.expander import MacroExpander
>>> expander = MacroExpander()
>>> print(expander.render('a32_within_t32!("mov r0, #0", "add r0, r0, r0",)'), end="")
.code 32
mov r0, #0
add r0, r0, r0
.code 16
"""

from difflib import get_close_matches
from typing import Optional, Sequence
import logging

from bracer.concat import split_top_level
from bracer.config import BracerConfig
from bracer.errors import ExpansionError, ShapeError, SourceLocation, UnknownMacroError
from bracer.fragments import FRAGMENT_ASSEMBLERS, FragmentAssembler
from bracer.labels import LabelAllocator, default_allocator
from bracer.tokens import (
    Group,
    Identifier,
    Literal,
    Punctuation,
    Token,
    classify_all,
    describe_shape,
    token_location,
)
from bracer.trees import parse_trees

logger = logging.getLogger(__name__)


class MacroExpander:
    """
    Expands and evaluates bracer macro invocations.

    Usage:
        expander = MacroExpander()
        tokens = expander.expand_source('read_spsr!("r0")')
        text = expander.evaluate(tokens)       # "mrs r0, SPSR"

    Attributes:
        config: Expansion settings (label prefix, concat name, ...)
        allocator: Label allocator, the process-wide one by default
    """

    def __init__(
        self,
        config: Optional[BracerConfig] = None,
        allocator: Optional[LabelAllocator] = None,
    ):
        self.config = config or BracerConfig()
        self.allocator = allocator or default_allocator
        self._macros: dict[str, FragmentAssembler] = dict(FRAGMENT_ASSEMBLERS)

    # =========================================================================
    # Registry
    # =========================================================================

    @property
    def macro_names(self) -> list[str]:
        return sorted(self._macros)

    def register(self, name: str, assembler: FragmentAssembler) -> None:
        """Register an additional fragment assembler under `name`."""
        if not name.isidentifier():
            raise ValueError(f"macro name must be an identifier: {name!r}")
        if name == self.config.concat_macro:
            raise ValueError(f"'{name}' is reserved for concatenation")
        self._macros[name] = assembler

    def lookup(self, name: str) -> FragmentAssembler:
        """
        Find the assembler for a macro name.

        Raises:
            UnknownMacroError: With close matches as a hint
        """
        try:
            return self._macros[name]
        except KeyError:
            similar = get_close_matches(name, self._macros, n=3)
            raise UnknownMacroError(name, similar_names=similar) from None

    # =========================================================================
    # Expansion
    # =========================================================================

    def expand(
        self,
        name: str,
        args: Sequence[Token],
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> list[Token]:
        """
        Expand one macro invocation.

        Args:
            name: Macro name (without the '!')
            args: The classified tokens inside the invocation's group
            location: Where the invocation starts, for error reporting
            source_line: Source text of that line, for error reporting

        Returns:
            The output token sequence

        Raises:
            ExpansionError: If the arguments do not fit the macro
        """
        logger.debug(f"Expanding {name}!({describe_shape(args)})")

        try:
            assembler = self.lookup(name)
            output = assembler(args, config=self.config, allocator=self.allocator)
        except ExpansionError as e:
            raise e.attach_location(location, source_line)

        logger.debug(f"Expanded {name}! to {len(output)} token(s)")
        return output

    def parse_invocation(
        self,
        source: str,
        filename: Optional[str] = None,
    ) -> tuple[str, list[Token], Optional[SourceLocation]]:
        """
        Parse `name!( args )` from source text.

        Returns:
            (name, classified argument tokens, location of the name)

        Raises:
            MacroSyntaxError: If the text cannot be tokenized
            ShapeError: If the text is not a single macro invocation
        """
        tokens = classify_all(parse_trees(source, filename or self.config.filename))

        match tokens:
            case [Identifier(name) as ident, Punctuation("!"), Group(_, args)]:
                return name, list(args), ident.location
            case [Identifier(name) as ident, Punctuation("!"), Group(_, args), Punctuation(";")]:
                return name, list(args), ident.location
            case _:
                raise ShapeError(
                    "expected a single macro invocation `name!( ... )`",
                    location=next(filter(None, map(token_location, tokens)), None),
                    hint=f"got `{describe_shape(tokens)}`",
                )

    def expand_source(self, source: str, filename: Optional[str] = None) -> list[Token]:
        """Parse a macro invocation from text and expand it."""
        name, args, location = self.parse_invocation(source, filename)
        line = source.split("\n")[location.line - 1] if location else None
        return self.expand(name, args, location, line)

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate(self, tokens: Sequence[Token]) -> str:
        """
        Reduce an expression to its string value.

        Accepted expressions:
            - a single literal (strings and characters are unescaped)
            - `true` or `false`
            - `concat!( item, item, ... )`, the items joined in order
            - any registered macro invocation, expanded then evaluated

        Raises:
            ShapeError: For any other expression, or an empty item in a
                concatenation (such as two separators in a row)
        """
        match list(tokens):
            case [Literal() as literal]:
                return literal.value
            case [Identifier("true" | "false") as flag]:
                return flag.text
            case [Identifier(name), Punctuation("!"), Group(_, args)] if name == self.config.concat_macro:
                items = split_top_level(args, f"{name}! arguments")
                return "".join(self.evaluate(item) for item in items)
            case [Identifier(name) as ident, Punctuation("!"), Group(_, args)]:
                return self.evaluate(self.expand(name, args, ident.location))
            case _:
                raise ShapeError(
                    "expected a literal or a macro invocation",
                    location=next(filter(None, map(token_location, tokens)), None),
                    hint=f"got `{describe_shape(tokens)}`",
                )

    def render(self, source: str, filename: Optional[str] = None) -> str:
        """Expand a macro invocation and evaluate it to assembly text."""
        return self.evaluate(self.expand_source(source, filename))


# =============================================================================
# Convenience Functions
# =============================================================================

def expand(source: str, config: Optional[BracerConfig] = None) -> list[Token]:
    """Expand a macro invocation given as text."""
    return MacroExpander(config).expand_source(source)


def render(source: str, config: Optional[BracerConfig] = None) -> str:
    """Expand a macro invocation given as text and return the assembly."""
    return MacroExpander(config).render(source)
