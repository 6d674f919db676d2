"""
Fragment Assemblers
===================

Each assembler turns the classified arguments of one macro invocation into
its output tokens. The output is either a single string literal or a
`concat!(...)` expression built with the normalizer in bracer.concat.

| Macro                                     | Output |
|-------------------------------------------|--------|
| when                                      | cmp/b<cond> guard around the body lines |
| a32_within_t32, t32_with_an_a32_scope     | `.code 32` / body lines / `.code 16` |
| read_spsr, a32_read_spsr_to               | `mrs <reg>, SPSR` |
| write_spsr, a32_write_spsr_from           | `msr <reg>, SPSR` |
| put_fn_in_section                         | `.section <name>,"ax",%progbits` |
| set_cpu_control, a32_set_cpu_control      | `msr CPSR_c, #0b<I><F>0<MMMMM>` |
| a32_fake_blx                              | `adr lr` / `bx <reg>` / return label |

Assemblers are pure apart from label allocation. Any failure raises an
ExpansionError, so an expansion produces all of its output or none of it.

Example
-------
>>> from bracer.fragments import read_spsr
>>> from bracer.tokens import Literal
>>> read_spsr([Literal.string("r0")])
[Literal(text='"mrs r0, SPSR"')]
"""

from typing import Callable, Optional, Sequence
import logging
import re

from bracer.concat import SEPARATOR, concat_expression, extend_concat_as_lines, split_top_level
from bracer.conditions import match_comparison
from bracer.config import BracerConfig
from bracer.errors import PatternError, ShapeError
from bracer.labels import LabelAllocator, default_allocator
from bracer.registers import ANY_REGISTER, SPSR_TARGET_REGISTERS, check_register, mode_bits
from bracer.tokens import (
    Group,
    Identifier,
    Literal,
    Punctuation,
    Token,
    describe_shape,
    token_location,
)

logger = logging.getLogger(__name__)

FragmentAssembler = Callable[..., list[Token]]

# Assembler symbol accepted as an explicit `when!` label
LABEL_PATTERN = re.compile(r"[A-Za-z_.$][A-Za-z0-9_.$]*")


# =============================================================================
# Argument Helpers
# =============================================================================

def expect_group(args: Sequence[Token], index: int, purpose: str) -> Group:
    """Return args[index] if it is a group, else raise a ShapeError."""
    if index >= len(args):
        raise ShapeError(f"too few tokens: must have a group for the {purpose}", argument=index + 1)
    token = args[index]
    if not isinstance(token, Group):
        raise ShapeError(
            f"must have a group for the {purpose}, found {token.describe()}",
            location=token_location(token),
            argument=index + 1,
        )
    return token


def one_string_literal(args: Sequence[Token]) -> str:
    """
    Return the value of the only argument, which must be a string literal.

    Raises:
        ShapeError: If there is not exactly one token, or it is not a
            string literal
    """
    match list(args):
        case [Literal() as literal] if literal.is_string:
            return literal.value
        case [token]:
            raise ShapeError(
                f"input must be a string literal, found {token.describe()}",
                location=token_location(token),
                argument=1,
            )
        case []:
            raise ShapeError("not enough input: provide one string literal")
        case _:
            raise ShapeError(
                "provide one string literal only",
                hint=f"got `{describe_shape(args)}`",
            )


def get_bool(tokens: Sequence[Token]) -> Optional[bool]:
    """Return the value of a lone `true`/`false` identifier, else None."""
    match list(tokens):
        case [Identifier("true")]:
            return True
        case [Identifier("false")]:
            return False
    return None


# =============================================================================
# Conditional Block
# =============================================================================

def _explicit_label(group: Group) -> str:
    match list(group.tokens):
        case [Literal() as literal] if literal.is_string:
            label = literal.value
        case _:
            raise ShapeError(
                "label group must hold one string literal",
                hint=f"got `{describe_shape(group.tokens)}`",
                argument=2,
            )
    if not LABEL_PATTERN.fullmatch(label):
        raise PatternError(
            f"`{label}` is not a valid assembler label",
            hint="labels start with a letter, '_', '.' or '$'",
            argument=2,
        )
    return label


def when(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """
    Guard a block of assembly with a comparison.

    Input is `(test) {body}` or `(test) ("label") {body}`. The test is
    `"lhs" <op> "rhs"` (see bracer.conditions) and the body is a
    comma-separated expression list. Without an explicit label a fresh
    local label is allocated.

    Groups are told apart by position only. With two groups the second is
    always the body, so `(test) ("L")` guards a one-line body `L` rather
    than failing for a missing body.

    Emits:
        cmp <lhs>, <rhs>
        b<skip> <label>
        <body lines>
        <label>:
    """
    config = config or BracerConfig()
    allocator = allocator or default_allocator

    if len(args) > 3:
        raise ShapeError(
            "too many tokens: expected (test) {body} or (test) (\"label\") {body}",
            hint=f"got `{describe_shape(args)}`",
        )

    test_group = expect_group(args, 0, "test")
    if len(args) == 3:
        label = _explicit_label(expect_group(args, 1, "label"))
        body_group = expect_group(args, 2, "body")
    else:
        body_group = expect_group(args, 1, "body")
        label = None

    comparison = match_comparison(test_group.tokens, argument=1)
    if label is None:
        label = allocator.next_label(config.label_prefix)
    logger.debug(f"Guarded block skips to {label} on '{comparison.skip}'")

    out_buffer: list[Token] = [
        Literal.string(
            f"cmp {comparison.lhs}, {comparison.rhs}\n"
            f"b{comparison.skip} {label}\n"
        ),
        SEPARATOR,
    ]
    extend_concat_as_lines(out_buffer, body_group.tokens)
    out_buffer.append(Literal.string(f"{label}:\n"))

    return concat_expression(out_buffer, config.concat_macro)


# =============================================================================
# Code Mode Scope
# =============================================================================

def a32_within_t32(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """
    Place `.code 32` before and `.code 16` after the input lines.

    The input is zero or more comma-separated expressions that could each
    be given directly to an inline assembly block. This must not be used
    inside an a32 assembly block: it leaves the assembler in t32 mode.
    """
    config = config or BracerConfig()

    out_buffer: list[Token] = [Literal.string(".code 32\n"), SEPARATOR]
    extend_concat_as_lines(out_buffer, args)
    out_buffer.append(Literal.string(".code 16\n"))

    return concat_expression(out_buffer, config.concat_macro)


# =============================================================================
# Single-Instruction Formatters
# =============================================================================

def read_spsr(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """
    Read SPSR into a register: `mrs <reg>, SPSR`.

    The register may be r0-r12 or lr (r14), in either case. Accessing SPSR
    in User or System mode is unpredictable, and nothing here can check
    the mode.
    """
    register = check_register(one_string_literal(args), SPSR_TARGET_REGISTERS, argument=1)
    return [Literal.string(f"mrs {register}, SPSR")]


def write_spsr(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """Write SPSR from a register: `msr <reg>, SPSR`."""
    register = check_register(one_string_literal(args), SPSR_TARGET_REGISTERS, argument=1)
    return [Literal.string(f"msr {register}, SPSR")]


def put_fn_in_section(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """Place the following code in a section: `.section <name>,"ax",%progbits`."""
    section_name = one_string_literal(args)
    if not section_name or any(char.isspace() for char in section_name):
        raise PatternError(
            f"`{section_name}` is not a valid section name",
            hint="section names are non-empty and contain no whitespace",
            argument=1,
        )
    return [Literal.string(f'.section {section_name},"ax",%progbits')]


def a32_fake_blx(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """
    Call through a register, setting lr to a fresh return label.

    Emits `adr lr, <L>` / `bx <reg>` / `<L>:`. Only valid in a32 state,
    where lr can be written directly.
    """
    config = config or BracerConfig()
    allocator = allocator or default_allocator

    register = check_register(one_string_literal(args), ANY_REGISTER, argument=1)
    label = allocator.next_label(config.label_prefix)
    return [Literal.string(f"adr lr, {label}\nbx {register}\n{label}:")]


# =============================================================================
# CPU Control
# =============================================================================

def _mask_setting(item: Sequence[Token], name: str, argument: int) -> str:
    """Parse `<name> = <bool>` (or `<name>: <bool>`) into "1" or "0"."""
    match list(item):
        case [Identifier(found), Punctuation("=" | ":"), *value] if found == name:
            flag = get_bool(value)
        case [Identifier(found), *_] if found != name:
            raise PatternError(f"setting must be `{name}`, found `{found}`", argument=argument)
        case _:
            raise ShapeError(
                f"expected `{name} = true|false`",
                hint=f"got `{describe_shape(item)}`",
                argument=argument,
            )

    if flag is None:
        raise PatternError(
            f"`{name}` must be set as `true` or `false`",
            shape=describe_shape(item[2:]),
            argument=argument,
        )
    return "1" if flag else "0"


def set_cpu_control(
    args: Sequence[Token],
    config: Optional[BracerConfig] = None,
    allocator: Optional[LabelAllocator] = None,
) -> list[Token]:
    """
    Set the CPU mode and interrupt masks: `msr CPSR_c, #0b<I><F>0<MMMMM>`.

    Input is `<mode>, irq_masked = <bool>, fiq_masked = <bool>`, with `:`
    accepted in place of `=`. Mode names are User/usr, FIQ/fiq, IRQ/irq,
    Supervisor/svc and System/sys. The T bit is always left clear, so this
    is only usable from a32 code.
    """
    items = split_top_level(args, "cpu control settings")
    if len(items) != 3:
        raise ShapeError(
            f"expected 3 settings, got {len(items)}",
            hint="use `<mode>, irq_masked = <bool>, fiq_masked = <bool>`",
        )

    match items[0]:
        case [Identifier(mode_name) as ident]:
            mode = mode_bits(mode_name, location=ident.location, argument=1)
        case other:
            raise ShapeError(
                "first argument must be a cpu mode name",
                hint=f"got `{describe_shape(other)}`",
                argument=1,
            )

    irq = _mask_setting(items[1], "irq_masked", argument=2)
    fiq = _mask_setting(items[2], "fiq_masked", argument=3)

    return [Literal.string(f"msr CPSR_c, #0b{irq}{fiq}0{mode}")]


# =============================================================================
# Registry
# =============================================================================

# Macro name to assembler. Alternate names from older releases map to the
# same assembler.
FRAGMENT_ASSEMBLERS: dict[str, FragmentAssembler] = {
    "when": when,
    "a32_within_t32": a32_within_t32,
    "t32_with_an_a32_scope": a32_within_t32,
    "read_spsr": read_spsr,
    "a32_read_spsr_to": read_spsr,
    "write_spsr": write_spsr,
    "a32_write_spsr_from": write_spsr,
    "put_fn_in_section": put_fn_in_section,
    "set_cpu_control": set_cpu_control,
    "a32_set_cpu_control": set_cpu_control,
    "a32_fake_blx": a32_fake_blx,
}
