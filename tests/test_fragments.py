# =============================================================================
# test_fragments.py - Fragment Assembler Unit Tests
# =============================================================================
# Tests for each macro's fragment assembler, called directly on classified
# argument tokens. The output is checked as tokens and, for concatenations,
# as the text it evaluates to.
# =============================================================================

import pytest
from bracer.concat import SEPARATOR
from bracer.config import BracerConfig
from bracer.errors import OutOfRangeError, PatternError, ShapeError
from bracer.expander import MacroExpander
from bracer.fragments import (
    FRAGMENT_ASSEMBLERS,
    a32_fake_blx,
    a32_within_t32,
    get_bool,
    put_fn_in_section,
    read_spsr,
    set_cpu_control,
    when,
    write_spsr,
)
from bracer.labels import LabelAllocator
from bracer.tokens import Identifier, Literal, Punctuation, classify_all
from bracer.trees import parse_trees


# =============================================================================
# Helper Functions
# =============================================================================

def args_of(source: str) -> list:
    """Classify the text between a macro's parentheses."""
    return classify_all(parse_trees(source))


def evaluated(tokens: list) -> str:
    return MacroExpander().evaluate(tokens)


# =============================================================================
# Conditional Block Tests
# =============================================================================

class TestWhen:

    def test_guarded_block(self):
        output = when(
            args_of('("r0" != "#0") { "add r1, r2, r3", "add r0, r1, r4", }'),
            allocator=LabelAllocator(start=7),
        )
        assert evaluated(output) == (
            "cmp r0, #0\n"
            "beq .L_bracer_local_label_7\n"
            "add r1, r2, r3\n"
            "add r0, r1, r4\n"
            ".L_bracer_local_label_7:\n"
        )

    def test_output_is_concat_expression(self):
        output = when(args_of('("r0" == "r1") { "nop" }'), allocator=LabelAllocator())
        assert output[0] == Identifier("concat")
        assert output[1] == Punctuation("!")
        fragments = output[2].tokens
        assert fragments[0] == Literal.string("cmp r0, r1\nbne .L_bracer_local_label_0\n")
        assert fragments[1] == SEPARATOR
        assert fragments[-1] == Literal.string(".L_bracer_local_label_0:\n")

    def test_body_without_trailing_comma(self):
        output = when(args_of('("r0" >= u "r1") { "mov r0, r1" }'), allocator=LabelAllocator())
        assert evaluated(output) == (
            "cmp r0, r1\n"
            "blo .L_bracer_local_label_0\n"
            "mov r0, r1\n"
            ".L_bracer_local_label_0:\n"
        )

    def test_empty_body(self):
        output = when(args_of('("r0" < i "r1") {}'), allocator=LabelAllocator())
        assert evaluated(output) == (
            "cmp r0, r1\n"
            "bge .L_bracer_local_label_0\n"
            ".L_bracer_local_label_0:\n"
        )

    def test_fresh_label_per_expansion(self):
        allocator = LabelAllocator()
        args = args_of('("r0" == "r1") { "nop" }')
        first = evaluated(when(args, allocator=allocator))
        second = evaluated(when(args, allocator=allocator))
        assert ".L_bracer_local_label_0:" in first
        assert ".L_bracer_local_label_1:" in second

    def test_explicit_label(self):
        allocator = LabelAllocator()
        output = when(args_of('("r0" == "r1") (".Lskip") { "nop" }'), allocator=allocator)
        assert evaluated(output) == "cmp r0, r1\nbne .Lskip\nnop\n.Lskip:\n"
        assert allocator.next_number() == 0

    def test_invalid_explicit_label(self):
        with pytest.raises(PatternError, match="not a valid assembler label"):
            when(args_of('("r0" == "r1") ("1 bad") { "nop" }'), allocator=LabelAllocator())

    @pytest.mark.parametrize("label", ["foo\\n", "foo\\nbar", "foo "])
    def test_explicit_label_must_be_whole_symbol(self, label):
        """A label followed by a newline or space would split the definition."""
        with pytest.raises(PatternError, match="not a valid assembler label"):
            when(args_of(f'("r0" == "r1") ("{label}") {{ "nop" }}'), allocator=LabelAllocator())

    def test_two_groups_are_test_and_body(self):
        """With two groups the second is the body, never a label."""
        allocator = LabelAllocator()
        output = when(args_of('("r0" == "r1") ("L")'), allocator=allocator)
        assert evaluated(output) == (
            "cmp r0, r1\n"
            "bne .L_bracer_local_label_0\n"
            "L\n"
            ".L_bracer_local_label_0:\n"
        )

    def test_label_prefix_from_config(self):
        config = BracerConfig(label_prefix=".Lguard_")
        output = when(args_of('("r0" == "r1") {}'), config=config, allocator=LabelAllocator())
        assert evaluated(output).endswith(".Lguard_0:\n")

    def test_missing_body(self):
        with pytest.raises(ShapeError, match="too few tokens"):
            when(args_of('("r0" == "r1")'), allocator=LabelAllocator())

    def test_test_not_a_group(self):
        with pytest.raises(ShapeError, match="must have a group for the test"):
            when(args_of('"r0" { "nop" }'), allocator=LabelAllocator())

    def test_too_many_tokens(self):
        with pytest.raises(ShapeError, match="too many tokens"):
            when(args_of('("r0" == "r1") ("L") { "nop" } {}'), allocator=LabelAllocator())

    def test_bad_test_allocates_no_label(self):
        allocator = LabelAllocator()
        with pytest.raises(PatternError) as exc_info:
            when(args_of('("r0" < "r1") { "nop" }'), allocator=allocator)
        assert exc_info.value.argument == 1
        assert allocator.next_number() == 0


# =============================================================================
# Code Mode Scope Tests
# =============================================================================

class TestCodeScope:

    def test_empty_body(self):
        assert evaluated(a32_within_t32([])) == ".code 32\n.code 16\n"

    def test_single_line(self):
        assert evaluated(a32_within_t32(args_of('"mov r0, #0"'))) == ".code 32\nmov r0, #0\n.code 16\n"

    @pytest.mark.parametrize("source", [
        '"mov r0, #0", "add r0, r0, r0"',
        '"mov r0, #0", "add r0, r0, r0",',
    ])
    def test_trailing_comma_irrelevant(self, source):
        assert evaluated(a32_within_t32(args_of(source))) == (
            ".code 32\nmov r0, #0\nadd r0, r0, r0\n.code 16\n"
        )

    def test_nested_macro_line(self):
        output = a32_within_t32(args_of('read_spsr!("r1"), "bx lr"'))
        assert evaluated(output) == ".code 32\nmrs r1, SPSR\nbx lr\n.code 16\n"

    def test_alias(self):
        assert FRAGMENT_ASSEMBLERS["t32_with_an_a32_scope"] is a32_within_t32


# =============================================================================
# Single-Instruction Formatter Tests
# =============================================================================

class TestSpsr:

    @pytest.mark.parametrize("register", ["r0", "R7", "r12", "r14", "lr", "LR"])
    def test_read(self, register):
        assert read_spsr([Literal.string(register)]) == [Literal.string(f"mrs {register}, SPSR")]

    def test_write(self):
        assert write_spsr(args_of('"lr"')) == [Literal.string("msr lr, SPSR")]

    @pytest.mark.parametrize("register", ["r13", "r15", "sp", "pc", "x0", "Lr"])
    def test_out_of_range(self, register):
        with pytest.raises(OutOfRangeError) as exc_info:
            read_spsr([Literal.string(register)])
        assert exc_info.value.value == register
        assert "r12" in exc_info.value.allowed

    def test_not_a_string(self):
        with pytest.raises(ShapeError, match="must be a string literal"):
            read_spsr(args_of("r0"))

    def test_no_argument(self):
        with pytest.raises(ShapeError, match="not enough input"):
            write_spsr([])

    def test_two_arguments(self):
        with pytest.raises(ShapeError, match="one string literal only"):
            write_spsr(args_of('"r0", "r1"'))

    def test_aliases(self):
        assert FRAGMENT_ASSEMBLERS["a32_read_spsr_to"] is read_spsr
        assert FRAGMENT_ASSEMBLERS["a32_write_spsr_from"] is write_spsr


class TestSection:

    def test_section(self):
        assert put_fn_in_section(args_of('".text._start"')) == [
            Literal.string('.section .text._start,"ax",%progbits')
        ]

    @pytest.mark.parametrize("name", ['""', '".text foo"'])
    def test_invalid_name(self, name):
        with pytest.raises(PatternError, match="not a valid section name"):
            put_fn_in_section(args_of(name))


class TestFakeBlx:

    def test_call_through_register(self):
        output = a32_fake_blx(args_of('"r3"'), allocator=LabelAllocator(start=2))
        assert evaluated(output) == (
            "adr lr, .L_bracer_local_label_2\n"
            "bx r3\n"
            ".L_bracer_local_label_2:"
        )

    def test_unknown_register(self):
        with pytest.raises(OutOfRangeError):
            a32_fake_blx(args_of('"r16"'), allocator=LabelAllocator())


# =============================================================================
# CPU Control Tests
# =============================================================================

class TestCpuControl:

    def test_system_irq_masked(self):
        output = set_cpu_control(args_of("System, irq_masked = true, fiq_masked = false"))
        assert output == [Literal.string("msr CPSR_c, #0b10011111")]

    def test_colon_syntax(self):
        output = set_cpu_control(args_of("svc, irq_masked: false, fiq_masked: true"))
        assert output == [Literal.string("msr CPSR_c, #0b01010011")]

    @pytest.mark.parametrize("mode, bits", [
        ("User", "10000"), ("usr", "10000"),
        ("FIQ", "10001"), ("fiq", "10001"),
        ("IRQ", "10010"), ("irq", "10010"),
        ("Supervisor", "10011"), ("svc", "10011"),
        ("System", "11111"), ("sys", "11111"),
    ])
    def test_modes(self, mode, bits):
        output = set_cpu_control(args_of(f"{mode}, irq_masked = true, fiq_masked = true,"))
        assert output == [Literal.string(f"msr CPSR_c, #0b110{bits}")]

    def test_unknown_mode(self):
        with pytest.raises(OutOfRangeError, match="cpu mode name `Abort`"):
            set_cpu_control(args_of("Abort, irq_masked = true, fiq_masked = true"))

    def test_mode_must_be_identifier(self):
        with pytest.raises(ShapeError, match="cpu mode name"):
            set_cpu_control(args_of('"svc", irq_masked = true, fiq_masked = true'))

    def test_settings_out_of_order(self):
        with pytest.raises(PatternError, match="must be `irq_masked`"):
            set_cpu_control(args_of("svc, fiq_masked = true, irq_masked = true"))

    def test_non_bool_value(self):
        with pytest.raises(PatternError) as exc_info:
            set_cpu_control(args_of("svc, irq_masked = maybe, fiq_masked = true"))
        assert exc_info.value.argument == 2
        assert exc_info.value.shape == "Ident(maybe)"

    def test_missing_value(self):
        with pytest.raises(ShapeError):
            set_cpu_control(args_of("svc, irq_masked, fiq_masked = true"))

    def test_wrong_count(self):
        with pytest.raises(ShapeError, match="expected 3 settings, got 2"):
            set_cpu_control(args_of("svc, irq_masked = true"))

    def test_aliases(self):
        assert FRAGMENT_ASSEMBLERS["a32_set_cpu_control"] is set_cpu_control


class TestGetBool:

    def test_values(self):
        assert get_bool([Identifier("true")]) is True
        assert get_bool([Identifier("false")]) is False
        assert get_bool([Identifier("yes")]) is None
        assert get_bool([]) is None
