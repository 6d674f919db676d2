"""
Register and Mode Tables
========================

Static lookup tables for the instruction-formatting macros:

- SPSR_TARGET_REGISTERS: registers usable with `mrs`/`msr` on the SPSR.
  r0 to r12 and lr (r14). sp (r13) and pc (r15) are excluded.
- ANY_REGISTER: every core register name, including sp and pc.
- CPU_MODES: CPU mode names to the 5-bit M field of the CPSR.

All names are accepted in lowercase or uppercase, as the GNU assembler
accepts both.

Mode bits reference:
https://developer.arm.com/documentation/ddi0406/c/System-Level-Architecture/The-System-Level-Programmers--Model/ARM-processor-modes-and-ARM-core-registers/ARM-processor-modes
"""

from typing import Optional

from bracer.errors import OutOfRangeError, SourceLocation


def _both_cases(*names: str) -> tuple[str, ...]:
    return tuple(variant for name in names for variant in (name, name.upper()))


SPSR_TARGET_REGISTERS: tuple[str, ...] = _both_cases(
    "r0", "r1", "r2", "r3", "r4", "r5", "r6", "r7", "r8", "r9", "r10",
    "r11", "r12", "r14", "lr",
)

ANY_REGISTER: tuple[str, ...] = _both_cases(
    "r0", "r1", "r2", "r3", "r4", "r5", "r6", "r7", "r8", "r9", "r10",
    "r11", "r12", "r13", "r14", "r15", "sp", "lr", "pc",
)

# CPSR low bits are `I F T MMMMM`; these are the MMMMM values.
CPU_MODES: dict[str, str] = {
    "User": "10000",
    "usr": "10000",
    "FIQ": "10001",
    "fiq": "10001",
    "IRQ": "10010",
    "irq": "10010",
    "Supervisor": "10011",
    "svc": "10011",
    "System": "11111",
    "sys": "11111",
}


def check_register(
    name: str,
    allowed: tuple[str, ...] = SPSR_TARGET_REGISTERS,
    location: Optional[SourceLocation] = None,
    argument: Optional[int] = None,
) -> str:
    """
    Validate a register name against a validity list.

    Returns:
        The name, unchanged

    Raises:
        OutOfRangeError: If the name is not in `allowed`
    """
    if name not in allowed:
        raise OutOfRangeError("register name", name, allowed, location=location, argument=argument)
    return name


def mode_bits(
    name: str,
    location: Optional[SourceLocation] = None,
    argument: Optional[int] = None,
) -> str:
    """
    Look up the CPSR mode bits for a CPU mode name.

    Raises:
        OutOfRangeError: If the name is not a known mode
    """
    try:
        return CPU_MODES[name]
    except KeyError:
        raise OutOfRangeError(
            "cpu mode name", name, tuple(CPU_MODES), location=location, argument=argument
        ) from None
