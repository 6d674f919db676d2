"""
bracer - Inline Assembly Fragment Generator Command-Line Interface
==================================================================

This module implements the `bracer` command. It expands one macro
invocation and prints the assembly text it generates, or the
concatenation expression itself.

Commands
--------
- **expand**: Expand a macro invocation from a file, an argument or stdin
- **macros**: List the available macros
- **conditions**: Show the comparison operators accepted by `when!`

Usage Examples
--------------
Expand an expression given on the command line:
    $ bracer expand -e 'read_spsr!("r0")'
    mrs r0, SPSR

Expand a conditional block stored in a file:
    $ bracer expand guard.macro

Show the concatenation expression instead of its value:
    $ bracer expand --tokens -e 'a32_within_t32!("mov r0, #0")'
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from bracer import __version__
from bracer.cli.errors import ExitCode, handle_cli_exception
from bracer.conditions import CONDITIONS
from bracer.config import BracerConfig
from bracer.expander import MacroExpander
from bracer.tokens import to_source


def setup_logging(config: BracerConfig, verbose: bool) -> None:
    """Configure logging from the config level, or DEBUG when verbose."""
    level = logging.DEBUG if verbose else config.logging_level
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s" if verbose else "%(levelname)s: %(message)s",
    )


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="bracer")
def main() -> None:
    """
    Inline assembly fragment generator for ARM.

    Expands bracer macro invocations into assembly text.

    \b
    Commands:
      expand      Expand a macro invocation
      macros      List available macros
      conditions  Show comparison operators for when!

    \b
    Examples:
      bracer expand -e 'read_spsr!("r0")'
      bracer expand guard.macro
      bracer macros
    """
    pass


# =============================================================================
# Expand Command
# =============================================================================

@main.command("expand")
@click.argument(
    "source_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-e", "--expr",
    help="Macro invocation to expand (instead of SOURCE_FILE)",
)
@click.option(
    "-t", "--tokens",
    is_flag=True,
    help="Print the concatenation expression instead of its text",
)
@click.option(
    "--label-prefix",
    help="Prefix for generated local labels (default: .L_bracer_local_label_)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
def cmd_expand(
    source_file: Optional[Path],
    expr: Optional[str],
    tokens: bool,
    label_prefix: Optional[str],
    verbose: bool,
) -> None:
    """
    Expand one macro invocation.

    The invocation is read from SOURCE_FILE, from --expr, or from standard
    input when neither is given.

    \b
    Examples:
      bracer expand -e 'write_spsr!("lr")'
      bracer expand -e 'when!(("r0" >= u "r1") { "mov r0, r1" })'
      echo 'put_fn_in_section!(".text._start")' | bracer expand
    """
    if source_file is not None and expr is not None:
        click.echo("Error: SOURCE_FILE and -e/--expr are mutually exclusive", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    config = BracerConfig.from_env()
    if label_prefix:
        config.label_prefix = label_prefix
    setup_logging(config, verbose)

    try:
        if source_file is not None:
            source = source_file.read_text()
            config.filename = str(source_file)
        elif expr is not None:
            source = expr
        else:
            source = click.get_text_stream("stdin").read()
            config.filename = "<stdin>"

        expander = MacroExpander(config)
        output = expander.expand_source(source)

        if tokens:
            click.echo(to_source(output))
        else:
            text = expander.evaluate(output)
            click.echo(text, nl=not text.endswith("\n"))

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


# =============================================================================
# Macros Command
# =============================================================================

@main.command("macros")
def cmd_macros() -> None:
    """
    List the available macros.

    Alternate names that expand identically are listed separately.
    """
    expander = MacroExpander()
    width = max(len(name) for name in expander.macro_names)

    for name in expander.macro_names:
        doc = (expander.lookup(name).__doc__ or "").strip()
        summary = doc.splitlines()[0] if doc else ""
        click.echo(f"{name + '!':<{width + 1}}  {summary}")


# =============================================================================
# Conditions Command
# =============================================================================

@main.command("conditions")
def cmd_conditions() -> None:
    """
    Show the comparison operators accepted by when!.

    The skip condition is the branch taken when the test fails.
    """
    click.echo(f"{'Operator':<10} {'Meaning':<28} {'Skip':>4}")
    click.echo("-" * 44)
    for condition in CONDITIONS:
        click.echo(f"{condition.source:<10} {condition.meaning:<28} {condition.skip:>4}")


if __name__ == "__main__":
    main()
