"""
Bracer Configuration
====================

Expansion settings shared by the expander, the fragment assemblers and
the command-line tool. Configuration can come from:
- Default values (defined here)
- Environment variables (BracerConfig.from_env)
- Command-line options (bracer CLI)
"""

from dataclasses import dataclass
import logging
import os


# The ".L" prefix keeps generated labels out of the object file's symbol table.
DEFAULT_LABEL_PREFIX = ".L_bracer_local_label_"

# Name of the host operation that joins the fragments of an expression list.
DEFAULT_CONCAT_MACRO = "concat"


@dataclass
class BracerConfig:
    """
    Configuration for macro expansion.

    Attributes:
        label_prefix: Fixed prefix for generated local labels
        concat_macro: Identifier naming the concatenation operation
        filename: Source name reported in error locations
        log_level: Logging level name used by the CLI
    """

    label_prefix: str = DEFAULT_LABEL_PREFIX
    concat_macro: str = DEFAULT_CONCAT_MACRO
    filename: str = "<input>"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "BracerConfig":
        """
        Create a BracerConfig from environment variables.

        Environment variables (all optional):
            BRACER_LABEL_PREFIX: Prefix for generated labels
            BRACER_CONCAT_MACRO: Name of the concatenation operation
            BRACER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ...)

        Returns:
            BracerConfig with values from environment variables
        """
        config = cls()

        if prefix := os.environ.get("BRACER_LABEL_PREFIX"):
            config.label_prefix = prefix

        if concat_macro := os.environ.get("BRACER_CONCAT_MACRO"):
            if concat_macro.isidentifier():
                config.concat_macro = concat_macro

        if log_level := os.environ.get("BRACER_LOG_LEVEL"):
            if isinstance(logging.getLevelName(log_level.upper()), int):
                config.log_level = log_level.upper()

        return config

    @property
    def logging_level(self) -> int:
        """The configured log level as a logging module constant."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING
