"""
Bracer Command-Line Interface
=============================

This package provides the `bracer` command-line tool, a Click-based
front end for expanding macro invocations and inspecting the tables the
expander uses.
"""

__all__ = ["bracer"]
