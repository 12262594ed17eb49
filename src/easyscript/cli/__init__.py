"""
EasyScript Command-Line Interface
=================================

This package provides the ``aesc`` command-line tool:

- **aesc compile**: compile an EasyScript program to an Arduino sketch
- **aesc format**: re-indent EasyScript source
- **aesc symbols**: list the pins, variables and functions of a program
- **aesc boards**: list the available board profiles

The tool is implemented as a Click command group with help text and
compiler-style error reporting.
"""

from easyscript.cli import aesc

__all__ = ["aesc"]
