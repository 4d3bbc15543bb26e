"""
Conversion between package descriptors and Homebrew formula files.
"""

from .formula import parse_formula, render_formula

__all__ = ["parse_formula", "render_formula"]
