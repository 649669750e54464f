"""
adtree Reporting Module
=======================

Tree rendering and console output.

Components:
- renderer.py: Builds ordered, indented lines with style hints
- console.py: Maps style hints to colors, or writes plain pipeable text
"""

from .renderer import TreeRenderer, BranchGlyphs, UNICODE_GLYPHS, ASCII_GLYPHS
from .console import ConsoleWriter, write_plain_file
