"""
Console Output Module
=====================

Writes rendered tree lines to a terminal or a file.

Design Decisions:
-----------------
1. Style hints are mapped to colorama colors here and nowhere else
2. Pipeable mode writes the exact same characters with no escape codes,
   so its output equals the styled output with colors stripped
3. The tree is framed by a leading and a trailing blank line
"""

import sys
from typing import Iterable, Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

from ..model.schemas import RenderedLine, StyleHint


STYLE_COLORS = {
    StyleHint.ROOT: Fore.YELLOW,
    StyleHint.GROUP: Fore.YELLOW,
    StyleHint.CIRCULAR_GROUP: Fore.RED,
    StyleHint.COMPUTER: Fore.LIGHTBLACK_EX,
    StyleHint.PLAIN: "",
}

INDENT_COLOR = Style.DIM


class ConsoleWriter:
    """Presentation adapter for rendered lines.

    Usage:
        writer = ConsoleWriter(pipeable=args.pipeable)
        writer.write_tree(renderer.render(tree))
    """

    def __init__(self, pipeable: bool = False, stream: Optional[TextIO] = None):
        """Initialize the writer.

        Args:
            pipeable: Drop all styling
            stream: Output stream (defaults to sys.stdout)
        """
        self.pipeable = pipeable
        self.stream = stream if stream is not None else sys.stdout
        if not pipeable and stream is None:
            just_fix_windows_console()

    def format_line(self, line: RenderedLine) -> str:
        """Format one line, styled unless in pipeable mode."""
        if self.pipeable:
            return str(line)

        indent = f"{INDENT_COLOR}{line.indent}{Style.RESET_ALL}" if line.indent else ""
        color = STYLE_COLORS.get(line.style, "")
        if not color:
            return f"{indent}{line.text}"
        return f"{indent}{color}{line.text}{Style.RESET_ALL}"

    def write_tree(self, lines: Iterable[RenderedLine]) -> None:
        """Write the tree framed by blank lines."""
        self.stream.write("\n")
        for line in lines:
            self.stream.write(self.format_line(line) + "\n")
        self.stream.write("\n")
        self.stream.flush()

    def write_error(self, message: str) -> None:
        """Write a fatal error message."""
        if self.pipeable:
            self.stream.write(f"[!] Error: {message}\n")
        else:
            self.stream.write(f"{Fore.RED}[!] Error: {message}{Style.RESET_ALL}\n")
        self.stream.flush()


def write_plain_file(lines: Iterable[RenderedLine], path: str) -> None:
    """Write the plain rendering of a tree to a file."""
    with open(path, "w", encoding="utf-8") as f:
        ConsoleWriter(pipeable=True, stream=f).write_tree(lines)
