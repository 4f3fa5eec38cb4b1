"""
calcnotes Syntax Highlighter
Turns notebook text into highlight ranges (offset, length, CSS class, colour)
for the editor front-end.
"""

import re
from typing import Any, Dict, List

from .constants import (
    ASSIGNMENT_RE, COLORS, COMMENT_PREFIXES, CSS_CLASSES, LINE_REF_RE,
    REF_COLORS, RESOLVED_RE,
)


class SyntaxHighlighter:
    """
    Produces highlight ranges for the notebook editor.
    $N back-references keep the colour they were first given for the lifetime
    of the highlighter, so a reference does not change colour while typing.
    """

    def __init__(self):
        self.ref_colors = REF_COLORS
        self.persistent_ref_colors: Dict[int, str] = {}
        self.css_classes = CSS_CLASSES

    def get_ref_color(self, line_number: int) -> str:
        """Get or assign a color for a $N reference"""
        if line_number not in self.persistent_ref_colors:
            color_idx = len(self.persistent_ref_colors) % len(self.ref_colors)
            self.persistent_ref_colors[line_number] = self.ref_colors[color_idx]
        return self.persistent_ref_colors[line_number]

    def highlight_text(self, text: str) -> List[Dict[str, Any]]:
        """
        Generate syntax highlighting data for text.

        Args:
            text (str): Notebook text

        Returns:
            list: Highlight ranges with CSS classes and colors, offsets relative
            to the whole text
        """
        highlights = []

        if not text.strip():
            return highlights

        current_pos = 0
        for line in text.split('\n'):
            line_start = current_pos

            if line.strip().startswith(COMMENT_PREFIXES):
                highlights.append(self._range(line_start, len(line), 'comment'))
            else:
                highlights.extend(self.highlight_line(line, line_start))

            # Move to next line (including newline character)
            current_pos += len(line) + 1

        return highlights

    def highlight_line(self, line: str, line_start: int) -> List[Dict[str, Any]]:
        """Highlight a single non-comment line"""
        highlights = []

        if not line.strip():
            return highlights

        indent = len(line) - len(line.lstrip())
        trimmed = line.strip()

        # Committed "= number" suffix
        result_span = None
        resolved = RESOLVED_RE.match(trimmed)
        if resolved and not ASSIGNMENT_RE.match(trimmed):
            result_span = (indent + resolved.start(2), indent + resolved.end(2))
            highlights.append(self._range(line_start + result_span[0],
                                          result_span[1] - result_span[0], 'result'))

        assignment = ASSIGNMENT_RE.match(trimmed)
        if assignment:
            highlights.append(self._range(line_start + indent, len(assignment.group(1)), 'variable'))

        for match in re.finditer(r"(?<![\w$.])\d+(?:\.\d+)?\b", line):
            if result_span and result_span[0] <= match.start() < result_span[1]:
                continue
            highlights.append(self._range(line_start + match.start(), match.end() - match.start(), 'number'))

        for match in re.finditer(r"[+\-*/×÷=]", line):
            if result_span and result_span[0] <= match.start() < result_span[1]:
                continue
            highlights.append(self._range(line_start + match.start(), 1, 'operator'))

        for match in re.finditer(r"\bans\b", line, re.IGNORECASE):
            highlights.append(self._range(line_start + match.start(), 3, 'ans'))

        highlights.extend(self._highlight_parentheses_in_line(line, line_start))
        highlights.extend(self._highlight_line_references_in_line(line, line_start))

        highlights.sort(key=lambda x: x['start'])
        return highlights

    def _range(self, start, length, kind, color=None):
        return {
            "start": start,
            "length": length,
            "class": self.css_classes[kind],
            "color": color or COLORS[kind],
        }

    def _highlight_parentheses_in_line(self, line: str, line_start: int) -> List[Dict[str, Any]]:
        """Highlight parentheses in a single line; unmatched ones in red"""
        highlights = []
        stack = []
        unmatched_closing = []

        for i, ch in enumerate(line):
            if ch == '(':
                stack.append(i)
            elif ch == ')':
                if stack:
                    start = stack.pop()
                    highlights.append(self._range(line_start + start, 1, 'paren'))
                    highlights.append(self._range(line_start + i, 1, 'paren'))
                else:
                    unmatched_closing.append(i)

        for pos in stack + unmatched_closing:
            highlights.append(self._range(line_start + pos, 1, 'unmatched'))

        return highlights

    def _highlight_line_references_in_line(self, line: str, line_start: int) -> List[Dict[str, Any]]:
        """Highlight $N back-references in a single line"""
        highlights = []

        for match in LINE_REF_RE.finditer(line):
            line_number = int(match.group(1))
            highlight = self._range(line_start + match.start(), match.end() - match.start(),
                                    'line_reference', self.get_ref_color(line_number))
            highlight["line_number"] = line_number
            highlights.append(highlight)

        return highlights
