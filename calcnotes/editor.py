"""
Editor-side contracts around the engine: the live preview for the caret line
and the commit performed when Enter is pressed on an evaluable line.
"""

from typing import Dict, NamedTuple, Optional

from .engine import LineResult, NotebookEngine, format_result, line_index_at


class Preview(NamedTuple):
    line: int
    result: float

    def to_dict(self):
        return {"line": self.line, "result": self.result}


class CommitResult(NamedTuple):
    text: str
    cursor: int
    results: Dict[int, LineResult]
    variables: Dict[str, float]


def preview(engine: NotebookEngine, text: str, cursor: int) -> Optional[Preview]:
    """Ghost result for the line under the caret, or None."""
    lines = text.split('\n')
    index = line_index_at(text, cursor)
    line = lines[index]
    if '=' in line:
        return None

    result = engine.evaluate_line(line, index)
    if result is None:
        return None
    return Preview(index, result)


def commit(engine: NotebookEngine, text: str, cursor: int) -> Optional[CommitResult]:
    """
    Rewrite the caret line to "expr = result" and reprocess the notebook.

    Returns None when the line does not evaluate or already holds a '=',
    in which case the editor should insert an ordinary newline.
    """
    lines = text.split('\n')
    index = line_index_at(text, cursor)
    line = lines[index]
    if '=' in line:
        return None

    result = engine.evaluate_line(line, index)
    if result is None:
        return None

    lines[index] = f"{line.strip()} = {format_result(result)}"
    if index == len(lines) - 1:
        lines.append('')
    outcome = engine.reprocess('\n'.join(lines))

    # Caret goes to the start of the next line
    new_lines = outcome.updated_text.split('\n')
    new_cursor = len('\n'.join(new_lines[:index + 1])) + 1
    return CommitResult(outcome.updated_text, new_cursor, outcome.results, outcome.variables)
