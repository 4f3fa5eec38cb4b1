"""
calcnotes - calculator notebook engine and API server.
"""

from .arithmetic import ExpressionError, evaluate_arithmetic
from .editor import CommitResult, Preview, commit, preview
from .engine import LineResult, NotebookEngine, ReprocessResult, VariableTable, format_result, line_index_at
from .notebook_manager import NotebookManager

__version__ = "1.0.0"

__all__ = [
    "CommitResult",
    "ExpressionError",
    "LineResult",
    "NotebookEngine",
    "NotebookManager",
    "Preview",
    "ReprocessResult",
    "VariableTable",
    "commit",
    "evaluate_arithmetic",
    "format_result",
    "line_index_at",
    "preview",
]
