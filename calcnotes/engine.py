"""
calcnotes Core Engine - Notebook Expression Evaluation
Re-evaluates every line of a notebook on each edit, tracking per-line results,
a variable table and the idempotence state needed to leave committed lines
alone.
"""

import logging
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

from .arithmetic import ExpressionError, evaluate_arithmetic
from .constants import (
    ANS_RE, ASSIGNMENT_RE, COMMENT_PREFIXES, EXPRESSION_CHARS_RE,
    LEADING_NUMBER_RE, LINE_REF_RE, LITERAL_RE, OPERATOR_ALIASES,
    OPERATOR_CHARS, RESOLVED_RE, RESULT_DECIMALS,
)

logger = logging.getLogger(__name__)


class LineResult(NamedTuple):
    line_index: int
    result: float
    expression: str

    def to_dict(self):
        return {"line_index": self.line_index, "result": self.result, "expression": self.expression}


class ReprocessResult(NamedTuple):
    updated_text: str
    results: Dict[int, LineResult]
    variables: Dict[str, float]


class VariableTable:
    """
    Ordered (name, value) pairs. Re-assigning a name updates it in place, so
    substitution order is the order in which names were first assigned.
    """

    def __init__(self):
        self._pairs: List[Tuple[str, float]] = []

    def assign(self, name: str, value: float):
        for i, (existing, _) in enumerate(self._pairs):
            if existing == name:
                self._pairs[i] = (name, value)
                return
        self._pairs.append((name, value))

    def get(self, name: str) -> Optional[float]:
        for existing, value in self._pairs:
            if existing == name:
                return value
        return None

    def __iter__(self):
        return iter(self._pairs)

    def __len__(self):
        return len(self._pairs)

    def as_dict(self) -> Dict[str, float]:
        return dict(self._pairs)


def format_result(value: float) -> str:
    """Integers print without a decimal point, anything else with two decimals."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.{RESULT_DECIMALS}f}"


def _number_text(value: float) -> str:
    # Negative values are parenthesised so "5-ans" never becomes "5--3"
    text = repr(float(value))
    if value < 0:
        return f"({text})"
    return text


def _leading_number(text: str) -> Optional[float]:
    """Read the number at the start of text, ignoring whatever follows it."""
    match = LEADING_NUMBER_RE.match(text)
    if not match:
        return None
    return float(match.group(0))


def is_comment_or_blank(line: str) -> bool:
    trimmed = line.strip()
    return not trimmed or trimmed.startswith(COMMENT_PREFIXES)


def line_index_at(text: str, offset: int) -> int:
    """Zero-based index of the line holding the caret at character offset."""
    lines = text.split('\n')
    char_count = 0
    for i, line in enumerate(lines):
        if char_count + len(line) >= offset:
            return i
        char_count += len(line) + 1
    return len(lines) - 1


class NotebookEngine:
    """
    Expression engine for one notebook.

    Each call to reprocess() rebuilds the results and the variable table from
    line 0. The expressions stored by the previous pass are only consulted to
    decide whether a committed "expr = number" line needs recomputing.
    """

    def __init__(self):
        self.results: Dict[int, LineResult] = {}
        self.variables = VariableTable()

    def reset(self):
        self.results = {}
        self.variables = VariableTable()

    # =========================================================================
    # FULL PASS
    # =========================================================================

    def reprocess(self, text: str) -> ReprocessResult:
        """
        Re-evaluate every line of a notebook.

        Args:
            text (str): Full notebook text

        Returns:
            ReprocessResult: The possibly rewritten text, the results keyed by
            line index and the variable table
        """
        lines = text.split('\n')
        updated_lines = list(lines)
        previous = self.results
        results: Dict[int, LineResult] = {}
        variables = VariableTable()
        content_updated = False

        for index, line in enumerate(lines):
            trimmed = line.strip()

            if is_comment_or_blank(trimmed):
                continue

            assignment = self._parse_assignment(trimmed, index, results, variables)
            if assignment is not None:
                name, value = assignment
                variables.assign(name, value)
                results[index] = LineResult(index, value, trimmed)
                continue

            if '=' in trimmed:
                match = RESOLVED_RE.match(trimmed)
                if not match:
                    continue
                expression = match.group(1).strip()
                old_result = _leading_number(match.group(2))
                stored = previous.get(index)

                if stored is not None and stored.expression == expression:
                    if old_result is not None:
                        results[index] = LineResult(index, old_result, expression)
                    continue

                new_result = self._evaluate_expression(expression, index, results, variables)
                if new_result is not None:
                    formatted = format_result(new_result)
                    if formatted == match.group(2):
                        # The text already shows this value; keep it and its literal
                        results[index] = LineResult(index, old_result, expression)
                    else:
                        updated_lines[index] = f"{expression} = {formatted}"
                        content_updated = True
                        results[index] = LineResult(index, new_result, expression)
                elif old_result is not None:
                    results[index] = LineResult(index, old_result, expression)
                continue

            result = self._evaluate_expression(trimmed, index, results, variables)
            if result is not None:
                results[index] = LineResult(index, result, trimmed)

        self.results = results
        self.variables = variables

        updated_text = '\n'.join(updated_lines) if content_updated else text
        return ReprocessResult(updated_text, dict(results), variables.as_dict())

    # =========================================================================
    # SINGLE LINE EVALUATION
    # =========================================================================

    def evaluate_line(self, line: str, line_index: int) -> Optional[float]:
        """
        Evaluate one line against the state of the last full pass.

        Used for the live preview and for committing a line on Enter.

        Returns:
            float: The line's value, or None if it does not evaluate
        """
        trimmed = line.strip()
        if is_comment_or_blank(trimmed):
            return None

        assignment = self._parse_assignment(trimmed, line_index, self.results, self.variables)
        if assignment is not None:
            return assignment[1]

        if '=' in trimmed:
            match = RESOLVED_RE.match(trimmed)
            if match:
                return _leading_number(match.group(2))

        return self._evaluate_expression(trimmed, line_index, self.results, self.variables)

    def _parse_assignment(self, trimmed, line_index, results, variables):
        match = ASSIGNMENT_RE.match(trimmed)
        if not match:
            return None

        name = match.group(1)
        value_expr = match.group(2).strip()
        try:
            value = evaluate_arithmetic(
                self._substitute(self._normalize(value_expr), line_index, results, variables)
            )
        except ExpressionError as e:
            logger.debug("Line %d: %r is not an assignment: %s", line_index, trimmed, e)
            return None
        return name, value

    def _evaluate_expression(self, expression, line_index, results, variables):
        """Bare expression evaluation; None when the line does not evaluate."""
        if not EXPRESSION_CHARS_RE.match(expression):
            return None

        normalized = self._normalize(expression)
        if not normalized or LITERAL_RE.match(normalized):
            return None
        # A lone name is a lookup, not a calculation
        if not (any(ch in normalized for ch in OPERATOR_CHARS)
                or ANS_RE.search(normalized) or LINE_REF_RE.search(normalized)):
            return None

        try:
            return evaluate_arithmetic(self._substitute(normalized, line_index, results, variables))
        except ExpressionError as e:
            logger.debug("Line %d: %r does not evaluate: %s", line_index, expression, e)
            return None

    # =========================================================================
    # SUBSTITUTION
    # =========================================================================

    @staticmethod
    def _normalize(expression):
        expression = ''.join(expression.split())
        for alias, operator in OPERATOR_ALIASES.items():
            expression = expression.replace(alias, operator)
        return expression

    @staticmethod
    def _last_result(results, line_index):
        """Result of the nearest line above line_index that has one."""
        earlier = [index for index in results if index < line_index]
        if not earlier:
            return None
        return results[max(earlier)].result

    def _substitute(self, expression, line_index, results, variables):
        """Replace ans, $N and variable names with numbers; unresolved ones stay as text."""
        if ANS_RE.search(expression):
            last = self._last_result(results, line_index)
            if last is not None:
                expression = ANS_RE.sub(lambda m: _number_text(last), expression)

        def replace_line_ref(match):
            ref_index = int(match.group(1)) - 1
            referenced = results.get(ref_index)
            if referenced is not None and ref_index < line_index:
                return _number_text(referenced.result)
            return match.group(0)

        expression = LINE_REF_RE.sub(replace_line_ref, expression)

        for name, value in variables:
            expression = re.sub(r'\b' + re.escape(name) + r'\b', lambda m, v=value: _number_text(v), expression)

        return expression
