"""
calcnotes Arithmetic Evaluator
Recursive-descent evaluation of plain arithmetic text: + - * / ( ) and decimal
literals. Nothing else is accepted, so substituted notebook lines can be
evaluated without handing them to eval().
"""

import math
import re


class ExpressionError(ValueError):
    """Raised when a string is not a valid arithmetic expression"""
    pass


_TOKEN_RE = re.compile(r'\s*(?:(\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?)|(.))')


def tokenize(text):
    """Split arithmetic text into a list of float literals and operator characters."""
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        number, char = match.groups()
        if number is not None:
            tokens.append(float(number))
        elif char in '+-*/()':
            tokens.append(char)
        else:
            raise ExpressionError(f"Unexpected character {char!r} at position {match.start(2)}")
        pos = match.end()
    return tokens


class _Parser:
    """One-shot parser over a token list; each rule returns the evaluated float."""

    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self):
        token = self.peek()
        self.pos += 1
        return token

    def parse(self):
        if not self.tokens:
            raise ExpressionError("Empty expression")
        value = self.parse_sum()
        if self.peek() is not None:
            raise ExpressionError(f"Unexpected token: {self.peek()!r}")
        return value

    def parse_sum(self):
        """Addition and subtraction."""
        value = self.parse_term()
        while self.peek() in ('+', '-'):
            operator = self.advance()
            right = self.parse_term()
            value = value + right if operator == '+' else value - right
        return value

    def parse_term(self):
        """Multiplication and division."""
        value = self.parse_unary()
        while self.peek() in ('*', '/'):
            operator = self.advance()
            right = self.parse_unary()
            if operator == '*':
                value = value * right
            else:
                if right == 0:
                    raise ExpressionError("Division by zero")
                value = value / right
        return value

    def parse_unary(self):
        """Leading '+'/'-'."""
        if self.peek() in ('+', '-'):
            operator = self.advance()
            operand = self.parse_unary()
            return -operand if operator == '-' else operand
        return self.parse_factor()

    def parse_factor(self):
        """Numbers and sub-expressions in '()'."""
        token = self.advance()
        if token is None:
            raise ExpressionError("Missing number")
        if token == '(':
            value = self.parse_sum()
            if self.advance() != ')':
                raise ExpressionError("Missing closing parenthesis ')'")
            return value
        if isinstance(token, float):
            return token
        raise ExpressionError(f"Unexpected token: {token!r}")


def evaluate_arithmetic(text):
    """
    Evaluate an arithmetic string to a finite float.

    Args:
        text (str): Expression made only of numbers, + - * /, and parentheses

    Returns:
        float: The value of the expression

    Raises:
        ExpressionError: If the text is malformed or the result is not finite
    """
    try:
        value = _Parser(tokenize(text)).parse()
    except RecursionError:
        raise ExpressionError("Expression is nested too deeply")

    if not math.isfinite(value):
        raise ExpressionError(f"Result is not finite: {value}")
    return value
