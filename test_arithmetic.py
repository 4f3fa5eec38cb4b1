"""
Tests for the arithmetic evaluator used on substituted notebook lines.
"""

import pytest

from calcnotes.arithmetic import ExpressionError, evaluate_arithmetic, tokenize


def test_basic_calculations():
    """Operator precedence, parentheses and decimal literals"""
    test_cases = [
        ("2+3", 5),
        ("2 + 3 * 4", 14),
        ("(2 + 3) * 4", 20),
        ("10 / 4", 2.5),
        ("7 - 10", -3),
        ("8 / 2 / 2", 2),
        ("10 - 4 - 3", 3),
        (".5 + .5", 1),
        ("5. + 1", 6),
        ("((((1))))", 1),
    ]

    for expr, expected in test_cases:
        assert evaluate_arithmetic(expr) == pytest.approx(expected), expr


def test_unary_signs():
    test_cases = [
        ("-3 + 5", 2),
        ("2 * -3", -6),
        ("--2", 2),
        ("+4", 4),
        ("-(2 + 3)", -5),
        ("5 - (-3.0)", 8),
    ]

    for expr, expected in test_cases:
        assert evaluate_arithmetic(expr) == pytest.approx(expected), expr


def test_exponent_literals_round_trip():
    """Substituted floats may be written in exponent form"""
    assert evaluate_arithmetic("1e-07 * 10") == pytest.approx(1e-06)
    assert evaluate_arithmetic("2.5E+3") == pytest.approx(2500)
    assert evaluate_arithmetic(repr(0.1 + 0.2) + "*1") == 0.1 + 0.2


def test_tokenize():
    assert tokenize("12.5*(3-1)") == [12.5, '*', '(', 3.0, '-', 1.0, ')']
    assert tokenize("  1 +  2  ") == [1.0, '+', 2.0]


def test_error_handling():
    """Every malformed input raises ExpressionError"""
    test_cases = [
        "",
        "   ",
        "1 / 0",
        "(1 + 2",
        "1 +",
        "2 3",
        ")(",
        "1 + a",
        "2 ** 3",
        "sqrt(4)",
        "1.2.3",
        "1e400",
    ]

    for expr in test_cases:
        with pytest.raises(ExpressionError):
            evaluate_arithmetic(expr)


def test_deep_nesting_is_an_expression_error():
    expr = "(" * 5000 + "1" + ")" * 5000
    with pytest.raises(ExpressionError):
        evaluate_arithmetic(expr)


def test_expression_error_is_value_error():
    with pytest.raises(ValueError):
        evaluate_arithmetic("1 +")
