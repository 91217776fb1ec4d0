"""Tests for the formula evaluator."""

import math

import pytest

from sk_units.core.errors import FormulaError, NonFiniteResult, TypeMismatch
from sk_units.core.formula import decimal_places, evaluate_formula, format_number, parse_formula


class TestEvaluation:
    def test_linear(self):
        assert evaluate_formula("value * 1.94384", 10) == pytest.approx(19.4384)

    def test_affine_with_parentheses(self):
        assert evaluate_formula("(value - 273.15) * 9/5 + 32", 373.15) == pytest.approx(212.0)

    def test_caret_is_power(self):
        assert evaluate_formula("value ^ 2", 3) == pytest.approx(9.0)
        assert evaluate_formula("value ** 2", 3) == pytest.approx(9.0)

    def test_constants(self):
        assert evaluate_formula("value * 180 / pi", math.pi) == pytest.approx(180.0)
        assert evaluate_formula("e ^ value", 1) == pytest.approx(math.e)

    def test_functions(self):
        assert evaluate_formula("sqrt(value)", 16) == pytest.approx(4.0)
        assert evaluate_formula("round(value, 2)", 1.23456) == pytest.approx(1.23)
        assert evaluate_formula("max(value, 0)", -5) == pytest.approx(0.0)
        assert evaluate_formula("log10(value)", 1000) == pytest.approx(3.0)

    def test_unary_minus(self):
        assert evaluate_formula("-value", 4) == pytest.approx(-4.0)

    def test_result_is_float(self):
        assert isinstance(evaluate_formula("value", 3), float)

    def test_duration_formula_returns_string(self):
        assert evaluate_formula("formatDurationHMS(value)", 3661) == "01:01:01"


class TestRejection:
    @pytest.mark.parametrize(
        "formula",
        [
            "__import__('os').system('true')",
            "value.real",
            "open('x')",
            "[value]",
            "value if value else 0",
            "speed * 2",
            "'text'",
            "value < 3",
        ],
    )
    def test_outside_whitelist(self, formula):
        with pytest.raises(FormulaError):
            parse_formula(formula)

    def test_empty(self):
        with pytest.raises(FormulaError, match="required"):
            evaluate_formula("  ", 1)

    def test_syntax_error(self):
        with pytest.raises(FormulaError, match="invalid syntax"):
            evaluate_formula("value *", 1)

    def test_too_long(self):
        with pytest.raises(FormulaError, match="too long"):
            parse_formula("value" + " + 1" * 200)

    def test_math_domain_error(self):
        with pytest.raises(FormulaError):
            evaluate_formula("sqrt(value)", -1)


class TestNonFinite:
    def test_division_by_zero(self):
        with pytest.raises(NonFiniteResult):
            evaluate_formula("value / 0", 1)

    def test_overflow(self):
        with pytest.raises(NonFiniteResult):
            evaluate_formula("value ^ 1000", 1e10)

    def test_infinite_result(self):
        with pytest.raises(NonFiniteResult):
            evaluate_formula("value * 1e308", 1e10)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_input(self, value):
        with pytest.raises(NonFiniteResult):
            evaluate_formula("value", value)


class TestInputType:
    @pytest.mark.parametrize("value", ["12", None, True])
    def test_non_number(self, value):
        with pytest.raises(TypeMismatch):
            evaluate_formula("value * 2", value)


class TestNumberFormatting:
    def test_decimal_places(self):
        assert decimal_places("0.00") == 2
        assert decimal_places("0") == 0
        assert decimal_places(None) == 0

    def test_format_number(self):
        assert format_number(3.14159, "0.00") == "3.14"
        assert format_number(2.5, "0") == "2"
        assert format_number(10, "0.0") == "10.0"
