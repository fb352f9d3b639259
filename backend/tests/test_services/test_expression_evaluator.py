"""
Tests for the workflow expression evaluator
"""
import pytest

from smartstore.services.expression_evaluator import (
    ExpressionError,
    evaluate_condition,
    evaluate_expression,
    render_template,
    resolve_path,
    validate_expression,
)

STATE = {
    "order": {"total": 150, "items": [{"sku": "ELEC-001", "quantity": 2}]},
    "customer": {"tier": "gold", "name": "Ana"},
    "status": "paid",
    "is_first_order": False,
    "total": 40,
}


class TestEvaluation:
    """Test supported expressions"""

    @pytest.mark.parametrize("expression,expected", [
        ("{{order.total}} > 100", True),
        ("order.total <= 100", False),
        ("customer.tier in ['gold', 'platinum']", True),
        ("not {{is_first_order}} or total * 0.9 >= 50", True),
        ("'{{status}}' == 'paid'", True),
        ("{{order.items.0.sku}} == 'ELEC-001'", True),
        ("1 < total < 50", True),
        ("total % 7 == 5", True),
        ("is_first_order == false", True),
        ("unknown_field == null", True),
        ("-total + 50", 10),
    ])
    def test_expressions(self, expression, expected):
        assert evaluate_expression(expression, STATE) == expected

    def test_quoted_missing_placeholder_is_empty_string(self):
        assert evaluate_expression("'{{nope}}' == ''", STATE) is True

    def test_and_short_circuits(self):
        # The right side would fail on None > 1 if evaluated
        assert evaluate_condition("False and missing > 1", STATE) is False

    def test_condition_is_bool(self):
        assert evaluate_condition("order.items", STATE) is True
        assert evaluate_condition("missing", STATE) is False

    def test_compiled_expression_is_reusable(self):
        compiled = validate_expression("{{order_total}} > 100")

        assert compiled.evaluate({"order_total": 120}) is True
        assert compiled.evaluate({"order_total": 80}) is False


class TestRejectedExpressions:
    """Test the whitelist"""

    @pytest.mark.parametrize("expression", [
        "__import__('os').system('ls')",
        "open('/etc/passwd')",
        "customer.__class__",
        "().__class__",
        "lambda: 1",
        "[x for x in order]",
        "{'a': 1}",
        "total if True else 0",
    ])
    def test_forbidden_constructs(self, expression):
        with pytest.raises(ExpressionError):
            validate_expression(expression)

    def test_syntax_error(self):
        with pytest.raises(ExpressionError) as exc:
            validate_expression("total >")

        assert "syntax" in str(exc.value)

    def test_empty_expression(self):
        with pytest.raises(ExpressionError):
            validate_expression("   ")

    def test_too_long(self):
        with pytest.raises(ExpressionError):
            validate_expression("1 + " * 300 + "1")

    def test_runtime_errors_are_wrapped(self):
        with pytest.raises(ExpressionError):
            evaluate_expression("total / 0", STATE)
        with pytest.raises(ExpressionError):
            evaluate_expression("missing > 1", STATE)

    @pytest.mark.parametrize("expression", [
        "'x' * 100000000",
        "[0] * 3",
        "customer.name * 3",
        "'%s' % 1",
    ])
    def test_repetition_and_formatting_need_numbers(self, expression):
        with pytest.raises(ExpressionError) as exc:
            evaluate_expression(expression, STATE)

        assert "only works on numbers" in str(exc.value)

    def test_numeric_multiplication_still_works(self):
        assert evaluate_expression("order.total * 2", STATE) == 300
        assert evaluate_expression("total % 7", STATE) == 5


class TestTemplates:
    """Test placeholder rendering and path resolution"""

    def test_render_template(self):
        assert render_template("Hi {{ customer.name }}, order {{order.total}}{{missing}}!", STATE) == "Hi Ana, order 150!"

    def test_render_empty(self):
        assert render_template("", STATE) == ""
        assert render_template(None, STATE) == ""

    def test_resolve_path(self):
        assert resolve_path(STATE, "order.items.0.quantity") == 2
        assert resolve_path(STATE, "order.items.5.quantity") is None
        assert resolve_path(STATE, "customer.name.first") is None
