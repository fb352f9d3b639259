"""
Safe expression evaluation for workflow conditions and message templates

Expressions are parsed with `ast` and walked against a whitelist; nothing is
ever passed to eval(). Supported:

    {{order.total}} > 100 and customer.tier in ['gold', 'platinum']
    not {{is_first_order}} or total * 0.9 >= 50
    '{{status}}' == 'paid'

Names and {{placeholders}} resolve against the workflow state; dotted paths
walk nested dicts (and list indexes). Unknown names resolve to None.
"""
import ast
import operator
import re
from typing import Any, Dict, Tuple

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")
QUOTED_PLACEHOLDER_PATTERN = re.compile(r"(['\"])\{\{\s*([\w.]+)\s*\}\}\1")

MAX_EXPRESSION_LENGTH = 1000

# JSON / JavaScript spellings people type into condition boxes
LITERAL_NAMES = {"true": True, "false": False, "null": None, "none": None}

BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

# Sequence repetition and %-formatting can build arbitrarily large strings
NUMERIC_ONLY_OPERATORS = {ast.Mult: "*", ast.Mod: "%"}

UNARY_OPERATORS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

COMPARE_OPERATORS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}


class ExpressionError(ValueError):
    """Expression could not be parsed, uses a forbidden construct or failed to evaluate"""


_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float))


def resolve_path(data: Any, path: str) -> Any:
    """Walk a dotted path through dicts/lists; None when any step is missing"""
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            current = _MISSING
        if current is _MISSING:
            return None
    return current


def render_template(text: str, context: Dict[str, Any]) -> str:
    """Replace {{path}} placeholders with values from context (missing -> empty string)"""
    if not text:
        return text or ""

    def substitute(match: re.Match) -> str:
        value = resolve_path(context, match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(substitute, text)


def _dotted_name(node: ast.AST) -> str:
    """'a.b.c' for an Attribute chain rooted at a Name, else raise"""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        raise ExpressionError("Attribute access is only allowed on variable paths")
    parts.append(node.id)
    return ".".join(reversed(parts))


class CompiledExpression:
    """A parsed, whitelisted expression ready to evaluate against any state"""

    def __init__(self, source: str):
        if not isinstance(source, str) or not source.strip():
            raise ExpressionError("Expression is empty")
        if len(source) > MAX_EXPRESSION_LENGTH:
            raise ExpressionError(f"Expression longer than {MAX_EXPRESSION_LENGTH} characters")

        self.source = source
        self.placeholders: Dict[str, Tuple[str, bool]] = {}
        rewritten = self._replace_placeholders(source)

        try:
            self.tree = ast.parse(rewritten.strip(), mode="eval")
        except SyntaxError as e:
            raise ExpressionError(f"Invalid expression syntax: {e.msg}")

        self._check(self.tree.body)

    def _replace_placeholders(self, source: str) -> str:
        def quoted(match: re.Match) -> str:
            token = f"__ph{len(self.placeholders)}"
            self.placeholders[token] = (match.group(2), True)
            return token

        def bare(match: re.Match) -> str:
            token = f"__ph{len(self.placeholders)}"
            self.placeholders[token] = (match.group(1), False)
            return token

        source = QUOTED_PLACEHOLDER_PATTERN.sub(quoted, source)
        return PLACEHOLDER_PATTERN.sub(bare, source)

    def _check(self, node: ast.AST) -> None:
        if isinstance(node, ast.Constant):
            return
        if isinstance(node, ast.Name):
            if node.id.startswith("__") and node.id not in self.placeholders:
                raise ExpressionError(f"Name '{node.id}' is not allowed")
            return
        if isinstance(node, ast.Attribute):
            name = _dotted_name(node)
            if "__" in name:
                raise ExpressionError(f"Name '{name}' is not allowed")
            return
        if isinstance(node, ast.BoolOp):
            for value in node.values:
                self._check(value)
            return
        if isinstance(node, ast.UnaryOp) and type(node.op) in UNARY_OPERATORS:
            self._check(node.operand)
            return
        if isinstance(node, ast.BinOp) and type(node.op) in BINARY_OPERATORS:
            self._check(node.left)
            self._check(node.right)
            return
        if isinstance(node, ast.Compare):
            if any(type(op) not in COMPARE_OPERATORS for op in node.ops):
                raise ExpressionError("Unsupported comparison operator")
            self._check(node.left)
            for comparator in node.comparators:
                self._check(comparator)
            return
        if isinstance(node, (ast.List, ast.Tuple)):
            for element in node.elts:
                self._check(element)
            return

        raise ExpressionError(f"'{type(node).__name__}' is not allowed in expressions")

    def _lookup(self, name: str, state: Dict[str, Any]) -> Any:
        if name in self.placeholders:
            path, as_text = self.placeholders[name]
            value = resolve_path(state, path)
            if as_text:
                return "" if value is None else str(value)
            return value
        if name.lower() in LITERAL_NAMES and name not in state:
            return LITERAL_NAMES[name.lower()]
        return resolve_path(state, name)

    def _eval(self, node: ast.AST, state: Dict[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            return self._lookup(node.id, state)
        if isinstance(node, ast.Attribute):
            return resolve_path(state, _dotted_name(node))
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                result = True
                for value in node.values:
                    result = self._eval(value, state)
                    if not result:
                        return result
                return result
            result = False
            for value in node.values:
                result = self._eval(value, state)
                if result:
                    return result
            return result
        if isinstance(node, ast.UnaryOp):
            return UNARY_OPERATORS[type(node.op)](self._eval(node.operand, state))
        if isinstance(node, ast.BinOp):
            left, right = self._eval(node.left, state), self._eval(node.right, state)
            symbol = NUMERIC_ONLY_OPERATORS.get(type(node.op))
            if symbol and not (_is_number(left) and _is_number(right)):
                raise ExpressionError(f"'{symbol}' only works on numbers")
            return BINARY_OPERATORS[type(node.op)](left, right)
        if isinstance(node, ast.Compare):
            left = self._eval(node.left, state)
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, state)
                if not COMPARE_OPERATORS[type(op)](left, right):
                    return False
                left = right
            return True
        if isinstance(node, ast.List):
            return [self._eval(e, state) for e in node.elts]
        if isinstance(node, ast.Tuple):
            return tuple(self._eval(e, state) for e in node.elts)

        raise ExpressionError(f"'{type(node).__name__}' is not allowed in expressions")

    def evaluate(self, state: Dict[str, Any]) -> Any:
        try:
            return self._eval(self.tree.body, state or {})
        except ExpressionError:
            raise
        except (TypeError, ZeroDivisionError, ValueError, ArithmeticError) as e:
            raise ExpressionError(f"Could not evaluate '{self.source}': {e}")


def validate_expression(source: str) -> CompiledExpression:
    """Parse and whitelist-check an expression, raising ExpressionError"""
    return CompiledExpression(source)


def evaluate_expression(source: str, state: Dict[str, Any]) -> Any:
    return CompiledExpression(source).evaluate(state)


def evaluate_condition(source: str, state: Dict[str, Any]) -> bool:
    return bool(evaluate_expression(source, state))
