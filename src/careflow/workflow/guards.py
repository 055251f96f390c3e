import ast
import logging
from typing import Any, Mapping, Optional

from .models import Ternary

logger = logging.getLogger(__name__)

_LITERALS = {"true": True, "false": False, "null": None, "none": None}


class _Missing:
    """A value the context does not provide."""


_MISSING = _Missing()


def evaluate_condition(expression: Optional[str], context: Mapping[str, Any]) -> Ternary:
    """
    Evaluate a decision condition such as ``patient.age >= 45`` against a
    context of (possibly nested) mappings. Missing data makes the result
    UNKNOWN instead of False; ``and``/``or``/``not`` follow Kleene logic.
    """
    if expression is None:
        return Ternary.UNKNOWN
    expression = expression.strip()
    if expression.lower() in ("true", ""):  # Default to true
        return Ternary.TRUE

    try:
        return _truth(_safe_eval(_normalize(expression), context))
    except (SyntaxError, ValueError) as e:
        logger.debug("Cannot evaluate condition %r: %s", expression, e)
        return Ternary.UNKNOWN


def evaluate_expression(expression: Optional[str], context: Mapping[str, Any]) -> Any:
    """
    Evaluate an expression for its value (a branch name, say). Returns None
    when the value cannot be determined.
    """
    if not expression or not expression.strip():
        return None
    try:
        value = _safe_eval(_normalize(expression.strip()), context)
    except (SyntaxError, ValueError) as e:
        logger.debug("Cannot evaluate expression %r: %s", expression, e)
        return None
    if value is _MISSING:
        return None
    if isinstance(value, Ternary):
        return None if value == Ternary.UNKNOWN else value == Ternary.TRUE
    return value


def _normalize(expression: str) -> str:
    expression = expression.replace("&&", " and ").replace("||", " or ")
    # a lone "!" is negation; keep "!="
    return "".join(
        " not " if ch == "!" and expression[i + 1:i + 2] != "=" else ch
        for i, ch in enumerate(expression)
    )


def _truth(value: Any) -> Ternary:
    if isinstance(value, Ternary):
        return value
    if value is _MISSING or value is None:
        return Ternary.UNKNOWN
    return Ternary.from_bool(bool(value))


def _safe_eval(expression: str, context: Mapping[str, Any]) -> Any:
    node = ast.parse(expression, mode='eval')

    def _eval(node):
        if isinstance(node, ast.Expression):
            return _eval(node.body)

        if isinstance(node, ast.BoolOp):
            values = [_truth(_eval(v)) for v in node.values]
            if isinstance(node.op, ast.And):
                if Ternary.FALSE in values:
                    return Ternary.FALSE
                return Ternary.UNKNOWN if Ternary.UNKNOWN in values else Ternary.TRUE
            if isinstance(node.op, ast.Or):
                if Ternary.TRUE in values:
                    return Ternary.TRUE
                return Ternary.UNKNOWN if Ternary.UNKNOWN in values else Ternary.FALSE

        if isinstance(node, ast.UnaryOp):
            operand = _eval(node.operand)
            if isinstance(node.op, ast.Not):
                value = _truth(operand)
                if value == Ternary.UNKNOWN:
                    return value
                return Ternary.FALSE if value == Ternary.TRUE else Ternary.TRUE
            if isinstance(node.op, ast.USub) and isinstance(operand, (int, float)):
                return -operand
            raise ValueError(f"Unsupported operator: {node.op}")

        if isinstance(node, ast.Compare):
            left = _eval(node.left)
            for op, comparator in zip(node.ops, node.comparators):
                right = _eval(comparator)
                if left is _MISSING or right is _MISSING:
                    return Ternary.UNKNOWN
                try:
                    if isinstance(op, ast.Eq):      ok = (left == right)
                    elif isinstance(op, ast.NotEq): ok = (left != right)
                    elif isinstance(op, ast.Lt):    ok = (left < right)
                    elif isinstance(op, ast.LtE):   ok = (left <= right)
                    elif isinstance(op, ast.Gt):    ok = (left > right)
                    elif isinstance(op, ast.GtE):   ok = (left >= right)
                    elif isinstance(op, ast.In):    ok = (left in right)
                    elif isinstance(op, ast.NotIn): ok = (left not in right)
                    else:
                        raise ValueError(f"Unsupported operator: {op}")
                except TypeError:
                    # e.g. None < 5
                    return Ternary.UNKNOWN
                if not ok:
                    return Ternary.FALSE
                left = right
            return Ternary.TRUE

        if isinstance(node, ast.Attribute):
            owner = _eval(node.value)
            if isinstance(owner, Mapping):
                return owner.get(node.attr, _MISSING)
            return _MISSING

        if isinstance(node, ast.Name):
            if node.id in context:
                return context[node.id]
            if node.id.lower() in _LITERALS:
                return _LITERALS[node.id.lower()]
            return _MISSING
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, (ast.List, ast.Tuple)):
            return [_eval(element) for element in node.elts]
        raise ValueError("Unsupported expression")

    return _eval(node)
