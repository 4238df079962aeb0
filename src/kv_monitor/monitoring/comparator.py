"""Threshold comparison for alerting rules.

NUMBER values are compared as ``decimal.Decimal`` so thresholds such as
``1.0000000000000000001`` keep their precision; a binary float would
round them to ``1.0``. STRING values only support equality operators.
"""

from __future__ import annotations

import operator as op
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Union

from kv_monitor.exceptions import InvalidThresholdError
from kv_monitor.schemas.notice import NoticeOperator, NoticeValueType

_OPERATORS: Dict[NoticeOperator, Callable[[Decimal, Decimal], bool]] = {
    NoticeOperator.EQ: op.eq,
    NoticeOperator.NE: op.ne,
    NoticeOperator.GT: op.gt,
    NoticeOperator.GE: op.ge,
    NoticeOperator.LT: op.lt,
    NoticeOperator.LE: op.le,
}


def parse_decimal(value: str) -> Decimal:
    """Parse a string-encoded number, rejecting NaN and infinities."""
    try:
        number = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as e:
        raise InvalidThresholdError(value) from e
    if not number.is_finite():
        raise InvalidThresholdError(value)
    return number


def compare_numbers(operator: Union[NoticeOperator, str], observed: str, threshold: str) -> bool:
    """Apply ``observed <operator> threshold`` with decimal precision."""
    fn = _OPERATORS[NoticeOperator(operator)]
    return fn(parse_decimal(observed), parse_decimal(threshold))


def compare_strings(operator: Union[NoticeOperator, str], observed: str, threshold: str) -> bool:
    """Exact string equality; ordering operators never match."""
    operator = NoticeOperator(operator)
    if operator is NoticeOperator.EQ:
        return observed == threshold
    if operator is NoticeOperator.NE:
        return observed != threshold
    return False


def should_notify(
    value_type: Union[NoticeValueType, str],
    operator: Union[NoticeOperator, str],
    observed: str,
    threshold: str,
) -> bool:
    """Decide whether an observed value satisfies a rule's condition."""
    if NoticeValueType(value_type) is NoticeValueType.NUMBER:
        return compare_numbers(operator, observed, threshold)
    return compare_strings(operator, observed, threshold)
