from __future__ import annotations

import math
import re
from typing import Any

from ..core.constants import DIMENSION_MAX_SCORE, DIMENSION_MIN_SCORE, PHONE_PATTERN
from ..core.exceptions import InvalidScoreRangeError, ValidationError

_PHONE_RE = re.compile(PHONE_PATTERN)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name}不能为空")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name}至少{min_len}位字符")
    return value


def require_phone(value: str) -> str:
    phone = (value or "").strip()
    if not _PHONE_RE.match(phone):
        raise ValidationError("请输入有效的手机号码")
    return phone


def require_positive(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}必须是数字")
    if math.isnan(number) or number <= 0:
        raise ValidationError(f"{field_name}必须大于0")
    return number


def require_score(value: Any, field_name: str, *, maximum: float = DIMENSION_MAX_SCORE) -> float:
    """Validate one submitted dimension score.

    Out-of-range values are rejected, never clamped, so what was submitted stays auditable.
    """

    if isinstance(value, bool):
        raise InvalidScoreRangeError(f"{field_name}分数无效")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidScoreRangeError(f"{field_name}分数无效")
    if math.isnan(number) or not DIMENSION_MIN_SCORE <= number <= maximum:
        raise InvalidScoreRangeError(f"{field_name}分数必须在{DIMENSION_MIN_SCORE:g}-{maximum:g}之间")
    return number
