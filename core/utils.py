import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.exceptions import ModelOutputError


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-02-09T18:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def coerce_float(value: Any, default: float = 0.0) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if parsed != parsed:  # NaN
        return default
    return parsed


def clamp(value: float, min_value: float = 0.0, max_value: float = 1.0) -> float:
    return max(min_value, min(max_value, value))


def _balanced_span(text: str, opener: str, closer: str) -> Optional[str]:
    """
    返回 text 中第一个以 opener 开头、括号配平的子串。

    字符串字面量内部的括号不计数；找不到配平的片段返回 None。
    """
    start = text.find(opener)
    while start >= 0:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        start = text.find(opener, start + 1)
    return None


def extract_json_object(content: str) -> Dict[str, Any]:
    """
    从模型输出中提取第一个完整的 {...} 对象并解析。

    模型经常在 JSON 前后附带说明文字或 Markdown 代码块，此函数只取配平的对象部分。

    Raises:
        ModelOutputError: 没有找到 JSON 对象或解析失败

    示例:
        >>> extract_json_object('Sure! {"item": "eggs", "calories": 140} Enjoy.')
        {'item': 'eggs', 'calories': 140}
    """
    span = _balanced_span(content or "", "{", "}")
    if span is None:
        raise ModelOutputError("No JSON found in model response", raw_output=content)
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as e:
        raise ModelOutputError(f"Model response is not valid JSON: {e}", raw_output=content)
    if not isinstance(parsed, dict):
        raise ModelOutputError("Model response JSON is not an object", raw_output=content)
    return parsed


def extract_json_array(content: str) -> Optional[List[Any]]:
    """Like extract_json_object but for a top-level [...] list; returns None instead of raising."""
    span = _balanced_span(content or "", "[", "]")
    if span is None:
        return None
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None
