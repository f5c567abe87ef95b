"""
Conversions between stored text and typed values.

Values are always stored as strings. Reading picks one of three conversions
by target type:
- str: the raw text is returned as is
- bool: 'true'/'1' and 'false'/'0', case-insensitive, surrounding whitespace ignored
- anything else: the type is called with the trimmed text and must accept all of it
"""

from typing import Any, Callable, Dict, Optional

from .parser import trim

_TRUE_WORDS = ('true', '1')
_FALSE_WORDS = ('false', '0')


def format_value(value: Any) -> str:
    """
    Formats a scalar for storage

    Args:
        value: string, number, boolean or anything with a text representation

    Returns:
        Text to be stored
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return format(value)


def _to_str(text: str) -> Optional[str]:
    return text


def _to_bool(text: str) -> Optional[bool]:
    word = trim(text).lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def _parse_whole(type_: Callable[[str], Any], text: str) -> Any:
    """Builds type_ from the whole trimmed text, None on any leftover or error"""
    text = trim(text)
    if not text:
        return None
    try:
        return type_(text)
    except (ValueError, TypeError, ArithmeticError):
        return None


_CONVERTERS: Dict[Any, Callable[[str], Any]] = {
    str: _to_str,
    bool: _to_bool,
}


def convert(text: Optional[str], type_: Any = str) -> Any:
    """
    Converts stored text to type_

    Args:
        text: Raw stored value, None if absent
        type_: Target type (str, bool, int, float, Decimal, Path...)

    Returns:
        Converted value, or None when the value is absent or does not convert
    """
    if text is None:
        return None
    converter = _CONVERTERS.get(type_)
    if converter is not None:
        return converter(text)
    return _parse_whole(type_, text)
